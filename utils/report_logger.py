"""
Best-effort test report sink.

Step names, parameters and labels go to the test execution log; response
bodies are written as attachment files. Nothing in here may fail a scenario:
every public method catches its own errors and reports them on the console
logger instead. The only exception is ``fail_test``, which exists to fail.
"""
import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Optional, Union

from utils.custom_exceptions import AttachmentWriteError
from utils.logger import test_logger, console_logger

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


class ReportLogger:
    """Structured step logging plus file attachments under one directory."""

    def __init__(self,
                 attachments_dir: Union[str, Path] = 'logs/attachments',
                 logger: Optional[logging.Logger] = None,
                 fallback_logger: Optional[logging.Logger] = None):
        self.attachments_dir = Path(attachments_dir)
        self.logger = logger or test_logger
        self.fallback_logger = fallback_logger or console_logger

    def log_step(self, step_name: str, status: Optional[str] = None) -> None:
        try:
            if status:
                self.logger.info(f"Step [{status}]: {step_name}",
                                 extra={'step': step_name, 'status': status})
            else:
                self.logger.info(f"✓ Step: {step_name}", extra={'step': step_name})
        except Exception as e:
            self.fallback_logger.error(f"❌ Error logging step: {e}")

    def add_parameter(self, name: str, value: Any) -> None:
        self._log_safely(f"📝 Parameter: {name} = {value}", 'parameter', parameter=name)

    def add_link(self, url: str, link_text: str, link_type: str = 'custom') -> None:
        self._log_safely(f"🔗 [{link_type}] Link added: {link_text} -> {url}", 'link')

    def set_description(self, description: str) -> None:
        self._log_safely(f"📄 Description: {description}", 'description')

    def set_feature(self, feature: str) -> None:
        self._log_safely(f"🏷️ Feature: {feature}", 'feature')

    def set_story(self, story: str) -> None:
        self._log_safely(f"📖 Story: {story}", 'story')

    def add_label(self, name: str, value: str) -> None:
        self._log_safely(f"🏷️ Label: {name} = {value}", 'label', label=name)

    def attach_text(self, content: Optional[str], attachment_name: str) -> Optional[Path]:
        """Write ``content`` to ``<attachments_dir>/<name>.txt``."""
        try:
            path = self._write_attachment(content or '', attachment_name, '.txt')
            self.logger.info(f"📎 Text attachment added: {attachment_name}")
            return path
        except AttachmentWriteError as e:
            self.fallback_logger.error(f"❌ Error attaching text: {e}")
            return None

    def attach_json(self, content: Any, attachment_name: str) -> Optional[Path]:
        """
        Write JSON to ``<attachments_dir>/<name>.json``.

        Strings are written verbatim; other values are pretty-printed.
        """
        try:
            if isinstance(content, str):
                text = content
            else:
                text = json.dumps(content, indent=2, ensure_ascii=False, default=str)
            path = self._write_attachment(text, attachment_name, '.json')
            self.logger.info(f"📎 JSON attachment added: {attachment_name}")
            return path
        except (AttachmentWriteError, TypeError, ValueError) as e:
            self.fallback_logger.error(f"❌ Error attaching JSON: {e}")
            return None

    def attach_file(self, file_path: Union[str, Path], attachment_name: str) -> Optional[Path]:
        """Copy an existing file into the attachments directory."""
        source = Path(file_path)
        try:
            if not source.exists():
                self.logger.warning(f"⚠️ File not found: {source}")
                return None
            self.attachments_dir.mkdir(parents=True, exist_ok=True)
            destination = self.attachments_dir / source.name
            shutil.copyfile(source, destination)
            self.logger.info(f"📎 Attachment added: {attachment_name} -> {source.name}")
            return destination
        except OSError as e:
            self.fallback_logger.error(f"❌ Error attaching file {attachment_name}: {e}")
            return None

    def fail_test(self, failure_message: str) -> None:
        """Log the failure and fail the current step."""
        self._log_safely(f"❌ Test Failed: {failure_message}", 'failure', level=logging.ERROR)
        raise AssertionError(failure_message)

    def _write_attachment(self, text: str, attachment_name: str, extension: str) -> Path:
        path = self.attachments_dir / self._file_name(attachment_name, extension)
        try:
            self.attachments_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding='utf-8')
        except OSError as e:
            raise AttachmentWriteError(f"Could not write attachment: {e}",
                                       attachment_name=attachment_name, path=str(path)) from e
        return path

    @staticmethod
    def _file_name(attachment_name: str, extension: str) -> str:
        name = _UNSAFE_CHARS.sub('_', attachment_name).strip('._') or 'attachment'
        if not name.lower().endswith(extension):
            name += extension
        return name

    def _log_safely(self, message: str, kind: str, level: int = logging.INFO, **extra) -> None:
        try:
            self.logger.log(level, message, extra={'report_item': kind, **extra})
        except Exception as e:
            self.fallback_logger.error(f"❌ Error adding {kind}: {e}")
