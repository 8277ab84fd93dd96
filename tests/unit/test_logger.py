"""
Unit tests for logger.py module.
"""

import unittest
from unittest.mock import patch
import json
import logging
import logging.handlers
import os
import sys
import tempfile
import shutil

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from utils import logger as logger_module
from utils.logger import EnhancedLogger, JSONFormatter, ColoredFormatter


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("harness.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters(unittest.TestCase):
    """Test cases for the JSON and colored formatters."""

    def test_json_formatter_includes_extra_fields(self):
        output = JSONFormatter().format(make_record("Step: x", status="passed"))

        data = json.loads(output)
        self.assertEqual(data['message'], "Step: x")
        self.assertEqual(data['level'], "INFO")
        self.assertEqual(data['status'], "passed")

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record("failed", level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        self.assertEqual(data['exception']['type'], "ValueError")
        self.assertEqual(data['exception']['message'], "boom")

    def test_colored_formatter_leaves_record_untouched(self):
        record = make_record()

        output = ColoredFormatter('%(levelname)s %(message)s').format(record)

        self.assertIn('\033[32m', output)
        self.assertEqual(record.levelname, "INFO")


class TestEnhancedLogger(unittest.TestCase):
    """Test cases for EnhancedLogger class."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'LOGS_BASE_DIR': os.path.join(self.temp_dir, 'logs')})
        self.env.start()
        os.environ.pop('LOG_LEVEL', None)

    def tearDown(self):
        self.env.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_config(self, log_level):
        path = os.path.join(self.temp_dir, 'config.ini')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(f"[DEFAULT]\nlog_level = {log_level}\n")
        return path

    def test_level_from_config_file(self):
        registry = EnhancedLogger(self.write_config('debug'))

        built = registry.setup_logger("harness.test.from_file", log_to_file=False)

        self.assertEqual(built.level, logging.DEBUG)

    def test_environment_overrides_config_file(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'warning'}):
            registry = EnhancedLogger(self.write_config('DEBUG'))

        built = registry.setup_logger("harness.test.from_env", log_to_file=False)

        self.assertEqual(built.level, logging.WARNING)

    def test_invalid_level_falls_back_to_info(self):
        registry = EnhancedLogger(self.write_config('LOUD'))

        built = registry.setup_logger("harness.test.fallback", log_to_file=False)

        self.assertEqual(built.level, logging.INFO)

    def test_file_and_console_handlers(self):
        registry = EnhancedLogger(os.path.join(self.temp_dir, 'missing.ini'))

        built = registry.setup_logger("harness.test.file", log_to_console=True, log_to_file=True)

        handler_types = {type(h) for h in built.handlers}
        self.assertIn(logging.handlers.RotatingFileHandler, handler_types)
        self.assertTrue(os.path.isdir(os.path.join(self.temp_dir, 'logs')))
        self.assertFalse(built.propagate)
        for handler in built.handlers:
            handler.close()

    def test_console_only_logger_has_no_file_handler(self):
        registry = EnhancedLogger(os.path.join(self.temp_dir, 'missing.ini'))

        built = registry.setup_logger("harness.test.console", log_to_console=True, log_to_file=False)

        self.assertEqual(len(built.handlers), 1)
        self.assertNotIsInstance(built.handlers[0], logging.handlers.RotatingFileHandler)

    def test_loggers_are_cached(self):
        registry = EnhancedLogger(os.path.join(self.temp_dir, 'missing.ini'))

        first = registry.setup_logger("harness.test.cached", log_to_file=False)

        self.assertIs(registry.get_logger("harness.test.cached"), first)

    def test_explicit_level_wins_over_config(self):
        registry = EnhancedLogger(self.write_config('DEBUG'))

        built = registry.setup_logger("harness.test.explicit", log_level='error', log_to_file=False)

        self.assertEqual(built.level, logging.ERROR)


class TestModuleHelpers(unittest.TestCase):
    """Test cases for module-level helpers."""

    def test_log_test_result_routes_by_status(self):
        with patch.object(logger_module, 'test_logger') as mock_logger:
            logger_module.log_test_result("Get user", "passed", duration="0.10s")
            logger_module.log_test_result("Get user", "failed")
            logger_module.log_test_result("Get user", "skipped")

        self.assertIn("Get user - PASSED | Details: duration=0.10s", mock_logger.info.call_args.args[0])
        mock_logger.error.assert_called_once()
        mock_logger.warning.assert_called_once()

    def test_console_logger_never_writes_to_file(self):
        self.assertFalse(any(isinstance(h, logging.handlers.RotatingFileHandler)
                             for h in logger_module.console_logger.handlers))


if __name__ == '__main__':
    unittest.main()
