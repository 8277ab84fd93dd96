"""
Logging setup for the API test harness.

Every named logger writes to the console and to a single rotating file under
``logs/``. Format and level come from ``config/config.ini`` and can be
overridden through environment variables (LOG_LEVEL, LOG_FORMAT, ...).
"""
import logging
import logging.handlers
import os
import sys
import json
import configparser
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, Any
import threading
import traceback

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
VALID_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename', 'module',
    'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName', 'created', 'msecs',
    'relativeCreated', 'thread', 'threadName', 'processName', 'process', 'message',
    'taskName'
}


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Work on a copy so file handlers sharing the record keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_obj = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__,  # type: ignore
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        # Structured fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str, ensure_ascii=False)


class EnhancedLogger:
    """Registry that builds and caches configured loggers."""

    def __init__(self, config_path: str = 'config/config.ini'):
        self._loggers: Dict[str, logging.Logger] = {}
        self._lock = threading.Lock()
        self._config_path = Path(config_path)
        self._config = self._load_default_config()

    def _load_default_config(self) -> Dict[str, Any]:
        """Load logging configuration from config.ini, then environment variables."""
        config = {'log_level': 'INFO'}

        try:
            if self._config_path.exists():
                parser = configparser.ConfigParser(interpolation=None)
                parser.read(self._config_path, encoding='utf-8')
                if 'log_level' in parser['DEFAULT']:
                    config['log_level'] = parser['DEFAULT']['log_level']
        except configparser.Error as e:
            print(f"Warning: Could not load log_level from {self._config_path}: {e}")

        config['log_level'] = os.getenv('LOG_LEVEL', config['log_level']).upper()
        if config['log_level'] not in VALID_LEVELS:
            config['log_level'] = 'INFO'

        config.update({
            'log_format': os.getenv('LOG_FORMAT', 'standard'),  # standard, json, colored
            'max_file_size': int(os.getenv('LOG_MAX_FILE_SIZE', '10485760')),  # 10MB
            'backup_count': int(os.getenv('LOG_BACKUP_COUNT', '5')),
            'log_to_console': os.getenv('LOG_TO_CONSOLE', 'true').lower() == 'true',
            'log_to_file': os.getenv('LOG_TO_FILE', 'true').lower() == 'true',
            'logs_base_dir': os.getenv('LOGS_BASE_DIR', 'logs'),
        })

        return config

    def _build_formatter(self, custom_format: Optional[str] = None) -> logging.Formatter:
        if custom_format:
            return logging.Formatter(custom_format)
        if self._config['log_format'] == 'json':
            return JSONFormatter()
        return logging.Formatter(LOG_FORMAT)

    def setup_logger(
        self,
        name: str,
        log_level: Optional[str] = None,
        log_to_file: Optional[bool] = None,
        log_to_console: Optional[bool] = None,
        custom_format: Optional[str] = None
    ) -> logging.Logger:
        """
        Set up a logger with console and file handlers.

        Args:
            name: Logger name
            log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: Whether to log to file
            log_to_console: Whether to log to console
            custom_format: Custom log format

        Returns:
            Configured logger instance
        """
        with self._lock:
            if name in self._loggers:
                return self._loggers[name]

            logger = logging.getLogger(name)
            logger.handlers.clear()

            level = log_level or self._config['log_level']
            logger.setLevel(getattr(logging, level.upper()))

            formatter = self._build_formatter(custom_format)

            if log_to_console if log_to_console is not None else self._config['log_to_console']:
                console_handler = logging.StreamHandler(sys.stdout)
                if self._config['log_format'] == 'colored' and sys.stdout.isatty():
                    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
                else:
                    console_handler.setFormatter(formatter)
                logger.addHandler(console_handler)

            if log_to_file if log_to_file is not None else self._config['log_to_file']:
                self._add_file_handler(logger, formatter)

            logger.propagate = False

            self._loggers[name] = logger
            return logger

    def _add_file_handler(self, logger: logging.Logger, formatter: logging.Formatter):
        """Attach the shared rotating log file."""
        logs_dir = Path(self._config['logs_base_dir'])
        logs_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "test_automation.log",
            maxBytes=self._config['max_file_size'],
            backupCount=self._config['backup_count'],
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get existing logger or create new one with default settings."""
        if name in self._loggers:
            return self._loggers[name]
        return self.setup_logger(name)


_enhanced_logger = EnhancedLogger()


def setup_logger(
    name: str,
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_to_console: Optional[bool] = None,
    custom_format: Optional[str] = None
) -> logging.Logger:
    """Set up a logger through the shared registry."""
    return _enhanced_logger.setup_logger(
        name=name,
        log_level=log_level,
        log_to_file=log_to_file,
        log_to_console=log_to_console,
        custom_format=custom_format
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger by name."""
    return _enhanced_logger.get_logger(name)


def log_test_result(test_name: str, status: str, **details):
    """Log test result with details."""
    message = f"Test Result: {test_name} - {status.upper()}"
    if details:
        message += " | Details: " + ', '.join(f'{k}={v}' for k, v in details.items())

    if status.upper() in ['PASSED', 'SUCCESS']:
        test_logger.info(message)
    elif status.upper() in ['FAILED', 'ERROR']:
        test_logger.error(message)
    else:
        test_logger.warning(message)


logger = setup_logger("automation")
api_logger = setup_logger("api")
test_logger = setup_logger("test_execution")
# Secondary channel for report sink failures; never touches the log file
console_logger = setup_logger("console", log_to_file=False, log_to_console=True)


__all__ = [
    'setup_logger', 'get_logger',
    'log_test_result',
    'logger', 'api_logger', 'test_logger', 'console_logger',
    'EnhancedLogger', 'ColoredFormatter', 'JSONFormatter'
]
