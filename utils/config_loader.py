"""Configuration loader for the API test harness."""
import os
import configparser
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
import json
import re
import threading
from datetime import datetime, timedelta

import yaml

from utils.custom_exceptions import ConfigurationError
from utils.logger import get_logger


class ConfigLoader:
    """Loads INI, JSON or YAML configuration with environment variable resolution."""

    # Values of these keys may name an environment variable instead of holding the secret
    SENSITIVE_FIELDS = {
        'username', 'password', 'pwd', 'token', 'key', 'secret'
    }

    VALIDATION_RULES = {
        'timeout': lambda x: float(x) > 0,
    }

    def __init__(self, config_dir: Optional[str] = None, config_file: Optional[str] = None,
                 cache_timeout: int = 300):
        """
        Initialize the ConfigLoader.

        Args:
            config_dir: The directory where configuration files are located
            config_file: Harness settings file inside ``config_dir``; its suffix
                picks the format (.ini, .json, .yaml/.yml)
            cache_timeout: Cache timeout in seconds
        """
        self.config_dir = Path(config_dir or os.getenv('CONFIG_DIR', 'config'))
        self.config_file = config_file or os.getenv('CONFIG_FILE', 'config.ini')
        self.cache_timeout = cache_timeout

        self._config_cache: Dict[str, Tuple[Dict[str, Any], datetime, float]] = {}
        self._cache_lock = threading.RLock()

        self.logger = get_logger("config_loader")

    def _is_cache_valid(self, cache_time: datetime) -> bool:
        return datetime.now() - cache_time < timedelta(seconds=self.cache_timeout)

    def _should_resolve_from_env(self, key: str, value: str) -> bool:
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS):
            if re.match(r'^[A-Z][A-Z0-9_]*$', value):
                return True
        return False

    def _resolve_value(self, key: str, value: str, context: str = "") -> str:
        """Resolve a configuration value from environment variables if needed."""
        if self._should_resolve_from_env(key, value):
            env_value = os.getenv(value)
            if env_value:
                return env_value
            raise ConfigurationError(
                f"Environment variable '{value}' not found. "
                f"Please set it as a system environment variable. "
                f"Context: {context}",
                config_key=value
            )
        return value

    def _validate_value(self, key: str, value: str, context: str = "") -> str:
        """Validate configuration value according to rules."""
        key_lower = key.lower()
        for rule_key, rule_func in self.VALIDATION_RULES.items():
            if key_lower == rule_key or key_lower.endswith('_' + rule_key):
                try:
                    valid = rule_func(value)
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(f"Invalid value for {context}: {key}={value} ({str(e)})",
                                             config_key=context)
                if not valid:
                    raise ConfigurationError(f"Validation failed for {context}: {key}={value}",
                                             config_key=context)
        return value

    def load_config_file(self, filename: str, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load a configuration file from the config directory.

        A missing file yields an empty configuration.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            self.logger.debug(f"Configuration file not found: {file_path}")
            return {}

        mtime = file_path.stat().st_mtime
        with self._cache_lock:
            cached = self._config_cache.get(filename)
            if cached and not force_reload:
                data, cache_time, cached_mtime = cached
                if self._is_cache_valid(cache_time) and cached_mtime == mtime:
                    return data

            suffix = file_path.suffix.lower()
            try:
                if suffix == '.ini':
                    data = self._load_ini_config(file_path)
                elif suffix == '.json':
                    data = self._load_json_config(file_path)
                elif suffix in ('.yaml', '.yml'):
                    data = self._load_yaml_config(file_path)
                else:
                    raise ConfigurationError(f"Unsupported configuration format: {suffix}",
                                             config_file=str(file_path))
            except (configparser.Error, json.JSONDecodeError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to parse configuration: {e}",
                                         config_file=str(file_path))

            self._config_cache[filename] = (data, datetime.now(), mtime)
            self.logger.debug(f"Loaded configuration from {file_path}")
            return data

    def _load_ini_config(self, file_path: Path) -> Dict[str, Any]:
        config = configparser.ConfigParser(interpolation=None)
        config.read(file_path, encoding='utf-8')

        result = {}
        for section in ['DEFAULT'] + config.sections():
            result[section] = {}
            for key, value in config[section].items():
                context = f"{section}.{key}"
                resolved_value = self._resolve_value(key, value, context)
                result[section][key] = self._validate_value(key, resolved_value, context)

        return result

    def _load_json_config(self, file_path: Path) -> Dict[str, Any]:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return self._resolve_dict_values(data)

    def _load_yaml_config(self, file_path: Path) -> Dict[str, Any]:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return self._resolve_dict_values(data)

    def _resolve_dict_values(self, data: Any, context: str = "") -> Any:
        """Recursively resolve and validate values in dictionary."""
        if isinstance(data, dict):
            result = {}
            for k, v in data.items():
                new_context = f"{context}.{k}" if context else k
                if isinstance(v, str):
                    resolved_value = self._resolve_value(k, v, new_context)
                    result[k] = self._validate_value(k, resolved_value, new_context)
                elif isinstance(v, (dict, list)):
                    result[k] = self._resolve_dict_values(v, new_context)
                else:
                    result[k] = self._validate_value(str(k), v, new_context)
            return result
        elif isinstance(data, list):
            return [self._resolve_dict_values(item, f"{context}[{i}]")
                    for i, item in enumerate(data)]
        return data

    def get_api_config(self, section_name: str = "API", filename: Optional[str] = None) -> Dict[str, Any]:
        """
        Get API configuration with defaults.

        Args:
            section_name: API section name in config file (default: "API")
            filename: Configuration file inside the config directory (default: ``config_file``)

        Returns:
            Dictionary with API configuration
        """
        config = self.load_config_file(filename or self.config_file)
        api_config = config.get(section_name, {})

        if config and section_name not in config:
            self.logger.debug(f"API section '{section_name}' not found, using defaults")

        try:
            headers = api_config.get('headers')
            if isinstance(headers, str):
                headers = json.loads(headers) if headers.strip() else {}

            return {
                'base_url': str(api_config.get('base_url', '')).rstrip('/'),
                'timeout': float(api_config.get('timeout', 30)),
                'verify_ssl': _to_bool(api_config.get('verify_ssl', True)),
                'token': api_config.get('token'),
                'auth_type': str(api_config.get('auth_type', 'bearer')),
                'headers': headers or {}
            }
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid API configuration in section '{section_name}': {str(e)}",
                                     config_key=section_name)

    def get_reporting_config(self, section_name: str = "REPORTING") -> Dict[str, Any]:
        """Get report sink settings (attachments directory)."""
        section = self.load_config_file(self.config_file).get(section_name, {})
        return {
            'attachments_dir': section.get('attachments_dir', 'logs/attachments')
        }


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


config_loader = ConfigLoader()
