"""Custom exceptions for the API test harness."""
from typing import Optional, Any, Dict


class AutomationFrameworkError(Exception):
    """Base exception for all framework errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(AutomationFrameworkError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None,
                 config_file: Optional[str] = None, **kwargs):
        details = {"config_key": config_key, "config_file": config_file}
        details.update(kwargs)
        super().__init__(message, details)


class APIError(AutomationFrameworkError):
    """Raised when API operations fail."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 endpoint: Optional[str] = None, response: Optional[Any] = None, **kwargs):
        details = {
            "status_code": status_code,
            "endpoint": endpoint,
            "response": response
        }
        details.update(kwargs)
        super().__init__(message, details)


class HttpRequestFailedError(APIError):
    """Raised when the server answers with a non-success status code."""

    def __init__(self, status_code: int, response_text: Optional[str],
                 method: Optional[str] = None, endpoint: Optional[str] = None):
        self.status_code = status_code
        self.response_text = response_text
        self.method = method
        self.endpoint = endpoint
        super().__init__(
            f"Request failed with status {status_code}: {response_text}",
            status_code=status_code,
            endpoint=endpoint,
            response=response_text,
            method=method
        )


class DeserializationError(AutomationFrameworkError, ValueError):
    """Raised when a decoded response body does not fit the requested shape."""

    def __init__(self, message: str, path: str = "$", expected: Optional[Any] = None,
                 actual: Optional[Any] = None, **kwargs):
        self.path = path
        details = {"path": path, "expected": expected, "actual": actual}
        details.update(kwargs)
        super().__init__(message, details)


class StateKeyNotFoundError(AutomationFrameworkError, KeyError):
    """Raised when a step reads a scenario state key nobody has written yet."""

    def __init__(self, key: str, available_keys: Optional[list] = None):
        self.key = key
        super().__init__(
            f"Key '{key}' not found in scenario state.",
            {"available_keys": available_keys or []}
        )


class StateTypeError(AutomationFrameworkError, TypeError):
    """Raised when a scenario state value is not of the type the reader expects."""

    def __init__(self, key: str, expected: Any, actual: Any):
        self.key = key
        super().__init__(
            f"Value for key '{key}' is {type(actual).__name__}, expected {expected}",
            {"key": key}
        )


class AttachmentWriteError(AutomationFrameworkError):
    """Raised when a report attachment cannot be written."""

    def __init__(self, message: str, attachment_name: Optional[str] = None,
                 path: Optional[str] = None, **kwargs):
        details = {"attachment_name": attachment_name, "path": path}
        details.update(kwargs)
        super().__init__(message, details)
