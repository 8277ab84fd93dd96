"""
Scenario-scoped key/value store shared between step definitions.

A fresh ``ScenarioState`` is attached to the behave context before every
scenario and cleared again afterwards, so values written by one scenario are
never visible to the next one.
"""
from typing import Any, Dict, Iterator, Optional, Tuple, Type, Union

from utils.custom_exceptions import StateKeyNotFoundError, StateTypeError

# Keys shared between step modules
REST_CLIENT = 'rest_client'
BASE_URL = 'base_url'
LAST_USER = 'last_user'
USERS_LIST = 'users_list'
LAST_RESPONSE = 'last_response'
LAST_ERROR = 'last_error'
REQUEST_HEADERS = 'request_headers'
REQUEST_PAYLOAD = 'request_payload'

TypeSpec = Union[Type, Tuple[Type, ...]]


class ScenarioState:
    """
    Per-scenario mapping from string keys to arbitrary values.

    Reads are strict: asking for a key that was never written raises
    ``StateKeyNotFoundError`` so a step running before its producer fails
    loudly instead of asserting against a default.
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self._values[key] = value

    def get(self, key: str, expected_type: Optional[TypeSpec] = None) -> Any:
        """
        Return the value stored under ``key``.

        Args:
            key: State key
            expected_type: Optional class (or tuple of classes) the value must
                be an instance of. ``None`` values always pass.

        Raises:
            StateKeyNotFoundError: If the key is absent
            StateTypeError: If the value does not match ``expected_type``
        """
        try:
            value = self._values[key]
        except KeyError:
            raise StateKeyNotFoundError(key, sorted(self._values)) from None

        if expected_type is not None and value is not None and not isinstance(value, expected_type):
            raise StateTypeError(key, _type_name(expected_type), value)

        return value

    def contains(self, key: str) -> bool:
        return key in self._values

    def remove(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()

    def keys(self):
        return list(self._values.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __repr__(self) -> str:
        return f"ScenarioState(keys={sorted(self._values)})"


def _type_name(expected_type: TypeSpec) -> str:
    if isinstance(expected_type, tuple):
        return ' | '.join(t.__name__ for t in expected_type)
    return expected_type.__name__
