"""
Mapping between JSON bodies and Python objects.

Request bodies may be plain dicts/lists or pydantic models. Response bodies
are decoded with ``json.loads`` and validated by pydantic against the shape
the caller asks for (``UserModel``, ``List[UserModel]``, ``dict``...), or
returned as-is when no shape is given.
"""
import json
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from utils.custom_exceptions import DeserializationError


@lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _error_path(loc) -> str:
    path = '$'
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


class JsonMapper:
    """Serializes request bodies and deserializes response bodies."""

    def to_payload(self, body: Any) -> Any:
        """Convert a request body into JSON-serializable data."""
        if isinstance(body, BaseModel):
            return body.model_dump(mode='json', exclude_none=True)
        if isinstance(body, (list, tuple)):
            return [self.to_payload(item) for item in body]
        return body

    def dumps(self, body: Any) -> str:
        return json.dumps(self.to_payload(body), ensure_ascii=False)

    def from_json(self, text: str, response_type: Any = None) -> Any:
        """
        Decode ``text`` and validate it against ``response_type``.

        Raises:
            json.JSONDecodeError: If the text is not valid JSON
            DeserializationError: If the decoded value does not fit the shape
        """
        data = json.loads(text)
        if response_type is None or response_type is Any:
            return data

        try:
            return _adapter(response_type).validate_python(data)
        except ValidationError as e:
            first = e.errors()[0]
            path = _error_path(first['loc'])
            raise DeserializationError(
                f"Response does not match {getattr(response_type, '__name__', response_type)}: "
                f"{first['msg']} at {path}",
                path=path,
                expected=str(response_type),
                actual=type(first.get('input')).__name__,
                error_count=e.error_count()
            ) from e


json_mapper = JsonMapper()
