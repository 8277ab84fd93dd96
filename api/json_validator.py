"""
JSON validator utility for schema validation and field lookups on response bodies.
"""
import json
from jsonschema import Draft7Validator, ValidationError, SchemaError
from typing import Dict, Any, List, Optional, Union
from pathlib import Path

from utils.logger import logger

_MISSING = object()


class JsonValidator:
    """JSON schema validation and dot-path field access."""

    def __init__(self, schema_directory: Optional[Union[str, Path]] = None):
        self.schema_cache: Dict[str, Dict[str, Any]] = {}
        self.schema_directory = Path(schema_directory) if schema_directory else \
            Path(__file__).parent.parent / "schemas"

    def validate(self,
                 data: Union[Dict, List],
                 schema: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate JSON data against a Draft 7 schema, collecting every error.

        Args:
            data: JSON data to validate
            schema: JSON schema

        Returns:
            Dictionary with ``valid`` flag and formatted ``errors``
        """
        try:
            Draft7Validator.check_schema(schema)
            validator = Draft7Validator(schema)
            errors = [self._format_validation_error(e)
                      for e in sorted(validator.iter_errors(data), key=lambda e: list(e.path))]
        except SchemaError as e:
            return {
                'valid': False,
                'errors': [{'path': 'schema', 'message': f"Invalid schema: {e.message}"}]
            }

        return {
            'valid': len(errors) == 0,
            'errors': errors
        }

    def validate_text(self, text: Optional[str], schema: Dict[str, Any]) -> Dict[str, Any]:
        """Decode a raw response body and validate it."""
        try:
            data = json.loads(text or '')
        except json.JSONDecodeError as e:
            return {
                'valid': False,
                'errors': [{'path': 'root', 'message': f"Invalid JSON: {e}"}]
            }
        return self.validate(data, schema)

    def _format_validation_error(self, error: ValidationError) -> Dict[str, Any]:
        """Format validation error for better readability."""
        path = '.'.join(str(p) for p in error.path) if error.path else 'root'

        return {
            'path': path,
            'message': error.message,
            'schema_path': '.'.join(str(p) for p in error.schema_path)
        }

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load schema from the schema directory.

        Args:
            schema_name: Name of schema file (without .json extension)

        Returns:
            Schema dictionary
        """
        if schema_name in self.schema_cache:
            return self.schema_cache[schema_name]

        schema_path = self.schema_directory / f"{schema_name}.json"

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, 'r', encoding='utf-8') as f:
            schema = json.load(f)

        self.schema_cache[schema_name] = schema
        logger.debug(f"Loaded schema: {schema_name}")

        return schema

    def field_exists(self, data: Union[Dict, List], field_path: str) -> bool:
        """Check if a dot-path field exists (a present ``null`` counts)."""
        return self._lookup(data, field_path) is not _MISSING

    def get_field_value(self, data: Union[Dict, List], field_path: str) -> Any:
        """
        Get field value from JSON data using dot notation.

        Numeric parts index into arrays, e.g. ``"0.address.city"``.

        Returns:
            Field value or None if not found
        """
        value = self._lookup(data, field_path)
        return None if value is _MISSING else value

    def _lookup(self, data: Any, field_path: str) -> Any:
        if not field_path:
            return data

        current = data
        for part in field_path.split('.'):
            if isinstance(current, dict):
                if part not in current:
                    return _MISSING
                current = current[part]
            elif isinstance(current, list):
                if not part.isdigit():
                    return _MISSING
                index = int(part)
                if index >= len(current):
                    return _MISSING
                current = current[index]
            else:
                return _MISSING

        return current


json_validator = JsonValidator()
