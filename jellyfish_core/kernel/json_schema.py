"""JSON Schema helpers built on the jsonschema library.

Cards, action arguments and permission filters are all expressed as JSON
Schema documents; these helpers wrap validation so that failures surface as
SchemaMismatch errors carrying the individual validation messages.
"""

import copy
from typing import Any

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import SchemaError

from ..exceptions import SchemaMismatch

_FORMAT_CHECKER = FormatChecker()


def compile_schema(schema: dict | bool) -> Draft7Validator:
    """Check a schema once and return a validator to reuse across values.

    Raises:
        SchemaMismatch: If the schema itself is invalid
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise SchemaMismatch(
            f"Invalid schema: {e.message}",
            {"path": list(e.path)}
        ) from e
    return Draft7Validator(schema, format_checker=_FORMAT_CHECKER)


def is_valid(schema: dict | bool, value: Any) -> bool:
    """Check whether a value matches a schema."""
    return compile_schema(schema).is_valid(value)


def validate(schema: dict | bool, value: Any, message: str = "Schema mismatch") -> None:
    """Validate a value against a schema.

    Raises:
        SchemaMismatch: With details.errors listing every failure
    """
    errors = sorted(compile_schema(schema).iter_errors(value), key=lambda e: list(e.path))
    if errors:
        raise SchemaMismatch(message, {
            "errors": [
                {"path": "/".join(str(p) for p in error.path), "message": error.message}
                for error in errors
            ]
        })


def merge(schemas: list[dict]) -> dict:
    """Combine schemas so that a value must match all of them."""
    schemas = [schema for schema in schemas if schema]
    if not schemas:
        return {"type": "object"}
    if len(schemas) == 1:
        return schemas[0]
    return {"allOf": schemas}


def strip_write_only(schema: dict | None, value: dict) -> dict:
    """Return a copy of value without the properties the schema marks writeOnly.

    Nested object schemas are followed through "properties".
    """
    result = copy.deepcopy(value)
    if schema:
        _strip(schema, result)
    return result


def _strip(schema: dict, value: dict) -> None:
    for key, subschema in (schema.get("properties") or {}).items():
        if not isinstance(subschema, dict) or key not in value:
            continue
        if subschema.get("writeOnly"):
            del value[key]
        elif isinstance(value[key], dict):
            _strip(subschema, value[key])


def restore_write_only(schema: dict | None, source: dict, target: dict) -> dict:
    """Copy writeOnly properties from source into target where target lacks them."""
    if schema:
        _restore(schema, source, target)
    return target


def _restore(schema: dict, source: dict, target: dict) -> None:
    for key, subschema in (schema.get("properties") or {}).items():
        if not isinstance(subschema, dict) or key not in source:
            continue
        if subschema.get("writeOnly"):
            target.setdefault(key, copy.deepcopy(source[key]))
        elif isinstance(source[key], dict) and isinstance(target.get(key), dict):
            _restore(subschema, source[key], target[key])
