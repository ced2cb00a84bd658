# smis/utils/validators.py
"""Checks for free-form JSON bodies that answer with 400 rather than 422."""
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Optional, Type

from pydantic import BaseModel, ValidationError as SchemaValidationError

from ..core.exceptions import ValidationError


def check_allowed_fields(data: Dict[str, Any], allowed: Iterable[str]):
    invalid = [field for field in data if field not in allowed]
    if invalid:
        raise ValidationError(f"Invalid fields: {', '.join(invalid)}")


def require_fields(data: Dict[str, Any], fields: Iterable[str]):
    missing = [field for field in fields if data.get(field) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_date(value: Any, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid {field.replace('_', ' ')}", field=field)


def parse_time(value: Any, field: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field.replace('_', ' ')}", field=field)


def parse_id(value: Any, field: str = "id") -> int:
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"Invalid {field.replace('_', ' ')}", field=field)
    return value


def validate_fields(data: Dict[str, Any], schema: Type[BaseModel]) -> Dict[str, Any]:
    """Type-check a partial body against a schema; returns only the fields that were sent"""
    try:
        parsed = schema.model_validate(data)
    except SchemaValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        loc = e.errors()[0]["loc"]
        field = str(loc[0]) if loc else "body"
        raise ValidationError(f"Invalid {field.replace('_', ' ')}", field=field, errors=errors)
    return parsed.model_dump(exclude_unset=True)
