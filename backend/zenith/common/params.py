from __future__ import annotations

from typing import Any

from .errors import ValidationError


def parse_int(value: str | None, field_name: str, default: int, minimum: int = 0, maximum: int | None = None) -> int:
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except ValueError as error:
        raise ValidationError(f"{field_name} must be an integer.", code="INVALID_PARAMETER") from error
    if number < minimum or (maximum is not None and number > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ValidationError(f"{field_name} must be {bounds}.", code="INVALID_PARAMETER")
    return number


def parse_optional_id(value: Any, field_name: str) -> str | None:
    if value in (None, "", "null"):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string id or null.", code="INVALID_PARAMETER")
    return value.strip() or None


def require_string(payload: dict[str, Any], field_name: str, message: str) -> str:
    value = payload.get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()
