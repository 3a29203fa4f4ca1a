"""Normalization and validation of write payloads at the store boundary"""

from typing import Any, Dict, Mapping, Type

from pydantic import BaseModel, ValidationError

from complyva.core.exceptions import InvalidInputError


def clean_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None or an empty string; both mean "not provided" """
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Payload must be an object")
    cleaned = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        cleaned[key] = value
    return cleaned


def validation_error_to_invalid_input(exc: ValidationError) -> InvalidInputError:
    """Convert a pydantic error into InvalidInputError naming the first offending field"""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    if first.get("type") == "extra_forbidden":
        message = f"Unknown field: {field}"
    elif first.get("type") == "missing":
        message = f"Missing required field: {field}"
    else:
        message = f"Invalid value for {field}: {first.get('msg')}"
    return InvalidInputError(message, field=field)


def validate_payload(
    schema: Type[BaseModel],
    payload: Mapping[str, Any],
    partial: bool = False,
) -> Dict[str, Any]:
    """
    Clean and validate a payload against a write schema.

    Returns only the fields that were actually supplied, coerced to their
    column types. A partial (update) payload that is empty after cleaning
    is rejected.
    """
    cleaned = clean_payload(payload)
    if partial and not cleaned:
        raise InvalidInputError("No fields to update")
    try:
        model = schema.model_validate(cleaned)
    except ValidationError as e:
        raise validation_error_to_invalid_input(e) from e
    return model.model_dump(exclude_unset=True)
