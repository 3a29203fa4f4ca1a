# Pydantic schemas
from complyva.schemas.registers import (
    WriteSchema,
    CREATE_SCHEMAS,
    UPDATE_SCHEMAS,
)
from complyva.schemas.payload import clean_payload, validate_payload
from complyva.schemas.requests import LinkCreate, EvidenceCreate

__all__ = [
    "WriteSchema",
    "CREATE_SCHEMAS",
    "UPDATE_SCHEMAS",
    "clean_payload",
    "validate_payload",
    "LinkCreate",
    "EvidenceCreate",
]
