from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from complyva.models.enums import EntityType


class LinkCreate(BaseModel):
    """Manual cross-link between two register rows"""
    model_config = ConfigDict(extra="forbid")

    source_type: EntityType
    source_id: str = Field(..., min_length=1, max_length=36)
    target_type: EntityType
    target_id: str = Field(..., min_length=1, max_length=36)


class EvidenceCreate(BaseModel):
    """Evidence metadata recorded after the blob store accepted the upload"""
    model_config = ConfigDict(extra="forbid")

    entity_type: EntityType
    entity_id: str = Field(..., min_length=1, max_length=36)
    file_name: str = Field(..., min_length=1, max_length=255)
    storage_key: str = Field(..., min_length=1, max_length=500)
    mime_type: Optional[str] = Field(None, max_length=100)
    file_size: Optional[int] = Field(None, ge=0)
