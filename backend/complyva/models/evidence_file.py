from sqlalchemy import Column, String, DateTime, BigInteger, Index

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType, generate_uuid, utcnow
from complyva.models.enums import EntityType


class EvidenceFile(Base):
    """
    Evidence attached to a register row.

    Only metadata lives here; the bytes are kept by the external blob store
    under `storage_key`.
    """
    __tablename__ = "evidence_files"
    __table_args__ = (
        Index('ix_evidence_files_entity', 'org_id', 'entity_type', 'entity_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    org_id = Column(GUID, nullable=False, index=True)

    entity_type = Column(EnumType(EntityType), nullable=False)
    entity_id = Column(GUID, nullable=False)

    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=True)
    file_size = Column(BigInteger, nullable=True)  # bytes
    storage_key = Column(String(500), nullable=False)

    uploaded_by = Column(GUID, nullable=True)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "org_id": self.org_id,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "storage_key": self.storage_key,
            "uploaded_by": self.uploaded_by,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }

    def __repr__(self):
        return f"<EvidenceFile {self.file_name} on {self.entity_type.value}:{self.entity_id}>"
