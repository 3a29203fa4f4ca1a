from sqlalchemy import Column, DateTime, JSON, Index

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType, generate_uuid, utcnow
from complyva.models.enums import ActivityAction, EntityType


class ActivityLogEntry(Base):
    """Append-only record of a mutation on a register row"""
    __tablename__ = "activity_log"
    __table_args__ = (
        Index('ix_activity_log_entity', 'org_id', 'entity_type', 'entity_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    org_id = Column(GUID, nullable=False, index=True)
    user_id = Column(GUID, nullable=True)  # Null for system actions

    action = Column(EnumType(ActivityAction), nullable=False)
    entity_type = Column(EnumType(EntityType), nullable=False)
    entity_id = Column(GUID, nullable=True)  # Null when the action has no single target

    # {"name": <entity title at the time>, "details": <free text>}
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    @property
    def name(self):
        return (self.meta or {}).get("name")

    @property
    def details(self):
        return (self.meta or {}).get("details")

    def to_dict(self):
        return {
            "id": self.id,
            "org_id": self.org_id,
            "user_id": self.user_id,
            "action": self.action.value,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "meta": {"name": self.name, "details": self.details},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ActivityLogEntry {self.action.value} {self.entity_type.value}:{self.entity_id}>"
