from datetime import date, datetime
import enum
from typing import Any, ClassVar, Dict, Optional

from sqlalchemy import Column, DateTime

from complyva.core.types import GUID, generate_uuid, utcnow
from complyva.models.enums import EntityType


class RegisterMixin:
    """Columns and helpers shared by every register row"""

    entity_type: ClassVar[EntityType]
    title_field: ClassVar[str] = "title"
    # Columns computed from other columns; never accepted from callers
    derived_fields: ClassVar[tuple] = ()

    id = Column(GUID, primary_key=True, default=generate_uuid)
    org_id = Column(GUID, nullable=False, index=True)  # Tenant partition key, immutable
    owner_user_id = Column(GUID, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def display_title(self) -> Optional[str]:
        return getattr(self, self.title_field, None)

    def refresh_derived(self) -> None:
        """Recompute derived columns from their inputs (no-op for most registers)"""

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, enum.Enum):
                value = value.value
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[column.key] = value
        return data

    def __repr__(self):
        return f"<{type(self).__name__} {self.display_title!r} ({self.id})>"
