from sqlalchemy import Column, String, DateTime, Text, ForeignKey
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType, Priority


class ChangeType(str, enum.Enum):
    STANDARD = "STANDARD"
    NORMAL = "NORMAL"
    EMERGENCY = "EMERGENCY"
    EXPEDITED = "EXPEDITED"


class ChangeStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ROLLED_BACK = "ROLLED_BACK"
    CANCELLED = "CANCELLED"


class Change(RegisterMixin, Base):
    """Change request against an asset"""
    __tablename__ = "changes"

    entity_type = EntityType.CHANGE

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    change_type = Column(EnumType(ChangeType), default=ChangeType.STANDARD, nullable=False)
    priority = Column(EnumType(Priority), default=Priority.MEDIUM, nullable=False)
    asset_id = Column(GUID, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)

    justification = Column(Text, nullable=True)
    impact_analysis = Column(Text, nullable=True)
    rollback_plan = Column(Text, nullable=True)

    planned_start = Column(DateTime, nullable=True)
    planned_end = Column(DateTime, nullable=True)
    actual_start = Column(DateTime, nullable=True)
    actual_end = Column(DateTime, nullable=True)

    requested_by = Column(String(200), nullable=True)
    approved_by = Column(String(200), nullable=True)
    implemented_by = Column(String(200), nullable=True)

    status = Column(EnumType(ChangeStatus), default=ChangeStatus.DRAFT, nullable=False)
