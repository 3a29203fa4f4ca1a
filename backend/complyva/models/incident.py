from sqlalchemy import Column, String, DateTime, Text, ForeignKey
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType, Severity


class IncidentStatus(str, enum.Enum):
    OPEN = "OPEN"
    INVESTIGATING = "INVESTIGATING"
    CONTAINED = "CONTAINED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class Incident(RegisterMixin, Base):
    """Security or operational incident"""
    __tablename__ = "incidents"

    entity_type = EntityType.INCIDENT

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)

    # Timeline (resolved - incident drives MTTR)
    incident_date = Column(DateTime, nullable=True)
    detected_date = Column(DateTime, nullable=True)
    resolved_date = Column(DateTime, nullable=True)

    category = Column(String(100), nullable=True)
    severity = Column(EnumType(Severity), default=Severity.MEDIUM, nullable=False)
    asset_id = Column(GUID, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)

    root_cause = Column(Text, nullable=True)
    immediate_action = Column(Text, nullable=True)
    corrective_action = Column(Text, nullable=True)
    reported_by = Column(String(200), nullable=True)
    assigned_to = Column(String(200), nullable=True)

    status = Column(EnumType(IncidentStatus), default=IncidentStatus.OPEN, nullable=False)
