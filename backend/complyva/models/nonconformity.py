from sqlalchemy import Column, String, Date, Text, ForeignKey
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType


class NCStatus(str, enum.Enum):
    OPEN = "OPEN"
    UNDER_INVESTIGATION = "UNDER_INVESTIGATION"
    CONTAINMENT = "CONTAINMENT"
    CORRECTIVE_ACTION = "CORRECTIVE_ACTION"
    VERIFIED = "VERIFIED"
    CLOSED = "CLOSED"


class NCSeverity(str, enum.Enum):
    OBSERVATION = "OBSERVATION"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


class NCSource(str, enum.Enum):
    AUDIT = "AUDIT"
    INCIDENT = "INCIDENT"
    CUSTOMER_COMPLAINT = "CUSTOMER_COMPLAINT"
    INTERNAL = "INTERNAL"
    REGULATORY = "REGULATORY"
    SUPPLIER = "SUPPLIER"


class NonConformity(RegisterMixin, Base):
    """Non-conformity against a requirement or standard"""
    __tablename__ = "nonconformities"

    entity_type = EntityType.NC

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    source_type = Column(EnumType(NCSource), default=NCSource.INTERNAL, nullable=False)
    source_ref_id = Column(GUID, nullable=True)
    category = Column(String(100), nullable=True)
    severity = Column(EnumType(NCSeverity), default=NCSeverity.MINOR, nullable=False)
    asset_id = Column(GUID, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)

    root_cause = Column(Text, nullable=True)
    containment_action = Column(Text, nullable=True)
    raised_by = Column(String(200), nullable=True)
    assigned_to = Column(String(200), nullable=True)

    due_date = Column(Date, nullable=True)
    closed_date = Column(Date, nullable=True)
    status = Column(EnumType(NCStatus), default=NCStatus.OPEN, nullable=False)
