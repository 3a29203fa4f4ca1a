from sqlalchemy import Column, String, Date, Text, Index
import enum

from complyva.core.database import Base
from complyva.core.types import EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType


class CertificationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"
    SUSPENDED = "SUSPENDED"


class Certification(RegisterMixin, Base):
    """Certification held by an organisation (ISO 27001, SOC 2, ...)"""
    __tablename__ = "certifications"
    __table_args__ = (
        Index('ix_certifications_org_expiry', 'org_id', 'expiry_date'),
    )

    entity_type = EntityType.CERTIFICATION
    title_field = "name"

    name = Column(String(200), nullable=False)
    framework_type = Column(String(200), nullable=True)
    issuing_body = Column(String(200), nullable=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    status = Column(EnumType(CertificationStatus), default=CertificationStatus.ACTIVE, nullable=False)
    notes = Column(Text, nullable=True)
