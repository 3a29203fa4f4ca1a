from sqlalchemy import Column, String, Date, Text, ForeignKey, Index
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType, Severity


class AuditType(str, enum.Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"
    CERTIFICATION = "CERTIFICATION"


class AuditStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class FindingStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    ACCEPTED = "ACCEPTED"


class Audit(RegisterMixin, Base):
    """Internal, external or certification audit"""
    __tablename__ = "audits"

    entity_type = EntityType.AUDIT

    audit_type = Column(EnumType(AuditType), nullable=False)
    title = Column(String(200), nullable=False)
    scope = Column(Text, nullable=True)
    auditor = Column(String(200), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(EnumType(AuditStatus), default=AuditStatus.PLANNED, nullable=False)


class AuditFinding(RegisterMixin, Base):
    """Finding raised during an audit; deleted together with its audit"""
    __tablename__ = "audit_findings"
    __table_args__ = (
        Index('ix_audit_findings_org_audit', 'org_id', 'audit_id'),
    )

    entity_type = EntityType.FINDING

    audit_id = Column(GUID, ForeignKey("audits.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    severity = Column(EnumType(Severity), nullable=False)
    recommendation = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    status = Column(EnumType(FindingStatus), default=FindingStatus.OPEN, nullable=False)
