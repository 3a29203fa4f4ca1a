from sqlalchemy import Column, String, Date, Text, ForeignKey
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType, Priority


class CAPAStatus(str, enum.Enum):
    OPEN = "OPEN"
    UNDER_INVESTIGATION = "UNDER_INVESTIGATION"
    ACTION_DEFINED = "ACTION_DEFINED"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    CLOSED = "CLOSED"
    REOPENED = "REOPENED"


class CAPAType(str, enum.Enum):
    CORRECTIVE = "CORRECTIVE"
    PREVENTIVE = "PREVENTIVE"
    CORRECTION = "CORRECTION"


class CAPASource(str, enum.Enum):
    MANUAL = "MANUAL"
    NON_CONFORMITY = "NON_CONFORMITY"
    INCIDENT = "INCIDENT"
    FINDING = "FINDING"
    RISK = "RISK"


class RootCauseCategory(str, enum.Enum):
    PEOPLE = "PEOPLE"
    PROCESS = "PROCESS"
    TECHNOLOGY = "TECHNOLOGY"
    THIRD_PARTY = "THIRD_PARTY"
    EXTERNAL_REGULATORY = "EXTERNAL_REGULATORY"


class AnalysisMethod(str, enum.Enum):
    FIVE_WHYS = "FIVE_WHYS"
    FISHBONE = "FISHBONE"
    FAULT_TREE = "FAULT_TREE"
    TREND_ANALYSIS = "TREND_ANALYSIS"


class EffectivenessStatus(str, enum.Enum):
    EFFECTIVE = "EFFECTIVE"
    PARTIALLY_EFFECTIVE = "PARTIALLY_EFFECTIVE"
    NOT_EFFECTIVE = "NOT_EFFECTIVE"


class CAPA(RegisterMixin, Base):
    """Corrective and preventive action"""
    __tablename__ = "capas"

    entity_type = EntityType.CAPA

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    capa_type = Column(EnumType(CAPAType), default=CAPAType.CORRECTIVE, nullable=False)
    source_type = Column(EnumType(CAPASource), default=CAPASource.MANUAL, nullable=False)
    source_ref_id = Column(GUID, nullable=True)
    asset_id = Column(GUID, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)

    # Root cause analysis
    root_cause = Column(Text, nullable=True)
    root_cause_category = Column(EnumType(RootCauseCategory), nullable=True)
    analysis_method = Column(EnumType(AnalysisMethod), nullable=True)

    # Action and verification
    action_plan = Column(Text, nullable=True)
    verification_method = Column(Text, nullable=True)
    effectiveness_review = Column(Text, nullable=True)
    effectiveness_status = Column(EnumType(EffectivenessStatus), nullable=True)

    raised_by = Column(String(200), nullable=True)
    assigned_to = Column(String(200), nullable=True)
    verified_by = Column(String(200), nullable=True)
    closure_approved_by = Column(String(200), nullable=True)
    closure_comments = Column(Text, nullable=True)

    due_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    verified_date = Column(Date, nullable=True)

    priority = Column(EnumType(Priority), default=Priority.MEDIUM, nullable=False)
    status = Column(EnumType(CAPAStatus), default=CAPAStatus.OPEN, nullable=False)
