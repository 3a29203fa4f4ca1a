from sqlalchemy import Column, String, Date, Text, Integer, Index
import enum

from complyva.core.database import Base
from complyva.core.types import GUID, EnumType
from complyva.models.base import RegisterMixin
from complyva.models.enums import EntityType
from complyva.rules.scoring import risk_score, residual_score


class RiskStatus(str, enum.Enum):
    """Risk status"""
    PENDING_REVIEW = "PENDING_REVIEW"  # Auto-generated, awaiting human scoring
    OPEN = "OPEN"
    IN_TREATMENT = "IN_TREATMENT"
    ACCEPTED = "ACCEPTED"
    CLOSED = "CLOSED"
    REJECTED = "REJECTED"


class RiskSource(str, enum.Enum):
    """Where a risk entry originated"""
    MANUAL = "MANUAL"
    FINDING = "FINDING"
    NON_CONFORMITY = "NON_CONFORMITY"
    INCIDENT = "INCIDENT"


class Risk(RegisterMixin, Base):
    """Risk register entry"""
    __tablename__ = "risks"
    __table_args__ = (
        Index('ix_risks_org_status', 'org_id', 'status'),
    )

    entity_type = EntityType.RISK
    derived_fields = ("inherent_score", "residual_score")

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(200), nullable=True)

    # Scoring inputs (1-5 / 1-4)
    likelihood = Column(Integer, nullable=False)
    impact = Column(Integer, nullable=False)
    frequency = Column(Integer, nullable=True)
    control_effectiveness = Column(Integer, nullable=True)
    residual_likelihood = Column(Integer, nullable=True)
    residual_impact = Column(Integer, nullable=True)

    # Materialized, recomputed by refresh_derived() on every write
    inherent_score = Column(Integer, nullable=False)
    residual_score = Column(Integer, nullable=True)

    status = Column(EnumType(RiskStatus), default=RiskStatus.OPEN, nullable=False)
    treatment_plan = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)

    # Provenance for risks raised from another register
    source_type = Column(EnumType(RiskSource), default=RiskSource.MANUAL, nullable=False)
    source_id = Column(GUID, nullable=True)

    def refresh_derived(self) -> None:
        self.inherent_score = risk_score(self.likelihood, self.impact)
        self.residual_score = residual_score(self.residual_likelihood, self.residual_impact)
