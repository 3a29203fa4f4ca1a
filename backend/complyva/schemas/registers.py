"""
Write schemas for every register.

Create schemas carry the required fields; update schemas make every field
optional. Both forbid unknown keys, so derived columns (scores, combined
classification) and tenant/identity columns can never be written directly.
"""

from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from complyva.models.enums import EntityType, Severity, Priority
from complyva.models.certification import CertificationStatus
from complyva.models.risk import RiskStatus, RiskSource
from complyva.models.audit import AuditType, AuditStatus, FindingStatus
from complyva.models.asset import AssetType, AssetStatus
from complyva.models.incident import IncidentStatus
from complyva.models.nonconformity import NCStatus, NCSeverity, NCSource
from complyva.models.capa import (
    CAPAStatus,
    CAPAType,
    CAPASource,
    RootCauseCategory,
    AnalysisMethod,
    EffectivenessStatus,
)
from complyva.models.change import ChangeType, ChangeStatus


class WriteSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("*")
    @classmethod
    def naive_utc(cls, value):
        """Timestamps are stored as naive UTC"""
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


# ==================== Certifications ====================

class CertificationCreate(WriteSchema):
    name: str = Field(..., min_length=2, max_length=200)
    framework_type: Optional[str] = Field(None, max_length=200)
    issuing_body: Optional[str] = Field(None, max_length=200)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: Optional[CertificationStatus] = None
    notes: Optional[str] = Field(None, max_length=5000)
    owner_user_id: Optional[str] = None


class CertificationUpdate(WriteSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    framework_type: Optional[str] = Field(None, max_length=200)
    issuing_body: Optional[str] = Field(None, max_length=200)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: Optional[CertificationStatus] = None
    notes: Optional[str] = Field(None, max_length=5000)
    owner_user_id: Optional[str] = None


# ==================== Risks ====================

class RiskCreate(WriteSchema):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=200)
    likelihood: int = Field(..., ge=1, le=5)
    impact: int = Field(..., ge=1, le=5)
    frequency: Optional[int] = Field(None, ge=1, le=4)
    control_effectiveness: Optional[int] = Field(None, ge=1, le=4)
    residual_likelihood: Optional[int] = Field(None, ge=1, le=5)
    residual_impact: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[RiskStatus] = None
    treatment_plan: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    source_type: Optional[RiskSource] = None
    source_id: Optional[str] = Field(None, max_length=36)
    owner_user_id: Optional[str] = None


class RiskUpdate(WriteSchema):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=200)
    likelihood: Optional[int] = Field(None, ge=1, le=5)
    impact: Optional[int] = Field(None, ge=1, le=5)
    frequency: Optional[int] = Field(None, ge=1, le=4)
    control_effectiveness: Optional[int] = Field(None, ge=1, le=4)
    residual_likelihood: Optional[int] = Field(None, ge=1, le=5)
    residual_impact: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[RiskStatus] = None
    treatment_plan: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    owner_user_id: Optional[str] = None


# ==================== Audits & Findings ====================

class AuditCreate(WriteSchema):
    audit_type: AuditType
    title: str = Field(..., min_length=2, max_length=200)
    scope: Optional[str] = Field(None, max_length=5000)
    auditor: Optional[str] = Field(None, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AuditStatus] = None
    owner_user_id: Optional[str] = None


class AuditUpdate(WriteSchema):
    audit_type: Optional[AuditType] = None
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    scope: Optional[str] = Field(None, max_length=5000)
    auditor: Optional[str] = Field(None, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AuditStatus] = None
    owner_user_id: Optional[str] = None


class FindingCreate(WriteSchema):
    audit_id: str = Field(..., max_length=36)
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    severity: Severity
    recommendation: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    status: Optional[FindingStatus] = None
    owner_user_id: Optional[str] = None


class FindingUpdate(WriteSchema):
    # audit_id is fixed at creation
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    severity: Optional[Severity] = None
    recommendation: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    status: Optional[FindingStatus] = None
    owner_user_id: Optional[str] = None


# ==================== Assets ====================

class AssetCreate(WriteSchema):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=200)
    asset_type: AssetType
    owner: Optional[str] = Field(None, max_length=200)
    bia_score: Optional[int] = Field(None, ge=1, le=4)
    dca_score: Optional[int] = Field(None, ge=1, le=4)
    status: Optional[AssetStatus] = None
    review_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=5000)
    owner_user_id: Optional[str] = None


class AssetUpdate(WriteSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=200)
    asset_type: Optional[AssetType] = None
    owner: Optional[str] = Field(None, max_length=200)
    bia_score: Optional[int] = Field(None, ge=1, le=4)
    dca_score: Optional[int] = Field(None, ge=1, le=4)
    status: Optional[AssetStatus] = None
    review_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=5000)
    owner_user_id: Optional[str] = None


# ==================== Incidents ====================

class IncidentCreate(WriteSchema):
    title: str = Field(..., min_length=2, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    incident_date: Optional[datetime] = None
    detected_date: Optional[datetime] = None
    resolved_date: Optional[datetime] = None
    category: Optional[str] = Field(None, max_length=100)
    severity: Optional[Severity] = None
    asset_id: Optional[str] = Field(None, max_length=36)
    root_cause: Optional[str] = Field(None, max_length=5000)
    immediate_action: Optional[str] = Field(None, max_length=5000)
    corrective_action: Optional[str] = Field(None, max_length=5000)
    reported_by: Optional[str] = Field(None, max_length=200)
    assigned_to: Optional[str] = Field(None, max_length=200)
    status: Optional[IncidentStatus] = None
    owner_user_id: Optional[str] = None


class IncidentUpdate(IncidentCreate):
    title: Optional[str] = Field(None, min_length=2, max_length=300)


# ==================== Non-Conformities ====================

class NonConformityCreate(WriteSchema):
    title: str = Field(..., min_length=2, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    source_type: Optional[NCSource] = None
    source_ref_id: Optional[str] = Field(None, max_length=36)
    category: Optional[str] = Field(None, max_length=100)
    severity: Optional[NCSeverity] = None
    asset_id: Optional[str] = Field(None, max_length=36)
    root_cause: Optional[str] = Field(None, max_length=5000)
    containment_action: Optional[str] = Field(None, max_length=5000)
    raised_by: Optional[str] = Field(None, max_length=200)
    assigned_to: Optional[str] = Field(None, max_length=200)
    due_date: Optional[date] = None
    closed_date: Optional[date] = None
    status: Optional[NCStatus] = None
    owner_user_id: Optional[str] = None


class NonConformityUpdate(NonConformityCreate):
    title: Optional[str] = Field(None, min_length=2, max_length=300)


# ==================== CAPAs ====================

class CAPACreate(WriteSchema):
    title: str = Field(..., min_length=2, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    capa_type: Optional[CAPAType] = None
    source_type: Optional[CAPASource] = None
    source_ref_id: Optional[str] = Field(None, max_length=36)
    asset_id: Optional[str] = Field(None, max_length=36)
    root_cause: Optional[str] = Field(None, max_length=5000)
    root_cause_category: Optional[RootCauseCategory] = None
    analysis_method: Optional[AnalysisMethod] = None
    action_plan: Optional[str] = Field(None, max_length=5000)
    verification_method: Optional[str] = Field(None, max_length=5000)
    effectiveness_review: Optional[str] = Field(None, max_length=5000)
    effectiveness_status: Optional[EffectivenessStatus] = None
    raised_by: Optional[str] = Field(None, max_length=200)
    assigned_to: Optional[str] = Field(None, max_length=200)
    verified_by: Optional[str] = Field(None, max_length=200)
    closure_approved_by: Optional[str] = Field(None, max_length=200)
    closure_comments: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    completed_date: Optional[date] = None
    verified_date: Optional[date] = None
    priority: Optional[Priority] = None
    status: Optional[CAPAStatus] = None
    owner_user_id: Optional[str] = None


class CAPAUpdate(CAPACreate):
    title: Optional[str] = Field(None, min_length=2, max_length=300)


# ==================== Change Requests ====================

class ChangeCreate(WriteSchema):
    title: str = Field(..., min_length=2, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    change_type: Optional[ChangeType] = None
    priority: Optional[Priority] = None
    asset_id: Optional[str] = Field(None, max_length=36)
    justification: Optional[str] = Field(None, max_length=5000)
    impact_analysis: Optional[str] = Field(None, max_length=5000)
    rollback_plan: Optional[str] = Field(None, max_length=5000)
    planned_start: Optional[datetime] = None
    planned_end: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    requested_by: Optional[str] = Field(None, max_length=200)
    approved_by: Optional[str] = Field(None, max_length=200)
    implemented_by: Optional[str] = Field(None, max_length=200)
    status: Optional[ChangeStatus] = None
    owner_user_id: Optional[str] = None


class ChangeUpdate(ChangeCreate):
    title: Optional[str] = Field(None, min_length=2, max_length=300)


CREATE_SCHEMAS = {
    EntityType.CERTIFICATION: CertificationCreate,
    EntityType.RISK: RiskCreate,
    EntityType.AUDIT: AuditCreate,
    EntityType.FINDING: FindingCreate,
    EntityType.ASSET: AssetCreate,
    EntityType.INCIDENT: IncidentCreate,
    EntityType.NC: NonConformityCreate,
    EntityType.CAPA: CAPACreate,
    EntityType.CHANGE: ChangeCreate,
}

UPDATE_SCHEMAS = {
    EntityType.CERTIFICATION: CertificationUpdate,
    EntityType.RISK: RiskUpdate,
    EntityType.AUDIT: AuditUpdate,
    EntityType.FINDING: FindingUpdate,
    EntityType.ASSET: AssetUpdate,
    EntityType.INCIDENT: IncidentUpdate,
    EntityType.NC: NonConformityUpdate,
    EntityType.CAPA: CAPAUpdate,
    EntityType.CHANGE: ChangeUpdate,
}
