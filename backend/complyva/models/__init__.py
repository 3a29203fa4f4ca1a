# Re-export all models for convenient imports
from complyva.models.enums import (
    EntityType,
    ENTITY_LABELS,
    LinkType,
    ActivityAction,
    Role,
    Severity,
    Priority,
)
from complyva.models.certification import Certification, CertificationStatus
from complyva.models.risk import Risk, RiskStatus, RiskSource
from complyva.models.audit import Audit, AuditType, AuditStatus, AuditFinding, FindingStatus
from complyva.models.asset import Asset, AssetType, AssetStatus
from complyva.models.incident import Incident, IncidentStatus
from complyva.models.nonconformity import NonConformity, NCStatus, NCSeverity, NCSource
from complyva.models.capa import (
    CAPA,
    CAPAStatus,
    CAPAType,
    CAPASource,
    RootCauseCategory,
    AnalysisMethod,
    EffectivenessStatus,
)
from complyva.models.change import Change, ChangeType, ChangeStatus
from complyva.models.cross_link import CrossLink
from complyva.models.activity_log import ActivityLogEntry
from complyva.models.evidence_file import EvidenceFile

# Register kind -> model class
REGISTER_MODELS = {
    EntityType.CERTIFICATION: Certification,
    EntityType.RISK: Risk,
    EntityType.AUDIT: Audit,
    EntityType.FINDING: AuditFinding,
    EntityType.ASSET: Asset,
    EntityType.INCIDENT: Incident,
    EntityType.NC: NonConformity,
    EntityType.CAPA: CAPA,
    EntityType.CHANGE: Change,
}

__all__ = [
    # Shared enums
    "EntityType",
    "ENTITY_LABELS",
    "LinkType",
    "ActivityAction",
    "Role",
    "Severity",
    "Priority",
    # Registers
    "Certification",
    "CertificationStatus",
    "Risk",
    "RiskStatus",
    "RiskSource",
    "Audit",
    "AuditType",
    "AuditStatus",
    "AuditFinding",
    "FindingStatus",
    "Asset",
    "AssetType",
    "AssetStatus",
    "Incident",
    "IncidentStatus",
    "NonConformity",
    "NCStatus",
    "NCSeverity",
    "NCSource",
    "CAPA",
    "CAPAStatus",
    "CAPAType",
    "CAPASource",
    "RootCauseCategory",
    "AnalysisMethod",
    "EffectivenessStatus",
    "Change",
    "ChangeType",
    "ChangeStatus",
    # Graph, log, evidence
    "CrossLink",
    "ActivityLogEntry",
    "EvidenceFile",
    "REGISTER_MODELS",
]
