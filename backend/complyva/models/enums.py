"""
Enumerations shared across registers.

Values equal member names and are what the database stores.
Register-specific status enums live next to their model.
"""

import enum


class EntityType(str, enum.Enum):
    """Register kinds; also the tag used by cross-links, activity and evidence"""
    CERTIFICATION = "CERTIFICATION"
    RISK = "RISK"
    AUDIT = "AUDIT"
    FINDING = "FINDING"
    ASSET = "ASSET"
    INCIDENT = "INCIDENT"
    NC = "NC"
    CAPA = "CAPA"
    CHANGE = "CHANGE"

    @property
    def label(self) -> str:
        return ENTITY_LABELS[self]


ENTITY_LABELS = {
    EntityType.CERTIFICATION: "Certification",
    EntityType.RISK: "Risk",
    EntityType.AUDIT: "Audit",
    EntityType.FINDING: "Audit Finding",
    EntityType.ASSET: "Asset",
    EntityType.INCIDENT: "Incident",
    EntityType.NC: "Non-Conformity",
    EntityType.CAPA: "CAPA",
    EntityType.CHANGE: "Change Request",
}


class LinkType(str, enum.Enum):
    GENERATED = "GENERATED"
    MANUAL = "MANUAL"


class ActivityAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    UPLOADED = "UPLOADED"
    EVIDENCE_DELETED = "EVIDENCE_DELETED"
    LINKED = "LINKED"
    SENT_TO_RISK = "SENT_TO_RISK"
    SENT_TO_NC = "SENT_TO_NC"
    SENT_TO_CAPA = "SENT_TO_CAPA"


class Role(str, enum.Enum):
    """Membership role supplied by the identity provider"""
    ADMIN = "ADMIN"
    AUDITOR = "AUDITOR"
    VIEWER = "VIEWER"


class Severity(str, enum.Enum):
    """Incident and audit-finding severity"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
