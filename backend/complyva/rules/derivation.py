"""
Cross-register transformations ("send to X").

Each rule is a pure function from a source row to the field dict of the
record it produces. Persisting the result and linking it back to the
source is the job of `complyva.services.derivation_service`.
"""

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from complyva.models.enums import EntityType

# Severity -> default likelihood and impact for risks raised from another register
SEVERITY_SCORE = {"LOW": 2, "MEDIUM": 3, "HIGH": 4, "CRITICAL": 5}
DEFAULT_SEVERITY_SCORE = 3

INCIDENT_TO_NC_SEVERITY = {
    "LOW": "OBSERVATION",
    "MEDIUM": "MINOR",
    "HIGH": "MAJOR",
    "CRITICAL": "CRITICAL",
}

NC_TO_CAPA_PRIORITY = {
    "OBSERVATION": "LOW",
    "MINOR": "MEDIUM",
    "MAJOR": "HIGH",
    "CRITICAL": "CRITICAL",
}


class Transformation(str, enum.Enum):
    INCIDENT_TO_RISK = "INCIDENT_TO_RISK"
    FINDING_TO_RISK = "FINDING_TO_RISK"
    INCIDENT_TO_NC = "INCIDENT_TO_NC"
    NC_TO_CAPA = "NC_TO_CAPA"


def _value(field):
    return field.value if isinstance(field, enum.Enum) else field


def _severity_score(severity) -> int:
    return SEVERITY_SCORE.get(_value(severity), DEFAULT_SEVERITY_SCORE)


def incident_to_risk(incident) -> Dict[str, Any]:
    """New risk awaiting review; likelihood and impact are seeded from severity, not assessed"""
    score = _severity_score(incident.severity)
    return {
        "title": f"[From Incident] {incident.title}",
        "description": incident.description or f"Originated from incident: {incident.title}",
        "category": incident.category or "Incident",
        "likelihood": score,
        "impact": score,
        "status": "PENDING_REVIEW",
        "treatment_plan": incident.corrective_action,
        "source_type": "INCIDENT",
        "source_id": incident.id,
    }


def finding_to_risk(finding) -> Dict[str, Any]:
    score = _severity_score(finding.severity)
    return {
        "title": f"[From Finding] {finding.title}",
        "description": finding.description or f"Originated from audit finding: {finding.title}",
        "category": "Audit Finding",
        "likelihood": score,
        "impact": score,
        "status": "PENDING_REVIEW",
        "treatment_plan": finding.recommendation,
        "source_type": "FINDING",
        "source_id": finding.id,
    }


def incident_to_nc(incident) -> Dict[str, Any]:
    return {
        "title": f"[From Incident] {incident.title}",
        "description": incident.description or f"Originated from incident: {incident.title}",
        "source_type": "INCIDENT",
        "source_ref_id": incident.id,
        "category": incident.category,
        "severity": INCIDENT_TO_NC_SEVERITY.get(_value(incident.severity), "MINOR"),
        "asset_id": incident.asset_id,
        "root_cause": incident.root_cause,
        "containment_action": incident.immediate_action,
        "status": "OPEN",
    }


def nc_to_capa(nc) -> Dict[str, Any]:
    return {
        "title": f"[From NC] {nc.title}",
        "description": nc.description or f"Originated from non-conformity: {nc.title}",
        "capa_type": "CORRECTIVE",
        "source_type": "NON_CONFORMITY",
        "source_ref_id": nc.id,
        "asset_id": nc.asset_id,
        "root_cause": nc.root_cause,
        "priority": NC_TO_CAPA_PRIORITY.get(_value(nc.severity), "MEDIUM"),
        "status": "OPEN",
    }


@dataclass(frozen=True)
class TransformationRule:
    source_type: EntityType
    target_type: EntityType
    build: Callable[[Any], Dict[str, Any]]

    @property
    def activity_action(self) -> str:
        return f"SENT_TO_{self.target_type.value}"


RULES: Dict[Transformation, TransformationRule] = {
    Transformation.INCIDENT_TO_RISK: TransformationRule(EntityType.INCIDENT, EntityType.RISK, incident_to_risk),
    Transformation.FINDING_TO_RISK: TransformationRule(EntityType.FINDING, EntityType.RISK, finding_to_risk),
    Transformation.INCIDENT_TO_NC: TransformationRule(EntityType.INCIDENT, EntityType.NC, incident_to_nc),
    Transformation.NC_TO_CAPA: TransformationRule(EntityType.NC, EntityType.CAPA, nc_to_capa),
}


def get_rule(transformation) -> Optional[TransformationRule]:
    try:
        return RULES[Transformation(transformation)]
    except ValueError:
        return None


def build_fields(transformation, source) -> Dict[str, Any]:
    """Field dict for the target record, with unset values dropped"""
    rule = RULES[Transformation(transformation)]
    return {k: v for k, v in rule.build(source).items() if v is not None and v != ""}
