"""
Status groupings used by overdue checks, summaries and KPIs.

Every set holds plain string values so callers can compare against
either enum members or raw column values.
"""

from typing import Dict, FrozenSet

from complyva.models.enums import EntityType


def _values(*statuses) -> FrozenSet[str]:
    return frozenset(s.value if hasattr(s, "value") else s for s in statuses)


# Statuses in which a due date still matters
OPEN_STATUSES: Dict[EntityType, FrozenSet[str]] = {
    EntityType.CERTIFICATION: _values("ACTIVE", "PENDING"),
    EntityType.RISK: _values("OPEN", "PENDING_REVIEW", "IN_TREATMENT"),
    EntityType.AUDIT: _values("PLANNED", "IN_PROGRESS"),
    EntityType.FINDING: _values("OPEN", "IN_PROGRESS"),
    EntityType.ASSET: _values("ACTIVE", "UNDER_REVIEW"),
    EntityType.INCIDENT: _values("OPEN", "INVESTIGATING", "CONTAINED"),
    EntityType.NC: _values(
        "OPEN", "UNDER_INVESTIGATION", "CONTAINMENT", "CORRECTIVE_ACTION", "VERIFIED",
    ),
    EntityType.CAPA: _values(
        "OPEN", "UNDER_INVESTIGATION", "ACTION_DEFINED", "IN_PROGRESS",
        "PENDING_VERIFICATION", "REOPENED",
    ),
    EntityType.CHANGE: _values("DRAFT", "SUBMITTED", "APPROVED", "IN_PROGRESS"),
}

# Narrower groupings used by the dashboard summary and reminders
ACTIVE_RISK_STATUSES = _values("OPEN", "IN_TREATMENT")
ACTIVE_FINDING_STATUSES = _values("OPEN", "IN_PROGRESS")
TREATED_RISK_STATUSES = _values("IN_TREATMENT", "ACCEPTED", "CLOSED")
OPEN_INCIDENT_STATUSES = OPEN_STATUSES[EntityType.INCIDENT]
CLOSED_INCIDENT_STATUSES = _values("RESOLVED", "CLOSED")


def open_statuses(entity_type: EntityType) -> FrozenSet[str]:
    return OPEN_STATUSES[EntityType(entity_type)]
