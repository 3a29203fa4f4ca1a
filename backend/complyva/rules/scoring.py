"""
Scoring and classification rules.

Pure functions, no I/O and no model imports, so models can call them
while computing their derived columns.
"""

import enum
from datetime import date, datetime, time
from typing import Iterable, Optional, Union

from complyva.core.types import utcnow

LIKELIHOOD_RANGE = (1, 5)
IMPACT_RANGE = (1, 5)
CLASSIFICATION_RANGE = (1, 4)


class RiskLevel(str, enum.Enum):
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# Lower bound of each band, highest first
RISK_LEVEL_THRESHOLDS = (
    (20, RiskLevel.CRITICAL),
    (15, RiskLevel.HIGH),
    (10, RiskLevel.MEDIUM),
    (5, RiskLevel.LOW),
)


def _check_range(name: str, value: int, bounds: tuple) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ValueError(f"{name} must be an integer between {low} and {high}, got {value!r}")


def risk_score(likelihood: int, impact: int) -> int:
    """Inherent score: likelihood x impact, 1-25"""
    _check_range("likelihood", likelihood, LIKELIHOOD_RANGE)
    _check_range("impact", impact, IMPACT_RANGE)
    return likelihood * impact


def residual_score(residual_likelihood: Optional[int], residual_impact: Optional[int]) -> Optional[int]:
    """Residual score, or None until both residual inputs are assessed"""
    if residual_likelihood is None or residual_impact is None:
        return None
    return risk_score(residual_likelihood, residual_impact)


def risk_level(score: int) -> RiskLevel:
    """VERY_LOW <5, LOW 5-9, MEDIUM 10-14, HIGH 15-19, CRITICAL >=20"""
    for floor, level in RISK_LEVEL_THRESHOLDS:
        if score >= floor:
            return level
    return RiskLevel.VERY_LOW


def combined_classification(bia_score: Optional[int], dca_score: Optional[int]) -> Optional[int]:
    """Worse of business-impact and data-classification scores; None if either is missing"""
    if bia_score is None or dca_score is None:
        return None
    _check_range("bia_score", bia_score, CLASSIFICATION_RANGE)
    _check_range("dca_score", dca_score, CLASSIFICATION_RANGE)
    return max(bia_score, dca_score)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def is_overdue(
    due_date: Optional[Union[date, datetime]],
    status: Optional[str],
    open_statuses: Iterable[str],
    now: Optional[datetime] = None,
) -> bool:
    """
    Due date lies before `now` while the record is in one of its open statuses.

    A plain date counts from its midnight, so a record due today is overdue
    once today has started.
    """
    if due_date is None or status is None:
        return False
    status_value = status.value if isinstance(status, enum.Enum) else status
    open_values = {s.value if isinstance(s, enum.Enum) else s for s in open_statuses}
    if status_value not in open_values:
        return False
    return _as_datetime(due_date) < (now or utcnow())


def days_until_due(due_date: Optional[Union[date, datetime]], now: Optional[datetime] = None) -> Optional[int]:
    """Whole calendar days until the due date; negative once past it"""
    if due_date is None:
        return None
    return (_as_date(due_date) - _as_date(now or utcnow())).days
