"""
Unit Tests for scoring and classification rules
"""
from datetime import date, datetime

import pytest

from complyva.models.enums import EntityType
from complyva.rules.scoring import (
    RiskLevel,
    risk_score,
    residual_score,
    risk_level,
    combined_classification,
    is_overdue,
    days_until_due,
)
from complyva.rules.statuses import OPEN_STATUSES


class TestRiskScore:

    def test_score_is_product(self):
        for likelihood in range(1, 6):
            for impact in range(1, 6):
                assert risk_score(likelihood, impact) == likelihood * impact

    @pytest.mark.parametrize("likelihood,impact", [(0, 3), (6, 3), (3, 0), (3, 6)])
    def test_out_of_range_rejected(self, likelihood, impact):
        with pytest.raises(ValueError):
            risk_score(likelihood, impact)

    def test_residual_needs_both_inputs(self):
        assert residual_score(None, 3) is None
        assert residual_score(2, None) is None
        assert residual_score(2, 3) == 6


class TestRiskLevel:

    @pytest.mark.parametrize("score,level", [
        (1, RiskLevel.VERY_LOW),
        (4, RiskLevel.VERY_LOW),
        (5, RiskLevel.LOW),
        (9, RiskLevel.LOW),
        (10, RiskLevel.MEDIUM),
        (14, RiskLevel.MEDIUM),
        (15, RiskLevel.HIGH),
        (19, RiskLevel.HIGH),
        (20, RiskLevel.CRITICAL),
        (25, RiskLevel.CRITICAL),
    ])
    def test_boundaries(self, score, level):
        assert risk_level(score) == level

    def test_four_by_five_is_critical(self):
        assert risk_level(risk_score(4, 5)) == RiskLevel.CRITICAL


class TestCombinedClassification:

    def test_max_of_both(self):
        assert combined_classification(1, 4) == 4
        assert combined_classification(3, 2) == 3

    def test_partial_assessment_is_null(self):
        assert combined_classification(3, None) is None
        assert combined_classification(None, 3) is None
        assert combined_classification(None, None) is None


class TestOverdue:
    now = datetime(2025, 6, 15, 12, 0)

    def test_past_due_open_is_overdue(self):
        assert is_overdue(date(2025, 6, 1), "OPEN", OPEN_STATUSES[EntityType.CAPA], self.now)

    def test_closed_is_never_overdue(self):
        assert not is_overdue(date(2025, 6, 1), "CLOSED", OPEN_STATUSES[EntityType.CAPA], self.now)

    def test_missing_due_date(self):
        assert not is_overdue(None, "OPEN", OPEN_STATUSES[EntityType.CAPA], self.now)

    def test_future_due_date(self):
        assert not is_overdue(date(2025, 7, 1), "OPEN", OPEN_STATUSES[EntityType.CAPA], self.now)

    def test_due_today_counts_once_day_started(self):
        assert is_overdue(date(2025, 6, 15), "OPEN", OPEN_STATUSES[EntityType.NC], self.now)

    def test_verified_nc_is_still_open(self):
        assert is_overdue(date(2025, 6, 1), "VERIFIED", OPEN_STATUSES[EntityType.NC], self.now)

    def test_days_until_due(self):
        assert days_until_due(date(2025, 6, 20), self.now) == 5
        assert days_until_due(date(2025, 6, 10), self.now) == -5
        assert days_until_due(None, self.now) is None
