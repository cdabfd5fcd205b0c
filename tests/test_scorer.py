"""Tests for the health scorer."""

import json
from decimal import Decimal

import pytest

from repohealth.analyzers.scorer import InvalidSignalsError, Scorer
from repohealth.models.schemas import Grade, Pillar, RiskLevel


@pytest.fixture
def scorer() -> Scorer:
    return Scorer()


class TestWeights:
    """Tests for pillar weights."""

    def test_weights_sum_to_one(self, scorer: Scorer) -> None:
        assert sum(scorer.WEIGHTS.values()) == Decimal("1")

    def test_every_pillar_weighted(self, scorer: Scorer) -> None:
        assert set(scorer.WEIGHTS) == set(Pillar)
        assert scorer.WEIGHTS[Pillar.COMMUNITY] == Decimal("0.10")


class TestTotalScore:
    """Tests for calculate_total_score."""

    def test_all_eighty(self, scorer: Scorer) -> None:
        total = scorer.calculate_total_score({pillar: 80 for pillar in Pillar})

        assert total == 80
        assert scorer.score_to_grade(total) == Grade.A
        assert scorer.score_to_risk_level(total) == RiskLevel.LOW

    def test_rounds_half_up(self, scorer: Scorer) -> None:
        scores = {pillar: 0 for pillar in Pillar}
        scores[Pillar.COMMUNITY] = 5  # 5 * 0.10 = 0.5

        assert scorer.calculate_total_score(scores) == 1

    def test_order_invariant(self, scorer: Scorer) -> None:
        forward = {pillar: 10 * i for i, pillar in enumerate(Pillar)}
        backward = dict(reversed(list(forward.items())))

        assert scorer.calculate_total_score(forward) == scorer.calculate_total_score(backward)

    def test_bounds(self, scorer: Scorer) -> None:
        assert scorer.calculate_total_score({pillar: 0 for pillar in Pillar}) == 0
        assert scorer.calculate_total_score({pillar: 100 for pillar in Pillar}) == 100


class TestBands:
    """Grade and risk banding."""

    @pytest.mark.parametrize(
        "score,grade",
        [
            (100, Grade.A_PLUS),
            (90, Grade.A_PLUS),
            (89, Grade.A),
            (80, Grade.A),
            (79, Grade.B),
            (70, Grade.B),
            (60, Grade.C),
            (50, Grade.D),
            (49, Grade.F),
            (0, Grade.F),
        ],
    )
    def test_grade(self, scorer: Scorer, score: int, grade: Grade) -> None:
        assert scorer.score_to_grade(score) == grade

    @pytest.mark.parametrize(
        "score,level",
        [(100, RiskLevel.LOW), (80, RiskLevel.LOW), (79, RiskLevel.MEDIUM), (50, RiskLevel.MEDIUM), (49, RiskLevel.HIGH)],
    )
    def test_risk(self, scorer: Scorer, score: int, level: RiskLevel) -> None:
        assert scorer.score_to_risk_level(score) == level

    def test_monotonic(self, scorer: Scorer) -> None:
        grade_order = [Grade.F, Grade.D, Grade.C, Grade.B, Grade.A, Grade.A_PLUS]
        risk_order = [RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]

        for score in range(100):
            assert grade_order.index(scorer.score_to_grade(score)) <= grade_order.index(
                scorer.score_to_grade(score + 1)
            )
            assert risk_order.index(scorer.score_to_risk_level(score)) <= risk_order.index(
                scorer.score_to_risk_level(score + 1)
            )


class TestHealthReport:
    """Tests for calculate_health_report."""

    def test_perfect_repository(self, scorer: Scorer, perfect_signals) -> None:
        report = scorer.calculate_health_report(perfect_signals)

        assert report.total_score == 100
        assert report.grade == Grade.A_PLUS
        assert report.risk_level == RiskLevel.LOW
        assert report.recommendations == ()
        assert report.recommendation_count == 0

    def test_empty_repository(self, scorer: Scorer, empty_signals) -> None:
        report = scorer.calculate_health_report(empty_signals)

        # Stability 5 and security 8, each weighted 0.15
        assert report.total_score == 2
        assert report.grade == Grade.F
        assert report.risk_level == RiskLevel.HIGH

    def test_pillars_carry_weights_and_details(self, scorer: Scorer, perfect_signals) -> None:
        report = scorer.calculate_health_report(perfect_signals)

        assert list(report.pillars) == [pillar.value for pillar in Pillar]
        assert report.pillars["community"].weight == pytest.approx(0.10)
        assert report.pillars["security"].details["license_risk"] == "Low (Permissive)"

    def test_deterministic(self, scorer: Scorer, empty_signals) -> None:
        first = scorer.calculate_health_report(empty_signals)
        second = scorer.calculate_health_report(empty_signals)

        assert first.model_dump_json() == second.model_dump_json()

    def test_report_is_json_serializable(self, scorer: Scorer, perfect_signals) -> None:
        data = json.loads(scorer.calculate_health_report(perfect_signals).model_dump_json())

        assert data["grade"] == "A+"
        assert data["risk_level"] == "Low"

    def test_accepts_mapping(self, scorer: Scorer) -> None:
        report = scorer.calculate_health_report(
            {
                "repo_meta": {"stars": 1200, "license": "MIT"},
                "collected_at": "2024-06-15T12:00:00Z",
            }
        )

        assert report.pillars["community"].score == 40
        assert report.pillars["security"].score == 40

    def test_rejects_out_of_range_values(self, scorer: Scorer) -> None:
        with pytest.raises(InvalidSignalsError):
            scorer.calculate_health_report({"repo_meta": {"stars": -1}})

    def test_rejects_unknown_fields(self, scorer: Scorer) -> None:
        with pytest.raises(InvalidSignalsError) as exc_info:
            scorer.calculate_health_report({"file_checks": {"has_everything": True}})

        assert exc_info.value.error.error_count() == 1

    def test_report_details_are_not_shared(self, scorer: Scorer, perfect_signals) -> None:
        first = scorer.calculate_health_report(perfect_signals)
        first.pillars["community"].details["stars"] = -1

        second = scorer.calculate_health_report(perfect_signals)

        assert second.pillars["community"].details["stars"] == 5000
