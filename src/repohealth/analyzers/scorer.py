"""Health score calculator for repository signals."""

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import ValidationError

from repohealth.analyzers.pillars import PILLAR_CALCULATORS
from repohealth.analyzers.recommendations import generate_recommendations
from repohealth.models.schemas import (
    Grade,
    HealthReport,
    Pillar,
    PillarReport,
    PillarResult,
    RiskLevel,
    SignalBundle,
)

logger = logging.getLogger(__name__)


class InvalidSignalsError(ValueError):
    """Raised when a signal bundle fails validation before scoring."""

    def __init__(self, error: ValidationError) -> None:
        self.error = error
        super().__init__(f"Invalid signal bundle: {error.error_count()} validation error(s)\n{error}")


class Scorer:
    """Calculates repository health reports from collected signals.

    Scoring weights (total 100%):
    - Readability: 15%
    - Stability: 15%
    - Security: 15%
    - Community: 10%
    - Maintainability: 15%
    - Documentation: 15%
    - Automation: 15%
    """

    # Exact decimals so the weights sum to exactly 1
    WEIGHTS = {
        Pillar.READABILITY: Decimal("0.15"),
        Pillar.STABILITY: Decimal("0.15"),
        Pillar.SECURITY: Decimal("0.15"),
        Pillar.COMMUNITY: Decimal("0.10"),
        Pillar.MAINTAINABILITY: Decimal("0.15"),
        Pillar.DOCUMENTATION: Decimal("0.15"),
        Pillar.AUTOMATION: Decimal("0.15"),
    }

    # (inclusive lower bound, result), checked in order
    GRADE_BANDS = (
        (90, Grade.A_PLUS),
        (80, Grade.A),
        (70, Grade.B),
        (60, Grade.C),
        (50, Grade.D),
    )
    RISK_BANDS = (
        (80, RiskLevel.LOW),
        (50, RiskLevel.MEDIUM),
    )

    def calculate_health_report(self, signals: SignalBundle | Mapping[str, Any]) -> HealthReport:
        """Score a repository.

        Args:
            signals: A SignalBundle, or a mapping that is validated into one.

        Returns:
            HealthReport with total score, grade, risk level, per-pillar
            breakdown and sorted recommendations.

        Raises:
            InvalidSignalsError: If a mapping does not describe a valid bundle.
        """
        if not isinstance(signals, SignalBundle):
            try:
                signals = SignalBundle.model_validate(signals)
            except ValidationError as e:
                raise InvalidSignalsError(e) from e

        pillars = self.calculate_pillars(signals)
        total_score = self.calculate_total_score({p: r.score for p, r in pillars.items()})
        grade = self.score_to_grade(total_score)
        risk_level = self.score_to_risk_level(total_score)
        recommendations = generate_recommendations(pillars)

        name = signals.repo_meta.full_name or "repository"
        logger.info(
            f"{name}: Score={total_score}, Grade={grade.value}, "
            f"Recommendations={len(recommendations)}"
        )

        return HealthReport(
            total_score=total_score,
            grade=grade,
            risk_level=risk_level,
            pillars={
                pillar.value: PillarReport(
                    score=result.score,
                    weight=float(self.WEIGHTS[pillar]),
                    details=dict(result.details),
                )
                for pillar, result in pillars.items()
            },
            recommendations=tuple(recommendations),
            recommendation_count=len(recommendations),
        )

    def calculate_pillars(self, signals: SignalBundle) -> dict[Pillar, PillarResult]:
        """Run all seven pillar calculators."""
        return {pillar: calculate(signals) for pillar, calculate in PILLAR_CALCULATORS.items()}

    def calculate_total_score(self, scores: Mapping[Pillar, int]) -> int:
        """Weighted sum of the pillar scores, rounded half up."""
        total = sum(Decimal(scores[pillar]) * weight for pillar, weight in self.WEIGHTS.items())
        return int(total.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    def score_to_grade(self, score: int) -> Grade:
        """Convert numeric score to letter grade."""
        for minimum, grade in self.GRADE_BANDS:
            if score >= minimum:
                return grade
        return Grade.F

    def score_to_risk_level(self, score: int) -> RiskLevel:
        """Convert numeric score to risk tier. Independent of the grade bands."""
        for minimum, level in self.RISK_BANDS:
            if score >= minimum:
                return level
        return RiskLevel.HIGH
