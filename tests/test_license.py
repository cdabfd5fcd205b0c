"""Tests for license risk classification."""

import pytest

from repohealth.analyzers.license import band_for_score, classify_license
from repohealth.models.schemas import RiskLevel


class TestClassifyLicense:
    """Tests for classify_license."""

    @pytest.mark.parametrize("identifier", [None, "", "   "])
    def test_missing_license_is_high_risk(self, identifier) -> None:
        risk = classify_license(identifier)

        assert risk.score == 20
        assert risk.level == RiskLevel.HIGH
        assert risk.label == "High (No License)"

    def test_lookup_is_case_insensitive(self) -> None:
        assert classify_license("MIT") == classify_license("mit")
        assert classify_license("Apache-2.0") == classify_license("APACHE-2.0")

    def test_permissive_license(self) -> None:
        risk = classify_license("MIT")

        assert risk.score == 100
        assert risk.level == RiskLevel.LOW
        assert risk.label == "Low (Permissive)"

    def test_weak_copyleft_is_medium(self) -> None:
        risk = classify_license("MPL-2.0")

        assert risk.score == 75
        assert risk.level == RiskLevel.MEDIUM
        assert risk.label == "Medium (Copyleft)"

    def test_strong_copyleft_is_high(self) -> None:
        risk = classify_license("GPL-3.0")

        assert risk.score == 50
        assert risk.level == RiskLevel.HIGH
        assert risk.label == "High (Restrictive)"

    def test_unknown_license_is_medium(self) -> None:
        risk = classify_license("zlib")

        assert risk.score == 50
        assert risk.level == RiskLevel.MEDIUM

    def test_explicit_none_key(self) -> None:
        risk = classify_license("none")

        assert risk.score == 20
        assert risk.level == RiskLevel.HIGH
        assert risk.label == "High (No License)"


class TestBandForScore:
    """Band boundaries are inclusive at 85 and 60."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, RiskLevel.LOW),
            (85, RiskLevel.LOW),
            (84, RiskLevel.MEDIUM),
            (60, RiskLevel.MEDIUM),
            (59, RiskLevel.HIGH),
            (0, RiskLevel.HIGH),
        ],
    )
    def test_boundaries(self, score: int, expected: RiskLevel) -> None:
        level, _ = band_for_score(score)
        assert level == expected
