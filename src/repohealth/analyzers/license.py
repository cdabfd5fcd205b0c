"""License risk classification."""

from repohealth.models.schemas import LicenseRisk, RiskLevel

# Keys are lowercase SPDX identifiers
LICENSE_SCORES = {
    # Permissive
    "mit": 100,
    "apache-2.0": 100,
    "bsd-2-clause": 100,
    "bsd-3-clause": 100,
    "isc": 100,
    "unlicense": 90,
    "cc0-1.0": 90,
    "wtfpl": 85,
    # Weak copyleft
    "lgpl-2.1": 70,
    "lgpl-3.0": 70,
    "mpl-2.0": 75,
    # Strong copyleft
    "gpl-2.0": 50,
    "gpl-3.0": 50,
    "agpl-3.0": 40,
    # Explicitly unlicensed
    "other": 30,
    "none": 20,
}

NO_LICENSE_SCORE = 20
UNRECOGNIZED_SCORE = 50

# (minimum score, level, label), checked in order
RISK_BANDS = (
    (85, RiskLevel.LOW, "Low (Permissive)"),
    (60, RiskLevel.MEDIUM, "Medium (Copyleft)"),
    (0, RiskLevel.HIGH, "High (Restrictive)"),
)

NO_LICENSE_LABEL = "High (No License)"
UNRECOGNIZED_LABEL = "Medium (Unrecognized)"


def classify_license(identifier: str | None) -> LicenseRisk:
    """Classify a license identifier into a risk score and level.

    Lookup is case-insensitive. A missing identifier is the highest risk; a
    present but unknown one is treated as medium risk.

    Args:
        identifier: SPDX identifier such as "MIT" or "GPL-3.0", or None.

    Returns:
        LicenseRisk with score, level and display label.
    """
    if not identifier or not identifier.strip():
        return LicenseRisk(score=NO_LICENSE_SCORE, level=RiskLevel.HIGH, label=NO_LICENSE_LABEL)

    key = identifier.strip().lower()
    score = LICENSE_SCORES.get(key)
    if score is None:
        return LicenseRisk(score=UNRECOGNIZED_SCORE, level=RiskLevel.MEDIUM, label=UNRECOGNIZED_LABEL)

    level, label = band_for_score(score)
    if key == "none":
        label = NO_LICENSE_LABEL
    return LicenseRisk(score=score, level=level, label=label)


def band_for_score(score: int) -> tuple[RiskLevel, str]:
    """Map a license score onto its risk band."""
    for minimum, level, label in RISK_BANDS:
        if score >= minimum:
            return level, label
    return RISK_BANDS[-1][1], RISK_BANDS[-1][2]
