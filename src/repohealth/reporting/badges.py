"""Shields.io health badges."""

from urllib.parse import quote

SHIELDS_URL = "https://img.shields.io/badge"

# (inclusive lower bound, colour), checked in order
BADGE_COLORS = (
    (80, "brightgreen"),
    (60, "green"),
    (50, "yellow"),
    (30, "orange"),
)


def badge_color(score: int) -> str:
    for minimum, color in BADGE_COLORS:
        if score >= minimum:
            return color
    return "red"


def badge_url(score: int, grade: str) -> str:
    """Build a shields.io badge URL such as ``Health-A (85%)``.

    Args:
        score: Total health score (0-100).
        grade: Letter grade.

    Returns:
        Badge image URL.
    """
    label = quote("Health", safe="")
    # Shields.io treats "-" as a separator, so literal dashes are doubled
    message = quote(f"{grade} ({score}%)".replace("-", "--"), safe="")
    return f"{SHIELDS_URL}/{label}-{message}-{badge_color(score)}?style=for-the-badge"


def badge_markdown(score: int, grade: str, repo_url: str) -> str:
    """Markdown snippet that links the badge to the repository."""
    return f"[![Health: {grade}]({badge_url(score, grade)})]({repo_url})"
