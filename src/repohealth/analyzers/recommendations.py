"""Recommendation engine.

Rules only look at pillar ``details`` so they stay decoupled from how the
signals were collected. Pillars are visited in a fixed order and rules within
a pillar in table order; that generation order is the tie-break after the
stable sort by priority.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from repohealth.models.schemas import Pillar, PillarResult, Priority, Recommendation, RiskLevel

Details = dict[str, Any]


@dataclass(frozen=True)
class RecommendationRule:
    """Emit one recommendation when ``when`` holds for a pillar's details."""

    when: Callable[[Details], bool]
    priority: Priority
    issue: str
    action: str
    impact: str

    def evaluate(self, pillar: Pillar, details: Details) -> Recommendation | None:
        if not self.when(details):
            return None
        return Recommendation(
            priority=self.priority,
            category=pillar,
            issue=self.issue,
            action=self.action,
            impact=self.impact,
        )


def missing(name: str) -> Callable[[Details], bool]:
    return lambda d: not d[name]


def _readme_present_but_missing(name: str) -> Callable[[Details], bool]:
    # Section checks only make sense once a README exists
    return lambda d: d["has_readme"] and not d[name]


READABILITY_RULES = (
    RecommendationRule(
        when=missing("has_readme"),
        priority=Priority.CRITICAL,
        issue="Missing README.md",
        action="Create a README.md file with project description, installation, and usage instructions.",
        impact="+20 points",
    ),
    RecommendationRule(
        when=_readme_present_but_missing("has_installation"),
        priority=Priority.MEDIUM,
        issue="Missing installation instructions",
        action='Add an "Installation" section to your README with setup steps.',
        impact="+15 points",
    ),
    RecommendationRule(
        when=_readme_present_but_missing("has_usage"),
        priority=Priority.MEDIUM,
        issue="Missing usage documentation",
        action='Add a "Usage" or "Getting Started" section with examples.',
        impact="+15 points",
    ),
    RecommendationRule(
        when=_readme_present_but_missing("has_description"),
        priority=Priority.MEDIUM,
        issue="Missing repository description",
        action="Add a description in the repository settings (About section).",
        impact="+30 points",
    ),
)

SECURITY_RULES = (
    RecommendationRule(
        when=missing("has_security_md"),
        priority=Priority.CRITICAL,
        issue="Missing SECURITY.md",
        action="Create SECURITY.md with vulnerability reporting guidelines.",
        impact="+30 points",
    ),
    RecommendationRule(
        when=missing("has_dependabot"),
        priority=Priority.MEDIUM,
        issue="Dependabot not configured",
        action="Enable Dependabot by adding .github/dependabot.yml for automatic security updates.",
        impact="+30 points",
    ),
    RecommendationRule(
        when=lambda d: d["license_risk_level"] == RiskLevel.HIGH.value,
        priority=Priority.CRITICAL,
        issue="No license or restrictive license",
        action="Add an open-source license (MIT, Apache-2.0 recommended).",
        impact="+40 points",
    ),
)

MAINTAINABILITY_RULES = (
    RecommendationRule(
        when=missing("has_tests"),
        priority=Priority.CRITICAL,
        issue="No tests detected",
        action="Add a test/ or __tests__/ directory with unit tests.",
        impact="+50 points",
    ),
    RecommendationRule(
        when=missing("has_linter"),
        priority=Priority.MEDIUM,
        issue="No linter configuration",
        action="Add a linter configuration such as .eslintrc, biome.json, ruff.toml, or .pre-commit-config.yaml.",
        impact="+50 points",
    ),
)

DOCUMENTATION_RULES = (
    RecommendationRule(
        when=missing("has_docs_folder"),
        priority=Priority.MEDIUM,
        issue="No docs/ folder",
        action="Create a docs/ directory with detailed documentation.",
        impact="+25 points",
    ),
    RecommendationRule(
        when=missing("has_changelog"),
        priority=Priority.MEDIUM,
        issue="No CHANGELOG.md",
        action="Add CHANGELOG.md to track version history and changes.",
        impact="+25 points",
    ),
    RecommendationRule(
        when=missing("has_examples"),
        priority=Priority.NICE_TO_HAVE,
        issue="No examples/ folder",
        action="Add an examples/ directory with usage examples.",
        impact="+25 points",
    ),
)

AUTOMATION_RULES = (
    RecommendationRule(
        when=missing("has_pr_template"),
        priority=Priority.NICE_TO_HAVE,
        issue="No PR template",
        action="Create .github/PULL_REQUEST_TEMPLATE.md for consistent PRs.",
        impact="+20 points",
    ),
    RecommendationRule(
        when=missing("has_issue_template"),
        priority=Priority.NICE_TO_HAVE,
        issue="No issue templates",
        action="Add .github/ISSUE_TEMPLATE/ with bug and feature templates.",
        impact="+20 points",
    ),
    RecommendationRule(
        when=missing("has_code_of_conduct"),
        priority=Priority.NICE_TO_HAVE,
        issue="No Code of Conduct",
        action="Add CODE_OF_CONDUCT.md for community guidelines.",
        impact="+15 points",
    ),
)

COMMUNITY_RULES = (
    RecommendationRule(
        when=missing("has_contributing"),
        priority=Priority.MEDIUM,
        issue="No CONTRIBUTING.md",
        action="Create CONTRIBUTING.md with contribution guidelines.",
        impact="+30 points",
    ),
)

STABILITY_RULES = (
    RecommendationRule(
        when=lambda d: not d["has_releases"] and not d["has_tags"],
        priority=Priority.MEDIUM,
        issue="No releases or tags",
        action="Create GitHub releases with semantic versioning.",
        impact="+25 points",
    ),
)

# Traversal order doubles as the tie-break for equal priorities
RECOMMENDATION_RULES: tuple[tuple[Pillar, tuple[RecommendationRule, ...]], ...] = (
    (Pillar.READABILITY, READABILITY_RULES),
    (Pillar.SECURITY, SECURITY_RULES),
    (Pillar.MAINTAINABILITY, MAINTAINABILITY_RULES),
    (Pillar.DOCUMENTATION, DOCUMENTATION_RULES),
    (Pillar.AUTOMATION, AUTOMATION_RULES),
    (Pillar.COMMUNITY, COMMUNITY_RULES),
    (Pillar.STABILITY, STABILITY_RULES),
)


def generate_recommendations(pillars: Mapping[Pillar, PillarResult]) -> list[Recommendation]:
    """Generate recommendations for every missing or weak signal.

    Args:
        pillars: Results for all seven pillars.

    Returns:
        Recommendations sorted by priority; equal priorities keep generation order.
    """
    recommendations: list[Recommendation] = []
    seen: set[tuple[Pillar, str]] = set()

    for pillar, rules in RECOMMENDATION_RULES:
        details = pillars[pillar].details
        for rule in rules:
            recommendation = rule.evaluate(pillar, details)
            if recommendation is None:
                continue
            key = (recommendation.category, recommendation.issue)
            if key in seen:
                continue
            seen.add(key)
            recommendations.append(recommendation)

    return sort_recommendations(recommendations)


def sort_recommendations(recommendations: list[Recommendation]) -> list[Recommendation]:
    """Stable sort by priority rank (Critical, Medium, Nice-to-have)."""
    return sorted(recommendations, key=lambda r: r.priority.rank)
