"""Pillar calculators for the seven health dimensions.

Each calculator first records every fact it looks at in ``details`` and then
reduces a fixed rule table over those facts:

- ``Condition``: award points when a predicate holds.
- ``Bracket``: award the points of the first matching condition only.
- ``DetailPoints``: award a numeric detail as-is (license points).

The recommendation engine reads the same ``details``, so what is scored and
what is recommended come from one set of facts.
"""

import calendar
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from repohealth.analyzers.license import classify_license
from repohealth.models.schemas import Pillar, PillarResult, SignalBundle, round_half_up

Details = dict[str, Any]

INSTALL_KEYWORDS = ("installation", "install")
USAGE_KEYWORDS = ("usage", "getting started")
MIN_DESCRIPTION_LENGTH = 10
LICENSE_WEIGHT = 0.4


@dataclass(frozen=True)
class Condition:
    """Award ``points`` when ``predicate`` holds for the details."""

    predicate: Callable[[Details], bool]
    points: int

    def score(self, details: Details) -> int:
        return self.points if self.predicate(details) else 0


@dataclass(frozen=True)
class Bracket:
    """Award the points of the first matching condition only."""

    conditions: tuple[Condition, ...]

    def score(self, details: Details) -> int:
        for condition in self.conditions:
            if condition.predicate(details):
                return condition.points
        return 0


@dataclass(frozen=True)
class DetailPoints:
    """Award the value of a numeric detail."""

    name: str

    def score(self, details: Details) -> int:
        return int(details[self.name])


Rule = Condition | Bracket | DetailPoints


def flag(name: str, points: int) -> Condition:
    return Condition(lambda d: bool(d[name]), points)


def at_least(name: str, threshold: int, points: int) -> Condition:
    return Condition(lambda d: d[name] >= threshold, points)


def always(points: int) -> Condition:
    return Condition(lambda d: True, points)


def clamp_score(value: float) -> int:
    """Clamp a score into [0, 100]."""
    return int(max(0, min(100, value)))


def apply_rules(rules: tuple[Rule, ...], details: Details) -> int:
    """Sum the points of every rule, then clamp."""
    return clamp_score(sum(rule.score(details) for rule in rules))


def months_before(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


# --- Readability ---

READABILITY_RULES: tuple[Rule, ...] = (
    flag("has_readme", 20),
    Condition(lambda d: d["has_readme"] and d["readme_length"] > 500, 10),
    Condition(lambda d: d["has_readme"] and d["readme_length"] > 2000, 10),
    flag("has_installation", 15),
    flag("has_usage", 15),
    flag("has_description", 30),
)


def calculate_readability(signals: SignalBundle) -> PillarResult:
    """README presence, size and sections, plus the repository description."""
    readme = signals.readme
    details: Details = {
        "has_readme": readme.exists,
        "readme_length": readme.length,
        "has_installation": False,
        "has_usage": False,
    }

    if readme.exists:
        content = readme.content.lower()
        details["has_installation"] = any(word in content for word in INSTALL_KEYWORDS)
        details["has_usage"] = any(word in content for word in USAGE_KEYWORDS)

    description = signals.repo_meta.description or ""
    details["has_description"] = len(description) > MIN_DESCRIPTION_LENGTH

    return PillarResult(score=apply_rules(READABILITY_RULES, details), details=details)


# --- Stability ---

STABILITY_RULES: tuple[Rule, ...] = (
    Condition(lambda d: d["has_releases"] or d["has_tags"], 25),
    Condition(
        lambda d: (d["has_releases"] or d["has_tags"])
        and (d["release_count"] > 5 or d["tag_count"] > 5),
        15,
    ),
    flag("has_workflows", 20),
    Condition(lambda d: d["has_workflows"] and d["workflow_count"] > 1, 10),
    Bracket((
        flag("pushed_within_month", 30),
        flag("is_recently_active", 20),
        always(5),
    )),
)


def calculate_stability(signals: SignalBundle) -> PillarResult:
    """Releases, tags, CI workflows and push recency.

    Recency is measured against ``signals.collected_at`` in calendar months.
    A repository with no push timestamp gets the lowest recency bracket.
    """
    pushed_at = signals.repo_meta.pushed_at
    now = signals.collected_at

    within_month = False
    within_six_months = False
    if pushed_at is not None:
        within_month = pushed_at > months_before(now, 1)
        within_six_months = pushed_at > months_before(now, 6)

    details: Details = {
        "has_releases": signals.releases.exists,
        "release_count": signals.releases.count,
        "has_tags": signals.tags.exists,
        "tag_count": signals.tags.count,
        "latest_release": signals.releases.latest,
        "has_workflows": signals.workflows.exists,
        "workflow_count": signals.workflows.count,
        "last_commit": pushed_at.isoformat() if pushed_at else None,
        "pushed_within_month": within_month,
        "is_recently_active": within_six_months,
    }

    return PillarResult(score=apply_rules(STABILITY_RULES, details), details=details)


# --- Security ---

SECURITY_RULES: tuple[Rule, ...] = (
    DetailPoints("license_points"),
    flag("has_security_md", 30),
    flag("has_dependabot", 30),
)


def calculate_security(signals: SignalBundle) -> PillarResult:
    """License risk, SECURITY.md and Dependabot."""
    meta = signals.repo_meta
    risk = classify_license(meta.license)

    details: Details = {
        "license_type": meta.license_name or meta.license or "No License",
        "license_key": meta.license or "none",
        "license_risk": risk.label,
        "license_risk_level": risk.level.value,
        "license_score": risk.score,
        "license_points": round_half_up(risk.score * LICENSE_WEIGHT),
        "has_security_md": signals.file_checks.has_security_md,
        "has_dependabot": signals.file_checks.has_dependabot,
    }

    return PillarResult(score=apply_rules(SECURITY_RULES, details), details=details)


# --- Community ---

# Stars and close ratio are each graded on a single scale: only the highest
# matching bracket counts.
COMMUNITY_RULES: tuple[Rule, ...] = (
    Bracket((
        at_least("stars", 1000, 40),
        at_least("stars", 100, 30),
        at_least("stars", 50, 20),
        at_least("stars", 10, 10),
    )),
    Bracket((
        at_least("issue_close_ratio", 70, 30),
        at_least("issue_close_ratio", 50, 20),
        at_least("issue_close_ratio", 30, 10),
    )),
    flag("has_contributing", 30),
)


def calculate_community(signals: SignalBundle) -> PillarResult:
    """Stars, issue close ratio and contribution guidelines."""
    meta = signals.repo_meta
    issues = signals.issue_stats

    details: Details = {
        "stars": meta.stars,
        "forks": meta.forks,
        "subscribers": meta.subscribers,
        "open_issues": issues.open,
        "closed_issues": issues.closed,
        "issue_close_ratio": issues.ratio,
        "has_contributing": signals.file_checks.has_contributing,
    }

    return PillarResult(score=apply_rules(COMMUNITY_RULES, details), details=details)


# --- Maintainability ---

MAINTAINABILITY_RULES: tuple[Rule, ...] = (
    flag("has_tests", 50),
    flag("has_linter", 50),
)


def calculate_maintainability(signals: SignalBundle) -> PillarResult:
    details: Details = {
        "has_tests": signals.file_checks.has_test_dir,
        "has_linter": signals.file_checks.has_linter_config,
    }
    return PillarResult(score=apply_rules(MAINTAINABILITY_RULES, details), details=details)


# --- Documentation ---

DOCUMENTATION_RULES: tuple[Rule, ...] = (
    flag("has_docs_folder", 25),
    flag("has_changelog", 25),
    flag("has_examples", 25),
    flag("has_wiki", 15),
    flag("has_api_docs", 10),
)


def calculate_documentation(signals: SignalBundle) -> PillarResult:
    files = signals.file_checks
    details: Details = {
        "has_docs_folder": files.has_docs_dir,
        "has_changelog": files.has_changelog,
        "has_examples": files.has_examples_dir,
        "has_wiki": signals.repo_meta.has_wiki,
        "has_api_docs": files.has_api_docs,
    }
    return PillarResult(score=apply_rules(DOCUMENTATION_RULES, details), details=details)


# --- Automation ---

AUTOMATION_RULES: tuple[Rule, ...] = (
    Bracket((
        at_least("workflow_count", 3, 30),
        at_least("workflow_count", 1, 20),
    )),
    flag("has_pr_template", 20),
    flag("has_issue_template", 20),
    flag("has_release_config", 15),
    flag("has_code_of_conduct", 15),
)


def calculate_automation(signals: SignalBundle) -> PillarResult:
    files = signals.file_checks
    details: Details = {
        "workflow_count": signals.workflows.count,
        "has_pr_template": files.has_pr_template,
        "has_issue_template": files.has_issue_template,
        "has_release_config": files.has_release_config,
        "has_code_of_conduct": files.has_code_of_conduct,
    }
    return PillarResult(score=apply_rules(AUTOMATION_RULES, details), details=details)


PILLAR_CALCULATORS: dict[Pillar, Callable[[SignalBundle], PillarResult]] = {
    Pillar.READABILITY: calculate_readability,
    Pillar.STABILITY: calculate_stability,
    Pillar.SECURITY: calculate_security,
    Pillar.COMMUNITY: calculate_community,
    Pillar.MAINTAINABILITY: calculate_maintainability,
    Pillar.DOCUMENTATION: calculate_documentation,
    Pillar.AUTOMATION: calculate_automation,
}
