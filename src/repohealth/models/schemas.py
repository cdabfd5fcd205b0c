"""Pydantic models for repository signals and health reports."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves rounding up."""
    return math.floor(value + 0.5)


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TargetKind(str, Enum):
    """What a GitHub URL points at."""

    REPO = "repo"
    USER = "user"
    INVALID = "invalid"


class RepoRef(BaseModel):
    """Reference to a GitHub repository."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://github.com/{self.owner}/{self.repo}"


class GitHubTarget(BaseModel):
    """A parsed scan target: a repository, a user profile, or nothing usable."""

    kind: TargetKind
    owner: str | None = None
    repo: str | None = None

    def to_repo_ref(self) -> RepoRef | None:
        if self.kind != TargetKind.REPO or not self.owner or not self.repo:
            return None
        return RepoRef(owner=self.owner, repo=self.repo)


class Pillar(str, Enum):
    """The seven independently scored health dimensions."""

    READABILITY = "readability"
    STABILITY = "stability"
    SECURITY = "security"
    COMMUNITY = "community"
    MAINTAINABILITY = "maintainability"
    DOCUMENTATION = "documentation"
    AUTOMATION = "automation"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Priority(str, Enum):
    """Recommendation priority. Lower rank sorts first."""

    CRITICAL = "Critical"
    MEDIUM = "Medium"
    NICE_TO_HAVE = "Nice-to-have"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    Priority.CRITICAL: 0,
    Priority.MEDIUM: 1,
    Priority.NICE_TO_HAVE: 2,
}


class Grade(str, Enum):
    """Letter grade for the overall score."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class RiskLevel(str, Enum):
    """Coarse Low/Medium/High banding, used for both license risk and overall risk tier."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# --- Signal Models ---


class _Signal(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RepoMeta(_Signal):
    """Repository metadata as reported by the hosting API."""

    description: str | None = None
    license: str | None = None  # SPDX identifier, e.g. "MIT"
    license_name: str | None = None
    pushed_at: datetime | None = None
    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    subscribers: int = Field(default=0, ge=0)
    open_issues: int = Field(default=0, ge=0)
    has_wiki: bool = False

    # Presentation-only fields, not used for scoring
    full_name: str = ""
    html_url: str = ""
    language: str | None = None
    default_branch: str = "main"
    created_at: datetime | None = None
    is_fork: bool = False
    is_archived: bool = False

    @field_validator("pushed_at", "created_at")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class ReadmeSignal(_Signal):
    """README presence and content."""

    exists: bool = False
    content: str = ""
    length: int = Field(default=0, ge=0)

    @classmethod
    def from_content(cls, content: str | None) -> "ReadmeSignal":
        if content is None:
            return cls()
        return cls(exists=True, content=content, length=len(content))


class ReleaseSignal(_Signal):
    """Published releases (first page only)."""

    exists: bool = False
    count: int = Field(default=0, ge=0)
    latest: str | None = None


class TagSignal(_Signal):
    """Git tags (first page only)."""

    exists: bool = False
    count: int = Field(default=0, ge=0)


class WorkflowSignal(_Signal):
    """CI workflow definitions."""

    exists: bool = False
    count: int = Field(default=0, ge=0)


class IssueStats(_Signal):
    """Issue counts and close ratio (percentage, 0-100)."""

    open: int = Field(default=0, ge=0)
    closed: int = Field(default=0, ge=0)
    ratio: int = Field(default=0, ge=0, le=100)

    @classmethod
    def from_counts(cls, open_count: int, closed_count: int) -> "IssueStats":
        total = open_count + closed_count
        ratio = round_half_up(closed_count / total * 100) if total > 0 else 0
        return cls(open=open_count, closed=closed_count, ratio=ratio)


class FileChecks(_Signal):
    """Presence of files and directories probed in the repository."""

    has_security_md: bool = False
    has_dependabot: bool = False
    has_contributing: bool = False
    has_linter_config: bool = False
    has_test_dir: bool = False
    has_docs_dir: bool = False
    has_changelog: bool = False
    has_examples_dir: bool = False
    has_api_docs: bool = False
    has_pr_template: bool = False
    has_issue_template: bool = False
    has_release_config: bool = False
    has_code_of_conduct: bool = False


class SignalBundle(_Signal):
    """Everything the scoring engine needs, fully collected up front.

    ``collected_at`` is the reference clock for recency checks, so scoring the
    same bundle twice always gives the same result.
    """

    repo_meta: RepoMeta = Field(default_factory=RepoMeta)
    readme: ReadmeSignal = Field(default_factory=ReadmeSignal)
    releases: ReleaseSignal = Field(default_factory=ReleaseSignal)
    tags: TagSignal = Field(default_factory=TagSignal)
    workflows: WorkflowSignal = Field(default_factory=WorkflowSignal)
    issue_stats: IssueStats = Field(default_factory=IssueStats)
    file_checks: FileChecks = Field(default_factory=FileChecks)
    collected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("collected_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


# --- Scoring Models ---


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class LicenseRisk(_Result):
    """Outcome of license classification."""

    score: int = Field(ge=0, le=100)
    level: RiskLevel
    label: str


class PillarResult(_Result):
    """Score for a single pillar plus the facts it was derived from.

    Freezing covers field assignment only. ``details`` is a plain dict built
    fresh on every calculation, so changing it never affects another result.
    """

    score: int = Field(ge=0, le=100)
    details: dict[str, Any] = Field(default_factory=dict)


class PillarReport(_Result):
    """A pillar result as it appears in the final report.

    ``details`` is a copy owned by this report.
    """

    score: int = Field(ge=0, le=100)
    weight: float
    details: dict[str, Any] = Field(default_factory=dict)


class Recommendation(_Result):
    """A prioritized remediation suggestion."""

    priority: Priority
    category: Pillar
    issue: str
    action: str
    impact: str


class HealthReport(_Result):
    """Complete health assessment of one repository."""

    total_score: int = Field(ge=0, le=100)
    grade: Grade
    risk_level: RiskLevel
    pillars: dict[str, PillarReport]
    recommendations: tuple[Recommendation, ...] = ()
    recommendation_count: int = 0


# --- Pipeline Models ---


class RateLimitStatus(BaseModel):
    """GitHub core API quota."""

    remaining: int
    limit: int
    reset: datetime


class RepositoryAnalysis(BaseModel):
    """A scored repository together with presentation metadata."""

    repo_name: str
    repo_url: str
    description: str = ""
    language: str | None = None
    stars: int = 0
    forks: int = 0
    last_commit: datetime | None = None
    license_type: str = "No License"
    report: HealthReport
    badge_url: str
    badge_markdown: str
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScanSummary(BaseModel):
    """Outcome of a batch scan."""

    processed: int = 0
    successful: int = 0
    filtered_out: int = 0
    skipped: int = 0
    results: list[RepositoryAnalysis] = Field(default_factory=list)
