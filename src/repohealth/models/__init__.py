"""Data models and schemas."""

from repohealth.models.schemas import (
    FileChecks,
    GitHubTarget,
    Grade,
    HealthReport,
    IssueStats,
    LicenseRisk,
    Pillar,
    PillarReport,
    PillarResult,
    Priority,
    RateLimitStatus,
    ReadmeSignal,
    Recommendation,
    ReleaseSignal,
    RepoMeta,
    RepoRef,
    RepositoryAnalysis,
    RiskLevel,
    ScanSummary,
    SignalBundle,
    TagSignal,
    TargetKind,
    WorkflowSignal,
)

__all__ = [
    "SignalBundle",
    "RepoMeta",
    "ReadmeSignal",
    "ReleaseSignal",
    "TagSignal",
    "WorkflowSignal",
    "IssueStats",
    "FileChecks",
    "Pillar",
    "PillarResult",
    "PillarReport",
    "Priority",
    "Recommendation",
    "Grade",
    "RiskLevel",
    "LicenseRisk",
    "HealthReport",
    "RepoRef",
    "GitHubTarget",
    "TargetKind",
    "RateLimitStatus",
    "RepositoryAnalysis",
    "ScanSummary",
]
