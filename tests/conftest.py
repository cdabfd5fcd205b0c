"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from repohealth.models.schemas import (
    FileChecks,
    IssueStats,
    ReadmeSignal,
    ReleaseSignal,
    RepoMeta,
    SignalBundle,
    TagSignal,
    WorkflowSignal,
)

COLLECTED_AT = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

README_TEXT = (
    "# Sample Project\n\n"
    "A sample project used in tests.\n\n"
    "## Installation\n\npip install sample\n\n"
    "## Usage\n\nRun `sample --help` to get started.\n\n"
) + "Lorem ipsum dolor sit amet. " * 80


@pytest.fixture
def collected_at() -> datetime:
    return COLLECTED_AT


@pytest.fixture
def empty_signals() -> SignalBundle:
    """A bundle where every flag is false and every count is zero."""
    return SignalBundle(collected_at=COLLECTED_AT)


@pytest.fixture
def perfect_signals() -> SignalBundle:
    """A bundle that maxes out every pillar."""
    return SignalBundle(
        repo_meta=RepoMeta(
            description="A thoroughly maintained sample project",
            license="MIT",
            license_name="MIT License",
            pushed_at=COLLECTED_AT - timedelta(days=3),
            stars=5000,
            forks=400,
            subscribers=120,
            open_issues=10,
            has_wiki=True,
            full_name="octo/sample",
            html_url="https://github.com/octo/sample",
            language="Python",
        ),
        readme=ReadmeSignal.from_content(README_TEXT),
        releases=ReleaseSignal(exists=True, count=10, latest="v2.3.0"),
        tags=TagSignal(exists=True, count=10),
        workflows=WorkflowSignal(exists=True, count=3),
        issue_stats=IssueStats.from_counts(10, 90),
        file_checks=FileChecks(**{name: True for name in FileChecks.model_fields}),
        collected_at=COLLECTED_AT,
    )


@pytest.fixture
def make_signals():
    """Build a bundle from partial sections, e.g. make_signals(repo_meta={"stars": 10})."""

    def _make(**sections) -> SignalBundle:
        data = {"collected_at": COLLECTED_AT}
        data.update(sections)
        return SignalBundle.model_validate(data)

    return _make
