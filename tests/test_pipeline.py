"""Tests for the analysis pipeline."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from repohealth.analyzers.github import GitHubFetcher
from repohealth.analyzers.pipeline import DEMO_REPOSITORY, AnalysisPipeline
from repohealth.models.schemas import RateLimitStatus, RepoRef, SignalBundle


class FakeFetcher:
    """Serves prepared bundles instead of calling GitHub."""

    def __init__(
        self,
        bundles: dict[str, SignalBundle],
        users: dict[str, list[str]] | None = None,
        remaining: int = 5000,
    ):
        self.bundles = bundles
        self.users = users or {}
        self.remaining = remaining
        self.requested: list[str] = []

    async def fetch_signals(self, repo_ref: RepoRef) -> SignalBundle | None:
        self.requested.append(repo_ref.full_name)
        if repo_ref.full_name == "octo/broken":
            raise httpx.HTTPStatusError(
                "boom",
                request=httpx.Request("GET", "https://api.github.com/repos/octo/broken"),
                response=httpx.Response(500),
            )
        if repo_ref.full_name == "octo/garbled":
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.bundles.get(repo_ref.full_name)

    async def list_user_repos(self, username: str, max_repos: int = 10) -> list[RepoRef]:
        names = self.users.get(username, [])
        if max_repos > 0:
            names = names[:max_repos]
        return [RepoRef(owner=username, repo=name) for name in names]

    async def check_rate_limit(self) -> RateLimitStatus:
        return RateLimitStatus(
            remaining=self.remaining,
            limit=5000,
            reset=datetime(2024, 6, 15, 13, 0, tzinfo=timezone.utc),
        )


@pytest.fixture
def bundles(perfect_signals, empty_signals) -> dict[str, SignalBundle]:
    return {
        "octo/good": perfect_signals,
        "octo/bare": empty_signals,
    }


class TestAnalyzeRepository:
    """Tests for analyze_repository."""

    @pytest.mark.asyncio
    async def test_builds_analysis(self, bundles) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles))
        analysis = await pipeline.analyze_repository(RepoRef(owner="octo", repo="good"))

        assert analysis.repo_name == "octo/sample"
        assert analysis.repo_url == "https://github.com/octo/sample"
        assert analysis.license_type == "MIT License"
        assert analysis.report.total_score == 100
        assert "brightgreen" in analysis.badge_url
        assert analysis.badge_markdown.endswith("(https://github.com/octo/sample)")

    @pytest.mark.asyncio
    async def test_falls_back_to_ref_names(self, bundles) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles))
        analysis = await pipeline.analyze_repository(RepoRef(owner="octo", repo="bare"))

        assert analysis.repo_name == "octo/bare"
        assert analysis.repo_url == "https://github.com/octo/bare"
        assert analysis.license_type == "No License"

    @pytest.mark.asyncio
    async def test_missing_repository(self, bundles) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles))
        assert await pipeline.analyze_repository(RepoRef(owner="octo", repo="nope")) is None

    @pytest.mark.asyncio
    async def test_saves_json(self, bundles, tmp_path: Path) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles), data_dir=tmp_path)
        await pipeline.analyze_repository(RepoRef(owner="octo", repo="bare"))

        saved = tmp_path / "analyzed" / "octo__bare.json"
        data = json.loads(saved.read_text())
        assert data["report"]["grade"] == "F"
        assert data["report"]["recommendation_count"] == 14


class TestAnalyzeTargets:
    """Tests for analyze_targets."""

    @pytest.mark.asyncio
    async def test_counts(self, bundles) -> None:
        fetcher = FakeFetcher(bundles)
        pipeline = AnalysisPipeline(fetcher=fetcher)

        summary = await pipeline.analyze_targets(
            [
                "https://github.com/octo/good",
                "https://github.com/octo/bare",
                "https://github.com/octo/nope",
                "https://github.com/octo/broken",
                "https://gitlab.com/octo/good",
            ],
            min_health_score=50,
        )

        assert summary.processed == 4
        assert summary.successful == 1
        assert summary.filtered_out == 1
        assert summary.skipped == 3
        assert [a.repo_name for a in summary.results] == ["octo/sample"]

    @pytest.mark.asyncio
    async def test_expands_user_profiles(self, bundles) -> None:
        fetcher = FakeFetcher(bundles, users={"octo": ["good", "bare", "extra"]})
        pipeline = AnalysisPipeline(fetcher=fetcher)

        summary = await pipeline.analyze_targets(
            ["https://github.com/octo", "https://github.com/octo/good"],
            max_repos_per_user=2,
        )

        # octo/good is only analyzed once
        assert fetcher.requested == ["octo/good", "octo/bare"]
        assert summary.successful == 2

    @pytest.mark.asyncio
    async def test_empty_input_scans_demo(self, bundles) -> None:
        fetcher = FakeFetcher(bundles)
        pipeline = AnalysisPipeline(fetcher=fetcher)

        await pipeline.analyze_targets([])

        assert DEMO_REPOSITORY.endswith("apify/crawlee")
        assert fetcher.requested == ["apify/crawlee"]

    @pytest.mark.asyncio
    async def test_progress_callback(self, bundles) -> None:
        calls = []
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles))

        await pipeline.analyze_targets(
            ["octo/good", "octo/bare"],
            progress_callback=lambda current, total, name: calls.append((current, total, name)),
        )

        assert calls == [(1, 2, "octo/good"), (2, 2, "octo/bare")]

    @pytest.mark.asyncio
    async def test_malformed_payload_skips_repository(self, bundles) -> None:
        fetcher = FakeFetcher(bundles)
        pipeline = AnalysisPipeline(fetcher=fetcher)

        summary = await pipeline.analyze_targets(["octo/garbled", "octo/good"])

        assert fetcher.requested == ["octo/garbled", "octo/good"]
        assert summary.skipped == 1
        assert summary.successful == 1

    @pytest.mark.asyncio
    async def test_non_json_responses_do_not_abort_batch(self) -> None:
        repo_json = {
            "full_name": "octo/good",
            "html_url": "https://github.com/octo/good",
            "stargazers_count": 10,
        }

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path in ("/repos/octo/bad", "/repos/octo/good/readme"):
                return httpx.Response(200, text="<html>Unicorn!</html>")
            if path == "/repos/octo/good":
                return httpx.Response(200, json=repo_json)
            if path == "/rate_limit":
                body = {"resources": {"core": {"remaining": 4000, "limit": 5000, "reset": 1718445600}}}
                return httpx.Response(200, json=body)
            return httpx.Response(404, json={"message": "Not Found"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        pipeline = AnalysisPipeline(fetcher=GitHubFetcher(token="test-token", client=client))

        summary = await pipeline.analyze_targets(["octo/bad", "octo/good"])

        assert summary.processed == 2
        assert summary.skipped == 1
        assert [a.repo_name for a in summary.results] == ["octo/good"]
        assert summary.results[0].report.pillars["readability"].details["has_readme"] is False

    @pytest.mark.asyncio
    async def test_empty_repository_name_is_skipped(self, bundles) -> None:
        fetcher = FakeFetcher(bundles)
        pipeline = AnalysisPipeline(fetcher=fetcher)

        repos, skipped = await pipeline.resolve_targets(["octo/.git", "octo/good"])

        assert repos == [RepoRef(owner="octo", repo="good")]
        assert skipped == 1

    @pytest.mark.asyncio
    async def test_warns_when_rate_limit_low(self, bundles, caplog) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles, remaining=3))

        with caplog.at_level(logging.WARNING, logger="repohealth.analyzers.pipeline"):
            await pipeline.analyze_targets(["octo/good"])

        assert "Only 3 GitHub API requests left" in caplog.text

    @pytest.mark.asyncio
    async def test_no_warning_with_enough_quota(self, bundles, caplog) -> None:
        pipeline = AnalysisPipeline(fetcher=FakeFetcher(bundles))

        with caplog.at_level(logging.WARNING, logger="repohealth.analyzers.pipeline"):
            await pipeline.analyze_targets(["octo/good"])

        assert "API requests left" not in caplog.text
