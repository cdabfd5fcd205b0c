"""GitHub signal collector for repository health scoring."""

import asyncio
import base64
import logging
import os
import re
import urllib.parse
from datetime import datetime, timezone

import httpx

from repohealth.models.schemas import (
    FileChecks,
    GitHubTarget,
    IssueStats,
    RateLimitStatus,
    ReadmeSignal,
    ReleaseSignal,
    RepoMeta,
    RepoRef,
    SignalBundle,
    TagSignal,
    TargetKind,
    WorkflowSignal,
)

logger = logging.getLogger(__name__)

LINTER_FILES = (
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
    "eslint.config.js",
    "eslint.config.mjs",
    ".prettierrc",
    ".prettierrc.js",
    ".prettierrc.json",
    "biome.json",
    ".stylelintrc",
    "tslint.json",
    "ruff.toml",
    ".ruff.toml",
    ".flake8",
    ".pylintrc",
    ".pre-commit-config.yaml",
    ".golangci.yml",
    ".golangci.yaml",
    ".rubocop.yml",
)
TEST_DIRS = ("test", "tests", "__tests__", "spec", "specs")
CHANGELOG_FILES = ("changelog.md", "history.md", "changes.md")
EXAMPLE_DIRS = ("examples", "example")
RELEASE_CONFIG_FILES = (".releaserc", ".releaserc.json", "release.config.js")
DEPENDABOT_FILES = ("dependabot.yml", "dependabot.yaml")

# Page size for release and tag listings; counts saturate at this value
LISTING_PAGE_SIZE = 10

_OWNER_REPO = re.compile(r"([A-Za-z0-9-]+)/([\w.-]+)")


def parse_github_url(url: str | None) -> GitHubTarget:
    """Parse a GitHub URL into a scan target.

    Accepts ``https://github.com/owner/repo`` (with or without scheme, ``.git``
    suffix or trailing path such as ``/tree/main``), ``git@github.com:owner/repo``,
    the ``owner/repo`` shorthand, and profile URLs ``https://github.com/owner``.

    Args:
        url: URL to parse.

    Returns:
        GitHubTarget of kind repo, user or invalid.
    """
    if not url or not url.strip():
        return GitHubTarget(kind=TargetKind.INVALID)

    cleaned = url.strip()

    shorthand = _OWNER_REPO.fullmatch(cleaned)
    if shorthand:
        return _repo_target(shorthand.group(1), shorthand.group(2))

    if cleaned.startswith("git@github.com:"):
        cleaned = "https://github.com/" + cleaned[len("git@github.com:"):]
    if not cleaned.startswith(("http://", "https://")):
        cleaned = f"https://{cleaned}"

    parsed = urllib.parse.urlparse(cleaned)
    if (parsed.hostname or "").lower() not in ("github.com", "www.github.com"):
        return GitHubTarget(kind=TargetKind.INVALID)

    parts = [part for part in parsed.path.split("/") if part]
    if not parts:
        return GitHubTarget(kind=TargetKind.INVALID)
    if len(parts) == 1:
        return GitHubTarget(kind=TargetKind.USER, owner=parts[0])

    return _repo_target(parts[0], parts[1])


def _repo_target(owner: str, name: str) -> GitHubTarget:
    repo = name[:-4] if name.endswith(".git") else name
    if not repo:
        return GitHubTarget(kind=TargetKind.INVALID)
    return GitHubTarget(kind=TargetKind.REPO, owner=owner, repo=repo)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubFetcher:
    """Collects repository signals from the GitHub REST API.

    A personal access token raises the rate limit from 60 to 5000 requests
    per hour. Set GITHUB_TOKEN environment variable or pass token to constructor.
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            token: GitHub personal access token. If not provided, uses GITHUB_TOKEN env var.
            client: Optional httpx client. If not provided, a new client is created per request.
        """
        self._token = token or os.environ.get("GITHUB_TOKEN")
        self._client = client

        # Rate limit tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_total: int | None = None
        self.rate_limit_reset: datetime | None = None

        if self._token:
            logger.info("Using authenticated GitHub API (5000 requests/hour)")
        else:
            logger.info("Using unauthenticated GitHub API (60 requests/hour)")

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "repohealth",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0, headers=self._headers())

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if limit is not None:
            self.rate_limit_total = int(limit)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    async def _fetch(self, path: str, params: dict | None = None) -> dict | list | None:
        """Fetch from GitHub API.

        Returns None if 404, raises on other errors.
        """
        client = await self._get_client()
        url = f"{self.BASE_URL}{path}"

        try:
            response = await client.get(url, params=params, headers=self._headers())
            self._update_rate_limits(response)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch_optional(self, path: str, params: dict | None = None) -> dict | list | None:
        """Fetch a probe whose failure should degrade to a fallback, not abort."""
        try:
            return await self._fetch(path, params)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"GitHub request {path} failed, using fallback: {e}")
            return None

    async def _fetch_all_pages(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int = 10,
    ) -> list:
        """Fetch all pages from a paginated endpoint."""
        client = await self._get_client()
        url = f"{self.BASE_URL}{path}"
        params = params or {}
        params.setdefault("per_page", 100)

        results = []
        page = 1

        try:
            while page <= max_pages:
                params["page"] = page
                response = await client.get(url, params=params, headers=self._headers())
                self._update_rate_limits(response)
                if response.status_code == 404:
                    break
                response.raise_for_status()

                data = response.json()
                if not data:
                    break

                results.extend(data)

                # Check if there are more pages
                if len(data) < params["per_page"]:
                    break
                page += 1

            return results
        finally:
            if self._client is None:
                await client.aclose()

    async def fetch_signals(self, repo_ref: RepoRef) -> SignalBundle | None:
        """Collect every signal the scoring engine needs for a repository.

        Args:
            repo_ref: Reference to the repository.

        Returns:
            SignalBundle, or None if the repository does not exist or is private.

        Raises:
            httpx.HTTPStatusError: If repository metadata cannot be fetched for
                any reason other than 404.
        """
        owner = repo_ref.owner
        repo = repo_ref.repo

        data = await self._fetch(f"/repos/{owner}/{repo}")
        if data is None or not isinstance(data, dict):
            logger.warning(f"Repository not found: {owner}/{repo}")
            return None

        repo_meta = self._build_repo_meta(data)

        readme, releases, tags, workflows, issue_stats, file_checks = await asyncio.gather(
            self._fetch_readme(owner, repo),
            self._fetch_releases(owner, repo),
            self._fetch_tags(owner, repo),
            self._fetch_workflows(owner, repo),
            self._fetch_issue_stats(owner, repo),
            self._fetch_file_checks(owner, repo),
        )

        return SignalBundle(
            repo_meta=repo_meta,
            readme=readme,
            releases=releases,
            tags=tags,
            workflows=workflows,
            issue_stats=issue_stats,
            file_checks=file_checks,
            collected_at=datetime.now(timezone.utc),
        )

    def _build_repo_meta(self, data: dict) -> RepoMeta:
        license_info = data.get("license") or {}
        return RepoMeta(
            description=data.get("description"),
            license=license_info.get("spdx_id"),
            license_name=license_info.get("name"),
            pushed_at=_parse_timestamp(data.get("pushed_at")),
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            subscribers=data.get("subscribers_count") or 0,
            open_issues=data.get("open_issues_count") or 0,
            has_wiki=bool(data.get("has_wiki")),
            full_name=data.get("full_name") or "",
            html_url=data.get("html_url") or "",
            language=data.get("language"),
            default_branch=data.get("default_branch") or "main",
            created_at=_parse_timestamp(data.get("created_at")),
            is_fork=bool(data.get("fork")),
            is_archived=bool(data.get("archived")),
        )

    async def _fetch_readme(self, owner: str, repo: str) -> ReadmeSignal:
        """Fetch and decode the README. Missing or unreadable means no README."""
        data = await self._fetch_optional(f"/repos/{owner}/{repo}/readme")
        if not data or not isinstance(data, dict):
            return ReadmeSignal()

        try:
            content = base64.b64decode(data.get("content") or "").decode("utf-8", errors="replace")
        except ValueError as e:
            logger.warning(f"Could not decode README for {owner}/{repo}: {e}")
            return ReadmeSignal()
        return ReadmeSignal.from_content(content)

    async def _fetch_releases(self, owner: str, repo: str) -> ReleaseSignal:
        data = await self._fetch_optional(
            f"/repos/{owner}/{repo}/releases", params={"per_page": LISTING_PAGE_SIZE}
        )
        if not data or not isinstance(data, list):
            return ReleaseSignal()
        return ReleaseSignal(exists=True, count=len(data), latest=data[0].get("tag_name"))

    async def _fetch_tags(self, owner: str, repo: str) -> TagSignal:
        data = await self._fetch_optional(
            f"/repos/{owner}/{repo}/tags", params={"per_page": LISTING_PAGE_SIZE}
        )
        if not data or not isinstance(data, list):
            return TagSignal()
        return TagSignal(exists=True, count=len(data))

    async def _fetch_workflows(self, owner: str, repo: str) -> WorkflowSignal:
        # Actions may be disabled or hidden; treat as no workflows
        data = await self._fetch_optional(f"/repos/{owner}/{repo}/actions/workflows")
        if not data or not isinstance(data, dict):
            return WorkflowSignal()
        count = int(data.get("total_count") or 0)
        return WorkflowSignal(exists=count > 0, count=count)

    async def _fetch_issue_stats(self, owner: str, repo: str) -> IssueStats:
        """Count open and closed issues (pull requests excluded) via the search API."""
        open_count, closed_count = await asyncio.gather(
            self._count_issues(owner, repo, "open"),
            self._count_issues(owner, repo, "closed"),
        )
        return IssueStats.from_counts(open_count, closed_count)

    async def _count_issues(self, owner: str, repo: str, state: str) -> int:
        data = await self._fetch_optional(
            "/search/issues",
            params={"q": f"repo:{owner}/{repo} type:issue state:{state}", "per_page": 1},
        )
        if not data or not isinstance(data, dict):
            return 0
        return int(data.get("total_count") or 0)

    async def _list_directory(self, owner: str, repo: str, path: str = "") -> dict[str, str]:
        """List a directory as lowercase name -> item type ("file" or "dir")."""
        suffix = f"/{path}" if path else ""
        data = await self._fetch_optional(f"/repos/{owner}/{repo}/contents{suffix}")
        if not data or not isinstance(data, list):
            return {}
        return {item.get("name", "").lower(): item.get("type", "") for item in data}

    async def _fetch_file_checks(self, owner: str, repo: str) -> FileChecks:
        """Check for presence of key repository files and directories."""
        root, github_dir = await asyncio.gather(
            self._list_directory(owner, repo),
            self._list_directory(owner, repo, ".github"),
        )

        has_docs_dir = root.get("docs") == "dir"
        docs = await self._list_directory(owner, repo, "docs") if has_docs_dir else {}

        return FileChecks(
            # GitHub honours SECURITY.md in the root, .github/ or docs/
            has_security_md=any("security.md" in listing for listing in (root, github_dir, docs)),
            has_dependabot=any(name in github_dir for name in DEPENDABOT_FILES),
            has_contributing="contributing.md" in root or "contributing.md" in github_dir,
            has_linter_config=any(name in root for name in LINTER_FILES),
            has_test_dir=any(root.get(name) == "dir" for name in TEST_DIRS),
            has_docs_dir=has_docs_dir,
            has_changelog=any(name in root for name in CHANGELOG_FILES),
            has_examples_dir=any(root.get(name) == "dir" for name in EXAMPLE_DIRS),
            has_api_docs="api.md" in root or "api.md" in docs or docs.get("api") == "dir",
            has_pr_template=(
                "pull_request_template.md" in github_dir
                or github_dir.get("pull_request_template") == "dir"
            ),
            has_issue_template=(
                "issue_template.md" in github_dir
                or github_dir.get("issue_template") == "dir"
            ),
            has_release_config=any(name in root for name in RELEASE_CONFIG_FILES),
            has_code_of_conduct="code_of_conduct.md" in root,
        )

    async def list_user_repos(self, username: str, max_repos: int = 10) -> list[RepoRef]:
        """List a user's own repositories, most recently updated first.

        Args:
            username: GitHub username.
            max_repos: Maximum number of repositories; 0 fetches all.

        Returns:
            Repository references, empty if the user does not exist.
        """
        params = {"type": "owner", "sort": "updated", "direction": "desc"}

        if max_repos > 0:
            params["per_page"] = min(max_repos, 100)
            data = await self._fetch(f"/users/{username}/repos", params=params)
            if data is None:
                logger.warning(f"User not found: {username}")
                return []
        else:
            data = await self._fetch_all_pages(f"/users/{username}/repos", params=params)

        repos = [
            RepoRef(owner=item["owner"]["login"], repo=item["name"])
            for item in data
            if isinstance(item, dict)
        ]
        return repos[:max_repos] if max_repos > 0 else repos

    async def check_rate_limit(self) -> RateLimitStatus:
        """Get the current core API quota. Falls back to the anonymous quota on failure."""
        try:
            data = await self._fetch("/rate_limit")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to check rate limit: {e}")
            data = None

        if not data or not isinstance(data, dict):
            return RateLimitStatus(remaining=60, limit=60, reset=datetime.now(timezone.utc))

        core = data.get("resources", {}).get("core", {})
        return RateLimitStatus(
            remaining=int(core.get("remaining", 0)),
            limit=int(core.get("limit", 0)),
            reset=datetime.fromtimestamp(int(core.get("reset", 0)), tz=timezone.utc),
        )
