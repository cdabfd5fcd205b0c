"""Analyzers for collecting and scoring repository signals."""

from repohealth.analyzers.github import GitHubFetcher, parse_github_url
from repohealth.analyzers.pipeline import AnalysisPipeline
from repohealth.analyzers.scorer import InvalidSignalsError, Scorer

__all__ = ["GitHubFetcher", "AnalysisPipeline", "Scorer", "InvalidSignalsError", "parse_github_url"]
