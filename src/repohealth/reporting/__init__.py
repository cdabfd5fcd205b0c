"""Badges and markdown summaries for scored repositories."""

from repohealth.reporting.badges import badge_color, badge_markdown, badge_url
from repohealth.reporting.markdown import render_markdown_summary

__all__ = ["badge_color", "badge_markdown", "badge_url", "render_markdown_summary"]
