"""Markdown summary of a repository analysis."""

from typing import Any

from repohealth.models.schemas import Pillar, RepositoryAnalysis


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def _table(header: tuple[str, str], rows: list[tuple[str, Any]]) -> list[str]:
    lines = [f"| {header[0]} | {header[1]} |", "|--------|--------|"]
    lines.extend(f"| {name} | {value} |" for name, value in rows)
    return lines


def render_markdown_summary(analysis: RepositoryAnalysis, limit: int = 5) -> str:
    """Render a markdown report for one analysed repository.

    Args:
        analysis: The analysis to render.
        limit: Number of recommendations to include.

    Returns:
        Markdown text.
    """
    report = analysis.report
    pillars = report.pillars
    security = pillars[Pillar.SECURITY.value].details
    documentation = pillars[Pillar.DOCUMENTATION.value].details
    automation = pillars[Pillar.AUTOMATION.value].details
    community = pillars[Pillar.COMMUNITY.value].details

    lines = [
        f"# Health Report: {analysis.repo_name}",
        "",
        f"**Repository:** {analysis.repo_url}",
        "",
        f"## Overall Score: {report.total_score}/100 ({report.grade.value})",
        "",
        f"**Risk Level:** {report.risk_level.value}",
        "",
        "## Pillar Scores",
        "",
    ]

    pillar_rows = [
        (f"{pillar.label} ({round(pillars[pillar.value].weight * 100)}%)",
         f"{pillars[pillar.value].score}/100")
        for pillar in Pillar
    ]
    lines.extend(_table(("Pillar", "Score"), pillar_rows))

    lines.extend(["", "## Security & License", ""])
    lines.extend(_table(("Check", "Status"), [
        ("License", security["license_type"]),
        ("License Risk", security["license_risk"]),
        ("SECURITY.md", _yes_no(security["has_security_md"])),
        ("Dependabot", _yes_no(security["has_dependabot"])),
    ]))

    lines.extend(["", "## Documentation", ""])
    lines.extend(_table(("Check", "Status"), [
        ("docs/ Folder", _yes_no(documentation["has_docs_folder"])),
        ("CHANGELOG", _yes_no(documentation["has_changelog"])),
        ("Examples", _yes_no(documentation["has_examples"])),
        ("Wiki", _yes_no(documentation["has_wiki"])),
    ]))

    lines.extend(["", "## Automation", ""])
    lines.extend(_table(("Check", "Status"), [
        ("CI Workflows", automation["workflow_count"]),
        ("PR Template", _yes_no(automation["has_pr_template"])),
        ("Issue Templates", _yes_no(automation["has_issue_template"])),
        ("Code of Conduct", _yes_no(automation["has_code_of_conduct"])),
    ]))

    lines.extend(["", "## Community", ""])
    lines.extend(_table(("Metric", "Value"), [
        ("Stars", f"{community['stars']:,}"),
        ("Forks", f"{community['forks']:,}"),
        ("Open Issues", community["open_issues"]),
        ("Close Ratio", f"{community['issue_close_ratio']}%"),
        ("CONTRIBUTING.md", _yes_no(community["has_contributing"])),
    ]))

    lines.extend(["", "## Top Recommendations", ""])
    top = report.recommendations[:limit]
    if not top:
        lines.append("No recommendations")
    for i, rec in enumerate(top, start=1):
        lines.append(f"{i}. {rec.priority.value} **[{rec.category.label}]** {rec.issue}")
        lines.append(f"   -> {rec.action}")
        lines.append("")

    lines.extend([
        "",
        f"![Health Badge]({analysis.badge_url})",
        "",
        f"*Analyzed on {analysis.analyzed_at.isoformat()}*",
        "",
    ])
    return "\n".join(lines)
