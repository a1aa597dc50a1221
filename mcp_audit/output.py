"""Output rendering."""

from __future__ import annotations

import json
from typing import Any

import click

from mcp_audit import __version__
from mcp_audit.evaluator import Report
from mcp_audit.rules.base import Finding

KIND_LABELS = {
    "typescript": "TypeScript/Node.js server",
    "python": "Python server",
}

VERDICT_LINES = {
    "fail": ("Server does not meet minimum standards. Fix errors above.", "red"),
    "pass_with_warnings": ("Server meets minimum standards but has warnings.", "yellow"),
    "pass": ("Server meets all standards!", "green"),
}

RULE_WIDTH = 48


def render_human(report: Report) -> str:
    """Render a sectioned, colorized checklist report."""
    lines: list[str] = [
        click.style(f"Auditing MCP server at: {report.root}", bold=True),
        "=" * RULE_WIDTH,
        f"Detected: {KIND_LABELS[report.kind]}",
    ]

    for section, findings in report.sections():
        lines.append("")
        lines.append(click.style(section, bold=True))
        lines.append("-" * len(section))
        for finding in findings:
            lines.append(_finding_line(finding))
            for item in finding.evidence:
                lines.append(f"    {item}")

    message, color = VERDICT_LINES[report.verdict]
    lines.extend(
        [
            "",
            "=" * RULE_WIDTH,
            click.style("Audit Summary", bold=True),
            "=" * RULE_WIDTH,
            f"Errors:   {report.error_count}",
            f"Warnings: {report.warning_count}",
            "",
            click.style(message, fg=color, bold=True),
        ]
    )
    return "\n".join(lines)


def render_json(report: Report) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(report), sort_keys=True)


def build_json_payload(report: Report) -> dict[str, Any]:
    """Build the JSON payload; contains no timestamps so reruns are identical."""
    return {
        "project": str(report.root),
        "kind": report.kind,
        "verdict": report.verdict,
        "errors": report.error_count,
        "warnings": report.warning_count,
        "findings": [_serialize_finding(item) for item in report.findings],
        "meta": {"version": __version__},
    }


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "rule_id": finding.rule_id,
        "section": finding.section,
        "severity": finding.severity,
        "outcome": finding.outcome,
        "message": finding.message,
        "evidence": list(finding.evidence),
    }


def _finding_line(finding: Finding) -> str:
    if finding.outcome == "passed":
        return f"✅ {finding.message}"
    if finding.outcome == "skipped":
        return click.style(f"ℹ️  {finding.message}", dim=True)
    if finding.severity == "error":
        return click.style(f"❌ {finding.message}", fg="red")
    if finding.severity == "warning":
        return click.style(f"⚠️  {finding.message}", fg="yellow")
    return f"ℹ️  {finding.message}"
