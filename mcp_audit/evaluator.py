"""Checklist evaluation orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from mcp_audit.project import Kind, Project
from mcp_audit.rules import build_rules
from mcp_audit.rules.base import Check, Finding, Rule

logger = logging.getLogger(__name__)

Verdict = Literal["pass", "pass_with_warnings", "fail"]


@dataclass(frozen=True, slots=True)
class Report:
    """Ordered findings for one project plus their aggregate counts."""

    root: Path
    kind: Kind
    findings: tuple[Finding, ...]
    error_count: int
    warning_count: int
    verdict: Verdict

    @classmethod
    def from_findings(cls, project: Project, findings: list[Finding]) -> Report:
        """Reduce a complete list of findings into a report."""
        error_count = sum(1 for finding in findings if finding.is_error)
        warning_count = sum(1 for finding in findings if finding.is_warning)
        return cls(
            root=project.root,
            kind=project.kind,
            findings=tuple(findings),
            error_count=error_count,
            warning_count=warning_count,
            verdict=_verdict(error_count, warning_count),
        )

    def sections(self) -> list[tuple[str, list[Finding]]]:
        """Group findings by section, keeping first-seen section order."""
        grouped: dict[str, list[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.section, []).append(finding)
        return list(grouped.items())


def audit_path(path: Path, rules: list[Rule] | None = None) -> Report:
    """Detect the project at ``path`` and evaluate every applicable rule.

    Raises ``DetectionError`` before any rule runs when the project kind
    cannot be determined.
    """
    project = Project.open(path)
    return evaluate_project(project, rules=rules)


def evaluate_project(project: Project, rules: list[Rule] | None = None) -> Report:
    """Evaluate rules in declaration order; a failing rule never stops the run."""
    active_rules = rules if rules is not None else build_rules(kind=project.kind)
    findings: list[Finding] = []
    for rule in active_rules:
        if project.kind not in rule.kinds:
            continue
        findings.append(_evaluate_rule(rule, project))
    return Report.from_findings(project, findings)


def _evaluate_rule(rule: Rule, project: Project) -> Finding:
    try:
        check = rule.check(project)
    except OSError as exc:
        logger.debug("Rule %s could not read project files: %s", rule.rule_id, exc)
        check = Check.failed(f"{rule.title}: could not read project files", [str(exc)])
    except Exception as exc:
        logger.debug("Rule %s raised %s", rule.rule_id, exc, exc_info=True)
        check = Check.failed(
            f"{rule.title}: check raised an error",
            [f"{exc.__class__.__name__}: {exc}"],
        )

    logger.debug("Rule %s -> %s", rule.rule_id, check.outcome)
    return Finding(
        rule_id=rule.rule_id,
        section=rule.section,
        severity=rule.severity,
        outcome=check.outcome,
        message=check.message,
        evidence=check.evidence,
    )


def _verdict(error_count: int, warning_count: int) -> Verdict:
    if error_count > 0:
        return "fail"
    if warning_count > 0:
        return "pass_with_warnings"
    return "pass"
