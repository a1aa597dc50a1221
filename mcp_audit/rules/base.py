"""Base rule protocol and finding model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from mcp_audit.project import Kind, Project

Severity = Literal["error", "warning", "info"]
Outcome = Literal["passed", "failed", "skipped"]

ALL_KINDS: tuple[Kind, ...] = ("typescript", "python")
TYPESCRIPT_ONLY: tuple[Kind, ...] = ("typescript",)
PYTHON_ONLY: tuple[Kind, ...] = ("python",)

SECTION_REQUIRED_FILES = "Required files"
SECTION_CICD = "CI/CD"
SECTION_PACKAGE = "Package configuration"
SECTION_STATIC_CONFIG = "Static configuration"
SECTION_STDIO = "Stdio safety"
SECTION_DOCS = "Documentation"
SECTION_LINKS = "Link hygiene"
SECTION_SECURITY = "Security"
SECTION_EXTENSION = "Optional packaging"

MAX_EVIDENCE = 3


@dataclass(frozen=True, slots=True)
class Check:
    """Raw predicate result before it is attached to a rule."""

    outcome: Outcome
    message: str
    evidence: tuple[str, ...] = ()

    @classmethod
    def passed(cls, message: str) -> Check:
        return cls("passed", message)

    @classmethod
    def failed(cls, message: str, evidence: list[str] | tuple[str, ...] = ()) -> Check:
        return cls("failed", message, tuple(evidence[:MAX_EVIDENCE]))

    @classmethod
    def skipped(cls, message: str) -> Check:
        return cls("skipped", message)


@dataclass(frozen=True, slots=True)
class Finding:
    """Outcome of evaluating one rule against one project."""

    rule_id: str
    section: str
    severity: Severity
    outcome: Outcome
    message: str
    evidence: tuple[str, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.outcome == "failed" and self.severity == "error"

    @property
    def is_warning(self) -> bool:
        return self.outcome == "failed" and self.severity == "warning"


class Rule(Protocol):
    """Protocol for declarative conformance rules."""

    @property
    def rule_id(self) -> str: ...

    @property
    def section(self) -> str: ...

    @property
    def title(self) -> str: ...

    @property
    def severity(self) -> Severity: ...

    @property
    def kinds(self) -> tuple[Kind, ...]: ...

    def check(self, project: Project) -> Check:
        """Evaluate the rule predicate against a project."""
