"""Secret hygiene rules."""

from __future__ import annotations

import re

from mcp_audit.project import Project
from mcp_audit.rules.base import ALL_KINDS, SECTION_SECURITY, Check, Severity
from mcp_audit.rules.source_scan import (
    PYTHON_SUFFIXES,
    TYPESCRIPT_SUFFIXES,
    SourcePatternRule,
)

ENV_FILE = ".env"

SECRET_PATTERN = re.compile(
    r"(api_key|apikey|password|secret|token)\s*[:=]\s*[\"'][^\"']{8,}[\"']",
    re.IGNORECASE,
)
ENV_REFERENCE = re.compile(r"\.env\b")

SECRETS_RULE = SourcePatternRule(
    rule_id="no_hardcoded_secrets",
    section=SECTION_SECURITY,
    title="No hardcoded secrets",
    severity="warning",
    kinds=ALL_KINDS,
    suffixes=TYPESCRIPT_SUFFIXES | PYTHON_SUFFIXES | frozenset({".json"}),
    pattern=SECRET_PATTERN,
    exclude=ENV_REFERENCE,
    failure="Potential hardcoded secrets",
    success="No obvious hardcoded secrets",
)


class GitignoreEnvRule:
    """Requires .env files to be excluded from version control."""

    rule_id = "gitignore_env"
    section = SECTION_SECURITY
    title = ".env is listed in .gitignore"
    severity: Severity = "warning"
    kinds = ALL_KINDS

    def check(self, project: Project) -> Check:
        if not project.exists(".gitignore"):
            return Check.failed(".gitignore missing, .env may be committed")
        if project.ignored_by(ENV_FILE) is None:
            return Check.failed(".env is not listed in .gitignore")
        return Check.passed(".env in .gitignore")
