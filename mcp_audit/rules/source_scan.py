"""Line-pattern scans over the conventional source directory."""

from __future__ import annotations

import re
from dataclasses import dataclass

from mcp_audit.project import SOURCE_DIR, Kind, Project
from mcp_audit.rules.base import (
    PYTHON_ONLY,
    SECTION_STDIO,
    TYPESCRIPT_ONLY,
    Check,
    Severity,
)

TYPESCRIPT_SUFFIXES = frozenset({".ts", ".tsx", ".mts", ".cts", ".js", ".mjs", ".cjs"})
PYTHON_SUFFIXES = frozenset({".py"})

TYPESCRIPT_COMMENT_PREFIXES = ("//", "/*", "*")
PYTHON_COMMENT_PREFIXES = ("#",)


@dataclass(frozen=True, slots=True)
class SourcePatternRule:
    """Fails when any source line matches a forbidden pattern.

    Lines also matching ``exclude`` are allowed. When ``src/`` does not exist
    the scan is skipped rather than passed.
    """

    rule_id: str
    section: str
    title: str
    severity: Severity
    kinds: tuple[Kind, ...]
    suffixes: frozenset[str]
    pattern: re.Pattern[str]
    failure: str
    success: str
    exclude: re.Pattern[str] | None = None
    comment_prefixes: tuple[str, ...] = ()

    def check(self, project: Project) -> Check:
        if not project.has_dir(SOURCE_DIR):
            return Check.skipped(f"{SOURCE_DIR}/ not found, scan skipped")

        hits: list[str] = []
        for rel_path, line_number, line in project.source_lines(set(self.suffixes)):
            stripped = line.strip()
            if self.comment_prefixes and stripped.startswith(self.comment_prefixes):
                continue
            if not self.pattern.search(line):
                continue
            if self.exclude is not None and self.exclude.search(line):
                continue
            hits.append(f"{rel_path}:{line_number}: {_clip_line(line)}")

        if hits:
            return Check.failed(f"{self.failure} ({len(hits)} found)", hits)
        return Check.passed(self.success)


STDIO_RULES = (
    SourcePatternRule(
        rule_id="stdio_console_log",
        section=SECTION_STDIO,
        title="No console.log in source",
        severity="error",
        kinds=TYPESCRIPT_ONLY,
        suffixes=TYPESCRIPT_SUFFIXES,
        pattern=re.compile(r"\bconsole\.(?:log|info|debug|dir|table)\s*\("),
        failure="console.log writes to stdout and corrupts the stdio transport",
        success="No console.log calls in src/",
        comment_prefixes=TYPESCRIPT_COMMENT_PREFIXES,
    ),
    SourcePatternRule(
        rule_id="stdio_stdout_write",
        section=SECTION_STDIO,
        title="No process.stdout.write in source",
        severity="error",
        kinds=TYPESCRIPT_ONLY,
        suffixes=TYPESCRIPT_SUFFIXES,
        pattern=re.compile(r"\bprocess\.stdout\.write\s*\("),
        failure="process.stdout.write bypasses the stdio transport",
        success="No process.stdout.write calls in src/",
        comment_prefixes=TYPESCRIPT_COMMENT_PREFIXES,
    ),
    SourcePatternRule(
        rule_id="stdio_logger_default",
        section=SECTION_STDIO,
        title="No logger bound to stdout",
        severity="warning",
        kinds=TYPESCRIPT_ONLY,
        suffixes=TYPESCRIPT_SUFFIXES,
        pattern=re.compile(r"\bpino\(\s*\)"),
        failure="pino() without a destination logs to stdout (use pino.destination(2))",
        success="No stdout-bound pino loggers in src/",
        comment_prefixes=TYPESCRIPT_COMMENT_PREFIXES,
    ),
    SourcePatternRule(
        rule_id="stdio_print",
        section=SECTION_STDIO,
        title="No print to stdout in source",
        severity="error",
        kinds=PYTHON_ONLY,
        suffixes=PYTHON_SUFFIXES,
        pattern=re.compile(r"(?<![\w.])print\s*\("),
        exclude=re.compile(r"file\s*=\s*sys\.stderr"),
        failure="print() writes to stdout and corrupts the stdio transport",
        success="No print() calls to stdout in src/",
        comment_prefixes=PYTHON_COMMENT_PREFIXES,
    ),
)


def _clip_line(content: str, max_len: int = 80) -> str:
    stripped = content.strip()
    if len(stripped) <= max_len:
        return stripped
    return stripped[: max_len - 3] + "..."
