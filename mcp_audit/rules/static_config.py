"""TypeScript compiler and lint configuration rules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp_audit.project import FileParseError, Project
from mcp_audit.rules.base import SECTION_STATIC_CONFIG, TYPESCRIPT_ONLY, Check, Severity

TSCONFIG = "tsconfig.json"
FLAT_ESLINT_CONFIGS = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    "eslint.config.ts",
)
LEGACY_ESLINT_CONFIGS = (
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
)


@dataclass(frozen=True, slots=True)
class CompilerOptionRule:
    """Requires a ``compilerOptions`` entry in tsconfig.json."""

    rule_id: str
    option: str
    accepts: Callable[[Any], bool]
    expectation: str
    severity: Severity = "warning"
    kinds = TYPESCRIPT_ONLY
    section = SECTION_STATIC_CONFIG

    @property
    def title(self) -> str:
        return f"compilerOptions.{self.option} is {self.expectation}"

    def check(self, project: Project) -> Check:
        try:
            tsconfig = project.load_json(TSCONFIG, allow_comments=True)
        except FileParseError as exc:
            return Check.failed(f"{TSCONFIG} could not be parsed", [str(exc)])
        if tsconfig is None:
            return Check.skipped(f"{TSCONFIG} absent, compilerOptions.{self.option} not checked")

        options = tsconfig.get("compilerOptions") if isinstance(tsconfig, dict) else None
        value = options.get(self.option) if isinstance(options, dict) else None
        if value is None:
            return Check.failed(f"compilerOptions.{self.option} not set in {TSCONFIG}")
        if not self.accepts(value):
            return Check.failed(
                f"compilerOptions.{self.option} in {TSCONFIG} is not {self.expectation}",
                [f"{self.option}: {value}"],
            )
        return Check.passed(f"compilerOptions.{self.option} is {self.expectation}")


class EslintFlatConfigRule:
    """Requires ESLint to be configured with a flat config file."""

    rule_id = "eslint_flat_config"
    section = SECTION_STATIC_CONFIG
    title = "ESLint uses flat config"
    severity: Severity = "warning"
    kinds = TYPESCRIPT_ONLY

    def check(self, project: Project) -> Check:
        flat = [name for name in FLAT_ESLINT_CONFIGS if project.exists(name)]
        if flat:
            return Check.passed(f"ESLint flat config found ({flat[0]})")
        legacy = [name for name in LEGACY_ESLINT_CONFIGS if project.exists(name)]
        if legacy:
            return Check.failed(
                "ESLint uses legacy .eslintrc config (migrate to eslint.config.mjs)",
                legacy,
            )
        return Check.failed("ESLint config missing (expected eslint.config.mjs)")


def is_true(value: Any) -> bool:
    return value is True
