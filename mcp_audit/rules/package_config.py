"""Package manifest rules for package.json and pyproject.toml."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp_audit.project import FileParseError, Kind, Project
from mcp_audit.rules.base import SECTION_PACKAGE, TYPESCRIPT_ONLY, Check, Severity

LOCKFILE = "package-lock.json"
SDK_PACKAGE = "@modelcontextprotocol/sdk"
MIN_SDK_VERSION = (1, 25, 1)

DEPENDENCY_TABLES = ("dependencies", "peerDependencies", "devDependencies")

_MISSING = object()
_VERSION_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_LOWER_BOUND_PATTERN = re.compile(r"(>=|>|~=|==)\s*\d")


@dataclass(frozen=True, slots=True)
class ManifestFieldRule:
    """Requires a key path in the package manifest to hold an acceptable value.

    With ``skip_without_parent`` the rule only judges the value when its parent
    table exists, leaving the absent case to a separate presence rule.
    """

    rule_id: str
    key_path: tuple[str, ...]
    severity: Severity
    kinds: tuple[Kind, ...]
    accepts: Callable[[Any], bool]
    expectation: str
    label: str = ""
    skip_without_parent: bool = False
    section: str = SECTION_PACKAGE

    @property
    def title(self) -> str:
        return f"{self._label()} is {self.expectation}"

    def check(self, project: Project) -> Check:
        try:
            manifest = project.manifest()
        except FileParseError as exc:
            return Check.failed(f"Could not read {project.manifest_name}", [str(exc)])

        label = self._label()
        if self.skip_without_parent and not isinstance(dig(manifest, self.key_path[:-1]), dict):
            parent = ".".join(self.key_path[:-1])
            return Check.skipped(f"{parent} absent in {project.manifest_name}, {label} not checked")

        value = dig(manifest, self.key_path)
        if value is _MISSING:
            return Check.failed(f"{label} missing in {project.manifest_name}")
        if not self.accepts(value):
            return Check.failed(
                f"{label} in {project.manifest_name} is not {self.expectation}",
                [f"{label} = {_render_value(value)}"],
            )
        return Check.passed(f"{label} configured")

    def _label(self) -> str:
        return self.label or ".".join(self.key_path)


class LockfileTrackedRule:
    """Requires the npm lockfile to stay under version control."""

    rule_id = "package_lockfile_tracked"
    section = SECTION_PACKAGE
    title = f"{LOCKFILE} is not excluded by .gitignore"
    severity: Severity = "warning"
    kinds = TYPESCRIPT_ONLY

    def check(self, project: Project) -> Check:
        if not project.exists(LOCKFILE):
            return Check.skipped(f"{LOCKFILE} absent, version-control status not checked")
        matched = project.ignored_by(LOCKFILE)
        if matched is not None:
            return Check.failed(f"{LOCKFILE} is excluded by .gitignore", [matched])
        return Check.passed(f"{LOCKFILE} is committed")


class SdkVersionRule:
    """Requires the MCP SDK dependency to meet the minimum supported version."""

    rule_id = "package_sdk_version"
    section = SECTION_PACKAGE
    title = f"{SDK_PACKAGE} >= {'.'.join(str(part) for part in MIN_SDK_VERSION)}"
    severity: Severity = "warning"
    kinds = TYPESCRIPT_ONLY

    def check(self, project: Project) -> Check:
        try:
            manifest = project.manifest()
        except FileParseError as exc:
            return Check.failed(f"Could not read {project.manifest_name}", [str(exc)])

        minimum = ".".join(str(part) for part in MIN_SDK_VERSION)
        spec = _find_dependency(manifest, SDK_PACKAGE)
        if spec is None:
            return Check.failed(f"{SDK_PACKAGE} is not declared as a dependency")

        floor = parse_version_floor(spec)
        if floor is None:
            return Check.failed(
                f"{SDK_PACKAGE} version range does not pin a minimum (need >= {minimum})",
                [f"{SDK_PACKAGE}: {spec}"],
            )
        if floor < MIN_SDK_VERSION:
            return Check.failed(
                f"{SDK_PACKAGE} is older than {minimum}",
                [f"{SDK_PACKAGE}: {spec}"],
            )
        return Check.passed(f"{SDK_PACKAGE} {spec} meets minimum {minimum}")


def parse_version_floor(spec: str) -> tuple[int, int, int] | None:
    """Return the lowest version an npm range admits, as a numeric tuple.

    Handles plain versions and ``^``/``~``/``>=``/``=`` prefixes; the first
    alternative of an ``||`` range is used. Tags, wildcards, URLs and
    upper-bound-only ranges yield ``None``.
    """
    first = spec.split("||")[0].strip()
    if not first or first in {"*", "x", "latest", "next"}:
        return None
    if ":" in first or "/" in first or first.startswith("<"):
        return None
    match = _VERSION_PATTERN.search(first)
    if match is None:
        return None
    major, minor, patch = (int(group or 0) for group in match.groups())
    return (major, minor, patch)


def has_lower_bound(value: Any) -> bool:
    return isinstance(value, str) and _LOWER_BOUND_PATTERN.search(value) is not None


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_table(value: Any) -> bool:
    return isinstance(value, dict)


def is_non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value)


def equals(expected: str) -> Callable[[Any], bool]:
    def _accepts(value: Any) -> bool:
        return value == expected

    return _accepts


def dig(mapping: Any, key_path: tuple[str, ...]) -> Any:
    """Walk nested tables; returns a sentinel when any key is missing."""
    current = mapping
    for key in key_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _find_dependency(manifest: dict[str, Any], package: str) -> str | None:
    for table in DEPENDENCY_TABLES:
        deps = manifest.get(table)
        if isinstance(deps, dict) and isinstance(deps.get(package), str):
            return deps[package]
    return None


def _render_value(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)
