"""Optional desktop-extension manifest checks."""

from __future__ import annotations

from typing import Any

from mcp_audit.project import FileParseError, Project
from mcp_audit.rules.base import ALL_KINDS, SECTION_EXTENSION, Check, Severity

EXTENSION_MANIFEST = "manifest.json"
EXTENSION_MANIFEST_VERSION = "0.3"


class ExtensionManifestVersionRule:
    """Validates the desktop-extension manifest version when a manifest exists."""

    rule_id = "extension_manifest_version"
    section = SECTION_EXTENSION
    title = f"{EXTENSION_MANIFEST} uses manifest_version {EXTENSION_MANIFEST_VERSION}"
    severity: Severity = "warning"
    kinds = ALL_KINDS

    def check(self, project: Project) -> Check:
        manifest, failure = _load_extension_manifest(project)
        if failure is not None:
            return failure
        version = manifest.get("manifest_version")
        if version != EXTENSION_MANIFEST_VERSION:
            return Check.failed(
                f"{EXTENSION_MANIFEST} manifest_version should be {EXTENSION_MANIFEST_VERSION!r}",
                [f"manifest_version: {version!r}"],
            )
        return Check.passed(f"{EXTENSION_MANIFEST} uses manifest_version {version}")


class ExtensionUserConfigRule:
    """Requires a user_config section in the desktop-extension manifest."""

    rule_id = "extension_user_config"
    section = SECTION_EXTENSION
    title = f"{EXTENSION_MANIFEST} declares user_config"
    severity: Severity = "warning"
    kinds = ALL_KINDS

    def check(self, project: Project) -> Check:
        manifest, failure = _load_extension_manifest(project)
        if failure is not None:
            return failure
        if not isinstance(manifest.get("user_config"), dict):
            return Check.failed(f"{EXTENSION_MANIFEST} has no user_config section")
        return Check.passed(f"{EXTENSION_MANIFEST} declares user_config")


def _load_extension_manifest(project: Project) -> tuple[dict[str, Any], Check | None]:
    try:
        loaded = project.load_json(EXTENSION_MANIFEST)
    except FileParseError as exc:
        return {}, Check.failed(f"{EXTENSION_MANIFEST} is not valid JSON", [str(exc)])
    if loaded is None:
        return {}, Check.skipped(f"No {EXTENSION_MANIFEST} (desktop extension not packaged)")
    if not isinstance(loaded, dict):
        return {}, Check.failed(f"{EXTENSION_MANIFEST} must contain a JSON object")
    return loaded, None
