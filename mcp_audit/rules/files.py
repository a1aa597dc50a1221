"""File presence rules and the registry manifest schema check."""

from __future__ import annotations

from dataclasses import dataclass

from mcp_audit.project import FileParseError, Kind, Project
from mcp_audit.rules.base import (
    ALL_KINDS,
    SECTION_REQUIRED_FILES,
    Check,
    Severity,
)

REGISTRY_MANIFEST = "server.json"
REGISTRY_SCHEMA_VERSION = "2025-12-11"


@dataclass(frozen=True, slots=True)
class FileExistsRule:
    """Requires a file at a fixed path relative to the project root."""

    rule_id: str
    section: str
    path: str
    severity: Severity
    kinds: tuple[Kind, ...] = ALL_KINDS
    hint: str = ""

    @property
    def title(self) -> str:
        return f"{self.path} exists"

    def check(self, project: Project) -> Check:
        if project.exists(self.path):
            return Check.passed(f"{self.path} exists")
        suffix = f" ({self.hint})" if self.hint else ""
        return Check.failed(f"{self.path} missing{suffix}")


class RegistryManifestSchemaRule:
    """Requires the registry manifest to declare the current schema version."""

    rule_id = "registry_manifest_schema"
    section = SECTION_REQUIRED_FILES
    title = f"{REGISTRY_MANIFEST} declares the {REGISTRY_SCHEMA_VERSION} schema"
    severity: Severity = "error"
    kinds = ALL_KINDS

    def check(self, project: Project) -> Check:
        try:
            manifest = project.load_json(REGISTRY_MANIFEST)
        except FileParseError as exc:
            return Check.failed(f"{REGISTRY_MANIFEST} is not valid JSON", [str(exc)])
        if manifest is None:
            return Check.skipped(f"{REGISTRY_MANIFEST} absent, schema version not checked")

        schema = manifest.get("$schema") if isinstance(manifest, dict) else None
        if not isinstance(schema, str):
            return Check.failed(f"{REGISTRY_MANIFEST} does not declare a $schema")
        if REGISTRY_SCHEMA_VERSION not in schema:
            return Check.failed(
                f"{REGISTRY_MANIFEST} uses an outdated schema (expected {REGISTRY_SCHEMA_VERSION})",
                [schema],
            )
        return Check.passed(f"{REGISTRY_MANIFEST} uses the {REGISTRY_SCHEMA_VERSION} schema")
