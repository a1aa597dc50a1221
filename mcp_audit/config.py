"""Configuration loading for mcp-audit."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("mcp_audit", "mcp-audit")
OUTPUT_FORMATS = {"human", "json"}


@dataclass(slots=True)
class AuditConfig:
    """Runtime configuration values resolved from an explicit config file."""

    format: str = "human"
    fail_on_warnings: bool = False
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on_warnings": self.fail_on_warnings,
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "source": self.source,
        }


def load_audit_config(config_path: Path | None = None) -> AuditConfig:
    """Load config from an explicit path; defaults when no path is given.

    The audited project is never searched for configuration, so a project
    cannot relax its own audit.
    """
    if config_path is None:
        return AuditConfig()

    resolved = config_path.resolve()
    if not resolved.exists():
        raise ValueError(f"Config file does not exist: {resolved}")
    mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
    return _from_mapping(mapping, source=str(resolved))


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            "fail_on_warnings = false",
            "",
            "[rules]",
            '# enable = ["readme_exists", "license_exists"]',
            'disable = ["readme_utm_links"]',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    tool_section = _find_pyproject_tool_section(loaded)
    if source_path.name == PYPROJECT_FILENAME:
        return tool_section if tool_section is not None else {}
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AuditConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    return AuditConfig(
        format=_as_choice(mapping.get("format", "human"), OUTPUT_FORMATS, "format"),
        fail_on_warnings=_as_bool(mapping.get("fail_on_warnings", False), "fail_on_warnings"),
        rule_enable=_as_str_list_or_none(rules_mapping.get("enable"), "rules.enable"),
        rule_disable=_as_str_list(rules_mapping.get("disable"), "rules.disable"),
        source=source,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return list(value)


def _as_str_list_or_none(value: Any, field_name: str) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value, field_name)


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
