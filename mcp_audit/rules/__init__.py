"""Rules package."""

from dataclasses import dataclass

from mcp_audit.project import Kind
from mcp_audit.rules.base import (
    PYTHON_ONLY,
    SECTION_CICD,
    SECTION_PACKAGE,
    SECTION_REQUIRED_FILES,
    SECTION_STATIC_CONFIG,
    TYPESCRIPT_ONLY,
    Rule,
)
from mcp_audit.rules.docs import (
    ATTRIBUTION,
    FOOTER_MARKER,
    ReadmeContainsRule,
    ReadmeSectionRule,
    TrackedLinksRule,
)
from mcp_audit.rules.extension import ExtensionManifestVersionRule, ExtensionUserConfigRule
from mcp_audit.rules.files import REGISTRY_MANIFEST, FileExistsRule, RegistryManifestSchemaRule
from mcp_audit.rules.package_config import (
    LOCKFILE,
    LockfileTrackedRule,
    ManifestFieldRule,
    SdkVersionRule,
    equals,
    has_lower_bound,
    is_non_empty_list,
    is_non_empty_str,
    is_table,
)
from mcp_audit.rules.security import SECRETS_RULE, GitignoreEnvRule
from mcp_audit.rules.source_scan import STDIO_RULES
from mcp_audit.rules.static_config import CompilerOptionRule, EslintFlatConfigRule, is_true

WORKFLOWS_DIR = ".github/workflows"


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    section: str
    title: str
    severity: str
    kinds: tuple[str, ...]


def catalog() -> list[Rule]:
    """Return every known rule in declaration order."""
    return [
        FileExistsRule("readme_exists", SECTION_REQUIRED_FILES, "README.md", "error"),
        FileExistsRule("license_exists", SECTION_REQUIRED_FILES, "LICENSE", "error"),
        FileExistsRule("changelog_exists", SECTION_REQUIRED_FILES, "CHANGELOG.md", "error"),
        FileExistsRule(
            "claude_md_exists",
            SECTION_REQUIRED_FILES,
            "CLAUDE.md",
            "warning",
            hint="recommended",
        ),
        FileExistsRule(
            "registry_manifest_exists",
            SECTION_REQUIRED_FILES,
            REGISTRY_MANIFEST,
            "warning",
            hint="needed for MCP Registry",
        ),
        RegistryManifestSchemaRule(),
        FileExistsRule("workflow_ci", SECTION_CICD, f"{WORKFLOWS_DIR}/ci.yml", "error"),
        FileExistsRule("workflow_security", SECTION_CICD, f"{WORKFLOWS_DIR}/security.yml", "error"),
        FileExistsRule(
            "workflow_release_please",
            SECTION_CICD,
            f"{WORKFLOWS_DIR}/release-please.yml",
            "error",
            kinds=TYPESCRIPT_ONLY,
        ),
        FileExistsRule(
            "workflow_release",
            SECTION_CICD,
            f"{WORKFLOWS_DIR}/release.yml",
            "error",
            kinds=PYTHON_ONLY,
        ),
        FileExistsRule("dependabot_config", SECTION_CICD, ".github/dependabot.yml", "warning"),
        ManifestFieldRule(
            "package_mcp_name",
            ("mcpName",),
            "error",
            TYPESCRIPT_ONLY,
            is_non_empty_str,
            "a non-empty string",
        ),
        ManifestFieldRule(
            "package_publish_config",
            ("publishConfig",),
            "warning",
            TYPESCRIPT_ONLY,
            is_table,
            "an object",
        ),
        ManifestFieldRule(
            "package_publish_access",
            ("publishConfig", "access"),
            "warning",
            TYPESCRIPT_ONLY,
            equals("public"),
            '"public"',
            skip_without_parent=True,
        ),
        ManifestFieldRule(
            "package_files",
            ("files",),
            "warning",
            TYPESCRIPT_ONLY,
            is_non_empty_list,
            "a non-empty allow-list",
        ),
        ManifestFieldRule(
            "package_test_script",
            ("scripts", "test"),
            "error",
            TYPESCRIPT_ONLY,
            is_non_empty_str,
            "a non-empty command",
            label="test script",
        ),
        FileExistsRule(
            "package_lockfile",
            SECTION_PACKAGE,
            LOCKFILE,
            "warning",
            kinds=TYPESCRIPT_ONLY,
            hint="commit a lockfile for reproducible installs",
        ),
        LockfileTrackedRule(),
        SdkVersionRule(),
        ManifestFieldRule(
            "pyproject_tool_mcp",
            ("tool", "mcp"),
            "error",
            PYTHON_ONLY,
            is_table,
            "a table",
            label="[tool.mcp]",
        ),
        ManifestFieldRule(
            "pyproject_pytest",
            ("tool", "pytest"),
            "warning",
            PYTHON_ONLY,
            is_table,
            "a table",
            label="[tool.pytest] configuration",
        ),
        ManifestFieldRule(
            "pyproject_ruff",
            ("tool", "ruff"),
            "warning",
            PYTHON_ONLY,
            is_table,
            "a table",
            label="[tool.ruff] configuration",
        ),
        ManifestFieldRule(
            "pyproject_requires_python",
            ("project", "requires-python"),
            "warning",
            PYTHON_ONLY,
            has_lower_bound,
            "a minimum version constraint",
        ),
        FileExistsRule(
            "tsconfig_exists",
            SECTION_STATIC_CONFIG,
            "tsconfig.json",
            "warning",
            kinds=TYPESCRIPT_ONLY,
        ),
        CompilerOptionRule("tsconfig_strict", "strict", is_true, "enabled"),
        CompilerOptionRule("tsconfig_target", "target", is_non_empty_str, "set"),
        EslintFlatConfigRule(),
        *STDIO_RULES,
        ReadmeSectionRule(),
        ReadmeContainsRule("readme_footer", FOOTER_MARKER, "the standard footer"),
        ReadmeContainsRule("readme_attribution", ATTRIBUTION, "the attribution"),
        TrackedLinksRule(),
        SECRETS_RULE,
        GitignoreEnvRule(),
        ExtensionManifestVersionRule(),
        ExtensionUserConfigRule(),
    ]


def build_rules(
    *,
    kind: Kind | None = None,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
) -> list[Rule]:
    """Build the ordered rule list, applying kind and enable/disable filters."""
    rules = catalog()
    registry = {rule.rule_id: rule for rule in rules}
    disabled_set = set(disabled_rule_ids or [])
    requested_ids = set(enabled_rule_ids or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    enabled_set = set(enabled_rule_ids) if enabled_rule_ids is not None else None
    selected: list[Rule] = []
    for rule in rules:
        if kind is not None and kind not in rule.kinds:
            continue
        if enabled_set is not None and rule.rule_id not in enabled_set:
            continue
        if rule.rule_id in disabled_set:
            continue
        selected.append(rule)
    return selected


def list_rule_info(kind: Kind | None = None) -> list[RuleInfo]:
    """Return metadata for all known rules, optionally limited to one kind."""
    return [
        RuleInfo(
            rule_id=rule.rule_id,
            section=rule.section,
            title=rule.title,
            severity=rule.severity,
            kinds=tuple(rule.kinds),
        )
        for rule in build_rules(kind=kind)
    ]
