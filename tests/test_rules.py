"""Rule-level tests for the audit checklist."""

from __future__ import annotations

import json

import pytest

from mcp_audit.project import Project
from mcp_audit.rules import build_rules, catalog, list_rule_info
from mcp_audit.rules.docs import TrackedLinksRule, has_tracking_parameter, is_tracked_domain
from mcp_audit.rules.extension import ExtensionManifestVersionRule, ExtensionUserConfigRule
from mcp_audit.rules.package_config import (
    LockfileTrackedRule,
    SdkVersionRule,
    parse_version_floor,
)
from mcp_audit.rules.security import SECRETS_RULE, GitignoreEnvRule
from mcp_audit.rules.source_scan import STDIO_RULES
from mcp_audit.rules.static_config import EslintFlatConfigRule
from tests.helpers_project import (
    PACKAGE_JSON,
    PYPROJECT_TEXT,
    build_python_project,
    build_typescript_project,
    write_file,
    write_json,
)

STDIO_BY_ID = {rule.rule_id: rule for rule in STDIO_RULES}


def _ts_project(tmp_path, **package_overrides) -> Project:
    root = build_typescript_project(tmp_path)
    if package_overrides:
        write_json(root, "package.json", {**PACKAGE_JSON, **package_overrides})
    return Project.open(root)


def test_catalog_rule_ids_are_unique_and_graded() -> None:
    rules = catalog()
    rule_ids = [rule.rule_id for rule in rules]
    assert len(rule_ids) == len(set(rule_ids))
    assert all(rule.severity in {"error", "warning", "info"} for rule in rules)
    assert all(rule.kinds for rule in rules)


def test_build_rules_filters_by_kind_and_disable_list() -> None:
    python_ids = {rule.rule_id for rule in build_rules(kind="python")}
    assert "pyproject_tool_mcp" in python_ids
    assert "package_mcp_name" not in python_ids

    trimmed = build_rules(disabled_rule_ids=["readme_utm_links"])
    assert "readme_utm_links" not in {rule.rule_id for rule in trimmed}


def test_build_rules_enable_list_keeps_declaration_order() -> None:
    rules = build_rules(enabled_rule_ids=["gitignore_env", "readme_exists"])
    assert [rule.rule_id for rule in rules] == ["readme_exists", "gitignore_env"]


def test_build_rules_rejects_unknown_ids() -> None:
    with pytest.raises(ValueError, match="Unknown rule ids: nope"):
        build_rules(disabled_rule_ids=["nope"])


def test_list_rule_info_reports_release_workflow_per_kind() -> None:
    ts_ids = {item.rule_id for item in list_rule_info("typescript")}
    py_ids = {item.rule_id for item in list_rule_info("python")}
    assert "workflow_release_please" in ts_ids and "workflow_release" not in ts_ids
    assert "workflow_release" in py_ids and "workflow_release_please" not in py_ids


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("1.25.1", (1, 25, 1)),
        ("^1.30.0", (1, 30, 0)),
        ("~1.9.0", (1, 9, 0)),
        (">=1.26", (1, 26, 0)),
        ("^1.20.0 || ^2.0.0", (1, 20, 0)),
        ("latest", None),
        ("*", None),
        ("github:modelcontextprotocol/typescript-sdk", None),
        ("<2.0.0", None),
    ],
)
def test_parse_version_floor(spec: str, expected) -> None:
    assert parse_version_floor(spec) == expected


def test_sdk_version_comparison_is_numeric(tmp_path) -> None:
    project = _ts_project(tmp_path, dependencies={"@modelcontextprotocol/sdk": "^1.9.0"})
    check = SdkVersionRule().check(project)
    assert check.outcome == "failed"
    assert "older than 1.25.1" in check.message


@pytest.mark.parametrize("spec", ["1.25.1", "^1.30.0", "~2.0.0", ">=1.25.1"])
def test_sdk_version_at_or_above_minimum_passes(tmp_path, spec: str) -> None:
    project = _ts_project(tmp_path, dependencies={"@modelcontextprotocol/sdk": spec})
    assert SdkVersionRule().check(project).outcome == "passed"


def test_sdk_version_missing_dependency_fails(tmp_path) -> None:
    project = _ts_project(tmp_path, dependencies={"zod": "^3.0.0"})
    check = SdkVersionRule().check(project)
    assert check.outcome == "failed"
    assert "not declared" in check.message


def test_lockfile_excluded_by_gitignore_fails(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, ".gitignore", "node_modules/\n.env\n/package-lock.json\n")
    check = LockfileTrackedRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == ("/package-lock.json",)


def test_lockfile_reincluded_by_negation_passes(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, ".gitignore", "*.json\n!package-lock.json\n.env\n")
    assert LockfileTrackedRule().check(Project.open(root)).outcome == "passed"


def test_publish_access_must_be_public(tmp_path) -> None:
    project = _ts_project(tmp_path, publishConfig={"access": "restricted"})
    rule = next(rule for rule in catalog() if rule.rule_id == "package_publish_access")
    check = rule.check(project)
    assert check.outcome == "failed"
    assert check.evidence == ('publishConfig.access = "restricted"',)


def test_eslint_legacy_config_is_flagged(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    (root / "eslint.config.mjs").unlink()
    write_file(root, ".eslintrc.json", "{}\n")
    check = EslintFlatConfigRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert "legacy" in check.message
    assert check.evidence == (".eslintrc.json",)


def test_tsconfig_without_strict_fails(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, "tsconfig.json", '{"compilerOptions": {"target": "ES2022"}}\n')
    rule = next(rule for rule in catalog() if rule.rule_id == "tsconfig_strict")
    assert rule.check(Project.open(root)).outcome == "failed"


def test_typescript_stdio_scans(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(
        root,
        "src/tools/debug.ts",
        "\n".join(
            [
                'console.log("tool called");',
                'process.stdout.write("raw\\n");',
                "const logger = pino();",
                "const quiet = pino(pino.destination(2));",
                "",
            ]
        ),
    )
    project = Project.open(root)

    console = STDIO_BY_ID["stdio_console_log"].check(project)
    assert console.outcome == "failed"
    assert console.evidence == ('src/tools/debug.ts:1: console.log("tool called");',)
    assert STDIO_BY_ID["stdio_stdout_write"].check(project).outcome == "failed"
    logger_check = STDIO_BY_ID["stdio_logger_default"].check(project)
    assert logger_check.outcome == "failed"
    assert len(logger_check.evidence) == 1


def test_stdio_scan_ignores_node_modules(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, "src/node_modules/pkg/index.js", 'console.log("vendored");\n')
    assert STDIO_BY_ID["stdio_console_log"].check(Project.open(root)).outcome == "passed"


def test_python_print_scan_allows_stderr(tmp_path) -> None:
    root = build_python_project(tmp_path)
    rule = STDIO_BY_ID["stdio_print"]
    assert rule.check(Project.open(root)).outcome == "passed"

    write_file(root, "src/mcp_demo/tools.py", 'def run():\n    print("result")\n')
    check = rule.check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == ('src/mcp_demo/tools.py:2: print("result")',)


def test_source_scans_skip_without_src(tmp_path) -> None:
    write_file(tmp_path, "pyproject.toml", '[project]\nname = "demo"\n')
    project = Project.open(tmp_path)
    assert STDIO_BY_ID["stdio_print"].check(project).outcome == "skipped"
    assert SECRETS_RULE.check(project).outcome == "skipped"


def test_secret_scan_flags_literals_but_not_env_reads(tmp_path) -> None:
    root = build_python_project(tmp_path)
    write_file(
        root,
        "src/mcp_demo/settings.py",
        "\n".join(
            [
                'API_KEY = "sk-live-1234567890"',
                'token = "short"',
                'secret = "copied-from-dotenv"  # documented in .env.example',
                "",
            ]
        ),
    )
    check = SECRETS_RULE.check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == ('src/mcp_demo/settings.py:1: API_KEY = "sk-live-1234567890"',)


def test_secret_scan_caps_evidence(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    lines = [f'const config{index} = {{ secret: "abcdefgh{index}" }};' for index in range(5)]
    write_file(root, "src/keys.ts", "\n".join(lines) + "\n")
    check = SECRETS_RULE.check(Project.open(root))
    assert check.outcome == "failed"
    assert "(5 found)" in check.message
    assert len(check.evidence) == 3


def test_gitignore_env_rule(tmp_path) -> None:
    root = build_python_project(tmp_path)
    write_file(root, ".gitignore", "__pycache__/\n")
    assert GitignoreEnvRule().check(Project.open(root)).outcome == "failed"

    (root / ".gitignore").unlink()
    check = GitignoreEnvRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert ".gitignore missing" in check.message


def test_tracked_links_rule_reports_untracked_links(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(
        root,
        "README.md",
        "\n".join(
            [
                "See [docs](https://wpfusion.com/documentation/) and",
                "[memory](https://automem.ai?utm_source=github) and",
                "[home](https://www.verygoodplugins.com/about).",
                "[other](https://example.com/page).",
                "",
            ]
        ),
    )
    check = TrackedLinksRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == (
        "https://wpfusion.com/documentation/",
        "https://www.verygoodplugins.com/about",
    )


def test_tracked_domain_helpers() -> None:
    assert is_tracked_domain("https://docs.wpfusion.com/x")
    assert not is_tracked_domain("https://notwpfusion.com/")
    assert has_tracking_parameter("https://automem.ai/?ref=x&utm_source=github")
    assert not has_tracking_parameter("https://automem.ai/?ref=x")


def test_readme_support_section_accepts_emoji_heading(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, "README.md", "# Demo\n\n## 💬 Support\n\nBuilt with care by Very Good Plugins\n")
    rule = next(rule for rule in catalog() if rule.rule_id == "readme_support_section")
    assert rule.check(Project.open(root)).outcome == "passed"


def test_extension_manifest_rules(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    project = Project.open(root)
    assert ExtensionManifestVersionRule().check(project).outcome == "skipped"
    assert ExtensionUserConfigRule().check(project).outcome == "skipped"

    write_json(root, "manifest.json", {"manifest_version": "0.2", "name": "demo"})
    project = Project.open(root)
    version_check = ExtensionManifestVersionRule().check(project)
    assert version_check.outcome == "failed"
    assert version_check.evidence == ("manifest_version: '0.2'",)
    assert ExtensionUserConfigRule().check(project).outcome == "failed"

    write_json(root, "manifest.json", {"manifest_version": "0.3", "user_config": {}})
    project = Project.open(root)
    assert ExtensionManifestVersionRule().check(project).outcome == "passed"
    assert ExtensionUserConfigRule().check(project).outcome == "passed"


def test_pyproject_rules(tmp_path) -> None:
    root = build_python_project(tmp_path)
    write_file(root, "pyproject.toml", '[project]\nname = "demo"\nrequires-python = "<4"\n')
    project = Project.open(root)
    by_id = {rule.rule_id: rule for rule in build_rules(kind="python")}

    assert by_id["pyproject_tool_mcp"].check(project).outcome == "failed"
    assert by_id["pyproject_pytest"].check(project).outcome == "failed"
    assert by_id["pyproject_ruff"].check(project).outcome == "failed"
    requires = by_id["pyproject_requires_python"].check(project)
    assert requires.outcome == "failed"
    assert requires.evidence == ('project.requires-python = "<4"',)


def test_invalid_pyproject_fails_manifest_rules(tmp_path) -> None:
    root = build_python_project(tmp_path)
    write_file(root, "pyproject.toml", "[project\nname = 1\n")
    rule = next(rule for rule in catalog() if rule.rule_id == "pyproject_tool_mcp")
    check = rule.check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence[0].startswith("Invalid pyproject.toml")


@pytest.mark.parametrize(
    ("gitignore", "outcome"),
    [
        ("node_modules/\n**/.env\n", "passed"),
        ("/.env\n", "passed"),
        (".env*\n", "passed"),
        (".env/\n", "failed"),
        ("config/.env\n", "failed"),
        (".env*\n!.env\n", "failed"),
    ],
)
def test_gitignore_env_rule_follows_gitignore_semantics(tmp_path, gitignore, outcome) -> None:
    root = build_python_project(tmp_path)
    write_file(root, ".gitignore", gitignore)
    assert GitignoreEnvRule().check(Project.open(root)).outcome == outcome


def test_lockfile_excluded_by_recursive_pattern_fails(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(root, ".gitignore", "**/package-lock.json\n.env\n")
    check = LockfileTrackedRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == ("**/package-lock.json",)


def test_tracked_links_rule_tolerates_placeholder_urls(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(
        root,
        "README.md",
        "\n".join(
            [
                "## Support",
                "",
                "Set WP_URL to https://[your-site].com/wp-json before starting.",
                "Docs: https://verygoodplugins.com/docs",
                "",
            ]
        ),
    )
    check = TrackedLinksRule().check(Project.open(root))
    assert check.outcome == "failed"
    assert check.evidence == ("https://verygoodplugins.com/docs",)

    assert not is_tracked_domain("https://[your-site")
    assert not has_tracking_parameter("https://[your-site")


def test_console_dir_and_table_are_flagged(tmp_path) -> None:
    root = build_typescript_project(tmp_path)
    write_file(
        root,
        "src/debug.ts",
        "console.dir(state, { depth: 4 });\nconsole.table(rows);\n",
    )
    check = STDIO_BY_ID["stdio_console_log"].check(Project.open(root))
    assert check.outcome == "failed"
    assert "(2 found)" in check.message


def test_manifests_with_byte_order_mark_are_parsed(tmp_path) -> None:
    ts_root = build_typescript_project(tmp_path)
    write_file(ts_root, "package.json", "\ufeff" + json.dumps(PACKAGE_JSON))
    assert Project.open(ts_root).manifest()["mcpName"] == PACKAGE_JSON["mcpName"]

    py_root = build_python_project(tmp_path)
    write_file(py_root, "pyproject.toml", "\ufeff" + PYPROJECT_TEXT)
    assert Project.open(py_root).manifest()["project"]["name"] == "mcp-demo"
