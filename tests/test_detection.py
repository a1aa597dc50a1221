"""Project kind detection tests."""

from __future__ import annotations

import pytest

from mcp_audit.evaluator import audit_path
from mcp_audit.project import DetectionError, Project, detect_kind
from tests.helpers_project import write_file, write_json


def test_package_json_detects_typescript(tmp_path) -> None:
    write_json(tmp_path, "package.json", {"name": "demo"})
    assert detect_kind(tmp_path) == "typescript"


def test_pyproject_detects_python(tmp_path) -> None:
    write_file(tmp_path, "pyproject.toml", '[project]\nname = "demo"\n')
    assert detect_kind(tmp_path) == "python"


def test_typescript_manifest_wins_when_both_present(tmp_path) -> None:
    write_json(tmp_path, "package.json", {"name": "demo"})
    write_file(tmp_path, "pyproject.toml", '[project]\nname = "demo"\n')

    assert detect_kind(tmp_path) == "typescript"
    report = audit_path(tmp_path)
    assert report.kind == "typescript"
    rule_ids = {finding.rule_id for finding in report.findings}
    assert "package_mcp_name" in rule_ids
    assert "pyproject_tool_mcp" not in rule_ids


def test_directory_without_manifest_raises(tmp_path) -> None:
    write_file(tmp_path, "README.md", "# nothing here\n")
    with pytest.raises(DetectionError, match="Could not detect server type"):
        detect_kind(tmp_path)


def test_missing_path_raises(tmp_path) -> None:
    with pytest.raises(DetectionError, match="does not exist"):
        Project.open(tmp_path / "absent")


def test_file_path_raises(tmp_path) -> None:
    target = write_file(tmp_path, "package.json", "{}")
    with pytest.raises(DetectionError, match="not a directory"):
        Project.open(target)


def test_manifest_directory_is_not_a_manifest(tmp_path) -> None:
    (tmp_path / "package.json").mkdir()
    write_file(tmp_path, "pyproject.toml", '[project]\nname = "demo"\n')
    assert detect_kind(tmp_path) == "python"


def test_detection_error_produces_no_report(tmp_path) -> None:
    with pytest.raises(DetectionError):
        audit_path(tmp_path)
