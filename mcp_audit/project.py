"""Project detection and read-only file access."""

from __future__ import annotations

import fnmatch
import json
import logging
import re
import tomllib
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

Kind = Literal["typescript", "python"]

TYPESCRIPT_MANIFEST = "package.json"
PYTHON_MANIFEST = "pyproject.toml"
SOURCE_DIR = "src"

SKIPPED_SOURCE_DIRS = {"node_modules", "__pycache__", "dist", "build", ".venv", "venv"}

_JSONC_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


class DetectionError(RuntimeError):
    """Raised when a path cannot be audited as an MCP server project."""


class FileParseError(ValueError):
    """Raised when a present file cannot be parsed."""


def detect_kind(root: Path) -> Kind:
    """Detect the project kind from its root manifest.

    ``package.json`` takes precedence over ``pyproject.toml`` when both exist,
    so hybrid repositories are always audited as TypeScript projects.
    """
    if not root.exists():
        raise DetectionError(f"Project path does not exist: {root}")
    if not root.is_dir():
        raise DetectionError(f"Project path is not a directory: {root}")

    if (root / TYPESCRIPT_MANIFEST).is_file():
        return "typescript"
    if (root / PYTHON_MANIFEST).is_file():
        return "python"
    raise DetectionError(
        f"Could not detect server type (no {TYPESCRIPT_MANIFEST} or {PYTHON_MANIFEST}) in {root}"
    )


class Project:
    """A project directory with a fixed kind and cached read-only file access."""

    def __init__(self, root: Path, kind: Kind) -> None:
        self._root = root
        self._kind = kind
        self._text_cache: dict[str, str | None] = {}
        self._parsed_cache: dict[str, Any] = {}

    @classmethod
    def open(cls, path: Path) -> Project:
        """Resolve a path and detect its kind, raising ``DetectionError`` on failure."""
        root = path.resolve()
        kind = detect_kind(root)
        logger.debug("Detected %s project at %s", kind, root)
        return cls(root, kind)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def kind(self) -> Kind:
        return self._kind

    @property
    def manifest_name(self) -> str:
        return TYPESCRIPT_MANIFEST if self._kind == "typescript" else PYTHON_MANIFEST

    def exists(self, rel_path: str) -> bool:
        return (self._root / rel_path).is_file()

    def has_dir(self, rel_path: str) -> bool:
        return (self._root / rel_path).is_dir()

    def read_text(self, rel_path: str) -> str | None:
        """Return file text, or ``None`` when the file does not exist."""
        if rel_path not in self._text_cache:
            target = self._root / rel_path
            if target.is_file():
                self._text_cache[rel_path] = target.read_text(
                    encoding="utf-8-sig", errors="replace"
                )
            else:
                self._text_cache[rel_path] = None
        return self._text_cache[rel_path]

    def load_json(self, rel_path: str, *, allow_comments: bool = False) -> Any | None:
        """Parse a JSON file; ``None`` when absent, ``FileParseError`` when invalid."""
        return self._parse(
            rel_path,
            lambda text: _parse_json(text, allow_comments=allow_comments),
        )

    def load_toml(self, rel_path: str) -> dict[str, Any] | None:
        """Parse a TOML file; ``None`` when absent, ``FileParseError`` when invalid."""
        return self._parse(rel_path, _parse_toml)

    def manifest(self) -> dict[str, Any]:
        """Return the parsed package manifest for this project's kind."""
        if self._kind == "typescript":
            loaded = self.load_json(TYPESCRIPT_MANIFEST)
        else:
            loaded = self.load_toml(PYTHON_MANIFEST)
        if loaded is None:
            raise FileParseError(f"{self.manifest_name} disappeared during the audit")
        if not isinstance(loaded, dict):
            raise FileParseError(f"{self.manifest_name} must contain a top-level object")
        return loaded

    def gitignore_patterns(self) -> list[str]:
        text = self.read_text(".gitignore")
        if text is None:
            return []
        patterns: list[str] = []
        for raw in text.splitlines():
            stripped = raw.strip()
            if stripped and not stripped.startswith("#"):
                patterns.append(stripped)
        return patterns

    def ignored_by(self, filename: str) -> str | None:
        """Return the .gitignore pattern that excludes root file ``filename``, if any.

        Later patterns win and ``!`` patterns re-include a file. A trailing ``/``
        limits a pattern to directories, and a leading ``**/`` or ``/`` still
        matches at the root.
        """
        matched: str | None = None
        for pattern in self.gitignore_patterns():
            negated = pattern.startswith("!")
            if _gitignore_matches_root_file(pattern[1:] if negated else pattern, filename):
                matched = None if negated else pattern
        return matched

    def source_files(self, suffixes: set[str]) -> list[Path]:
        """Return files under ``src/`` with matching suffixes in stable order."""
        source_root = self._root / SOURCE_DIR
        if not source_root.is_dir():
            return []
        matched: list[Path] = []
        for path in source_root.rglob("*"):
            if not path.is_file() or path.suffix not in suffixes:
                continue
            relative_parts = path.relative_to(source_root).parts
            if SKIPPED_SOURCE_DIRS.intersection(relative_parts):
                continue
            matched.append(path)
        return sorted(matched)

    def source_lines(self, suffixes: set[str]) -> Iterator[tuple[str, int, str]]:
        """Yield ``(relative_path, line_number, line)`` for every source line."""
        for path in self.source_files(suffixes):
            rel_path = path.relative_to(self._root).as_posix()
            text = self.read_text(rel_path) or ""
            for line_number, line in enumerate(text.splitlines(), start=1):
                yield rel_path, line_number, line

    def _parse(self, rel_path: str, parser: Callable[[str], Any]) -> Any:
        if rel_path in self._parsed_cache:
            cached = self._parsed_cache[rel_path]
            if isinstance(cached, FileParseError):
                raise cached
            return cached

        text = self.read_text(rel_path)
        if text is None:
            self._parsed_cache[rel_path] = None
            return None
        try:
            parsed = parser(text)
        except FileParseError as exc:
            error = FileParseError(f"Invalid {rel_path}: {exc}")
            logger.debug("Failed to parse %s: %s", rel_path, exc)
            self._parsed_cache[rel_path] = error
            raise error from exc
        self._parsed_cache[rel_path] = parsed
        return parsed


def _parse_json(text: str, *, allow_comments: bool) -> Any:
    if allow_comments:
        text = _strip_json_comments(text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FileParseError(str(exc)) from exc


def _parse_toml(text: str) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise FileParseError(str(exc)) from exc


def _strip_json_comments(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        return token if token.startswith('"') else ""

    without_comments = _JSONC_TOKEN.sub(_replace, text)
    return _TRAILING_COMMA.sub(r"\1", without_comments)


def _gitignore_matches_root_file(pattern: str, filename: str) -> bool:
    if not pattern or pattern.endswith("/"):
        return False
    while pattern.startswith("**/"):
        pattern = pattern[3:]
    pattern = pattern.removeprefix("/")
    return bool(pattern) and fnmatch.fnmatchcase(filename, pattern)
