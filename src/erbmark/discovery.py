"""
Template discovery: expand files, directories and globs on the command line into
the list of templates to format.

Directories are walked recursively, keeping files that match the include patterns
(`*.erb` by default) and pruning excluded directories before descending. All
patterns use gitignore syntax. `.gitignore` files along the way and the nearest
`.erbmarkignore` above a walked directory are honored too.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

import pathspec

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".erbmarkignore"

DEFAULT_INCLUDES: list[str] = ["*.erb"]

# Directories that never hold templates worth formatting.
DEFAULT_EXCLUDES: list[str] = [
    ".git/",
    ".hg/",
    ".svn/",
    ".bundle/",
    ".venv/",
    "__pycache__/",
    "node_modules/",
    "vendor/",
    "tmp/",
    "log/",
    "coverage/",
    "public/assets/",
    "public/packs/",
    "build/",
    "dist/",
    ".idea/",
    ".vscode/",
]

_GLOB_CHARS = frozenset("*?[")

# A compiled ignore file and the resolved directory its patterns are relative to.
IgnoreRule: TypeAlias = tuple[pathspec.PathSpec, Path]


@dataclass
class DiscoveryConfig:
    """
    Filters applied while discovering templates.

    `exclude=None` keeps `DEFAULT_EXCLUDES`; a list replaces them. `files_max_size`
    is in bytes and 0 disables the limit.
    """

    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))
    extend_include: list[str] = field(default_factory=list)
    exclude: list[str] | None = None
    extend_exclude: list[str] = field(default_factory=list)
    respect_gitignore: bool = True
    force_exclude: bool = False
    files_max_size: int = 1_048_576

    @property
    def include_patterns(self) -> list[str]:
        return self.include + self.extend_include

    @property
    def exclude_patterns(self) -> list[str]:
        base = self.exclude if self.exclude is not None else DEFAULT_EXCLUDES
        return list(base) + self.extend_exclude


def _compile(lines: Sequence[str]) -> pathspec.PathSpec:
    return pathspec.PathSpec.from_lines("gitignore", lines)


def read_ignore_file(path: Path) -> pathspec.PathSpec | None:
    """Compile a gitignore-style file, or `None` if it is missing or has no patterns."""
    if not path.is_file():
        return None
    lines = [
        line
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    return _compile(lines) if lines else None


def find_ignore_file(start_dir: Path) -> Path | None:
    """The nearest `.erbmarkignore` in `start_dir` or any of its parents."""
    for directory in (start_dir.resolve(), *start_dir.resolve().parents):
        candidate = directory / IGNORE_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _is_ignored(path: Path, rules: Sequence[IgnoreRule], is_dir: bool = False) -> bool:
    """Match `path` against each rule relative to the directory of its ignore file."""
    resolved = path.resolve()
    for spec, base in rules:
        try:
            rel_path = resolved.relative_to(base).as_posix()
        except ValueError:
            continue
        if spec.match_file(f"{rel_path}/" if is_dir else rel_path):
            return True
    return False


class TemplateFinder:
    """
    Resolves paths to a sorted, de-duplicated list of template files.
    """

    def __init__(self, config: DiscoveryConfig | None = None) -> None:
        self.config: DiscoveryConfig = config or DiscoveryConfig()
        self._include: pathspec.PathSpec = _compile(self.config.include_patterns)
        self._exclude: pathspec.PathSpec = _compile(self.config.exclude_patterns)
        self._gitignores: dict[Path, pathspec.PathSpec | None] = {}

    def find(self, paths: Sequence[str | Path]) -> list[Path]:
        """
        Expand each path: files are taken as given (subject to `force_exclude` and
        the size limit), directories are walked, and anything with glob characters
        is expanded relative to the current directory.

        Raises `FileNotFoundError` for a path that is none of these.
        """
        found: set[Path] = set()
        for raw in paths:
            path = Path(raw)
            if path.is_file():
                candidates: Iterator[Path] = iter([path] if self._keep_explicit(path) else [])
            elif path.is_dir():
                candidates = self._walk(path)
            elif _GLOB_CHARS.intersection(str(raw)):
                candidates = self._glob(str(raw))
            else:
                raise FileNotFoundError(f"Path not found: {raw}")
            found.update(candidate.resolve() for candidate in candidates)

        result = sorted(found)
        logger.debug("found %d templates in %d paths", len(result), len(paths))
        return result

    def _keep_explicit(self, path: Path) -> bool:
        if self.config.force_exclude:
            if self._exclude.match_file(path.name):
                return False
            if any(self._exclude.match_file(f"{part}/") for part in path.parts[:-1]):
                return False
        return not self._too_large(path)

    def _walk(self, root: Path) -> Iterator[Path]:
        ignore_file = find_ignore_file(root)
        tool_ignore = read_ignore_file(ignore_file) if ignore_file else None
        tool_rules = [(tool_ignore, ignore_file.parent)] if tool_ignore and ignore_file else []

        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rules = [*self._gitignore_chain(root, current), *tool_rules]

            rel_dir = current.relative_to(root)
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not self._dir_excluded(name, rel_dir / name, current / name, rules)
            )

            for filename in filenames:
                path = current / filename
                if not self._include.match_file(filename):
                    continue
                if _is_ignored(path, rules):
                    continue
                if self._too_large(path):
                    continue
                yield path

    def _dir_excluded(
        self, name: str, rel_path: Path, path: Path, rules: list[IgnoreRule]
    ) -> bool:
        if self._exclude.match_file(f"{name}/") or self._exclude.match_file(f"{rel_path}/"):
            return True
        return _is_ignored(path, rules, is_dir=True)

    def _glob(self, pattern: str) -> Iterator[Path]:
        parts = Path(pattern).parts
        split = next(i for i, part in enumerate(parts) if _GLOB_CHARS.intersection(part))
        root = Path(*parts[:split]) if split else Path(".")
        for path in root.glob(str(Path(*parts[split:]))):
            if path.is_file() and self._include.match_file(path.name) and not self._too_large(path):
                yield path

    def _too_large(self, path: Path) -> bool:
        limit = self.config.files_max_size
        if not limit:
            return False
        try:
            size = path.stat().st_size
        except OSError:
            return False
        if size > limit:
            logger.info("Skipping %s: %d bytes exceeds limit of %d", path, size, limit)
            return True
        return False

    def _gitignore_chain(self, root: Path, directory: Path) -> list[IgnoreRule]:
        """`.gitignore` specs from `root` down to `directory`, outermost first."""
        if not self.config.respect_gitignore:
            return []
        rules: list[IgnoreRule] = []
        current = root
        for part in (None, *directory.relative_to(root).parts):
            if part is not None:
                current = current / part
            key = current.resolve()
            if key not in self._gitignores:
                self._gitignores[key] = read_ignore_file(current / ".gitignore")
            spec = self._gitignores[key]
            if spec is not None:
                rules.append((spec, key))
        return rules
