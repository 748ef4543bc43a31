"""File sources: how the extractor lists and reads a repository's files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, runtime_checkable

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import get_logger

logger = get_logger("repo_scanner")

SKIPPED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".venv",
        "venv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        "node_modules",
        ".dart_tool",
        "target",
    }
)
SKIPPED_FILES = frozenset({".DS_Store", "Thumbs.db"})


@runtime_checkable
class FileSource(Protocol):
    """Listing and content lookup for one repository at one ref."""

    def list_files(self) -> List[str]:
        """Return repository-relative POSIX paths."""

    def read_file(self, path: str) -> str:
        """Return the text of ``path`` (as returned by :meth:`list_files`)."""


@dataclass(frozen=True)
class IgnoreRule:
    """One gitignore-style pattern."""

    pattern: str
    dir_only: bool = False
    rooted: bool = False
    negated: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        """Build a rule from one ignore-file line; blanks and comments give None."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None
        negated = text.startswith("!")
        text = text[1:] if negated else text
        dir_only = text.endswith("/")
        rooted = text.startswith("/")
        text = text.strip("/")
        if not text:
            return None
        return cls(pattern=text, dir_only=dir_only, rooted=rooted or "/" in text, negated=negated)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.rooted:
            return fnmatchcase(rel_path, self.pattern) or (
                self.dir_only and rel_path.startswith(self.pattern + "/")
            )
        return any(fnmatchcase(segment, self.pattern) for segment in rel_path.split("/"))


class IgnoreRules:
    """Ordered rules where the last matching rule decides."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self.rules: List[IgnoreRule] = list(rules)

    @classmethod
    def for_repository(cls, root: Path, exclude_paths: Optional[Sequence[str]] = None) -> "IgnoreRules":
        """Collect ``.gitignore`` rules followed by the exclude patterns.

        ``exclude_paths`` defaults to the list in the repository's own config file.
        """
        rules: List[IgnoreRule] = []
        gitignore = root / ".gitignore"
        if gitignore.is_file():
            lines = gitignore.read_text(encoding="utf-8").splitlines()
            rules.extend(rule for rule in map(IgnoreRule.parse, lines) if rule is not None)
        excludes = list(exclude_paths) if exclude_paths is not None else _repository_excludes(root)
        rules.extend(rule for rule in map(IgnoreRule.parse, excludes) if rule is not None)
        return cls(rules)

    def ignores(self, rel_path: str, is_dir: bool) -> bool:
        verdict = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                verdict = not rule.negated
        return verdict


def _repository_excludes(root: Path) -> List[str]:
    try:
        return load_config(root / CONFIG_FILENAME).exclude_paths
    except ConfigError as exc:
        logger.warning("Ignoring exclude_paths from %s: %s", root / CONFIG_FILENAME, exc)
        return []


def walk_repository(root: Path, rules: IgnoreRules) -> Iterator[str]:
    """Yield kept file paths under ``root`` in sorted, top-down order."""
    for current, dirnames, filenames in os.walk(root):
        prefix = Path(current).relative_to(root).as_posix()
        prefix = "" if prefix == "." else prefix + "/"
        dirnames[:] = [
            name
            for name in sorted(dirnames)
            if name not in SKIPPED_DIRS and not rules.ignores(prefix + name, True)
        ]
        for name in sorted(filenames):
            if name in SKIPPED_FILES or rules.ignores(prefix + name, False):
                continue
            yield prefix + name


class LocalRepoSource:
    """A :class:`FileSource` over a checked-out directory."""

    def __init__(self, root: str | Path, exclude_paths: Optional[Sequence[str]] = None) -> None:
        path = Path(root).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")
        self.root = path
        self.rules = IgnoreRules.for_repository(path, exclude_paths)

    @property
    def name(self) -> str:
        return self.root.name

    def list_files(self) -> List[str]:
        return list(walk_repository(self.root, self.rules))

    def read_file(self, path: str) -> str:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError(f"Path escapes repository root: {path}")
        return target.read_text(encoding="utf-8")


__all__ = ["FileSource", "IgnoreRule", "IgnoreRules", "LocalRepoSource", "walk_repository"]
