"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from typegraph.extractor import TypeExtractor
from typegraph.models import ExtractionResult
from typegraph.repo_scanner import LocalRepoSource


class RepoBuilder:
    """Utility for writing files into a throwaway repository and extracting it."""

    def __init__(self, tmp_path: Path, name: str = "repo") -> None:
        self.root = tmp_path / name
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def source(self) -> LocalRepoSource:
        """Return a file source over the repository."""
        return LocalRepoSource(self.root)

    def extract(self, extractor: TypeExtractor | None = None) -> ExtractionResult:
        """Run an extraction over the current repository contents."""
        return (extractor or TypeExtractor()).extract(self.source())

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
