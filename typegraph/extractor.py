"""Per-repository extraction driver."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from .config import ExtractionSettings
from .logging import get_logger
from .models import ExtractionResult, TypeDefinition
from .parsers import ParserRegistry, build_registry
from .relationships import build_modules, build_relationships, build_summary
from .repo_scanner import FileSource

BUILTIN_IGNORE: Tuple[str, ...] = (
    ".test.",
    ".spec.",
    "__tests__",
    "/tests/",
    "/test/",
    "/__mocks__/",
    ".stories.",
    ".story.",
    "/generated/",
    "/vendor/",
    "/node_modules/",
    "/.dart_tool/",
    "/target/",
    "/build/",
    "/dist/",
    "/.git/",
)

_UNRANKED = 1000


class TypeExtractor:
    """Select a repository's source files, parse them, and assemble the result."""

    def __init__(
        self,
        registry: Optional[ParserRegistry] = None,
        settings: Optional[ExtractionSettings] = None,
    ) -> None:
        self.registry = registry or build_registry()
        self.settings = settings or ExtractionSettings()
        self.logger = get_logger("extractor")

    def select_files(self, files: Sequence[str]) -> List[str]:
        """Filter by supported extension and ignore rules, order, then cap at ``limit``."""
        extensions = tuple(self.registry.supported_extensions())
        user_ignore = [pattern.replace("**", "") for pattern in self.settings.ignore]
        user_ignore = [pattern for pattern in user_ignore if pattern]

        selected: List[str] = []
        for path in files:
            if not path.lower().endswith(extensions):
                continue
            # Leading slash so "/tests/" also matches "tests/x.py" at the root.
            anchored = f"/{path.lstrip('/')}"
            if any(pattern in anchored for pattern in BUILTIN_IGNORE):
                continue
            if any(pattern in anchored for pattern in user_ignore):
                continue
            selected.append(path)

        if self.settings.prioritize:
            selected.sort(key=self._priority)
        return selected[: self.settings.limit]

    def _priority(self, path: str) -> int:
        for index, prefix in enumerate(self.settings.prioritize):
            if prefix in path:
                return index
        return _UNRANKED

    def extract(self, source: FileSource) -> ExtractionResult:
        """Parse every selected file of ``source`` into one :class:`ExtractionResult`.

        A file that cannot be read or parsed is logged, listed in
        ``failed_files`` and contributes no types; its siblings are unaffected.
        """
        files = self.select_files(source.list_files())
        self.logger.debug("Selected %d source files", len(files))

        workers = max(1, self.settings.max_workers)
        if workers == 1 or len(files) < 2:
            outcomes = [self._extract_file(source, path) for path in files]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                # map() yields in submission order, keeping output deterministic.
                outcomes = list(executor.map(lambda path: self._extract_file(source, path), files))

        types: List[TypeDefinition] = []
        failed: List[str] = []
        for path, (found, ok) in zip(files, outcomes):
            types.extend(found)
            if not ok:
                failed.append(path)

        relationships = build_relationships(types)
        modules = build_modules(types, relationships)
        summary = build_summary(types, relationships, modules)
        self.logger.info(
            "Extracted %d types and %d relationships from %d files",
            len(types),
            len(relationships),
            len(files),
        )
        return ExtractionResult(
            types=types,
            relationships=relationships,
            modules=modules,
            summary=summary,
            files_scanned=len(files),
            failed_files=failed,
        )

    def _extract_file(self, source: FileSource, path: str) -> Tuple[List[TypeDefinition], bool]:
        try:
            content = source.read_file(path)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            self.logger.warning("Skipping unreadable file %s: %s", path, exc)
            return [], False
        failures: List[str] = []
        types = self.registry.parse_file(content, path, self.settings.include_private, failures)
        return types, not failures


__all__ = ["BUILTIN_IGNORE", "TypeExtractor"]
