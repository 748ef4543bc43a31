"""Parser implementations and the registry that dispatches to them."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from ..logging import get_logger
from ..models import TypeDefinition
from .base import SupplementaryParser, TypeParser
from .dart import DartParser
from .go import GoParser
from .orm import GoOrmParser, PythonOrmParser, TypeScriptOrmParser
from .protobuf import ProtobufParser
from .python import PythonParser
from .rust import RustParser
from .typescript import TypeScriptParser
from .zod import ZodParser

logger = get_logger("parsers")


class ParserRegistry:
    """Extension and language lookup over an explicit set of parsers."""

    def __init__(
        self,
        parsers: Iterable[TypeParser],
        supplementary: Iterable[SupplementaryParser] = (),
    ) -> None:
        self._parsers: List[TypeParser] = []
        self._by_language: Dict[str, TypeParser] = {}
        for parser in parsers:
            if isinstance(parser, SupplementaryParser):
                raise TypeError(f"{type(parser).__name__} is supplementary and has no extensions of its own")
            if parser.language in self._by_language:
                raise ValueError(f"Duplicate parser for language {parser.language!r}")
            self._parsers.append(parser)
            self._by_language[parser.language] = parser
        self._supplementary: List[SupplementaryParser] = list(supplementary)

    def parser_for(self, file_path: str) -> Optional[TypeParser]:
        """Return the parser whose extension matches ``file_path``, or None."""
        lowered = file_path.lower()
        best: Optional[TypeParser] = None
        best_length = 0
        for parser in self._parsers:
            for extension in parser.extensions:
                if lowered.endswith(extension) and len(extension) > best_length:
                    best, best_length = parser, len(extension)
        return best

    def parser_for_language(self, language: str) -> Optional[TypeParser]:
        return self._by_language.get(language)

    def supported_extensions(self) -> List[str]:
        return sorted({extension for parser in self._parsers for extension in parser.extensions})

    def languages(self) -> List[str]:
        return [parser.language for parser in self._parsers]

    def supplementary_for(self, file_path: str) -> List[SupplementaryParser]:
        return [parser for parser in self._supplementary if parser.handles(file_path)]

    def parse(
        self, language: str, content: str, file_path: str, include_private: bool = True
    ) -> List[TypeDefinition]:
        """Parse one file with the parser registered for ``language``.

        Raises ``ValueError`` for an unknown language. Parser failures are
        logged and yield an empty list.
        """
        parser = self._by_language.get(language)
        if parser is None:
            raise ValueError(f"No parser registered for language {language!r}")
        return _run(parser, content, file_path, include_private) or []

    def parse_file(
        self,
        content: str,
        file_path: str,
        include_private: bool = True,
        failures: Optional[List[str]] = None,
    ) -> List[TypeDefinition]:
        """Run the primary parser and every supplementary parser for ``file_path``.

        Results are concatenated without deduplication; a model declared as a
        TypeScript class and as a TypeORM entity appears twice. When
        ``failures`` is given, ``file_path`` is appended to it once if any
        parser raised.
        """
        parser = self.parser_for(file_path)
        if parser is None:
            logger.debug("No parser for %s", file_path)
            return []
        failed = False
        types: List[TypeDefinition] = []
        for current in [parser, *self.supplementary_for(file_path)]:
            found = _run(current, content, file_path, include_private)
            if found is None:
                failed = True
            else:
                types.extend(found)
        if failed and failures is not None:
            failures.append(file_path)
        return types


def _run(
    parser: TypeParser, content: str, file_path: str, include_private: bool
) -> Optional[List[TypeDefinition]]:
    try:
        return list(parser.parse(content, file_path, include_private))
    except Exception as exc:
        logger.warning("%s failed on %s: %s", type(parser).__name__, file_path, exc)
        return None


def default_parsers() -> List[TypeParser]:
    return [
        RustParser(),
        TypeScriptParser(),
        DartParser(),
        ProtobufParser(),
        PythonParser(),
        GoParser(),
    ]


def default_supplementary() -> List[SupplementaryParser]:
    return [ZodParser(), TypeScriptOrmParser(), PythonOrmParser(), GoOrmParser()]


def build_registry(
    parsers: Sequence[TypeParser] | None = None,
    supplementary: Sequence[SupplementaryParser] | None = None,
) -> ParserRegistry:
    """Return a registry holding the built-in parsers unless others are given."""
    return ParserRegistry(
        default_parsers() if parsers is None else parsers,
        default_supplementary() if supplementary is None else supplementary,
    )


__all__ = [
    "ParserRegistry",
    "SupplementaryParser",
    "TypeParser",
    "build_registry",
    "default_parsers",
    "default_supplementary",
]
