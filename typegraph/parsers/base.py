"""Base classes for language and schema parsers."""

from abc import ABC, abstractmethod
from typing import ClassVar, List, Tuple

from ..models import Language, TypeDefinition, Visibility


class TypeParser(ABC):
    """Contract for parsers that turn one file's text into type definitions."""

    language: ClassVar[Language]
    extensions: ClassVar[Tuple[str, ...]] = ()

    @abstractmethod
    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        """Return the types declared in ``content``.

        ``file_path`` is the repository-relative path recorded on every
        emitted type. Declarations classified as non-public are dropped when
        ``include_private`` is false.
        """

    def handles(self, file_path: str) -> bool:
        return file_path.lower().endswith(self.extensions)


class SupplementaryParser(TypeParser):
    """Schema parsers that run alongside the primary parser for a file.

    They are never returned from extension lookups; the registry invokes them
    explicitly for files whose suffix appears in ``applies_to``.
    """

    applies_to: ClassVar[Tuple[str, ...]] = ()

    def handles(self, file_path: str) -> bool:
        return file_path.lower().endswith(self.applies_to)


def keep(visibility: Visibility, include_private: bool) -> bool:
    """Return True when a declaration with ``visibility`` should be emitted."""
    return include_private or visibility == "public"
