"""Tests for typegraph.extractor."""

from __future__ import annotations

from typing import Dict, List

import pytest

from typegraph.config import ExtractionSettings
from typegraph.extractor import TypeExtractor
from typegraph.models import TypeDefinition
from typegraph.parsers import ParserRegistry, SupplementaryParser
from typegraph.parsers.rust import RustParser


class MemorySource:
    """In-memory file source keyed by repository-relative path."""

    def __init__(self, files: Dict[str, str]) -> None:
        self.files = files

    def list_files(self) -> List[str]:
        return list(self.files)

    def read_file(self, path: str) -> str:
        return self.files[path]


class ExplodingParser(SupplementaryParser):
    language = "rust"
    applies_to = ("broken.rs",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        raise RuntimeError("unexpected token")


def test_extract_repository(repo_builder) -> None:
    repo_builder.write(
        {
            "src/billing.rs": """
                pub struct Invoice {
                    pub items: Vec<LineItem>,
                }

                pub struct LineItem {
                    pub sku: String,
                }
            """,
            "web/types.ts": """
                export interface User {
                  id: string;
                }
            """,
            "README.md": "# Billing\n",
            "tests/test_billing.py": "class Fixture:\n    pass\n",
            "web/types.test.ts": "export interface Mock { id: string }\n",
        }
    )

    result = repo_builder.extract()

    assert [t.name for t in result.types] == ["Invoice", "LineItem", "User"]
    assert [(r.from_type, r.to_type, r.kind) for r in result.relationships] == [
        ("Invoice", "LineItem", "collection")
    ]
    assert [m.path for m in result.modules] == ["src", "web"]
    assert result.summary.by_language == {"rust": 2, "typescript": 1}
    assert result.files_scanned == 2
    assert result.failed_files == []


def test_select_files_applies_ignores_priority_and_limit() -> None:
    extractor = TypeExtractor(
        settings=ExtractionSettings(ignore=["**/examples/"], prioritize=["src/models", "web"], limit=2)
    )
    files = [
        "src/a.rs",
        "tests/b.rs",
        "src/c.test.ts",
        "web/d.ts",
        "lib/generated/e.go",
        "docs/readme.md",
        "examples/f.py",
        "src/models/g.py",
    ]

    assert extractor.select_files(files) == ["src/models/g.py", "web/d.ts"]


def test_select_files_keeps_listing_order_without_priorities() -> None:
    extractor = TypeExtractor()

    assert extractor.select_files(["b.go", "a.proto", "vendor/x.go", "app/Page.TSX"]) == ["b.go", "a.proto", "app/Page.TSX"]


def test_unreadable_and_unparseable_files_are_reported(repo_builder, caplog: pytest.LogCaptureFixture) -> None:
    repo_builder.write({"src/good.rs": "pub struct Good;\n", "src/broken.rs": "pub struct Broken;\n"})
    (repo_builder.path() / "src" / "binary.rs").write_bytes(b"\xff\xfe\x00garbage")
    registry = ParserRegistry([RustParser()], [ExplodingParser()])

    result = repo_builder.extract(TypeExtractor(registry))

    assert [t.name for t in result.types] == ["Broken", "Good"]
    assert result.failed_files == ["src/binary.rs", "src/broken.rs"]
    assert result.files_scanned == 3
    assert "Skipping unreadable file src/binary.rs" in caplog.text
    assert "ExplodingParser failed on src/broken.rs" in caplog.text


def test_public_only_extraction() -> None:
    source = MemorySource({"lib.rs": "pub struct Open;\nstruct Hidden;\n"})

    result = TypeExtractor(settings=ExtractionSettings(include_private=False)).extract(source)

    assert [t.name for t in result.types] == ["Open"]


def test_parallel_extraction_matches_sequential_order() -> None:
    files = {f"src/mod_{index:02d}.rs": f"pub struct Type{index} {{ pub next: Type{index + 1} }}\n" for index in range(12)}
    source = MemorySource(files)

    sequential = TypeExtractor(settings=ExtractionSettings(max_workers=1)).extract(source)
    parallel = TypeExtractor(settings=ExtractionSettings(max_workers=4)).extract(source)

    assert parallel == sequential
    assert [t.name for t in parallel.types] == [f"Type{index}" for index in range(12)]
    assert len(parallel.relationships) == 11
