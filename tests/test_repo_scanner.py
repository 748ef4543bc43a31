"""Tests for typegraph.repo_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from typegraph.repo_scanner import FileSource, IgnoreRule, IgnoreRules, LocalRepoSource


def _write(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_lists_files_sorted_and_skips_excluded_dirs(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    _write(root / "src" / "lib.rs", "pub struct A;\n")
    _write(root / "src" / "api" / "types.ts")
    _write(root / "main.go")
    _write(root / "node_modules" / "pkg" / "index.ts")
    _write(root / "target" / "debug" / "gen.rs")
    _write(root / ".venv" / "lib.py")
    _write(root / "src" / ".DS_Store")

    source = LocalRepoSource(root)

    assert isinstance(source, FileSource)
    assert source.name == "repo"
    assert source.list_files() == ["main.go", "src/lib.rs", "src/api/types.ts"]
    assert source.read_file("src/lib.rs") == "pub struct A;\n"


def test_gitignore_rules_and_negation(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    _write(root / ".gitignore", "# build output\nbuild/\n*.gen.ts\n!keep.gen.ts\n/local.py\n")
    _write(root / "build" / "out.ts")
    _write(root / "src" / "models.gen.ts")
    _write(root / "src" / "keep.gen.ts")
    _write(root / "local.py")
    _write(root / "src" / "local.py")

    files = LocalRepoSource(root).list_files()

    assert files == [".gitignore", "src/keep.gen.ts", "src/local.py"]


def test_config_exclude_paths_are_respected(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    _write(root / ".typegraph.yml", "exclude_paths:\n  - sandbox/\n")
    _write(root / "sandbox" / "scratch.rs")
    _write(root / "src" / "lib.rs")

    files = LocalRepoSource(root).list_files()

    assert "sandbox/scratch.rs" not in files
    assert "src/lib.rs" in files


def test_broken_config_does_not_block_listing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    root = tmp_path / "repo"
    _write(root / ".typegraph.yml", "- not a mapping\n")
    _write(root / "src" / "lib.rs")

    files = LocalRepoSource(root).list_files()

    assert "src/lib.rs" in files
    assert "Ignoring exclude_paths" in caplog.text


def test_missing_or_invalid_roots(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalRepoSource(tmp_path / "missing")

    file_path = tmp_path / "file.txt"
    _write(file_path)
    with pytest.raises(NotADirectoryError):
        LocalRepoSource(file_path)


def test_read_file_refuses_paths_outside_root(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    _write(root / "a.rs")
    _write(tmp_path / "secret.txt", "nope")

    with pytest.raises(ValueError):
        LocalRepoSource(root).read_file("../secret.txt")


def test_ignore_rule_parsing() -> None:
    assert IgnoreRule.parse("   ") is None
    assert IgnoreRule.parse("# comment") is None
    rule = IgnoreRule.parse("!/docs/")
    assert rule == IgnoreRule(pattern="docs", dir_only=True, rooted=True, negated=True)
    nested = IgnoreRule.parse("gen/*.ts")
    assert nested is not None and nested.rooted
    assert nested.matches("gen/a.ts", False)
    assert not nested.matches("src/gen/a.ts", False)

    rules = IgnoreRules([IgnoreRule.parse("*.log"), IgnoreRule.parse("!keep.log")])
    assert rules.ignores("logs/app.log", False)
    assert not rules.ignores("keep.log", False)


def test_explicit_exclude_paths_replace_repository_config(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    _write(root / ".typegraph.yml", "exclude_paths:\n  - sandbox/\n")
    _write(root / "sandbox" / "scratch.rs")
    _write(root / "vendor" / "dep.rs")

    files = LocalRepoSource(root, exclude_paths=["vendor/"]).list_files()

    assert "sandbox/scratch.rs" in files
    assert "vendor/dep.rs" not in files
