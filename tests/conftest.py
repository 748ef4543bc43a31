from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture(autouse=True)
def _reset_typegraph_logger() -> Iterator[None]:
    """Undo CLI logging configuration so caplog sees records in every test."""
    yield
    logger = logging.getLogger("typegraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[[str], RepoBuilder]:
    """Build several named repositories side by side."""

    def _make(name: str) -> RepoBuilder:
        return RepoBuilder(tmp_path, name)

    return _make
