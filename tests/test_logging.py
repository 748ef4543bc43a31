from __future__ import annotations

import logging
from pathlib import Path

from typegraph.logging import configure_logging, get_logger


def test_get_logger_is_namespaced() -> None:
    assert get_logger().name == "typegraph"
    assert get_logger("parsers").name == "typegraph.parsers"


def test_configure_logging_levels_and_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "typegraph.log"

    logger = configure_logging(verbose=True)
    assert logger.level == logging.DEBUG

    logger = configure_logging(quiet=True, log_file=log_file)
    assert len(logger.handlers) == 2
    assert logger.handlers[0].level == logging.WARNING

    get_logger("extractor").debug("selected %d files", 3)
    for handler in logger.handlers:
        handler.flush()

    assert "typegraph.extractor: selected 3 files" in log_file.read_text(encoding="utf-8")
