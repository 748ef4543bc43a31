"""Tests for typegraph.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from typegraph.config import ConfigError, ExtractionSettings, MatchingSettings, TypeGraphConfig, load_config
from typegraph.matching import SimilarityWeights


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, TypeGraphConfig)
    assert config.root == tmp_path.resolve()
    assert config.extraction == ExtractionSettings()
    assert config.extraction.include_private is True
    assert config.extraction.limit == 300
    assert config.extraction.max_workers == 1
    assert config.matching == MatchingSettings()
    assert config.matching.min_similarity == 60
    assert config.matching.strong_threshold == 80
    assert config.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".typegraph.yml"
    config_file.write_text(
        """
extraction:
  include_private: false
  limit: 50
  ignore: ["examples/", "**/fixtures/"]
  prioritize:
    - src/models
  max_workers: 4
matching:
  min_similarity: 70
  strong_threshold: "85"
  weights: {name: 40, kind: 30}
exclude_paths:
  - "sandbox/"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.extraction.include_private is False
    assert config.extraction.limit == 50
    assert config.extraction.ignore == ["examples/", "**/fixtures/"]
    assert config.extraction.prioritize == ["src/models"]
    assert config.extraction.max_workers == 4
    assert config.matching.min_similarity == 70
    assert config.matching.strong_threshold == 85
    assert config.matching.weights == SimilarityWeights(name=40, kind=30, fields=30)
    assert config.exclude_paths == ["sandbox/"]


def test_load_config_ignores_invalid_scalars(tmp_path: Path) -> None:
    (tmp_path / ".typegraph.yml").write_text(
        """
extraction:
  include_private: maybe
  limit: 0
  max_workers: true
  ignore: vendor/
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.extraction.include_private is True
    assert config.extraction.limit == 300
    assert config.extraction.max_workers == 1
    assert config.extraction.ignore == ["vendor/"]


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".typegraph.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).extraction == ExtractionSettings()


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".typegraph.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".typegraph.yml").write_text("extraction: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
