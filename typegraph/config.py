"""Configuration loading for typegraph (.typegraph.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .matching import DEFAULT_MIN_SIMILARITY, DEFAULT_STRONG_THRESHOLD, SimilarityWeights

CONFIG_FILENAME = ".typegraph.yml"
DEFAULT_LIMIT = 300


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ExtractionSettings:
    """File selection and parsing options for one repository."""

    include_private: bool = True
    limit: int = DEFAULT_LIMIT
    ignore: List[str] = field(default_factory=list)
    prioritize: List[str] = field(default_factory=list)
    max_workers: int = 1


@dataclass
class MatchingSettings:
    """Cross-repository matching thresholds and weights."""

    min_similarity: int = DEFAULT_MIN_SIMILARITY
    strong_threshold: int = DEFAULT_STRONG_THRESHOLD
    weights: SimilarityWeights = field(default_factory=SimilarityWeights)


@dataclass
class TypeGraphConfig:
    """Represents the settings defined in .typegraph.yml."""

    root: Path
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    matching: MatchingSettings = field(default_factory=MatchingSettings)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> TypeGraphConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TypeGraphConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    extraction = ExtractionSettings()
    extraction_data = _as_dict(data.get("extraction"))
    if extraction_data:
        include_private = _as_bool(extraction_data.get("include_private"))
        if include_private is not None:
            extraction.include_private = include_private
        limit = _as_int(extraction_data.get("limit"))
        if limit is not None and limit > 0:
            extraction.limit = limit
        extraction.ignore = _as_str_list(extraction_data.get("ignore"))
        extraction.prioritize = _as_str_list(extraction_data.get("prioritize"))
        max_workers = _as_int(extraction_data.get("max_workers"))
        if max_workers is not None and max_workers > 0:
            extraction.max_workers = max_workers

    matching = MatchingSettings()
    matching_data = _as_dict(data.get("matching"))
    if matching_data:
        min_similarity = _as_int(matching_data.get("min_similarity"))
        if min_similarity is not None:
            matching.min_similarity = min_similarity
        strong_threshold = _as_int(matching_data.get("strong_threshold"))
        if strong_threshold is not None:
            matching.strong_threshold = strong_threshold
        weights_data = _as_dict(matching_data.get("weights"))
        if weights_data:
            defaults = SimilarityWeights()
            matching.weights = SimilarityWeights(
                name=_or_default(_as_int(weights_data.get("name")), defaults.name),
                kind=_or_default(_as_int(weights_data.get("kind")), defaults.kind),
                fields=_or_default(_as_int(weights_data.get("fields")), defaults.fields),
            )

    return TypeGraphConfig(
        root=root,
        extraction=extraction,
        matching=matching,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_LIMIT",
    "ExtractionSettings",
    "MatchingSettings",
    "TypeGraphConfig",
    "load_config",
]
