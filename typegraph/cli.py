"""CLI entrypoints for typegraph commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List

from .config import ConfigError, TypeGraphConfig, load_config
from .extractor import TypeExtractor
from .logging import configure_logging, get_logger
from .matching import build_flow_edges, find_cross_repo_matches, summarize_repo_links
from .models import TypeDefinition, to_dict
from .parsers import build_registry
from .repo_scanner import LocalRepoSource


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .typegraph.yml (defaults to the one in the repository root).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typegraph",
        description="Extract type definitions and find shared types across repositories.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract types, relationships and modules from one repository.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    _add_config_option(extract_parser)
    extract_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    extract_parser.add_argument(
        "--public-only",
        action="store_true",
        help="Drop private, protected and internal declarations.",
    )
    extract_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of source files to parse.",
    )

    match_parser = subparsers.add_parser(
        "match",
        help="Find types shared between repositories and the flow edges they imply.",
    )
    _add_verbose_option(match_parser, suppress_default=True)
    _add_config_option(match_parser)
    match_parser.add_argument(
        "paths",
        nargs="+",
        help="Repository roots; each directory name is used as the repository name.",
    )
    match_parser.add_argument(
        "--min-similarity",
        type=int,
        default=None,
        help="Minimum similarity (0-100) for a match to produce flow edges.",
    )

    return parser


def _load(path: Path, override: Path | None) -> TypeGraphConfig:
    return load_config(override if override is not None else path)


def _extract(
    path: str, config: TypeGraphConfig, exclude_paths: List[str] | None = None
) -> tuple[str, List[TypeDefinition], Dict[str, Any]]:
    source = LocalRepoSource(path, exclude_paths)
    result = TypeExtractor(build_registry(), config.extraction).extract(source)
    return source.name, result.types, to_dict(result)


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for typegraph commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))
    logger = get_logger("cli")

    try:
        if args.command == "extract":
            config = _load(Path(args.path), args.config)
            extraction = config.extraction
            if args.public_only:
                extraction = replace(extraction, include_private=False)
            if args.limit is not None:
                if args.limit <= 0:
                    parser.exit(1, "--limit must be a positive integer\n")
                extraction = replace(extraction, limit=args.limit)
            excludes = config.exclude_paths if args.config is not None else None
            _, _, payload = _extract(args.path, replace(config, extraction=extraction), excludes)
            _emit(payload)
        elif args.command == "match":
            config = _load(Path(args.paths[0]), args.config)
            # An explicit --config applies to every repository; otherwise each keeps its own excludes.
            excludes = config.exclude_paths if args.config is not None else None
            types_by_repo: Dict[str, List[TypeDefinition]] = {}
            for path in args.paths:
                name, types, _ = _extract(path, config, excludes)
                if name in types_by_repo:
                    parser.exit(1, f"Duplicate repository name: {name}\n")
                types_by_repo[name] = types
            min_similarity = (
                args.min_similarity if args.min_similarity is not None else config.matching.min_similarity
            )
            matches = find_cross_repo_matches(types_by_repo, config.matching.weights)
            edges = build_flow_edges(matches, min_similarity)
            links = summarize_repo_links(edges, config.matching.strong_threshold)
            logger.info("Found %d shared types and %d flow edges", len(matches), len(edges))
            _emit(
                {
                    "matches": [
                        {
                            "name": match.normalized_name,
                            "similarity": match.similarity,
                            "repos": match.repos,
                            "instances": [
                                {"repo": item.repo, "type": item.type.name, "file": item.type.file}
                                for item in match.instances
                            ],
                        }
                        for match in matches
                    ],
                    "edges": to_dict(edges),
                    "links": to_dict(links),
                }
            )
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"typegraph {args.command} failed: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
