"""Command line entry point: build an index artifact or query one."""

# ruff: noqa: T201  # CLI intentionally prints query results

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from docsite_search.config import SearchSettings
from docsite_search.corpus import Corpus, load_json_corpus, load_markdown_corpus
from docsite_search.errors import CorpusLoadError, IndexBuildError
from docsite_search.observability.logging import configure_logging
from docsite_search.search.artifact import write_artifact
from docsite_search.search.indexer import IndexBuilder
from docsite_search.service_layer.search_service import SearchService
from docsite_search.service_layer.session import FileArtifactSource, SearchSession


logger = logging.getLogger("docsite_search.cli")

EXIT_OK = 0
EXIT_BUILD_FAILED = 1
EXIT_UNAVAILABLE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsite-search",
        description="Build and query client-side search indexes for documentation sites.",
    )
    parser.add_argument("--log-level", default=None, help="Override DOCSITE_SEARCH_LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON log lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Index a corpus and write the artifact")
    source = build.add_mutually_exclusive_group(required=True)
    source.add_argument("--content", type=Path, help="Markdown content directory")
    source.add_argument("--corpus", type=Path, help="JSON array of {url, title, body, section} pages")
    build.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Artifact path; a .js suffix wraps it as window.searchIndex",
    )

    query = subparsers.add_parser("query", help="Run a query against a built artifact")
    query.add_argument("--index", type=Path, required=True, help="Artifact written by 'build'")
    query.add_argument("--limit", type=int, default=None, help="Maximum hits (default: settings)")
    query.add_argument("text", help="Query text")

    return parser


def _load_corpus(args: argparse.Namespace) -> Corpus:
    if args.content is not None:
        return load_markdown_corpus(args.content)
    return load_json_corpus(args.corpus)


def run_build(args: argparse.Namespace, settings: SearchSettings) -> int:
    try:
        corpus = _load_corpus(args)
        builder = IndexBuilder.from_settings(settings)
        builder.add_documents(corpus)
        index = builder.build()
    except CorpusLoadError as exc:
        logger.error("Failed to load content %s: %s", exc.path, exc.reason)
        return EXIT_BUILD_FAILED
    except IndexBuildError as exc:
        logger.error("Failed to build index: %s", exc)
        return EXIT_BUILD_FAILED

    try:
        write_artifact(index, args.output)
    except OSError as exc:
        logger.error("Failed to write search index to %s: %s", args.output, exc)
        return EXIT_BUILD_FAILED
    return EXIT_OK


def run_query(args: argparse.Namespace, settings: SearchSettings) -> int:
    with SearchSession(FileArtifactSource(args.index), settings) as session:
        response = SearchService(session).search(args.text, max_results=args.limit)
    print(response.model_dump_json(indent=2))
    return EXIT_OK if response.available else EXIT_UNAVAILABLE


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = SearchSettings()
    configure_logging(
        args.log_level or settings.log_level,
        json_output=settings.json_logs if args.json_logs is None else args.json_logs,
    )

    if args.command == "build":
        return run_build(args, settings)
    return run_query(args, settings)


if __name__ == "__main__":
    sys.exit(main())
