"""Command-line entry point: index a Hugo site and serve it over HTTP.

Usage:
    hugo-search -hugoPath ./site -indexPath indexes/search.bleve -addr :8080
    hugo-search -rebuild -verbose
    hugo-search -version
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
import sys
from typing import Any

from pydantic import ValidationError
import uvicorn

from hugo_search import __version__
from hugo_search.app_builder import AppBuilder
from hugo_search.config import DEFAULT_ADDR, DEFAULT_HUGO_PATH, DEFAULT_INDEX_PATH, Settings, parse_listen_address
from hugo_search.hugo import HugoSite, SiteConfigError, SiteNotFoundError
from hugo_search.observability import configure_logging
from hugo_search.registry import IndexRegistry
from hugo_search.search import HugoIndexer, IndexNotFoundError, SearchIndex, index_exists


logger = logging.getLogger(__name__)

# Flag dest -> Settings field, applied only when the flag is given
_FLAG_SETTINGS = {
    "addr": "addr",
    "hugo_path": "hugo_path",
    "index_path": "index_path",
    "index_name": "index_name",
}


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hugo-search",
        description="Serve a full-text search API over the content of a Hugo site",
    )
    parser.add_argument(
        "-addr",
        "--addr",
        dest="addr",
        help=f"HTTP listen address (default: {DEFAULT_ADDR})",
    )
    parser.add_argument(
        "-hugoPath",
        "--hugoPath",
        dest="hugo_path",
        help=f"Path of the Hugo site (default: {DEFAULT_HUGO_PATH})",
    )
    parser.add_argument(
        "-indexPath",
        "--indexPath",
        dest="index_path",
        help=f"Directory of the search index (default: {DEFAULT_INDEX_PATH})",
    )
    parser.add_argument(
        "-indexName",
        "--indexName",
        dest="index_name",
        help="Name the index is served under (default: index directory name without extension)",
    )
    parser.add_argument(
        "-rebuild",
        "--rebuild",
        action="store_true",
        help="Rebuild the index from the site before serving",
    )
    parser.add_argument(
        "-verbose",
        "--verbose",
        action="store_true",
        help="Verbose logging",
    )
    parser.add_argument(
        "-version",
        "--version",
        action="store_true",
        help="Print the version and exit",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Load settings from the environment with command-line flags applied on top."""
    overrides: dict[str, Any] = {}
    for dest, field_name in _FLAG_SETTINGS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    if args.verbose:
        overrides["verbose"] = True
    return Settings(**overrides)


def prepare_index(settings: Settings, *, rebuild: bool = False) -> SearchIndex:
    """Open the configured index, building it from the site when needed.

    Raises:
        SiteNotFoundError: If the site is needed and does not exist
        SiteConfigError: If the site configuration is invalid
        FileExistsError: If the index path is occupied by something else
        IndexNotFoundError: If the index cannot be opened after building
    """
    index_path = settings.index_path.expanduser()
    if rebuild or not index_exists(index_path):
        site = HugoSite.load(settings.hugo_path, build_drafts=settings.build_drafts)
        result = HugoIndexer(site).build(index_path, rebuild=rebuild)
        logger.info("Index ready at %s with %d pages", result.index_path, result.documents_indexed)
    return SearchIndex.open(index_path, settings.resolved_index_name())


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"hugo-search {__version__}")
        return 0

    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        configure_logging(level="INFO")
        logger.error("Invalid configuration: %s", exc)
        return 1

    log_level = settings.effective_log_level()
    access_log = settings.access_log or settings.verbose
    configure_logging(level=log_level, json_output=settings.json_logs, access_log=access_log)

    try:
        host, port = parse_listen_address(settings.addr)
        index = prepare_index(settings, rebuild=args.rebuild)
    except (SiteNotFoundError, SiteConfigError) as exc:
        logger.error("Cannot load Hugo site: %s", exc)
        return 1
    except (IndexNotFoundError, FileExistsError, ValueError) as exc:
        logger.error("Cannot open index: %s", exc)
        return 1

    registry = IndexRegistry()
    registry.register(index.name, index)
    app = AppBuilder(registry, settings).build()

    logger.info("Serving index %s (%d documents) on %s:%d", index.name, index.doc_count(), host, port)
    logger.info("Search endpoint: POST http://%s:%d/api/%s/_search", host, port, index.name)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
        log_config=None,  # Don't let uvicorn override our logging config
        access_log=access_log,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
