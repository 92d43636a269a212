"""Command line entry point for manual checks against live backends.

Usage:
    catalog-search search "yesterday" --type song --isrc GBAYE0601498
    catalog-search get song 0123456789abcdef
    catalog-search ensure-index

Results are printed as the JSON wire envelope.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from catalog_search.bootstrap import build_index_backend, build_search_engine, prepare_index
from catalog_search.core.config import Settings, get_settings
from catalog_search.core.database import create_catalog_engine
from catalog_search.core.exceptions import CatalogSearchError, InvalidIdentifierError
from catalog_search.core.logging import configure_logging, get_logger
from catalog_search.schemas.catalog import ItemType
from catalog_search.schemas.search import SearchQuery, SearchResponse, validate_catalog_id
from pydantic import ValidationError

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2
EXIT_BACKEND_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog-search", description="Query the music catalog search engine")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run an advanced search")
    search.add_argument("q", help="Free-text query")
    search.add_argument("--type", dest="item_type", choices=[t.value for t in ItemType], default=None)
    search.add_argument("--artist")
    search.add_argument("--album")
    search.add_argument("--isrc")
    search.add_argument("--upc")
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--offset", type=int, default=0)

    get = sub.add_parser("get", help="Look up one entity by id")
    get.add_argument("item_type", choices=[t.value for t in ItemType])
    get.add_argument("id")

    sub.add_parser("ensure-index", help="Create the index if missing and report its size")
    return parser


def _search_query(args: argparse.Namespace, settings: Settings) -> SearchQuery:
    limit = args.limit if args.limit is not None else settings.DEFAULT_SEARCH_LIMIT
    return SearchQuery(
        q=args.q,
        type=args.item_type,
        artist=args.artist,
        album=args.album,
        isrc=args.isrc,
        upc=args.upc,
        limit=limit,
        offset=args.offset,
    )


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a parsed command; returns the process exit code."""
    backend = build_index_backend(settings)
    try:
        if args.command == "ensure-index":
            count = await prepare_index(backend)
            _emit({"index": settings.SEARCH_INDEX_NAME, "backend": backend.name, "documents": count})
            return EXIT_OK

        db_engine = create_catalog_engine(settings.CATALOG_DATABASE_URL)
        try:
            engine = build_search_engine(db_engine, settings=settings, backend=backend)
            if args.command == "search":
                query = _search_query(args, settings)
                result = await engine.search(query)
                _emit(SearchResponse.from_result(result, query).to_wire())
                return EXIT_OK

            entity = await engine.get_by_id(ItemType(args.item_type), args.id)
            if entity is None:
                _emit({"error": "not found", "type": args.item_type, "id": args.id})
                return EXIT_NOT_FOUND
            _emit(entity.to_wire())
            return EXIT_OK
        finally:
            await db_engine.dispose()
    finally:
        await backend.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point with CLI argument parsing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    # stdout carries the JSON result
    configure_logging(settings, stream=sys.stderr)
    logger.info(
        "command_started",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        command=args.command,
        backend=settings.SEARCH_BACKEND,
    )

    try:
        if args.command == "get":
            validate_catalog_id(args.id)
        if args.command == "search":
            _search_query(args, settings)
    except (InvalidIdentifierError, ValidationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        return asyncio.run(run(args, settings))
    except CatalogSearchError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BACKEND_ERROR


if __name__ == "__main__":
    sys.exit(main())
