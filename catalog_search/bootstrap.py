"""
Composition root

Picks the index backend once from settings and wires it together with the
hydrator into a CatalogSearchEngine. Clients and engines passed in stay
owned by the caller.
"""

from typing import Optional

import httpx
from catalog_search.core.config import Settings, get_settings
from catalog_search.core.exceptions import IndexBackendError
from catalog_search.core.logging import get_logger
from catalog_search.services.elasticsearch_backend import ElasticsearchBackend
from catalog_search.services.hydrator import CatalogHydrator
from catalog_search.services.index_backend import IndexBackend
from catalog_search.services.manticore_backend import ManticoreBackend
from catalog_search.services.query_builder import QueryBuilder
from catalog_search.services.search_engine import CatalogSearchEngine
from sqlalchemy.ext.asyncio import AsyncEngine

logger = get_logger(__name__)


def build_index_backend(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> IndexBackend:
    """Instantiate the configured index backend."""
    settings = settings or get_settings()

    if settings.SEARCH_BACKEND == "elasticsearch":
        return ElasticsearchBackend(
            base_url=settings.ELASTICSEARCH_URL,
            index_name=settings.SEARCH_INDEX_NAME,
            client=client,
            timeout=settings.SEARCH_HTTP_TIMEOUT_SEC,
        )
    if settings.SEARCH_BACKEND == "manticore":
        return ManticoreBackend(
            base_url=settings.MANTICORE_URL,
            index_name=settings.SEARCH_INDEX_NAME,
            client=client,
            timeout=settings.SEARCH_HTTP_TIMEOUT_SEC,
        )
    raise ValueError(f"Unknown search backend: {settings.SEARCH_BACKEND}")


def build_search_engine(
    engine: AsyncEngine,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
    backend: Optional[IndexBackend] = None,
) -> CatalogSearchEngine:
    """Wire a search engine around an externally managed database engine."""
    backend = backend or build_index_backend(settings, client=client)
    return CatalogSearchEngine(
        backend=backend,
        hydrator=CatalogHydrator(engine),
        query_builder=QueryBuilder(),
    )


async def prepare_index(backend: IndexBackend) -> Optional[int]:
    """
    Make sure the index exists and report how many documents it holds.

    Schema failures are logged and re-raised; a failing document count is
    only logged.

    Returns:
        Raw indexed document count, or None when it could not be read
    """
    try:
        await backend.ensure_schema()
    except IndexBackendError as e:
        logger.error("index_schema_failed", backend=backend.name, error=str(e))
        raise

    try:
        count = await backend.document_count()
    except IndexBackendError as e:
        logger.warning("index_ready_count_unavailable", backend=backend.name, error=str(e))
        return None

    logger.info("index_ready", backend=backend.name, indexed_documents=count)
    return count
