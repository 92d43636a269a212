"""
Catalog Search Engine

Resolves a search request against the index and the relational catalog:

    query -> QueryBuilder -> IndexBackend.search_and_count
          -> CatalogHydrator.fetch_batch -> consistency guard
          -> PostFilter -> AdvancedSearchResult{items, total}

``total`` is the index's relevance-query count, taken before hydration and
filtering. It is an upper bound on ``len(items)`` and does not shrink when
records are dropped, which avoids a filtered full count against the
relational store.

Every call is an independent request; the engine holds no mutable state and
may be shared across concurrent tasks.
"""

import time
from typing import Optional

from catalog_search.core.logging import get_logger
from catalog_search.schemas.catalog import Album, Artist, CatalogEntity, ItemType, Song
from catalog_search.schemas.search import AdvancedSearchResult, SearchQuery
from catalog_search.services.consistency_guard import apply_guard, is_complete
from catalog_search.services.hydrator import CatalogHydrator
from catalog_search.services.index_backend import IndexBackend
from catalog_search.services.post_filter import PostFilter
from catalog_search.services.query_builder import QueryBuilder

logger = get_logger(__name__)


class CatalogSearchEngine:
    """Search and point lookups over the catalog."""

    def __init__(
        self,
        backend: IndexBackend,
        hydrator: CatalogHydrator,
        query_builder: Optional[QueryBuilder] = None,
    ):
        self.backend = backend
        self.hydrator = hydrator
        self.query_builder = query_builder or QueryBuilder()

    async def search(self, query: SearchQuery) -> AdvancedSearchResult:
        """
        Run an advanced search.

        Args:
            query: Validated search request

        Returns:
            AdvancedSearchResult with items in rank order and the index total

        Raises:
            IndexBackendError: index unreachable or malformed response
            RelationalStoreError: hydration query failed
        """
        started = time.perf_counter()
        expr = self.query_builder.from_query(query)

        hits, total = await self.backend.search_and_count(expr)
        # a stale index may hold several documents for one id; first rank wins
        ranked_ids = list(dict.fromkeys(hits.ids))
        hydrated = await self.hydrator.fetch_batch(expr.item_type, ranked_ids)
        guarded = apply_guard(hydrated)

        ranked = [guarded[doc_id] for doc_id in ranked_ids if doc_id in guarded]
        items = PostFilter.from_query(query).apply(ranked)[: expr.limit]

        logger.info(
            "search_complete",
            backend=self.backend.name,
            item_type=expr.item_type.value,
            limit=expr.limit,
            offset=expr.offset,
            hits=len(hits.ids),
            hydrated=len(hydrated),
            returned=len(items),
            total=total,
            index_took_ms=hits.took_ms,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return AdvancedSearchResult(items=items, total=total)

    async def get_by_id(self, item_type: ItemType, entity_id: str) -> Optional[CatalogEntity]:
        """
        Look up one entity by id.

        The index document decides the entity's type; a missing document or
        one of a different type yields None, as does a catalog row that is
        missing or fails the consistency guard.
        """
        item_type = ItemType(item_type)
        document = await self.backend.point_get(entity_id)
        if document is None:
            logger.debug("point_get_missing", item_type=item_type.value, id=entity_id)
            return None
        if document.item_type != item_type:
            logger.debug(
                "point_get_type_mismatch",
                id=entity_id,
                expected=item_type.value,
                actual=document.item_type.value,
            )
            return None

        entity = await self.hydrator.fetch_one(item_type, entity_id)
        if entity is None or not is_complete(entity):
            return None
        return entity

    async def get_song(self, song_id: str) -> Optional[Song]:
        return await self.get_by_id(ItemType.SONG, song_id)

    async def get_artist(self, artist_id: str) -> Optional[Artist]:
        return await self.get_by_id(ItemType.ARTIST, artist_id)

    async def get_album(self, album_id: str) -> Optional[Album]:
        return await self.get_by_id(ItemType.ALBUM, album_id)
