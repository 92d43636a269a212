"""
Index Backend capability

One abstract interface over the full-text index, with two implementations
selected once at construction time:

- ElasticsearchBackend: hits embed the full display projection
- ManticoreBackend: hits carry ids only, counts are a second query

Both keep the same schema contract: lowercase + ASCII-folded edge n-grams
(2..20) on the text fields, name > artist > album boosts, and automatic
fuzziness with a two character exact prefix.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Mapping, Optional, Tuple, TypeVar

from catalog_search.core.logging import get_logger
from catalog_search.schemas.catalog import ItemType
from catalog_search.services.query_builder import QueryExpression

logger = get_logger(__name__)

T = TypeVar("T")

EDGE_NGRAM_MIN = 2
EDGE_NGRAM_MAX = 20


@dataclass(frozen=True)
class IndexDocument:
    """Denormalized projection written by the ingestion pipeline."""

    doc_id: str
    item_type: ItemType
    name: str = ""
    artist_name: str = ""
    album_name: str = ""
    duration: int = 0
    date: str = ""

    @classmethod
    def from_source(cls, source: Mapping[str, Any]) -> "IndexDocument":
        """
        Build a document from a raw index source mapping.

        Raises:
            ValueError: unknown item type or missing doc id
            TypeError: a field holds a value of the wrong JSON type
        """
        doc_id = source.get("doc_id")
        if not doc_id:
            raise ValueError("index document has no doc_id")
        return cls(
            doc_id=str(doc_id),
            item_type=ItemType(source.get("item_type")),
            name=source.get("name") or "",
            artist_name=source.get("artist_name") or "",
            album_name=source.get("album_name") or "",
            duration=int(source.get("duration") or 0),
            date=source.get("date") or "",
        )


@dataclass
class IndexHits:
    """Ranked page of hits for one query expression."""

    ids: List[str] = field(default_factory=list)
    documents: List[IndexDocument] = field(default_factory=list)  # empty for id-only backends
    took_ms: int = 0


def parse_document(source: Mapping[str, Any], backend: str) -> Optional[IndexDocument]:
    """Parse an index source, logging and skipping documents the engine does not understand."""
    try:
        return IndexDocument.from_source(source)
    except (TypeError, ValueError) as e:
        logger.warning(
            "index_document_skipped",
            backend=backend,
            doc_id=source.get("doc_id"),
            item_type=source.get("item_type"),
            reason=str(e),
        )
        return None


async def gather_all(*aws: Awaitable[T]) -> Tuple[T, ...]:
    """
    Run awaitables concurrently and wait for all of them.

    The first failure (or a cancellation of the caller) cancels the siblings
    still in flight before propagating.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return tuple(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class IndexBackend(ABC):
    """Full-text index holding a possibly stale projection of the catalog."""

    name: str = "index"

    @abstractmethod
    async def search(self, expr: QueryExpression) -> IndexHits:
        """Return the ranked page of hits for ``expr`` (its limit/offset)."""

    @abstractmethod
    async def count(self, expr: QueryExpression) -> int:
        """Count documents matching ``expr``, ignoring pagination."""

    @abstractmethod
    async def point_get(self, doc_id: str) -> Optional[IndexDocument]:
        """Fetch one document by id, None when absent."""

    @abstractmethod
    async def ensure_schema(self) -> None:
        """Create the index if it does not exist; no-op otherwise."""

    @abstractmethod
    async def document_count(self) -> int:
        """Raw number of indexed documents, regardless of any query."""

    async def search_and_count(self, expr: QueryExpression) -> Tuple[IndexHits, int]:
        """
        Ranked hits plus the relevance-query total for ``expr``.

        The ranked-ids query and the count query run concurrently; either
        failing fails the call.
        """
        hits, total = await gather_all(self.search(expr), self.count(expr))
        return hits, total

    async def aclose(self) -> None:
        """Release resources owned by the backend (never injected clients)."""
