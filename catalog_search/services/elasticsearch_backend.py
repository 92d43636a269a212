"""
Elasticsearch index backend (full-projection variant)

Documents store the complete display projection, so a page of hits can be
rendered without a second lookup. The total comes from the same request
(``track_total_hits``), i.e. it is the relevance-query count.

Talks to the REST API directly over httpx; the client may be injected and is
then never closed here.
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx
from catalog_search.core.exceptions import IndexBackendError
from catalog_search.core.logging import get_logger
from catalog_search.services.index_backend import (
    EDGE_NGRAM_MAX,
    EDGE_NGRAM_MIN,
    IndexBackend,
    IndexDocument,
    IndexHits,
    parse_document,
)
from catalog_search.services.query_builder import NAME_FIELD, QueryExpression

logger = get_logger(__name__)

SOURCE_FIELDS = ["doc_id", "name", "artist_name", "album_name", "item_type", "duration", "date"]

# Boost applied to a whole-name match on the normalized keyword sub-field
EXACT_NAME_BOOST = 10

# Deepest from+size a search may reach; pages past it come back empty
MAX_RESULT_WINDOW = 10000


def build_index_body(
    number_of_shards: int = 3,
    number_of_replicas: int = 0,
    max_result_window: int = MAX_RESULT_WINDOW,
) -> Dict[str, Any]:
    """Index settings and mappings for the music index."""
    text_field = {
        "type": "text",
        "analyzer": "music_analyzer",
        "search_analyzer": "music_search_analyzer",
    }
    return {
        "settings": {
            "number_of_shards": number_of_shards,
            "number_of_replicas": number_of_replicas,
            "max_result_window": max_result_window,
            "analysis": {
                "filter": {
                    "edge_ngram_filter": {
                        "type": "edge_ngram",
                        "min_gram": EDGE_NGRAM_MIN,
                        "max_gram": EDGE_NGRAM_MAX,
                    }
                },
                "analyzer": {
                    "music_analyzer": {
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding", "edge_ngram_filter"],
                    },
                    "music_search_analyzer": {
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding"],
                    },
                },
                "normalizer": {
                    "folding": {"type": "custom", "filter": ["lowercase", "asciifolding"]},
                },
            },
        },
        "mappings": {
            "properties": {
                "doc_id": {"type": "keyword"},
                "name": {**text_field, "fields": {"exact": {"type": "keyword", "normalizer": "folding"}}},
                "artist_name": dict(text_field),
                "album_name": dict(text_field),
                "item_type": {"type": "keyword"},
                "duration": {"type": "integer", "index": False},
                "date": {"type": "keyword", "index": False},
            }
        },
    }


def build_query(expr: QueryExpression) -> Dict[str, Any]:
    """Render a query expression as an Elasticsearch bool query."""
    must: List[Dict[str, Any]] = []
    should: List[Dict[str, Any]] = []

    if expr.text:
        must.append(
            {
                "multi_match": {
                    "query": expr.text,
                    "fields": [f"{name}^{boost}" for name, boost in expr.boosts.items()],
                    "type": "best_fields",
                    "fuzziness": "AUTO",
                    "prefix_length": expr.fuzzy_prefix_length,
                }
            }
        )
        should.append({"match": {f"{NAME_FIELD}.exact": {"query": expr.text, "boost": EXACT_NAME_BOOST}}})

    for field_name, value in expr.field_clauses:
        must.append(
            {
                "match": {
                    field_name: {
                        "query": value,
                        "operator": "and",
                        "fuzziness": "AUTO",
                        "prefix_length": expr.fuzzy_prefix_length,
                    }
                }
            }
        )

    if not must:
        must.append({"match_all": {}})

    query: Dict[str, Any] = {"must": must, "filter": [{"term": {"item_type": expr.item_type.value}}]}
    if should:
        query["should"] = should
    return {"bool": query}


class ElasticsearchBackend(IndexBackend):
    """Search index backed by Elasticsearch; hits carry the full projection."""

    name = "elasticsearch"

    def __init__(
        self,
        base_url: str = "http://localhost:9200",
        index_name: str = "music",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        number_of_shards: int = 3,
        number_of_replicas: int = 0,
        max_result_window: int = MAX_RESULT_WINDOW,
    ):
        self.base_url = base_url.rstrip("/")
        self.index_name = index_name
        self.max_result_window = max_result_window
        self.number_of_shards = number_of_shards
        self.number_of_replicas = number_of_replicas
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/{self.index_name}{path}"
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as e:
            raise IndexBackendError(f"{method} {url} failed: {e}", self.name) from e

        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise IndexBackendError(
                f"{method} {url} rejected: {response.text[:200]}",
                self.name,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise IndexBackendError(f"{method} {url} returned malformed JSON", self.name) from e
        if not isinstance(body, dict):
            raise IndexBackendError(f"{method} {url} returned unexpected payload", self.name)
        return body

    async def _search(self, expr: QueryExpression) -> Tuple[IndexHits, int]:
        size = min(expr.limit, max(0, self.max_result_window - expr.offset))
        if size == 0:
            # still ask for the tracked total, just no hits
            logger.debug(
                "result_window_exceeded",
                backend=self.name,
                offset=expr.offset,
                window=self.max_result_window,
            )
        body = {
            "query": build_query(expr),
            "from": expr.offset if size else 0,
            "size": size,
            "track_total_hits": True,
            "_source": SOURCE_FIELDS,
        }
        response = await self._request("POST", "/_search", json=body)

        try:
            raw_hits = response["hits"]["hits"]
            total = int(response["hits"]["total"]["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise IndexBackendError("search response is missing hits", self.name) from e
        if not isinstance(raw_hits, list):
            raise IndexBackendError("search response hits is not a list", self.name)

        documents: List[IndexDocument] = []
        for hit in raw_hits:
            if not isinstance(hit, dict):
                raise IndexBackendError("search response hit is not an object", self.name)
            raw_source = hit.get("_source") or {}
            if not isinstance(raw_source, dict):
                raise IndexBackendError("search response _source is not an object", self.name)
            source = dict(raw_source)
            source.setdefault("doc_id", hit.get("_id"))
            document = parse_document(source, self.name)
            if document is None:
                continue
            if document.item_type != expr.item_type:
                logger.warning(
                    "index_document_type_mismatch",
                    backend=self.name,
                    doc_id=document.doc_id,
                    expected=expr.item_type.value,
                    actual=document.item_type.value,
                )
                continue
            documents.append(document)

        hits = IndexHits(
            ids=[d.doc_id for d in documents],
            documents=documents,
            took_ms=int(response.get("took") or 0),
        )
        return hits, total

    async def search(self, expr: QueryExpression) -> IndexHits:
        hits, _ = await self._search(expr)
        return hits

    async def search_and_count(self, expr: QueryExpression) -> Tuple[IndexHits, int]:
        # hits.total of a tracked search is the relevance-query count
        return await self._search(expr)

    async def count(self, expr: QueryExpression) -> int:
        response = await self._request("POST", "/_count", json={"query": build_query(expr)})
        try:
            return int(response["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise IndexBackendError("count response is missing count", self.name) from e

    async def point_get(self, doc_id: str) -> Optional[IndexDocument]:
        response = await self._request("GET", f"/_doc/{doc_id}", allow_not_found=True)
        if response is None or not response.get("found", False):
            return None
        raw_source = response.get("_source") or {}
        if not isinstance(raw_source, dict):
            raise IndexBackendError("document _source is not an object", self.name)
        source = dict(raw_source)
        source.setdefault("doc_id", response.get("_id", doc_id))
        return parse_document(source, self.name)

    async def document_count(self) -> int:
        response = await self._request("GET", "/_count")
        try:
            return int(response["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise IndexBackendError("count response is missing count", self.name) from e

    async def ensure_schema(self) -> None:
        url = f"{self.base_url}/{self.index_name}"
        try:
            exists = await self._client.head(url)
        except httpx.HTTPError as e:
            raise IndexBackendError(f"HEAD {url} failed: {e}", self.name) from e

        if exists.status_code == 200:
            logger.info("index_exists", backend=self.name, index=self.index_name)
            return
        if exists.status_code != 404:
            raise IndexBackendError(f"HEAD {url} rejected", self.name, status_code=exists.status_code)

        body = build_index_body(self.number_of_shards, self.number_of_replicas, self.max_result_window)
        try:
            await self._request("PUT", "", json=body)
        except IndexBackendError as e:
            # another process created it between HEAD and PUT
            if e.status_code == 400 and "resource_already_exists_exception" in str(e):
                logger.info("index_exists", backend=self.name, index=self.index_name)
                return
            raise
        logger.info("index_created", backend=self.name, index=self.index_name)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
