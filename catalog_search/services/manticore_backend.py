"""
Manticore Search index backend (id-only variant)

Ranked queries return document ids only; the total is a separate
``COUNT(*)`` over the same MATCH expression, issued concurrently with the
ranked query so a search costs one index round trip of latency.

Statements go through the SQL-over-HTTP endpoint: ``mode=json`` for reads,
``mode=raw`` for DDL.
"""

import unicodedata
from typing import Any, Dict, List, Optional

import httpx
from catalog_search.core.exceptions import IndexBackendError
from catalog_search.core.logging import get_logger
from catalog_search.services.index_backend import EDGE_NGRAM_MIN, IndexBackend, IndexDocument, IndexHits, parse_document
from catalog_search.services.query_builder import QueryExpression

logger = get_logger(__name__)

# Manticore refuses LIMIT windows past max_matches (default 1000)
DEFAULT_MAX_MATCHES = 1000

POINT_GET_FIELDS = "doc_id, item_type, name, artist_name, album_name, duration, date"

# Extended-syntax operators left over after QueryBuilder sanitizing
MATCH_OPERATORS = "()|/-~=<>*$&?%[]{}:,;"
_OPERATOR_TABLE = str.maketrans({ch: " " for ch in MATCH_OPERATORS})


def quote_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted SQL string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _folding_charset_table() -> str:
    """charset_table mapping accented Latin letters onto their ASCII base letter."""
    mappings = []
    for codepoint in range(0xC0, 0x250):
        base = unicodedata.normalize("NFKD", chr(codepoint))[0].lower()
        if base.isascii() and base.isalpha():
            mappings.append(f"U+{codepoint:04X}->{base}")
    return ", ".join(["0..9", "english", "_"] + mappings)


def build_create_table(index_name: str) -> str:
    # fuzzy matching needs an infix index, so partial matches are substrings
    return (
        f"CREATE TABLE IF NOT EXISTS {index_name} ("
        "doc_id string, "
        "name text, "
        "artist_name text, "
        "album_name text, "
        "item_type string, "
        "duration int, "
        "date string"
        f") min_infix_len='{EDGE_NGRAM_MIN}' expand_keywords='1' morphology='none' "
        f"charset_table='{_folding_charset_table()}'"
    )


def plain_terms(value: str) -> str:
    """Replace extended-syntax operators with spaces and collapse whitespace."""
    return " ".join(value.translate(_OPERATOR_TABLE).split())


def build_match(expr: QueryExpression) -> str:
    """Render the full-text part of ``expr`` in Manticore extended syntax."""
    parts = []
    text = plain_terms(expr.text)
    if text:
        parts.append(text)
    for field_name, value in expr.field_clauses:
        value = plain_terms(value)
        if value:
            parts.append(f"@{field_name} {value}")
    return " ".join(parts)


def build_where(expr: QueryExpression) -> str:
    return f"MATCH('{quote_literal(build_match(expr))}') AND item_type='{quote_literal(expr.item_type.value)}'"


def wants_fuzzy(expr: QueryExpression) -> bool:
    """Typo tolerance only kicks in for terms longer than the exact prefix."""
    terms = plain_terms(expr.text).split() + [
        term for _, value in expr.field_clauses for term in plain_terms(value).split()
    ]
    return any(len(term) > expr.fuzzy_prefix_length for term in terms)


def build_search_sql(index_name: str, expr: QueryExpression) -> str:
    weights = ", ".join(f"{name}={boost}" for name, boost in expr.boosts.items())
    options = ["ranker=proximity_bm25", f"field_weights=({weights})"]
    window = expr.offset + expr.limit
    if window > DEFAULT_MAX_MATCHES:
        options.append(f"max_matches={window}")
    if wants_fuzzy(expr):
        options.append("fuzzy=1")
    return (
        f"SELECT doc_id FROM {index_name} WHERE {build_where(expr)} "
        f"ORDER BY WEIGHT() DESC LIMIT {expr.offset}, {expr.limit} "
        f"OPTION {', '.join(options)}"
    )


def build_count_sql(index_name: str, expr: QueryExpression) -> str:
    sql = f"SELECT COUNT(*) AS cnt FROM {index_name} WHERE {build_where(expr)}"
    if wants_fuzzy(expr):
        sql += " OPTION fuzzy=1"
    return sql


class ManticoreBackend(IndexBackend):
    """Search index backed by Manticore; hits carry ids only."""

    name = "manticore"

    def __init__(
        self,
        base_url: str = "http://localhost:9308",
        index_name: str = "music",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.index_name = index_name
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _sql(self, query: str, mode: str = "json") -> Any:
        url = f"{self.base_url}/sql"
        try:
            response = await self._client.post(url, data={"query": query, "mode": mode})
        except httpx.HTTPError as e:
            raise IndexBackendError(f"POST {url} failed: {e}", self.name) from e

        if response.status_code >= 400:
            raise IndexBackendError(
                f"statement rejected: {response.text[:200]}",
                self.name,
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise IndexBackendError("response is not JSON", self.name) from e

        if isinstance(body, dict) and body.get("error"):
            raise IndexBackendError(f"statement failed: {body['error']}", self.name)
        return body

    async def _select(self, query: str) -> Dict[str, Any]:
        body = await self._sql(query)
        if not isinstance(body, dict):
            raise IndexBackendError("select response is not an object", self.name)
        return body

    def _sources(self, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            hits = body["hits"]["hits"]
        except (KeyError, TypeError) as e:
            raise IndexBackendError("select response is missing hits", self.name) from e
        if not isinstance(hits, list):
            raise IndexBackendError("select response hits is not a list", self.name)
        sources = []
        for hit in hits:
            source = (hit.get("_source") or {}) if isinstance(hit, dict) else None
            if not isinstance(source, dict):
                raise IndexBackendError("select response hit has no _source object", self.name)
            sources.append(source)
        return sources

    def _count_from(self, body: Dict[str, Any]) -> int:
        sources = self._sources(body)
        if not sources:
            return 0
        try:
            return int(sources[0]["cnt"])
        except (KeyError, TypeError, ValueError) as e:
            raise IndexBackendError("count response is missing cnt", self.name) from e

    async def search(self, expr: QueryExpression) -> IndexHits:
        body = await self._select(build_search_sql(self.index_name, expr))
        ids = [str(source["doc_id"]) for source in self._sources(body) if source.get("doc_id")]
        return IndexHits(ids=ids, took_ms=int(body.get("took") or 0))

    async def count(self, expr: QueryExpression) -> int:
        body = await self._select(build_count_sql(self.index_name, expr))
        return self._count_from(body)

    async def point_get(self, doc_id: str) -> Optional[IndexDocument]:
        body = await self._select(
            f"SELECT {POINT_GET_FIELDS} FROM {self.index_name} WHERE doc_id='{quote_literal(doc_id)}' LIMIT 1"
        )
        sources = self._sources(body)
        if not sources:
            return None
        return parse_document(sources[0], self.name)

    async def document_count(self) -> int:
        body = await self._select(f"SELECT COUNT(*) AS cnt FROM {self.index_name}")
        return self._count_from(body)

    async def ensure_schema(self) -> None:
        body = await self._sql(build_create_table(self.index_name), mode="raw")
        # raw mode answers with a list of result sets
        results = body if isinstance(body, list) else [body]
        for result in results:
            if isinstance(result, dict) and result.get("error"):
                raise IndexBackendError(f"create table failed: {result['error']}", self.name)
        logger.info("index_ensured", backend=self.name, index=self.index_name)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
