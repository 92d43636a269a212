"""
Search services

This module provides:
- Query building and sanitization
- Index backends (Elasticsearch, Manticore)
- Batched hydration from the relational catalog
- Consistency guard and post-filtering
- The search engine that composes them
"""

from catalog_search.services.consistency_guard import apply_guard, is_complete
from catalog_search.services.elasticsearch_backend import ElasticsearchBackend
from catalog_search.services.hydrator import CatalogHydrator
from catalog_search.services.index_backend import IndexBackend, IndexDocument, IndexHits
from catalog_search.services.manticore_backend import ManticoreBackend
from catalog_search.services.post_filter import PostFilter
from catalog_search.services.query_builder import QueryBuilder, QueryExpression
from catalog_search.services.search_engine import CatalogSearchEngine

__all__ = [
    "CatalogHydrator",
    "CatalogSearchEngine",
    "ElasticsearchBackend",
    "IndexBackend",
    "IndexDocument",
    "IndexHits",
    "ManticoreBackend",
    "PostFilter",
    "QueryBuilder",
    "QueryExpression",
    "apply_guard",
    "is_complete",
]
