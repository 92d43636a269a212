"""Request, response and entity schemas"""

from catalog_search.schemas.catalog import Album, Artist, CatalogEntity, ItemType, SearchResultItem, Song
from catalog_search.schemas.search import (
    AdvancedSearchResult,
    SearchQuery,
    SearchResponse,
    is_valid_catalog_id,
    validate_catalog_id,
)

__all__ = [
    "AdvancedSearchResult",
    "Album",
    "Artist",
    "CatalogEntity",
    "ItemType",
    "SearchQuery",
    "SearchResponse",
    "SearchResultItem",
    "Song",
    "is_valid_catalog_id",
    "validate_catalog_id",
]
