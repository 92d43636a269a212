"""
Search request and response schemas
"""

import re
from typing import List, Optional

from catalog_search.core.exceptions import InvalidIdentifierError
from catalog_search.schemas.catalog import ItemType, SearchResultItem
from pydantic import BaseModel, ConfigDict, Field

CATALOG_ID_PATTERN = re.compile(r"^[0-9a-z]{16}$")

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def is_valid_catalog_id(value: str) -> bool:
    """Return True when ``value`` is exactly 16 characters of [0-9a-z]."""
    return bool(CATALOG_ID_PATTERN.fullmatch(value or ""))


def validate_catalog_id(value: str) -> str:
    """Return ``value`` unchanged or raise InvalidIdentifierError."""
    if not is_valid_catalog_id(value):
        raise InvalidIdentifierError(value)
    return value


class SearchQuery(BaseModel):
    """Advanced search request"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    q: str
    item_type: Optional[ItemType] = Field(None, alias="type")
    artist: Optional[str] = None
    album: Optional[str] = None
    isrc: Optional[str] = None
    upc: Optional[str] = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    offset: int = Field(0, ge=0)


class AdvancedSearchResult(BaseModel):
    """Ranked, paginated search result.

    ``total`` is the index's count of documents matching the query
    expression. It is computed before hydration and filtering, so it can be
    larger than the number of items that survive them.
    """

    items: List[SearchResultItem] = Field(default_factory=list)
    total: int = 0


class SearchResponse(BaseModel):
    """Search response envelope"""

    data: List[SearchResultItem]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_result(cls, result: AdvancedSearchResult, query: SearchQuery) -> "SearchResponse":
        return cls(data=result.items, total=result.total, limit=query.limit, offset=query.offset)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
