"""
Query Builder

Turns free text plus optional filters into a backend-neutral query
expression. Characters with special meaning to the index query syntax are
replaced by spaces, never rejected. Artist and album filter text become
extra required match clauses on their fields; everything the index cannot
express (ISRC, UPC, substring semantics) is left to the post-filter.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from catalog_search.schemas.catalog import ItemType
from catalog_search.schemas.search import SearchQuery

DEFAULT_RESERVED_CHARACTERS = "'\"\\@!^"

# Field boosts, highest first
NAME_FIELD = "name"
ARTIST_FIELD = "artist_name"
ALBUM_FIELD = "album_name"
FIELD_BOOSTS: Dict[str, int] = {NAME_FIELD: 3, ARTIST_FIELD: 2, ALBUM_FIELD: 1}

FUZZY_PREFIX_LENGTH = 2


@dataclass(frozen=True)
class QueryExpression:
    """Sanitized, backend-neutral match expression plus pagination."""

    text: str
    item_type: ItemType = ItemType.SONG
    field_clauses: Tuple[Tuple[str, str], ...] = ()
    limit: int = 20
    offset: int = 0
    boosts: Dict[str, int] = field(default_factory=lambda: dict(FIELD_BOOSTS), compare=False, hash=False)
    fuzzy_prefix_length: int = FUZZY_PREFIX_LENGTH

    def clause_for(self, field_name: str) -> Optional[str]:
        for name, value in self.field_clauses:
            if name == field_name:
                return value
        return None


class QueryBuilder:
    """
    Builds QueryExpression objects from search requests.

    The sanitizer table is built once per instance from ``reserved_characters``.
    """

    def __init__(
        self,
        reserved_characters: Iterable[str] = DEFAULT_RESERVED_CHARACTERS,
        default_item_type: ItemType = ItemType.SONG,
        boosts: Optional[Dict[str, int]] = None,
        fuzzy_prefix_length: int = FUZZY_PREFIX_LENGTH,
    ):
        self.reserved_characters = frozenset(reserved_characters)
        self._translation = str.maketrans({ch: " " for ch in self.reserved_characters})
        self.default_item_type = default_item_type
        self.boosts = dict(boosts or FIELD_BOOSTS)
        self.fuzzy_prefix_length = fuzzy_prefix_length

    def sanitize(self, text: Optional[str]) -> str:
        """Replace reserved characters with spaces and collapse whitespace."""
        if not text:
            return ""
        return " ".join(text.translate(self._translation).split())

    def build(
        self,
        text: str,
        item_type: Optional[ItemType] = None,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> QueryExpression:
        """
        Build a query expression.

        Args:
            text: Free-text query
            item_type: Entity type to search; songs when omitted
            artist: Artist filter text, matched against the artist field
            album: Album filter text, matched against the album field
            limit: Page size
            offset: Number of ranked hits to skip

        Returns:
            QueryExpression
        """
        resolved_type = ItemType(item_type) if item_type else self.default_item_type

        clauses = []
        artist_text = self.sanitize(artist)
        if artist_text:
            # artist documents carry their own name only
            field_name = NAME_FIELD if resolved_type == ItemType.ARTIST else ARTIST_FIELD
            clauses.append((field_name, artist_text))
        album_text = self.sanitize(album)
        if album_text and resolved_type == ItemType.SONG:
            clauses.append((ALBUM_FIELD, album_text))

        return QueryExpression(
            text=self.sanitize(text),
            item_type=resolved_type,
            field_clauses=tuple(clauses),
            limit=limit,
            offset=offset,
            boosts=dict(self.boosts),
            fuzzy_prefix_length=self.fuzzy_prefix_length,
        )

    def from_query(self, query: SearchQuery) -> QueryExpression:
        return self.build(
            query.q,
            item_type=query.item_type,
            artist=query.artist,
            album=query.album,
            limit=query.limit,
            offset=query.offset,
        )
