"""
Post-Filter

Filters the index cannot express, applied to hydrated entities in ranked
order (never re-sorted). Every filter is optional and case-insensitive.

| filter | applies to                                 | match     |
|--------|--------------------------------------------|-----------|
| artist | song/album ``artist``, artist ``name``     | substring |
| album  | song ``album``                             | substring |
| isrc   | song ``isrc``                              | exact     |
| upc    | album ``upc``                              | exact     |

A filter that does not apply to an entity's type does not exclude it.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from catalog_search.schemas.catalog import Album, Artist, CatalogEntity, Song
from catalog_search.schemas.search import SearchQuery


def _fold(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().casefold()
    return value or None


@dataclass(frozen=True)
class PostFilter:
    """Secondary filters; values are stored case-folded."""

    artist: Optional[str] = None
    album: Optional[str] = None
    isrc: Optional[str] = None
    upc: Optional[str] = None

    @classmethod
    def create(
        cls,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        isrc: Optional[str] = None,
        upc: Optional[str] = None,
    ) -> "PostFilter":
        return cls(artist=_fold(artist), album=_fold(album), isrc=_fold(isrc), upc=_fold(upc))

    @classmethod
    def from_query(cls, query: SearchQuery) -> "PostFilter":
        return cls.create(artist=query.artist, album=query.album, isrc=query.isrc, upc=query.upc)

    @property
    def is_empty(self) -> bool:
        return not (self.artist or self.album or self.isrc or self.upc)

    def matches(self, entity: CatalogEntity) -> bool:
        if isinstance(entity, Song):
            if self.artist and self.artist not in entity.artist.casefold():
                return False
            if self.album and self.album not in entity.album.casefold():
                return False
            if self.isrc and self.isrc != entity.isrc.casefold():
                return False
            return True

        if isinstance(entity, Album):
            if self.artist and self.artist not in entity.artist.casefold():
                return False
            if self.upc and self.upc != entity.upc.casefold():
                return False
            return True

        if isinstance(entity, Artist):
            if self.artist and self.artist not in entity.name.casefold():
                return False
            return True

        return True

    def apply(self, entities: Iterable[CatalogEntity]) -> List[CatalogEntity]:
        """Keep matching entities, preserving their order."""
        if self.is_empty:
            return list(entities)
        return [entity for entity in entities if self.matches(entity)]
