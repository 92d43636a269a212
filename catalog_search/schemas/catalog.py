"""
Catalog entity schemas

Every entity carries an explicit ``type`` tag so a search result item is a
discriminated union in memory and on the wire; consumers never have to guess
the variant from which fields happen to be present.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ItemType(str, Enum):
    """Kinds of documents held in the search index."""

    SONG = "song"
    ARTIST = "artist"
    ALBUM = "album"


class _CatalogEntity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def item_type(self) -> ItemType:
        return ItemType(self.type)

    def to_wire(self) -> dict:
        """Serialize using the public field names."""
        return self.model_dump(by_alias=True)


class Song(_CatalogEntity):
    """Song with its artist and album associations flattened to display strings"""

    type: Literal["song"] = "song"
    id: str
    name: str
    artist: str  # comma-joined, deduplicated artist names
    album: str  # comma-joined, deduplicated album names
    image: str = Field("", alias="cover")
    disc_number: int = 1
    track_number: int = 1
    duration: int = 0  # seconds
    isrc: str = ""
    date: str = ""


class Artist(_CatalogEntity):
    """Artist"""

    type: Literal["artist"] = "artist"
    id: str
    name: str
    image: str = Field("", alias="cover")


class Album(_CatalogEntity):
    """Album with its artists flattened to a display string"""

    type: Literal["album"] = "album"
    id: str
    name: str
    artist: str = Field(..., alias="artist_name")
    image: str = Field("", alias="artwork_url")
    release_date: str = ""
    track_count: int = 0
    upc: str = ""
    label: Optional[str] = Field(None, alias="record_label")


CatalogEntity = Union[Song, Artist, Album]

SearchResultItem = Annotated[Union[Song, Artist, Album], Field(discriminator="type")]
