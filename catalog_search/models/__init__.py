"""Database models"""

from catalog_search.models.catalog import (
    CatalogAlbum,
    CatalogArtist,
    CatalogSong,
    artist_albums,
    song_albums,
    song_artists,
)

__all__ = [
    "CatalogAlbum",
    "CatalogArtist",
    "CatalogSong",
    "artist_albums",
    "song_albums",
    "song_artists",
]
