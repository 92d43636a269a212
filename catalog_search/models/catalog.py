"""
Catalog tables (read-only from the search engine's point of view)

Songs and albums link to artists (and songs to albums) through association
tables; a row whose associations were deleted still exists here, which is
what the consistency guard protects against.
"""

from catalog_search.core.database import Base
from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text

song_artists = Table(
    "song_artists",
    Base.metadata,
    Column("song_id", String(16), ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True),
    Column("artist_id", String(16), ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True),
)

song_albums = Table(
    "song_albums",
    Base.metadata,
    Column("song_id", String(16), ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True),
    Column("album_id", String(16), ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True),
)

artist_albums = Table(
    "artist_albums",
    Base.metadata,
    Column("artist_id", String(16), ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True),
    Column("album_id", String(16), ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True),
)


class CatalogSong(Base):
    """Song row"""

    __tablename__ = "songs"

    id = Column(String(16), primary_key=True)
    name = Column(Text, nullable=False)
    image = Column(Text, nullable=False, default="")
    duration = Column(Integer, nullable=False, default=0)  # seconds
    disc_number = Column(Integer, nullable=False, default=1)
    track_number = Column(Integer, nullable=False, default=1)
    isrc = Column(String(12), nullable=False, default="")
    date = Column(String(32), nullable=False, default="")

    def __repr__(self):
        return f"<CatalogSong(id={self.id}, name={self.name})>"


class CatalogArtist(Base):
    """Artist row"""

    __tablename__ = "artists"

    id = Column(String(16), primary_key=True)
    name = Column(Text, nullable=False)
    image = Column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<CatalogArtist(id={self.id}, name={self.name})>"


class CatalogAlbum(Base):
    """Album row"""

    __tablename__ = "albums"

    id = Column(String(16), primary_key=True)
    name = Column(Text, nullable=False)
    image = Column(Text, nullable=False, default="")
    date = Column(String(32), nullable=True)
    track_count = Column(Integer, nullable=False, default=0)
    upc = Column(String(14), nullable=False, default="")
    label = Column(Text, nullable=True)

    def __repr__(self):
        return f"<CatalogAlbum(id={self.id}, name={self.name})>"
