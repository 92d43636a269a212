"""
Batch Hydrator

Resolves index ids into full entities from the relational catalog. A call
issues exactly one ``WHERE id IN (...)`` query for its entity type, however
many ids it is given, and none at all for an empty id set.

Song and album associations are aggregated server side with
``string_agg(DISTINCT ...)``; the order of the joined names is whatever the
aggregate produces. Empty aggregates come back as empty strings and are
left for the consistency guard to judge.
"""

from typing import Any, Callable, Collection, Dict, Mapping, Optional

from catalog_search.core.exceptions import RelationalStoreError
from catalog_search.core.logging import get_logger
from catalog_search.models.catalog import (
    CatalogAlbum,
    CatalogArtist,
    CatalogSong,
    artist_albums,
    song_albums,
    song_artists,
)
from catalog_search.schemas.catalog import Album, Artist, CatalogEntity, ItemType, Song
from sqlalchemy import Select, distinct, func, literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import aliased

logger = get_logger(__name__)

NAME_SEPARATOR = ", "


def _joined_names(column) -> Any:
    return func.string_agg(distinct(column), literal(NAME_SEPARATOR))


def song_statement() -> Select:
    """Songs with their artist and album names aggregated per song."""
    song_artist = aliased(CatalogArtist)
    song_album = aliased(CatalogAlbum)
    return (
        select(
            CatalogSong.id,
            CatalogSong.name,
            CatalogSong.image,
            CatalogSong.duration,
            CatalogSong.disc_number,
            CatalogSong.track_number,
            CatalogSong.isrc,
            CatalogSong.date,
            _joined_names(song_artist.name).label("artist_names"),
            _joined_names(song_album.name).label("album_names"),
        )
        .select_from(CatalogSong)
        .outerjoin(song_artists, song_artists.c.song_id == CatalogSong.id)
        .outerjoin(song_artist, song_artist.id == song_artists.c.artist_id)
        .outerjoin(song_albums, song_albums.c.song_id == CatalogSong.id)
        .outerjoin(song_album, song_album.id == song_albums.c.album_id)
        .group_by(
            CatalogSong.id,
            CatalogSong.name,
            CatalogSong.image,
            CatalogSong.duration,
            CatalogSong.disc_number,
            CatalogSong.track_number,
            CatalogSong.isrc,
            CatalogSong.date,
        )
    )


def artist_statement() -> Select:
    return select(CatalogArtist.id, CatalogArtist.name, CatalogArtist.image)


def album_statement() -> Select:
    """Albums with their artist names aggregated per album."""
    return (
        select(
            CatalogAlbum.id,
            CatalogAlbum.name,
            CatalogAlbum.image,
            CatalogAlbum.date,
            CatalogAlbum.track_count,
            CatalogAlbum.upc,
            CatalogAlbum.label,
            _joined_names(CatalogArtist.name).label("artist_names"),
        )
        .select_from(CatalogAlbum)
        .outerjoin(artist_albums, artist_albums.c.album_id == CatalogAlbum.id)
        .outerjoin(CatalogArtist, CatalogArtist.id == artist_albums.c.artist_id)
        .group_by(
            CatalogAlbum.id,
            CatalogAlbum.name,
            CatalogAlbum.image,
            CatalogAlbum.date,
            CatalogAlbum.track_count,
            CatalogAlbum.upc,
            CatalogAlbum.label,
        )
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def song_from_row(row: Mapping[str, Any]) -> Song:
    return Song(
        id=row["id"],
        name=_text(row["name"]),
        artist=_text(row["artist_names"]),
        album=_text(row["album_names"]),
        image=_text(row["image"]),
        disc_number=int(row["disc_number"] or 0),
        track_number=int(row["track_number"] or 0),
        duration=int(row["duration"] or 0),
        isrc=_text(row["isrc"]),
        date=_text(row["date"]),
    )


def artist_from_row(row: Mapping[str, Any]) -> Artist:
    return Artist(id=row["id"], name=_text(row["name"]), image=_text(row["image"]))


def album_from_row(row: Mapping[str, Any]) -> Album:
    return Album(
        id=row["id"],
        name=_text(row["name"]),
        artist=_text(row["artist_names"]),
        image=_text(row["image"]),
        release_date=_text(row["date"]),
        track_count=int(row["track_count"] or 0),
        upc=_text(row["upc"]),
        label=row["label"],
    )


class CatalogHydrator:
    """
    Batched id -> entity resolution against the relational catalog.

    The engine is injected and shared; connections are borrowed per call.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._plans: Dict[ItemType, tuple] = {
            ItemType.SONG: (song_statement(), CatalogSong.id, song_from_row),
            ItemType.ARTIST: (artist_statement(), CatalogArtist.id, artist_from_row),
            ItemType.ALBUM: (album_statement(), CatalogAlbum.id, album_from_row),
        }

    async def _fetch(
        self,
        item_type: ItemType,
        ids: Collection[str],
    ) -> Dict[str, CatalogEntity]:
        statement, id_column, from_row = self._plans[item_type]
        unique_ids = sorted(set(ids))
        stmt = statement.where(id_column.in_(unique_ids))

        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                rows = result.mappings().all()
        except SQLAlchemyError as e:
            logger.error(
                "hydration_query_failed",
                item_type=item_type.value,
                id_count=len(unique_ids),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RelationalStoreError(f"{item_type.value} lookup failed: {e}") from e

        entities = _build_entities(rows, from_row, item_type)
        logger.debug(
            "hydration_complete",
            item_type=item_type.value,
            requested=len(unique_ids),
            found=len(entities),
        )
        return entities

    async def fetch_batch(self, item_type: ItemType, ids: Collection[str]) -> Dict[str, CatalogEntity]:
        """
        Resolve ``ids`` of one entity type in a single query.

        Ids missing from the catalog are simply absent from the result.
        """
        if not ids:
            return {}
        return await self._fetch(ItemType(item_type), ids)

    async def fetch_songs(self, ids: Collection[str]) -> Dict[str, Song]:
        return await self.fetch_batch(ItemType.SONG, ids)

    async def fetch_artists(self, ids: Collection[str]) -> Dict[str, Artist]:
        return await self.fetch_batch(ItemType.ARTIST, ids)

    async def fetch_albums(self, ids: Collection[str]) -> Dict[str, Album]:
        return await self.fetch_batch(ItemType.ALBUM, ids)

    async def fetch_one(self, item_type: ItemType, entity_id: str) -> Optional[CatalogEntity]:
        """Point lookup; None when the catalog has no such row."""
        entities = await self.fetch_batch(item_type, [entity_id])
        return entities.get(entity_id)


def _build_entities(
    rows,
    from_row: Callable[[Mapping[str, Any]], CatalogEntity],
    item_type: ItemType,
) -> Dict[str, CatalogEntity]:
    entities: Dict[str, CatalogEntity] = {}
    for row in rows:
        try:
            entity = from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            raise RelationalStoreError(f"malformed {item_type.value} row: {e}") from e
        entities[entity.id] = entity
    return entities
