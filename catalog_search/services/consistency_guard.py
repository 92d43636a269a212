"""
Consistency Guard

Drops hydrated records whose required associations came back empty. An
empty aggregate after the join means the association rows were deleted
after the index was populated; such a record is treated as absent rather
than rendered with holes in it.

- Song: needs a non-empty artist and album
- Album: needs a non-empty artist
- Artist: no required association
"""

from typing import Dict, Mapping, TypeVar

from catalog_search.core.logging import get_logger
from catalog_search.schemas.catalog import Album, CatalogEntity, Song

logger = get_logger(__name__)

E = TypeVar("E", bound=CatalogEntity)


def is_complete(entity: CatalogEntity) -> bool:
    """Return True when the entity has every association it requires."""
    if isinstance(entity, Song):
        return bool(entity.artist) and bool(entity.album)
    if isinstance(entity, Album):
        return bool(entity.artist)
    return True


def apply_guard(entities: Mapping[str, E]) -> Dict[str, E]:
    """Return the subset of ``entities`` that passes the guard."""
    kept: Dict[str, E] = {}
    dropped = []
    for entity_id, entity in entities.items():
        if is_complete(entity):
            kept[entity_id] = entity
        else:
            dropped.append(entity_id)

    if dropped:
        logger.info("orphaned_records_dropped", count=len(dropped), ids=dropped)
    return kept
