"""
Unit tests for the shared index backend pieces
"""

import asyncio

import pytest
from catalog_search.core.exceptions import IndexBackendError
from catalog_search.schemas.catalog import ItemType
from catalog_search.services.index_backend import IndexDocument, gather_all, parse_document


class TestIndexDocument:
    """Parsing raw index sources"""

    def test_from_source(self):
        document = IndexDocument.from_source(
            {"doc_id": "aaaaaaaaaaaaaaa1", "item_type": "song", "name": "Yesterday", "duration": "125"}
        )

        assert document.item_type == ItemType.SONG
        assert document.duration == 125
        assert document.artist_name == ""

    def test_artist_document_has_only_a_name(self):
        document = IndexDocument.from_source({"doc_id": "bbbbbbbbbbbbbbb1", "item_type": "artist", "name": "Queen"})

        assert document.name == "Queen"
        assert document.artist_name == ""
        assert document.album_name == ""

    def test_unknown_item_type(self):
        with pytest.raises(ValueError):
            IndexDocument.from_source({"doc_id": "x", "item_type": "podcast"})

    def test_missing_doc_id(self):
        with pytest.raises(ValueError, match="doc_id"):
            IndexDocument.from_source({"item_type": "song"})

    def test_parse_document_skips_bad_sources(self):
        assert parse_document({"doc_id": "x", "item_type": "podcast"}, "test") is None
        assert parse_document({"doc_id": "x", "item_type": "album"}, "test").item_type == ItemType.ALBUM

    def test_parse_document_skips_wrong_json_types(self):
        assert parse_document({"doc_id": "x", "item_type": "song", "duration": [1]}, "test") is None
        assert parse_document({"doc_id": "x", "item_type": "song", "duration": {"s": 1}}, "test") is None


class TestGatherAll:
    """Concurrent fan-out with sibling cancellation"""

    @pytest.mark.asyncio
    async def test_results_in_argument_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await gather_all(value("a", 0.02), value("b", 0)) == ("a", "b")

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def failing():
            await asyncio.sleep(0)
            raise IndexBackendError("down", "test")

        with pytest.raises(IndexBackendError):
            await gather_all(slow(), failing())

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_children(self):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        task = asyncio.ensure_future(gather_all(slow(), slow()))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert cancelled.is_set()
