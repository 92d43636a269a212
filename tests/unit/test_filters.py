"""
Unit tests for the consistency guard and the post-filter
"""

from catalog_search.schemas.search import SearchQuery
from catalog_search.services.consistency_guard import apply_guard, is_complete
from catalog_search.services.post_filter import PostFilter

from tests.conftest import make_album, make_artist, make_song


class TestConsistencyGuard:
    """Records with empty required associations are dropped"""

    def test_complete_records_pass(self, song_factory, album_factory, artist_factory):
        assert is_complete(song_factory("aaaaaaaaaaaaaaa1"))
        assert is_complete(album_factory("bbbbbbbbbbbbbbb1"))
        assert is_complete(artist_factory("ccccccccccccccc1"))

    def test_song_without_artist_or_album(self, song_factory):
        assert not is_complete(song_factory("aaaaaaaaaaaaaaa1", artist=""))
        assert not is_complete(song_factory("aaaaaaaaaaaaaaa1", album=""))

    def test_album_without_artist(self, album_factory):
        assert not is_complete(album_factory("bbbbbbbbbbbbbbb1", artist=""))

    def test_artist_has_no_required_association(self, artist_factory):
        assert is_complete(artist_factory("ccccccccccccccc1", image=""))

    def test_apply_guard_keeps_subset(self, song_factory):
        entities = {
            "aaaaaaaaaaaaaaa1": song_factory("aaaaaaaaaaaaaaa1"),
            "aaaaaaaaaaaaaaa2": song_factory("aaaaaaaaaaaaaaa2", artist=""),
            "aaaaaaaaaaaaaaa3": song_factory("aaaaaaaaaaaaaaa3"),
        }

        kept = apply_guard(entities)

        assert list(kept) == ["aaaaaaaaaaaaaaa1", "aaaaaaaaaaaaaaa3"]
        assert len(entities) == 3

    def test_apply_guard_empty(self):
        assert apply_guard({}) == {}


class TestPostFilter:
    """Case-insensitive secondary filters"""

    def test_artist_substring(self):
        song = make_song("aaaaaaaaaaaaaaa1", artist="The Beatles")

        assert PostFilter.create(artist="beat").matches(song)
        assert PostFilter.create(artist="BEATLES").matches(song)
        assert not PostFilter.create(artist="stones").matches(song)

    def test_album_substring(self):
        song = make_song("aaaaaaaaaaaaaaa1", album="Help!")

        assert PostFilter.create(album="hel").matches(song)
        assert not PostFilter.create(album="abbey").matches(song)

    def test_isrc_is_exact(self):
        song = make_song("aaaaaaaaaaaaaaa1", isrc="GBAYE0601498")

        assert PostFilter.create(isrc="gbaye0601498").matches(song)
        assert not PostFilter.create(isrc="GBAYE060149").matches(song)

    def test_upc_is_exact_for_albums(self):
        album = make_album("bbbbbbbbbbbbbbb1", upc="0094638241621")

        assert PostFilter.create(upc="0094638241621").matches(album)
        assert not PostFilter.create(upc="009463824162").matches(album)

    def test_artist_filter_on_artists_uses_name(self):
        artist = make_artist("ccccccccccccccc1", name="The Beatles")

        assert PostFilter.create(artist="beat").matches(artist)
        assert not PostFilter.create(artist="queen").matches(artist)

    def test_inapplicable_filters_do_not_exclude(self):
        assert PostFilter.create(isrc="XX", album="nothing").matches(make_artist("ccccccccccccccc1"))
        assert PostFilter.create(isrc="XX").matches(make_album("bbbbbbbbbbbbbbb1"))
        assert PostFilter.create(upc="XX").matches(make_song("aaaaaaaaaaaaaaa1"))

    def test_blank_values_are_ignored(self):
        post_filter = PostFilter.create(artist="  ", isrc="")

        assert post_filter.is_empty
        assert post_filter.matches(make_song("aaaaaaaaaaaaaaa1", artist="Anyone"))

    def test_apply_preserves_order(self):
        songs = [
            make_song("aaaaaaaaaaaaaaa3", artist="Ray Charles"),
            make_song("aaaaaaaaaaaaaaa1", artist="The Beatles"),
            make_song("aaaaaaaaaaaaaaa2", artist="Beatles Tribute Band"),
        ]

        filtered = PostFilter.create(artist="beatles").apply(songs)

        assert [s.id for s in filtered] == ["aaaaaaaaaaaaaaa1", "aaaaaaaaaaaaaaa2"]

    def test_from_query(self):
        query = SearchQuery(q="yesterday", artist="Beatles", isrc="GBAYE0601498")
        post_filter = PostFilter.from_query(query)

        assert post_filter.artist == "beatles"
        assert post_filter.isrc == "gbaye0601498"
        assert post_filter.album is None
