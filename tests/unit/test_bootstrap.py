"""
Unit tests for backend selection, startup and the command line
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from catalog_search import cli
from catalog_search.bootstrap import build_index_backend, build_search_engine, prepare_index
from catalog_search.core.config import Settings
from catalog_search.core.exceptions import IndexBackendError
from catalog_search.services.elasticsearch_backend import ElasticsearchBackend
from catalog_search.services.hydrator import CatalogHydrator
from catalog_search.services.manticore_backend import ManticoreBackend
from catalog_search.services.search_engine import CatalogSearchEngine

from tests.conftest import FakeIndexBackend, doc


class TestBuildIndexBackend:
    """Backend chosen once from settings"""

    def test_manticore(self):
        settings = Settings(SEARCH_BACKEND="manticore", MANTICORE_URL="http://m.local:9308", SEARCH_INDEX_NAME="tracks")

        backend = build_index_backend(settings)

        assert isinstance(backend, ManticoreBackend)
        assert backend.base_url == "http://m.local:9308"
        assert backend.index_name == "tracks"

    def test_elasticsearch(self):
        settings = Settings(SEARCH_BACKEND="elasticsearch", ELASTICSEARCH_URL="http://es.local:9200/")

        backend = build_index_backend(settings)

        assert isinstance(backend, ElasticsearchBackend)
        assert backend.base_url == "http://es.local:9200"
        assert backend.index_name == "music"

    def test_injected_client_is_used(self):
        client = MagicMock()

        backend = build_index_backend(Settings(SEARCH_BACKEND="manticore"), client=client)

        assert backend._client is client
        assert not backend._owns_client

    def test_build_search_engine(self):
        backend = FakeIndexBackend()

        engine = build_search_engine(MagicMock(), backend=backend)

        assert isinstance(engine, CatalogSearchEngine)
        assert engine.backend is backend
        assert isinstance(engine.hydrator, CatalogHydrator)


class TestPrepareIndex:
    """Startup schema check"""

    @pytest.mark.asyncio
    async def test_ensures_schema_then_counts(self):
        backend = FakeIndexBackend([doc("aaaaaaaaaaaaaaa1"), doc("aaaaaaaaaaaaaaa2")])

        assert await prepare_index(backend) == 2
        assert backend.schema_ensured == 1

    @pytest.mark.asyncio
    async def test_schema_failure_is_raised(self):
        backend = FakeIndexBackend()
        backend.ensure_schema = AsyncMock(side_effect=IndexBackendError("bad mapping", "fake"))

        with pytest.raises(IndexBackendError):
            await prepare_index(backend)

    @pytest.mark.asyncio
    async def test_count_failure_is_tolerated(self):
        backend = FakeIndexBackend()
        backend.document_count = AsyncMock(side_effect=IndexBackendError("timeout", "fake"))

        assert await prepare_index(backend) is None
        assert backend.schema_ensured == 1


class TestCli:
    """Command line entry point"""

    def test_invalid_id_is_usage_error(self, capsys):
        assert cli.main(["get", "song", "NOT-AN-ID"]) == cli.EXIT_USAGE
        assert "Invalid catalog id" in capsys.readouterr().err

    def test_out_of_range_limit_is_usage_error(self):
        assert cli.main(["search", "yesterday", "--limit", "500"]) == cli.EXIT_USAGE

    def test_unknown_type_is_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["search", "x", "--type", "playlist"])

    def test_ensure_index_prints_count(self, capsys):
        backend = FakeIndexBackend([doc("aaaaaaaaaaaaaaa1")])

        with patch.object(cli, "build_index_backend", return_value=backend):
            assert cli.main(["ensure-index"]) == cli.EXIT_OK

        payload = json.loads(capsys.readouterr().out)
        assert payload["documents"] == 1
        assert payload["backend"] == "fake"

    def test_backend_error_exit_code(self, capsys):
        backend = FakeIndexBackend()
        backend.ensure_schema = AsyncMock(side_effect=IndexBackendError("unreachable", "fake"))

        with patch.object(cli, "build_index_backend", return_value=backend):
            assert cli.main(["ensure-index"]) == cli.EXIT_BACKEND_ERROR

        assert "unreachable" in capsys.readouterr().err
