"""
Tests for ComponentSearchIndex with a mocked AsyncElasticsearch client.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import NotFoundError as ESNotFoundError

from innvo.db.models import Component
from innvo.exceptions import SearchIndexError
from innvo.index.fulltext import COMPONENT_MAPPINGS, ComponentSearchIndex


def _not_found():
    meta = ApiResponseMeta(
        status=404,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )
    return ESNotFoundError("not_found", meta=meta, body={"found": False})


@pytest.fixture
def es_client():
    client = MagicMock()
    client.index = AsyncMock()
    client.delete = AsyncMock()
    client.exists = AsyncMock(return_value=True)
    client.search = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    client.close = AsyncMock()
    client.indices = MagicMock()
    client.indices.exists = AsyncMock(return_value=False)
    client.indices.create = AsyncMock()
    return client


@pytest.fixture
def index(es_client):
    return ComponentSearchIndex(client=es_client, index_name="component-test", refresh="true")


class TestWrites:
    @pytest.mark.asyncio
    async def test_index_writes_full_document_keyed_by_id(self, index, es_client):
        await index.index(Component(id=5, name="AAAAAAAAAA"))

        es_client.index.assert_awaited_once_with(
            index="component-test",
            id="5",
            document={"id": 5, "name": "AAAAAAAAAA"},
            refresh="true",
        )

    @pytest.mark.asyncio
    async def test_index_transport_error_raises_search_index_error(self, index, es_client):
        es_client.index.side_effect = ESConnectionError("connection refused")

        with pytest.raises(SearchIndexError):
            await index.index(Component(id=5, name="AAAAAAAAAA"))

    @pytest.mark.asyncio
    async def test_delete_missing_document_is_not_an_error(self, index, es_client):
        es_client.delete.side_effect = _not_found()

        assert await index.delete_by_id(5) is False

    @pytest.mark.asyncio
    async def test_delete_existing_document(self, index, es_client):
        assert await index.delete_by_id(5) is True
        es_client.delete.assert_awaited_once_with(index="component-test", id="5", refresh="true")

    @pytest.mark.asyncio
    async def test_delete_transport_error_raises_search_index_error(self, index, es_client):
        es_client.delete.side_effect = ESConnectionError("connection refused")

        with pytest.raises(SearchIndexError):
            await index.delete_by_id(5)


class TestReads:
    @pytest.mark.asyncio
    async def test_search_passes_query_string_through(self, index, es_client):
        es_client.search.return_value = {
            "hits": {
                "total": {"value": 21},
                "hits": [{"_id": "3", "_source": {"id": 3, "name": "AAAAAAAAAA"}}],
            }
        }

        page = await index.search("id:3", 1, 20)

        es_client.search.assert_awaited_once_with(
            index="component-test",
            query={"query_string": {"query": "id:3"}},
            from_=20,
            size=20,
            track_total_hits=True,
        )
        assert [(c.id, c.name) for c in page.items] == [(3, "AAAAAAAAAA")]
        assert page.total == 21
        assert page.page == 1

    @pytest.mark.asyncio
    async def test_search_missing_index_returns_empty_page(self, index, es_client):
        es_client.search.side_effect = _not_found()

        page = await index.search("id:1", 0, 20)

        assert page.items == []
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_exists(self, index, es_client):
        es_client.exists.return_value = False

        assert await index.exists(9) is False


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_ensure_index_creates_mapping_once(self, index, es_client):
        await index.ensure_index()
        es_client.indices.create.assert_awaited_once_with(index="component-test", mappings=COMPONENT_MAPPINGS)

        es_client.indices.exists.return_value = True
        await index.ensure_index()
        assert es_client.indices.create.await_count == 1

    @pytest.mark.asyncio
    async def test_close_releases_client(self, index, es_client):
        await index.close()

        es_client.close.assert_awaited_once()
        assert index._client is None
