import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest
from elasticsearch import BadRequestError
from elasticsearch import ConnectionError as EsConnectionError
from elasticsearch import NotFoundError as EsNotFoundError

from docrepo.domain.exceptions.search import (
    InvalidRequestError,
    StoreUnavailableError,
)
from docrepo.infrastructure.search.es.es_client import (
    ElasticsearchClient,
    ElasticsearchClientConfig,
)

CLIENT_MODULE = "docrepo.infrastructure.search.es.es_client"


@pytest.fixture
def es() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(es: AsyncMock) -> ElasticsearchClient:
    client = ElasticsearchClient(
        ElasticsearchClientConfig(hosts=["http://localhost:9200"])
    )
    client._es = es
    return client


def test_config_from_dict():
    client = ElasticsearchClient({"hosts": ["http://es:9200"], "api_key": "key"})
    assert client.config.hosts == ["http://es:9200"]
    assert client.config.request_timeout == 5.0
    assert ElasticsearchClient(None).config.hosts == []


@pytest.mark.asyncio
async def test_start_fails_when_ping_fails():
    es = AsyncMock()
    es.ping.return_value = False
    with patch(f"{CLIENT_MODULE}.AsyncElasticsearch", return_value=es) as factory:
        client = ElasticsearchClient({"hosts": ["http://es:9200"], "api_key": ""})
        with pytest.raises(StoreUnavailableError):
            await client.start()
    assert factory.call_args.kwargs["api_key"] is None
    es.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_fails_on_connection_error():
    es = AsyncMock()
    es.ping.side_effect = EsConnectionError("boom")
    with patch(f"{CLIENT_MODULE}.AsyncElasticsearch", return_value=es):
        client = ElasticsearchClient({"hosts": ["http://es:9200"]})
        with pytest.raises(StoreUnavailableError):
            await client.start()
    es.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_once():
    es = AsyncMock()
    es.ping.return_value = True
    with patch(f"{CLIENT_MODULE}.AsyncElasticsearch", return_value=es) as factory:
        client = ElasticsearchClient({"hosts": ["http://es:9200"]})
        await client.start()
        await client.ensure_started()
    assert factory.call_count == 1
    await client.close()
    es.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_start_creates_one_client():
    created = []

    def build_client(**kwargs):
        es = AsyncMock()

        async def ping():
            await asyncio.sleep(0)
            return True

        es.ping.side_effect = ping
        created.append(es)
        return es

    with patch(f"{CLIENT_MODULE}.AsyncElasticsearch", side_effect=build_client):
        client = ElasticsearchClient({"hosts": ["http://es:9200"]})
        first, second = await asyncio.gather(
            client.ensure_started(), client.ensure_started()
        )
    assert len(created) == 1
    assert first is second is created[0]
    await client.close()
    created[0].close.assert_awaited_once()


@pytest.mark.asyncio
async def test_index_document(client: ElasticsearchClient, es: AsyncMock):
    await client.index_document("ec", "1", {"id": 1}, refresh="wait_for")
    es.index.assert_awaited_once_with(
        index="ec", id="1", document={"id": 1}, refresh="wait_for"
    )


@pytest.mark.asyncio
async def test_bulk_index_reports_item_errors(
    client: ElasticsearchClient, es: AsyncMock
):
    es.bulk.return_value = {
        "errors": True,
        "items": [
            {"index": {"_id": "1", "status": 201}},
            {
                "index": {
                    "_id": "2",
                    "status": 400,
                    "error": {"type": "mapper_parsing_exception", "reason": "bad"},
                }
            },
        ],
    }
    results = await client.bulk_index("ec", [("1", {"id": 1}), ("2", {"id": 2})])
    assert [x.id_ for x in results] == ["1", "2"]
    assert not results[0].failed
    assert results[1].failed
    assert "mapper_parsing_exception" in results[1].error
    operations = es.bulk.call_args.kwargs["operations"]
    assert operations[0] == {"index": {"_index": "ec", "_id": "1"}}
    assert operations[1] == {"id": 1}


@pytest.mark.asyncio
async def test_bulk_index_nothing(client: ElasticsearchClient, es: AsyncMock):
    assert await client.bulk_index("ec", []) == []
    es.bulk.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_document(client: ElasticsearchClient, es: AsyncMock):
    es.get.return_value = {"found": True, "_source": {"id": 1, "name": "苹果"}}
    assert await client.get_document("ec", "1") == {"id": 1, "name": "苹果"}


@pytest.mark.asyncio
async def test_missing_document_is_absent(client: ElasticsearchClient, es: AsyncMock):
    error = EsNotFoundError("not found", meta=Mock(status=404), body={})
    es.get.side_effect = error
    es.delete.side_effect = error
    assert await client.get_document("ec", "1") is None
    assert await client.delete_document("ec", "1") is False


@pytest.mark.asyncio
async def test_delete_document(client: ElasticsearchClient, es: AsyncMock):
    assert await client.delete_document("ec", "1", refresh="true") is True
    es.delete.assert_awaited_once_with(index="ec", id="1", refresh="true")


@pytest.mark.asyncio
async def test_rejected_request(client: ElasticsearchClient, es: AsyncMock):
    es.search.side_effect = BadRequestError("bad", meta=Mock(status=400), body={})
    with pytest.raises(InvalidRequestError):
        await client.search("ec", {"query": {"match_all": {}}})


@pytest.mark.asyncio
async def test_transport_failure(client: ElasticsearchClient, es: AsyncMock):
    es.count.side_effect = EsConnectionError("boom")
    with pytest.raises(StoreUnavailableError):
        await client.count("ec", None)
    es.indices.refresh.side_effect = EsConnectionError("boom")
    with pytest.raises(StoreUnavailableError):
        await client.refresh("ec")


@pytest.mark.asyncio
async def test_count(client: ElasticsearchClient, es: AsyncMock):
    es.count.return_value = {"count": 7}
    assert await client.count("ec", {"query": {"match_all": {}}}) == 7
