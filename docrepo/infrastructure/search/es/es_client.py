import asyncio
import logging
from typing import Annotated, Any, Optional

from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    TransportError,
)
from elasticsearch import NotFoundError as EsNotFoundError
from pydantic import BaseModel, Field

from docrepo.application.services.interfaces.search_transport import (
    BulkItemResult,
    SearchTransport,
)
from docrepo.domain.exceptions.search import (
    InvalidRequestError,
    StoreUnavailableError,
)
from docrepo.domain.shared.data_types import RefreshPolicy

logger = logging.getLogger(__name__)


class ElasticsearchClientConfig(BaseModel):
    hosts: Annotated[
        list[str] | str,
        Field(default_factory=list, description="List of Elasticsearch host URLs"),
    ]
    api_key: Annotated[
        Optional[str],
        Field(description="API key for Elasticsearch authentication"),
    ] = None
    request_timeout: Annotated[
        Optional[float], Field(description="Request timeout in seconds")
    ] = 5.0
    verify_certs: Annotated[
        bool,
        Field(description="Verify SSL certificates for HTTPS connections"),
    ] = True


def _body(response: Any) -> Any:
    return getattr(response, "body", response)


class ElasticsearchClient(SearchTransport):
    def __init__(self, config: None | ElasticsearchClientConfig | dict[str, Any]):
        self._config = config
        if not self._config:
            self._config = ElasticsearchClientConfig()
        elif isinstance(self._config, dict):
            self._config = ElasticsearchClientConfig.model_validate(config)
        self._es: Optional[AsyncElasticsearch] = None
        self._start_lock = asyncio.Lock()

    @property
    def config(self) -> ElasticsearchClientConfig:
        return self._config

    async def start(self) -> None:
        async with self._start_lock:
            if self._es is None:
                self._es = await self._connect()

    async def _connect(self) -> AsyncElasticsearch:
        logger.info(
            "Connecting to Elasticsearch hosts: %s (timeout=%s, verify_certs=%s)",
            self._config.hosts,
            self._config.request_timeout,
            self._config.verify_certs,
        )
        es = AsyncElasticsearch(
            hosts=self._config.hosts or None,
            api_key=self._config.api_key or None,
            request_timeout=self._config.request_timeout,
            verify_certs=self._config.verify_certs,
        )
        try:
            ok = await es.ping()
        except (ApiError, TransportError) as ex:
            await es.close()
            logger.exception("Elasticsearch API error during startup: %s", ex)
            raise StoreUnavailableError(f"Elasticsearch connection error: {ex}") from ex
        if not ok:
            await es.close()
            logger.error(
                "Elasticsearch hosts %s reachable but ping returned False.",
                self._config.hosts,
            )
            raise StoreUnavailableError("Elasticsearch ping failed")
        logger.info("Elasticsearch connection established successfully.")
        return es

    async def ensure_started(self) -> AsyncElasticsearch:
        if self._es is None:
            await self.start()
        return self._es

    async def close(self) -> None:
        if self._es is not None:
            await self._es.close()
            self._es = None

    def _wrap_error(self, action: str, index: str, ex: Exception):
        if isinstance(ex, BadRequestError):
            logger.error("Elasticsearch rejected %s on %s: %s", action, index, ex)
            return InvalidRequestError(f"Elasticsearch rejected {action}: {ex}")
        logger.exception("Elasticsearch %s on %s failed: %s", action, index, ex)
        return StoreUnavailableError(f"Elasticsearch {action} on {index} failed: {ex}")

    async def index_document(
        self,
        index: str,
        id_: str,
        document: dict[str, Any],
        refresh: RefreshPolicy = "false",
    ) -> None:
        es = await self.ensure_started()
        try:
            await es.index(index=index, id=id_, document=document, refresh=refresh)
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("index", index, ex) from ex

    async def bulk_index(
        self,
        index: str,
        documents: list[tuple[str, dict[str, Any]]],
        refresh: RefreshPolicy = "false",
    ) -> list[BulkItemResult]:
        if not documents:
            return []
        es = await self.ensure_started()
        operations: list[dict[str, Any]] = []
        for id_, document in documents:
            operations.append({"index": {"_index": index, "_id": id_}})
            operations.append(document)
        try:
            response = _body(await es.bulk(operations=operations, refresh=refresh))
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("bulk index", index, ex) from ex

        results = []
        for item in response.get("items", []):
            action = item.get("index") or {}
            error = action.get("error")
            if isinstance(error, dict):
                error = f"{error.get('type')}: {error.get('reason')}"
            results.append(
                BulkItemResult(
                    id_=str(action.get("_id", "")), error=str(error) if error else None
                )
            )
        return results

    async def get_document(self, index: str, id_: str) -> Optional[dict[str, Any]]:
        es = await self.ensure_started()
        try:
            response = _body(await es.get(index=index, id=id_))
        except EsNotFoundError:
            return None
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("get", index, ex) from ex
        if not response.get("found", True):
            return None
        return response.get("_source") or {}

    async def delete_document(
        self, index: str, id_: str, refresh: RefreshPolicy = "false"
    ) -> bool:
        es = await self.ensure_started()
        try:
            await es.delete(index=index, id=id_, refresh=refresh)
        except EsNotFoundError:
            return False
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("delete", index, ex) from ex
        return True

    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        es = await self.ensure_started()
        logger.debug("Search on %s: %s", index, body)
        try:
            return _body(await es.search(index=index, body=body))
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("search", index, ex) from ex

    async def count(self, index: str, body: Optional[dict[str, Any]]) -> int:
        es = await self.ensure_started()
        try:
            response = _body(await es.count(index=index, body=body or {}))
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("count", index, ex) from ex
        return int(response.get("count", 0))

    async def refresh(self, index: str) -> None:
        es = await self.ensure_started()
        try:
            await es.indices.refresh(index=index)
        except (ApiError, TransportError) as ex:
            raise self._wrap_error("refresh", index, ex) from ex
