import logging
from typing import Any, Generic, Optional, Sequence

from pydantic import ValidationError

from docrepo.application.services.interfaces.repositories.default.document_repository import (  # noqa: E501
    DocumentRepository,
)
from docrepo.application.services.interfaces.search_transport import SearchTransport
from docrepo.domain.exceptions.search import (
    BatchSaveError,
    DecodeError,
    DocumentNotFoundError,
    InvalidRequestError,
)
from docrepo.domain.shared.data_types import ENTITY_TYPE, FieldValue
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor
from docrepo.domain.shared.search.predicates import Predicate, PredicateBuilder
from docrepo.domain.shared.search.query_request import (
    QueryRequest,
    QueryRequestBuilder,
)
from docrepo.domain.shared.search.search_result import SearchResult
from docrepo.infrastructure.search.es.aggregation_codec import decode_aggregations
from docrepo.infrastructure.search.es.es_configuration import (
    RepositoryConfiguration,
)
from docrepo.infrastructure.search.es.query_serializer import (
    build_search_body,
    serialize_predicate,
)

logger = logging.getLogger(__name__)


class ElasticsearchDocumentRepository(
    DocumentRepository[ENTITY_TYPE, int], Generic[ENTITY_TYPE]
):
    """Document repository for one entity kind stored in one index.

    Writes replace the whole document. They become visible to searches
    after the engine refresh unless the configured refresh policy
    forces one. Nothing is retried here; transport failures surface as
    ``StoreUnavailableError``.
    """

    def __init__(
        self,
        transport: SearchTransport,
        descriptor: EntityDescriptor,
        entity_class: type[ENTITY_TYPE],
        config: None | RepositoryConfiguration | dict[str, Any] = None,
    ):
        self._transport = transport
        self._descriptor = descriptor
        self._entity_class = entity_class
        self._config = config
        if not self._config:
            self._config = RepositoryConfiguration()
        elif isinstance(self._config, dict):
            self._config = RepositoryConfiguration.model_validate(config)
        self.predicates = PredicateBuilder(descriptor)

    @property
    def config(self) -> RepositoryConfiguration:
        return self._config

    @property
    def descriptor(self) -> EntityDescriptor:
        return self._descriptor

    @property
    def index_name(self) -> str:
        return self._descriptor.index_name

    def query(self) -> QueryRequestBuilder:
        return QueryRequestBuilder(self._descriptor).with_page_size(
            self.config.default_page_size
        )

    def to_document(self, entity: ENTITY_TYPE) -> dict[str, Any]:
        # None fields are left out so a save fully replaces the previous value
        return entity.model_dump(mode="json", exclude_none=True)

    def to_entity(self, id_: Any, source: Optional[dict[str, Any]]) -> ENTITY_TYPE:
        data = dict(source or {})
        data["id"] = id_
        try:
            return self._entity_class.model_validate(data)
        except ValidationError as ex:
            raise DecodeError(
                f"Document {id_} in {self.index_name} is not a valid "
                f"{self._entity_class.__name__}: {ex}"
            ) from ex

    async def save(self, entity: ENTITY_TYPE) -> ENTITY_TYPE:
        await self._transport.index_document(
            self.index_name,
            str(entity.id),
            self.to_document(entity),
            refresh=self.config.refresh,
        )
        logger.debug("Saved document %s in %s", entity.id, self.index_name)
        return entity

    async def save_all(self, entities: Sequence[ENTITY_TYPE]) -> None:
        ids = [x.id for x in entities]
        duplicates = sorted({x for x in ids if ids.count(x) > 1})
        if duplicates:
            raise InvalidRequestError(
                f"Batch contains duplicate ids: {', '.join(str(x) for x in duplicates)}"
            )
        chunk_size = self.config.bulk_chunk_size
        for start in range(0, len(entities), chunk_size):
            chunk = entities[start : start + chunk_size]
            results = await self._transport.bulk_index(
                self.index_name,
                [(str(x.id), self.to_document(x)) for x in chunk],
                refresh=self.config.refresh,
            )
            for offset, result in enumerate(results):
                if result.failed:
                    position = start + offset
                    logger.warning(
                        "Batch save on %s stopped at position %s (id=%s): %s",
                        self.index_name,
                        position,
                        result.id_,
                        result.error,
                    )
                    raise BatchSaveError(position, result.id_, result.error)
        logger.debug("Saved %s documents in %s", len(entities), self.index_name)

    async def find_by_id(self, id_: int) -> Optional[ENTITY_TYPE]:
        source = await self._transport.get_document(self.index_name, str(id_))
        if source is None:
            return None
        return self.to_entity(id_, source)

    async def get_by_id(self, id_: int) -> ENTITY_TYPE:
        entity = await self.find_by_id(id_)
        if entity is None:
            raise DocumentNotFoundError(self.index_name, id_)
        return entity

    async def exists_by_id(self, id_: int) -> bool:
        return await self.find_by_id(id_) is not None

    async def find_by_field(self, field_name: str, value: FieldValue) -> list[ENTITY_TYPE]:
        field = self._descriptor.exact_subfield_name(field_name)
        return await self._find_all_matching(self.predicates.term(field, value))

    async def find_by_range(
        self, field_name: str, min_value: Any, max_value: Any
    ) -> list[ENTITY_TYPE]:
        predicate = self.predicates.range(field_name, lower=min_value, upper=max_value)
        return await self._find_all_matching(predicate)

    async def _find_all_matching(self, predicate: Predicate) -> list[ENTITY_TYPE]:
        request = (
            self.query()
            .with_predicate(predicate)
            .with_page(0, self.config.lookup_size)
            .build()
        )
        result = await self.search(request)
        if result.total > len(result.items):
            logger.warning(
                "Lookup on %s matched %s documents, returning the first %s",
                self.index_name,
                result.total,
                len(result.items),
            )
        return result.items

    async def find_all(
        self, page: int = 0, page_size: Optional[int] = None
    ) -> SearchResult[ENTITY_TYPE]:
        return await self.search(self.query().with_page(page, page_size).build())

    async def count(self, predicate: Optional[Predicate] = None) -> int:
        body = {"query": serialize_predicate(predicate)} if predicate else None
        return await self._transport.count(self.index_name, body)

    async def delete_by_id(self, id_: int) -> None:
        deleted = await self._transport.delete_document(
            self.index_name, str(id_), refresh=self.config.refresh
        )
        if not deleted:
            logger.debug("Document %s not in %s, nothing deleted", id_, self.index_name)

    async def search(self, request: QueryRequest) -> SearchResult[ENTITY_TYPE]:
        body = build_search_body(request)
        response = await self._transport.search(self.index_name, body)
        if not isinstance(response, dict):
            raise DecodeError(f"Search on {self.index_name} returned no response body")
        hits = response.get("hits")
        if not isinstance(hits, dict) or not isinstance(hits.get("hits"), list):
            raise DecodeError(f"Search on {self.index_name} returned no hits section")

        items = [self._map_hit(x) for x in hits["hits"]]
        return SearchResult[self._entity_class](
            items=items,
            total=self._extract_total(hits),
            page=request.page,
            page_size=request.page_size,
            aggregations=decode_aggregations(
                request.aggregations, response.get("aggregations")
            ),
        )

    def _map_hit(self, hit: Any) -> ENTITY_TYPE:
        if not isinstance(hit, dict) or "_id" not in hit:
            raise DecodeError(f"Search on {self.index_name} returned a hit without id")
        return self.to_entity(hit["_id"], hit.get("_source"))

    def _extract_total(self, hits: dict[str, Any]) -> int:
        total = hits.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)
        try:
            total = int(total)
        except (TypeError, ValueError) as ex:
            raise DecodeError(
                f"Search on {self.index_name} returned a bad total: {ex}"
            ) from ex
        if total < 0:
            raise DecodeError(f"Search on {self.index_name} returned a negative total")
        return total
