import abc
from typing import Any, Generic, Optional, Sequence

from docrepo.domain.shared.data_types import ENTITY_TYPE, ID_TYPE, FieldValue
from docrepo.domain.shared.search.predicates import Predicate
from docrepo.domain.shared.search.query_request import QueryRequest
from docrepo.domain.shared.search.search_result import SearchResult


class DocumentRepository(abc.ABC, Generic[ENTITY_TYPE, ID_TYPE]):
    @abc.abstractmethod
    async def save(self, entity: ENTITY_TYPE) -> ENTITY_TYPE: ...

    @abc.abstractmethod
    async def save_all(self, entities: Sequence[ENTITY_TYPE]) -> None: ...

    @abc.abstractmethod
    async def find_by_id(self, id_: ID_TYPE) -> Optional[ENTITY_TYPE]: ...

    @abc.abstractmethod
    async def get_by_id(self, id_: ID_TYPE) -> ENTITY_TYPE: ...

    @abc.abstractmethod
    async def exists_by_id(self, id_: ID_TYPE) -> bool: ...

    @abc.abstractmethod
    async def find_by_field(
        self, field_name: str, value: FieldValue
    ) -> list[ENTITY_TYPE]: ...

    @abc.abstractmethod
    async def find_by_range(
        self, field_name: str, min_value: Any, max_value: Any
    ) -> list[ENTITY_TYPE]: ...

    @abc.abstractmethod
    async def find_all(
        self, page: int = 0, page_size: Optional[int] = None
    ) -> SearchResult[ENTITY_TYPE]: ...

    @abc.abstractmethod
    async def count(self, predicate: Optional[Predicate] = None) -> int: ...

    @abc.abstractmethod
    async def delete_by_id(self, id_: ID_TYPE) -> None: ...

    @abc.abstractmethod
    async def search(self, request: QueryRequest) -> SearchResult[ENTITY_TYPE]: ...
