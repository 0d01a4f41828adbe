import abc
from typing import Any, Optional

from pydantic import BaseModel

from docrepo.domain.shared.data_types import RefreshPolicy


class BulkItemResult(BaseModel):
    id_: str
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class SearchTransport(abc.ABC):
    """Engine-facing collaborator shared by all repositories.

    Requests and responses are engine-native JSON structures. Failures
    to reach the engine raise ``StoreUnavailableError``.
    """

    @abc.abstractmethod
    async def index_document(
        self,
        index: str,
        id_: str,
        document: dict[str, Any],
        refresh: RefreshPolicy = "false",
    ) -> None: ...

    @abc.abstractmethod
    async def bulk_index(
        self,
        index: str,
        documents: list[tuple[str, dict[str, Any]]],
        refresh: RefreshPolicy = "false",
    ) -> list[BulkItemResult]: ...

    @abc.abstractmethod
    async def get_document(
        self, index: str, id_: str
    ) -> Optional[dict[str, Any]]: ...

    @abc.abstractmethod
    async def delete_document(
        self, index: str, id_: str, refresh: RefreshPolicy = "false"
    ) -> bool: ...

    @abc.abstractmethod
    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]: ...

    @abc.abstractmethod
    async def count(self, index: str, body: Optional[dict[str, Any]]) -> int: ...

    @abc.abstractmethod
    async def refresh(self, index: str) -> None: ...
