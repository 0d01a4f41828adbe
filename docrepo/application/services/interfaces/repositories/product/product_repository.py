import abc

from docrepo.application.services.interfaces.repositories.default.document_repository import (  # noqa: E501
    DocumentRepository,
)
from docrepo.domain.entities.product import Product


class ProductRepository(DocumentRepository[Product, int], abc.ABC):
    @abc.abstractmethod
    async def find_by_name(self, name: str) -> list[Product]: ...

    @abc.abstractmethod
    async def find_by_price(
        self, min_price: float, max_price: float
    ) -> list[Product]: ...
