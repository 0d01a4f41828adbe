from typing import Any

from docrepo.application.services.interfaces.repositories.product.product_repository import (  # noqa: E501
    ProductRepository,
)
from docrepo.application.services.interfaces.search_transport import SearchTransport
from docrepo.domain.entities.product import PRODUCT_DESCRIPTOR, Product
from docrepo.infrastructure.repositories.default.es.default_document_repository import (  # noqa: E501
    ElasticsearchDocumentRepository,
)
from docrepo.infrastructure.search.es.es_configuration import (
    RepositoryConfiguration,
)


class ElasticsearchProductRepository(
    ElasticsearchDocumentRepository[Product], ProductRepository
):
    def __init__(
        self,
        transport: SearchTransport,
        config: None | RepositoryConfiguration | dict[str, Any] = None,
    ):
        super().__init__(
            transport=transport,
            descriptor=PRODUCT_DESCRIPTOR,
            entity_class=Product,
            config=config,
        )

    async def find_by_name(self, name: str) -> list[Product]:
        return await self.find_by_field("name", name)

    async def find_by_price(self, min_price: float, max_price: float) -> list[Product]:
        return await self.find_by_range("price", min_price, max_price)
