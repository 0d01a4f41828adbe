from typing import Any, Generator

import pytest

from docrepo.domain.entities.product import PRODUCT_DESCRIPTOR, Product
from docrepo.domain.shared.descriptor.entity_descriptor import EntityDescriptor
from docrepo.domain.shared.search.aggregations import AggregationBuilder
from docrepo.domain.shared.search.predicates import PredicateBuilder
from docrepo.infrastructure.repositories.product.es.product_repository import (
    ElasticsearchProductRepository,
)
from docrepo.infrastructure.search.es.es_configuration import (
    RepositoryConfiguration,
)
from docrepo.infrastructure.search.in_memory.analyzers import whitespace_analyzer
from docrepo.infrastructure.search.in_memory.in_memory_search_transport import (
    InMemorySearchTransport,
)
from docrepo.run.config_utils import set_application_configuration
from docrepo.run.containers import DocRepoApplicationContainer

PRODUCT_NAME_LIST = ["苹果", "香蕉", "汽车", "电话", "电视"]


@pytest.fixture(scope="session")
def local_config_file() -> str:
    return "tests/data/config/docrepo-test-config.yaml"


@pytest.fixture(scope="session")
def local_secrets_file() -> str:
    return "tests/data/config/docrepo-test-config-secrets.yaml"


@pytest.fixture
def product_descriptor() -> EntityDescriptor:
    return PRODUCT_DESCRIPTOR


@pytest.fixture
def predicates(product_descriptor: EntityDescriptor) -> PredicateBuilder:
    return PredicateBuilder(product_descriptor)


@pytest.fixture
def aggregations(product_descriptor: EntityDescriptor) -> AggregationBuilder:
    return AggregationBuilder(product_descriptor)


@pytest.fixture
def in_memory_transport(
    product_descriptor: EntityDescriptor,
) -> InMemorySearchTransport:
    # stands in for the word-segmenting analyzer: one token per product name
    return InMemorySearchTransport(
        [product_descriptor], analyzers={"ik_max_word": whitespace_analyzer}
    )


@pytest.fixture
def product_repository(
    in_memory_transport: InMemorySearchTransport,
) -> ElasticsearchProductRepository:
    return ElasticsearchProductRepository(
        transport=in_memory_transport,
        config=RepositoryConfiguration(refresh="false", lookup_size=100),
    )


@pytest.fixture
def products() -> list[Product]:
    items = []
    for i in range(40):
        items.append(
            Product(
                id=100000 + i,
                name=PRODUCT_NAME_LIST[i % 5],
                count=i,
                price=1500 + i / 100,
            )
        )
    return items


@pytest.fixture
def local_env_container(
    local_config_file: str,
    local_secrets_file: str,
    product_descriptor: EntityDescriptor,
) -> Generator[Any, Any, DocRepoApplicationContainer]:
    container = DocRepoApplicationContainer()
    set_application_configuration(
        container,
        config_file_path=local_config_file,
        secrets_file_path=local_secrets_file,
    )
    container.gateways.search_transport.override(
        InMemorySearchTransport(
            [product_descriptor], analyzers={"ik_max_word": whitespace_analyzer}
        )
    )
    yield container
    container.gateways.search_transport.reset_override()
