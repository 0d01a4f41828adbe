from logging import config as logging_config

from dependency_injector import containers, providers

from docrepo.application.services.interfaces.repositories.product.product_repository import (  # noqa: E501
    ProductRepository,
)
from docrepo.application.services.interfaces.search_transport import SearchTransport
from docrepo.infrastructure.repositories.product.es.product_repository import (
    ElasticsearchProductRepository,
)
from docrepo.infrastructure.search.es.es_client import (
    ElasticsearchClient,
    ElasticsearchClientConfig,
)


class CoreContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    logging_config = providers.Resource(
        logging_config.dictConfig,
        config=config.run.logging,
    )


class GatewaysContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    search_transport: SearchTransport = providers.Singleton(
        ElasticsearchClient,
        config=providers.Factory(
            ElasticsearchClientConfig,
            hosts=config.search.elasticsearch.connection.hosts,
            api_key=config.search.elasticsearch.connection.api_key,
            request_timeout=config.search.elasticsearch.connection.request_timeout.as_float(),
            verify_certs=config.search.elasticsearch.connection.verify_certs.as_(bool),
        ),
    )


class RepositoriesContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    gateways = providers.DependenciesContainer()

    product_repository: ProductRepository = providers.Singleton(
        ElasticsearchProductRepository,
        transport=gateways.search_transport,
        config=config.product,
    )


class DocRepoApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    secrets = providers.Configuration()

    core = providers.Container(
        CoreContainer,
        config=config,
    )

    gateways = providers.Container(GatewaysContainer, config=config.gateways)

    repositories = providers.Container(
        RepositoriesContainer, config=config.repositories, gateways=gateways
    )
