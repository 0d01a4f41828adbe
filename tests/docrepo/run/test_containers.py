import pytest

from docrepo.domain.entities.product import Product
from docrepo.infrastructure.repositories.product.es.product_repository import (
    ElasticsearchProductRepository,
)
from docrepo.infrastructure.search.es.es_client import ElasticsearchClient
from docrepo.run.config_utils import set_application_configuration
from docrepo.run.containers import DocRepoApplicationContainer


def test_secrets_rendered_into_config(local_env_container: DocRepoApplicationContainer):
    connection = local_env_container.config.gateways.search.elasticsearch.connection
    assert connection.api_key() == "test-api-key"
    assert connection.hosts() == ["http://localhost:9200"]


def test_product_repository_config(local_env_container: DocRepoApplicationContainer):
    repository = local_env_container.repositories.product_repository()
    assert isinstance(repository, ElasticsearchProductRepository)
    assert repository.config.refresh == "true"
    assert repository.config.lookup_size == 100
    assert repository is local_env_container.repositories.product_repository()


@pytest.mark.asyncio
async def test_product_repository_end_to_end(
    local_env_container: DocRepoApplicationContainer,
):
    repository = local_env_container.repositories.product_repository()
    await repository.save_all([Product(id=1, name="苹果"), Product(id=2, name="香蕉")])
    assert [x.id for x in await repository.find_by_name("香蕉")] == [2]


def test_elasticsearch_client_from_config(local_config_file, local_secrets_file):
    container = DocRepoApplicationContainer()
    set_application_configuration(
        container,
        config_file_path=local_config_file,
        secrets_file_path=local_secrets_file,
    )
    client = container.gateways.search_transport()
    assert isinstance(client, ElasticsearchClient)
    assert client.config.hosts == ["http://localhost:9200"]
    assert client.config.api_key == "test-api-key"
    assert client.config.request_timeout == 5.0
    assert client.config.verify_certs is True
