import pytest

from docrepo.run.config_utils import (
    CONFIG_FILE_ENVIRONMENT_VARIABLE_NAME,
    DEFAULT_SECRETS_FILE_PATH,
    get_application_config_files,
    render_config_secrets,
    set_application_configuration,
)
from docrepo.run.containers import DocRepoApplicationContainer


def test_render_config_secrets():
    config = {"connection": {"api_key": "{{ es_api_key }}", "hosts": ["h1"]}}
    rendered = render_config_secrets(config, {"es_api_key": "secret"})
    assert rendered == {"connection": {"api_key": "secret", "hosts": ["h1"]}}


def test_render_without_secrets_leaves_placeholders_empty():
    rendered = render_config_secrets({"api_key": "{{ es_api_key }}"}, {})
    assert rendered == {"api_key": ""}


def test_config_file_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(CONFIG_FILE_ENVIRONMENT_VARIABLE_NAME, "custom.yaml")
    config_file, secrets_file = get_application_config_files()
    assert config_file == "custom.yaml"
    assert secrets_file == DEFAULT_SECRETS_FILE_PATH


def test_missing_config_file(tmp_path):
    container = DocRepoApplicationContainer()
    assert not set_application_configuration(
        container,
        config_file_path=str(tmp_path / "missing.yaml"),
        secrets_file_path=str(tmp_path / "missing-secrets.yaml"),
    )


def test_missing_secrets_file(tmp_path, local_config_file):
    container = DocRepoApplicationContainer()
    assert set_application_configuration(
        container,
        config_file_path=local_config_file,
        secrets_file_path=str(tmp_path / "missing-secrets.yaml"),
    )
    connection = container.config.gateways.search.elasticsearch.connection
    assert connection.api_key() == ""


def test_container_required():
    with pytest.raises(ValueError):
        set_application_configuration(None)
