import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dependency_injector import containers
from jinja2 import Template

logger = logging.getLogger(__name__)

CONFIG_FILE_ENVIRONMENT_VARIABLE_NAME = "DOCREPO_CONFIG_FILE"
DEFAULT_CONFIG_FILE_PATH = "docrepo-config.yaml"
SECRET_FILE_ENVIRONMENT_VARIABLE_NAME = "DOCREPO_SECRETS_FILE"
DEFAULT_SECRETS_FILE_PATH = ".docrepo-config-secrets/.secrets.yaml"


def get_application_config_files() -> tuple[str, str]:
    config_file_path = os.environ.get(
        CONFIG_FILE_ENVIRONMENT_VARIABLE_NAME, DEFAULT_CONFIG_FILE_PATH
    )
    secrets_file_path = os.environ.get(
        SECRET_FILE_ENVIRONMENT_VARIABLE_NAME, DEFAULT_SECRETS_FILE_PATH
    )

    return config_file_path, secrets_file_path


def render_config_secrets(
    config: dict[str, Any], secrets: dict[str, Any]
) -> dict[str, Any]:
    if not secrets:
        logger.warning("Secrets dictionary is empty. Placeholders render empty")
    template = Template(yaml.safe_dump(config, allow_unicode=True))
    return yaml.safe_load(template.render(secrets or {}))


def _load_yaml(file_path: str) -> dict[str, Any]:
    with Path(file_path).open() as f:
        return yaml.safe_load(f) or {}


def set_application_configuration(
    container: containers.Container,
    config_file_path: None | str = None,
    secrets_file_path: None | str = None,
) -> bool:
    if not container:
        raise ValueError("Container is not defined")

    default_config_file_path, default_secrets_file_path = (
        get_application_config_files()
    )
    config_file_path = config_file_path or default_config_file_path
    secrets_file_path = secrets_file_path or default_secrets_file_path

    secrets_dict: dict[str, Any] = {}
    if Path(secrets_file_path).exists():
        secrets_dict = _load_yaml(secrets_file_path)
        if not secrets_dict:
            logger.warning("Secret file %s content is empty", secrets_file_path)
    else:
        logger.warning("Secret file %s does not exist.", secrets_file_path)
    container.secrets.from_dict(secrets_dict)

    if not Path(config_file_path).exists():
        logger.error("Config file %s does not exist.", config_file_path)
        return False
    config_dict = _load_yaml(config_file_path)
    if not config_dict:
        logger.error("Config file %s content is empty", config_file_path)
        return False
    config_dict = render_config_secrets(config_dict, secrets_dict)
    container.config.from_dict(config_dict)
    return True
