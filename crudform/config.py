import importlib
import logging
import os
import re
from pathlib import Path
from typing import Any, TypedDict

import httpx
import yaml

from crudform.exceptions import CrudFormConfigError
from crudform.http.client import add_jwt_authorization_bearer_header

logger = logging.getLogger(__name__)

# Default config file name
DEFAULT_CONFIG_FILE = "crudform.config.yaml"
DEFAULT_TIMEOUT = 30.0

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ClientConfig(TypedDict, total=False):
    base_url: str
    timeout: float
    token: str
    bearer_scheme: bool
    headers: dict[str, str]


class ResourceConfig(TypedDict, total=False):
    get_one: str
    get_paged: str
    add: str
    update: str
    delete: str
    add_with_blobs: str
    update_with_blobs: str
    download: str
    blob_validator: str
    json_part_name: str


class CrudFormConfig(TypedDict, total=False):
    client: ClientConfig
    resources: dict[str, ResourceConfig]


def import_from_string(import_str: str) -> Any:
    """Import a class, function, or variable from a module by string.

    Configuration files refer to validators this way, for example
    ``blob_validator: "myapp.validators:CustomerBlobValidator"``.

    Args:
        import_str: String in the format "module.path:symbol". Nested attributes
            are separated with dots after the colon.

    Returns:
        The imported object.

    Raises:
        CrudFormConfigError: If the module or the symbol cannot be imported.
    """
    if ":" not in import_str:
        raise CrudFormConfigError(
            f"Invalid import string format '{import_str}'. Expected 'module.path:symbol'."
        )

    module_path, object_path = import_str.split(":", 1)

    try:
        module = importlib.import_module(module_path)

        # Handle nested attributes
        target = module
        for part in object_path.split("."):
            target = getattr(target, part)

        return target
    except (ImportError, AttributeError) as e:
        raise CrudFormConfigError(f"Failed to import '{import_str}': {str(e)}") from e


def load_raw_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load a configuration file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Dictionary containing the configuration, empty if the file does not exist.

    Raises:
        CrudFormConfigError: If the configuration file could not be loaded.
    """
    try:
        config_path_obj = Path(config_path)
        if not config_path_obj.exists():
            logger.debug(f"Config file {config_path} not found, using defaults")
            return {}

        with open(config_path_obj) as f:
            config = yaml.safe_load(f)

        if config is None:  # Empty file
            config = {}

        if not isinstance(config, dict):
            raise CrudFormConfigError(
                f"Invalid configuration format in {config_path}. Expected a dictionary."
            )

        return config
    except Exception as e:
        if isinstance(e, CrudFormConfigError):
            raise
        raise CrudFormConfigError(
            f"Error loading configuration from {config_path}: {str(e)}"
        ) from e


def _substitute_env_vars(config: Any) -> Any:
    """
    Substitute ``${VAR_NAME}`` references with environment variable values.

    Raises:
        CrudFormConfigError: If a referenced environment variable is not set
    """

    def replace_env_var(match: re.Match) -> str:
        env_var = match.group(1)
        env_value = os.getenv(env_var)
        if env_value is None:
            raise CrudFormConfigError(
                f"Required environment variable '{env_var}' is not set"
            )

        return env_value

    match config:
        case str():
            return ENV_PATTERN.sub(replace_env_var, config)

        case dict():
            return {k: _substitute_env_vars(v) for k, v in config.items()}

        case list():
            return [_substitute_env_vars(item) for item in config]

        case _:
            return config


def validate_config(config: dict[str, Any]) -> None:
    client = config.get("client", {})
    if not isinstance(client, dict):
        raise CrudFormConfigError("'client' must be a dictionary")

    timeout = client.get("timeout")
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        raise CrudFormConfigError(f"Invalid client timeout: {timeout!r}")

    resources = config.get("resources", {})
    if not isinstance(resources, dict):
        raise CrudFormConfigError("'resources' must be a dictionary")

    for name, resource in resources.items():
        if not isinstance(resource, dict):
            raise CrudFormConfigError(f"Resource '{name}' must be a dictionary")


def load_config(config_path: str | Path = DEFAULT_CONFIG_FILE) -> CrudFormConfig:
    """
    Load a configuration file, substitute environment variables and validate it.

    Raises:
        CrudFormConfigError: If the configuration is invalid
    """
    config = _substitute_env_vars(load_raw_config(config_path))
    validate_config(config)
    return config


def get_resource_config(config: CrudFormConfig, name: str) -> ResourceConfig:
    try:
        return config.get("resources", {})[name]
    except KeyError:
        raise CrudFormConfigError(f"Resource '{name}' is not configured") from None


def create_http_client(
    client_config: ClientConfig | None = None, **kwargs: Any
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` from the ``client`` section of the config.

    Extra keyword arguments are passed through to ``httpx.AsyncClient`` (tests use
    this to inject a ``transport``). The caller is responsible for closing the
    client, typically with ``async with``.
    """
    client_config = client_config or {}
    client = httpx.AsyncClient(
        base_url=client_config.get("base_url", ""),
        timeout=client_config.get("timeout", DEFAULT_TIMEOUT),
        headers=client_config.get("headers") or {},
        **kwargs,
    )
    add_jwt_authorization_bearer_header(
        client,
        client_config.get("token"),
        add_bearer_scheme=client_config.get("bearer_scheme", True),
    )
    return client
