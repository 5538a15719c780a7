import json
from pathlib import Path

from pydantic import ValidationError

from mcp_toolsearch.errors import ConfigInvalidError
from mcp_toolsearch.logging import get_logger
from mcp_toolsearch.models.config import ToolSearchConfig
from mcp_toolsearch.models.search import SearchOptions
from mcp_toolsearch.models.server_config import ServerConfig

logger = get_logger("utils")


def load_config(path: str | Path) -> ToolSearchConfig:
    """Load and validate a tool search config file.

    Raises:
        ConfigInvalidError: If the file is missing, is not valid JSON or
            fails validation.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigInvalidError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigInvalidError(f"Invalid JSON in config file {path}: {e}") from e

    try:
        config = ToolSearchConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigInvalidError(f"Invalid configuration in {path}:\n{e}") from e

    logger.debug(f"Loaded {len(config.servers)} servers from {path}")
    return config


def load_servers(path: str | Path) -> list[ServerConfig]:
    return load_config(path).servers


def options_from_config(config: ToolSearchConfig, **overrides: object) -> SearchOptions:
    """Default search options for a config, with explicit overrides applied.

    ``None`` overrides keep the config value. A ``timeout`` override of zero or
    less disables the deadline, the same rule ``TOOLSEARCH_TIMEOUT`` follows.

    Raises:
        ValidationError: If an override is out of range.
    """
    values: dict[str, object] = {
        "timeout": config.timeout,
        "continue_on_error": config.continue_on_error,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    timeout = overrides.get("timeout")
    if isinstance(timeout, (int, float)) and timeout <= 0:
        values["timeout"] = None
    return SearchOptions.model_validate(values)
