from . import models
from .errors import (
    ConfigInvalidError,
    ConnectFailedError,
    ListFailedError,
    PatternInvalidError,
    ServerQueryError,
    ServerTimeoutError,
    ToolSearchError,
)
from .matching import evaluate, tool_matches
from .orchestrator import FetchResult, fetch_all
from .tool_search import SearchBuilder, list_all, search, search_with_criteria
from .utils import load_config, load_servers

__all__ = [
    "ConfigInvalidError",
    "ConnectFailedError",
    "FetchResult",
    "ListFailedError",
    "PatternInvalidError",
    "SearchBuilder",
    "ServerQueryError",
    "ServerTimeoutError",
    "ToolSearchError",
    "evaluate",
    "fetch_all",
    "list_all",
    "load_config",
    "load_servers",
    "models",
    "search",
    "search_with_criteria",
    "tool_matches",
]
