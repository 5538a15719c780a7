from .config import ToolSearchConfig
from .search import (
    SearchCriteria,
    SearchFields,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SortOrder,
    ToolSearchMatch,
    detect_mode,
)
from .server_config import (
    ServerConfig,
    StdioTransportConfig,
    StreamTransportConfig,
    TransportConfig,
)

__all__ = [
    "ToolSearchConfig",
    "ServerConfig",
    "StdioTransportConfig",
    "StreamTransportConfig",
    "TransportConfig",
    "SearchCriteria",
    "SearchFields",
    "SearchMode",
    "SearchOptions",
    "SearchOutcome",
    "SortOrder",
    "ToolSearchMatch",
    "detect_mode",
]
