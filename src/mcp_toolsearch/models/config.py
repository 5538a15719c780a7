from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, model_validator

from mcp_toolsearch.logging import get_logger
from mcp_toolsearch.models.search import default_timeout
from mcp_toolsearch.models.server_config import ServerConfig

logger = get_logger("config")


def _infer_transport_type(transport: dict[str, Any]) -> dict[str, Any]:
    """Fill in the ``type`` discriminator when a transport omits it."""
    if "type" in transport:
        return transport

    transport = dict(transport)
    if "command" in transport:
        transport["type"] = "stdio"
    elif "url" in transport:
        path = urlparse(str(transport["url"])).path
        transport["type"] = "sse" if path.rstrip("/").endswith("/sse") else "streamable-http"
    return transport


class ToolSearchConfig(BaseModel):
    """Servers to search plus the default search policy.

    Attributes:
        servers: Ordered server definitions. Names must be unique.
        timeout: Default per-server timeout in seconds, ``None`` for no deadline.
            Falls back to ``TOOLSEARCH_TIMEOUT`` or 30 seconds.
        continue_on_error: Return partial results when some servers fail
            instead of aborting on the first failure.
    """

    servers: list[ServerConfig] = Field(default_factory=list)
    timeout: float | None = Field(default_factory=default_timeout, gt=0)
    continue_on_error: bool = True

    @model_validator(mode="before")
    @classmethod
    def normalise_formats(cls, data: Any) -> Any:
        """Accept a bare server list or an ``mcpServers`` mapping."""
        # Bare list of server records
        if isinstance(data, list):
            data = {"servers": data}

        if not isinstance(data, dict):
            return data

        data = dict(data)

        # Desktop-client style mapping of name -> flat server definition
        mcp_servers = data.pop("mcpServers", None)
        if isinstance(mcp_servers, dict):
            logger.debug(f"Converting {len(mcp_servers)} mcpServers entries")
            servers = list(data.get("servers", []))
            for name, entry in mcp_servers.items():
                if not isinstance(entry, dict):
                    servers.append({"name": name, "transport": entry})
                    continue
                transport = {
                    key: value
                    for key, value in entry.items()
                    if key in ("type", "transport", "command", "args", "env", "cwd", "url", "headers")
                }
                # fastmcp configs spell the discriminator "transport"
                if "transport" in transport:
                    transport.setdefault("type", transport.pop("transport"))
                servers.append({"name": name, "transport": transport})
            data["servers"] = servers

        servers = data.get("servers")
        if isinstance(servers, list):
            data["servers"] = [
                {**server, "transport": _infer_transport_type(server["transport"])}
                if isinstance(server, dict) and isinstance(server.get("transport"), dict)
                else server
                for server in servers
            ]

        return data

    @model_validator(mode="after")
    def check_unique_names(self) -> "ToolSearchConfig":
        seen: set[str] = set()
        duplicates: list[str] = []
        for server in self.servers:
            if server.name in seen:
                duplicates.append(server.name)
            seen.add(server.name)
        if duplicates:
            raise ValueError(f"Duplicate server names: {sorted(set(duplicates))}")
        return self

    def get_server(self, name: str) -> ServerConfig | None:
        for server in self.servers:
            if server.name == name:
                return server
        return None
