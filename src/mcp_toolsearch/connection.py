"""Build FastMCP clients for configured servers."""

from typing import Any

from fastmcp import Client
from fastmcp.client.transports import (
    ClientTransport,
    SSETransport,
    StdioTransport,
    StreamableHttpTransport,
)

from mcp_toolsearch.models.server_config import (
    ServerConfig,
    StdioTransportConfig,
    StreamTransportConfig,
)


def build_transport(server: ServerConfig) -> ClientTransport:
    transport = server.transport
    if isinstance(transport, StdioTransportConfig):
        # keep_alive=False so the subprocess ends with the client context
        return StdioTransport(
            command=transport.command,
            args=list(transport.args),
            env=dict(transport.env) or None,
            cwd=transport.cwd,
            keep_alive=False,
        )
    if isinstance(transport, StreamTransportConfig):
        headers = dict(transport.headers) or None
        if transport.type == "sse":
            return SSETransport(url=transport.url, headers=headers)
        return StreamableHttpTransport(url=transport.url, headers=headers)
    raise TypeError(f"Unsupported transport for server '{server.name}': {transport!r}")


def connect(server: ServerConfig) -> Client[Any]:
    """Create an unconnected client for ``server``.

    The connection is opened by entering the client's async context and torn
    down when it exits.
    """
    return Client(build_transport(server))
