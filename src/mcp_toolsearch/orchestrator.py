"""Concurrent tool listing across many MCP servers.

Every server is queried in its own task under a single deadline covering
both connecting and listing. Each task hands back its own outcome to the
fan-in point, so a slow or failing server never blocks or corrupts the
others. The fail-fast/fail-soft decision is left to the caller.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from contextlib import AsyncExitStack
from typing import NamedTuple

import mcp

from mcp_toolsearch.connection import connect
from mcp_toolsearch.errors import (
    ConnectFailedError,
    ListFailedError,
    ServerQueryError,
    ServerTimeoutError,
)
from mcp_toolsearch.logging import get_logger
from mcp_toolsearch.models.search import ToolSearchMatch
from mcp_toolsearch.models.server_config import ServerConfig

logger = get_logger("orchestrator")


class ServerOutcome(NamedTuple):
    server_name: str
    tools: list[mcp.Tool]
    error: ServerQueryError | None


class FetchResult(NamedTuple):
    matches: list[ToolSearchMatch]
    errors: dict[str, ServerQueryError]


async def list_server_tools(server: ServerConfig) -> list[mcp.Tool]:
    """Connect to one server and list all of its tools.

    Raises:
        ConnectFailedError: If the connection or handshake fails.
        ListFailedError: If the server was reached but listing failed.
    """
    client = connect(server)
    async with AsyncExitStack() as stack:
        try:
            await stack.enter_async_context(client)
        except Exception as e:
            raise ConnectFailedError(server.name, str(e) or type(e).__name__) from e

        try:
            return list(await client.list_tools())
        except Exception as e:
            raise ListFailedError(server.name, str(e) or type(e).__name__) from e


async def _fetch_one(server: ServerConfig, timeout: float | None) -> ServerOutcome:
    logger.debug(f"Querying server '{server.name}' ({server.transport_type})")
    started = time.monotonic()
    try:
        if timeout is None:
            tools = await list_server_tools(server)
        else:
            # wait_for cancels the listing task on expiry; its late result is dropped
            tools = await asyncio.wait_for(list_server_tools(server), timeout)
    except asyncio.TimeoutError:
        error: ServerQueryError = ServerTimeoutError(server.name, timeout or 0.0)
    except ServerQueryError as e:
        error = e
    except Exception as e:
        # Anything escaping the client teardown is still scoped to this server
        error = ConnectFailedError(server.name, str(e) or type(e).__name__)
    else:
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        logger.debug(f"Server '{server.name}' returned {len(tools)} tools in {elapsed_ms}ms")
        return ServerOutcome(server.name, tools, None)

    logger.warning(f"Server '{server.name}' failed: {error.message}")
    return ServerOutcome(server.name, [], error)


async def fetch_all(
    servers: Sequence[ServerConfig],
    timeout: float | None = None,
) -> FetchResult:
    """List tools from every server concurrently.

    A timed-out server is cancelled and its client context exited before this
    returns, so a server can overrun its deadline by the time its transport
    takes to shut down. For stdio servers that is the subprocess teardown.

    Args:
        servers: Servers to query. Names are assumed unique.
        timeout: Deadline in seconds for each server, or None for no deadline.

    Returns:
        A ``FetchResult`` of ``(matches, errors)``. ``matches`` tags every tool
        with its server name; ``errors`` maps each failed server to its error.
        Both follow the configured server order.
    """
    if not servers:
        return FetchResult([], {})

    outcomes = await asyncio.gather(*(_fetch_one(server, timeout) for server in servers))

    matches: list[ToolSearchMatch] = []
    errors: dict[str, ServerQueryError] = {}
    for outcome in outcomes:
        if outcome.error is not None:
            errors[outcome.server_name] = outcome.error
            continue
        matches.extend(
            ToolSearchMatch(server_name=outcome.server_name, tool=tool) for tool in outcome.tools
        )

    logger.info(
        f"Collected {len(matches)} tools from {len(servers) - len(errors)} of "
        f"{len(servers)} servers"
    )
    return FetchResult(matches, errors)
