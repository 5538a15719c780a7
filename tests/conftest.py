"""Shared pytest fixtures."""

import asyncio
from collections.abc import Callable, Iterator, Sequence
from unittest.mock import patch

import mcp
import pytest

from mcp_toolsearch.models.server_config import ServerConfig, StdioTransportConfig


class FakeClient:
    """Stand-in for a FastMCP client with controllable failures and latency."""

    def __init__(
        self,
        tools: Sequence[mcp.Tool] = (),
        connect_error: Exception | None = None,
        list_error: Exception | None = None,
        delay: float = 0.0,
        exit_delay: float = 0.0,
    ):
        self.tools = list(tools)
        self.exit_delay = exit_delay
        self.connect_error = connect_error
        self.list_error = list_error
        self.delay = delay
        self.entered = False
        self.closed = False
        self.list_calls = 0

    async def __aenter__(self) -> "FakeClient":
        if self.connect_error is not None:
            raise self.connect_error
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self.exit_delay:
            await asyncio.sleep(self.exit_delay)
        self.closed = True

    async def list_tools(self) -> list[mcp.Tool]:
        self.list_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.list_error is not None:
            raise self.list_error
        return list(self.tools)


def make_tools(*names: str) -> list[mcp.Tool]:
    return [
        mcp.Tool(
            name=name,
            description=f"Description for {name}",
            inputSchema={"type": "object", "properties": {}},
        )
        for name in names
    ]


@pytest.fixture
def fake_clients() -> Iterator[dict[str, FakeClient]]:
    """Patch connection creation so each server name maps to a FakeClient."""
    clients: dict[str, FakeClient] = {}
    with patch(
        "mcp_toolsearch.orchestrator.connect",
        side_effect=lambda server: clients[server.name],
    ):
        yield clients


@pytest.fixture
def fake_server(fake_clients: dict[str, FakeClient]) -> Callable[..., ServerConfig]:
    """Register a fake server and return its config.

    Tools may be given as names or ``mcp.Tool`` instances.
    """

    def _register(
        name: str,
        tools: Sequence[str | mcp.Tool] = (),
        *,
        connect_error: Exception | None = None,
        list_error: Exception | None = None,
        delay: float = 0.0,
        exit_delay: float = 0.0,
    ) -> ServerConfig:
        resolved = [make_tools(t)[0] if isinstance(t, str) else t for t in tools]
        fake_clients[name] = FakeClient(
            resolved, connect_error, list_error, delay, exit_delay
        )
        return ServerConfig(name=name, transport=StdioTransportConfig(command=f"{name}-server"))

    return _register


@pytest.fixture
def sample_config_data() -> dict[str, object]:
    """Sample configuration data for tests."""
    return {
        "servers": [
            {
                "name": "files",
                "transport": {"type": "stdio", "command": "python", "args": ["-m", "files"]},
            },
            {
                "name": "weather",
                "transport": {"type": "sse", "url": "https://weather.example.com/sse"},
            },
        ],
        "timeout": 10,
    }
