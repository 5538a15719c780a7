"""Tests for concurrent tool listing across servers."""

import asyncio
import time
from unittest.mock import patch

import pytest

from mcp_toolsearch.errors import ConnectFailedError, ListFailedError, ServerTimeoutError
from mcp_toolsearch.orchestrator import fetch_all, list_server_tools


class TestFetchAll:
    async def test_no_servers(self) -> None:
        """An empty server list returns immediately without connecting."""
        with patch("mcp_toolsearch.orchestrator.connect") as mock_connect:
            result = await asyncio.wait_for(fetch_all([]), timeout=1)

        assert result.matches == []
        assert result.errors == {}
        mock_connect.assert_not_called()

    async def test_tags_tools_with_server_name(self, fake_server) -> None:
        servers = [
            fake_server("files", ["read_file", "write_file"]),
            fake_server("weather", ["get_forecast"]),
        ]

        result = await fetch_all(servers, timeout=1)

        assert sorted(m.key for m in result.matches) == [
            ("files", "read_file"),
            ("files", "write_file"),
            ("weather", "get_forecast"),
        ]
        assert result.errors == {}

    async def test_partial_failure(self, fake_server) -> None:
        """A timed-out server is reported without affecting the others."""
        servers = [
            fake_server("a", ["a1", "a2"]),
            fake_server("b", ["b1"], delay=5),
            fake_server("c", ["c1", "c2", "c3"]),
        ]

        result = await fetch_all(servers, timeout=0.2)

        assert len(result.matches) == 5
        assert {m.server_name for m in result.matches} == {"a", "c"}
        assert list(result.errors) == ["b"]
        assert isinstance(result.errors["b"], ServerTimeoutError)
        assert result.errors["b"].server_name == "b"

    async def test_timeout_releases_connection(self, fake_server, fake_clients) -> None:
        servers = [fake_server("slow", ["tool"], delay=5)]

        await fetch_all(servers, timeout=0.1)

        assert fake_clients["slow"].entered
        assert fake_clients["slow"].closed

    async def test_timeout_waits_for_teardown(self, fake_server, fake_clients) -> None:
        """A timed-out server is fully closed before the fetch returns."""
        servers = [fake_server("stdio", ["tool"], delay=5, exit_delay=0.3)]

        started = time.monotonic()
        result = await fetch_all(servers, timeout=0.1)
        elapsed = time.monotonic() - started

        assert isinstance(result.errors["stdio"], ServerTimeoutError)
        assert fake_clients["stdio"].closed
        assert 0.35 <= elapsed < 2

    async def test_connect_failure(self, fake_server) -> None:
        servers = [
            fake_server("down", connect_error=OSError("No such file or directory")),
            fake_server("up", ["tool"]),
        ]

        result = await fetch_all(servers, timeout=1)

        error = result.errors["down"]
        assert isinstance(error, ConnectFailedError)
        assert "No such file" in error.message
        assert [m.key for m in result.matches] == [("up", "tool")]

    async def test_list_failure(self, fake_server, fake_clients) -> None:
        servers = [fake_server("broken", list_error=RuntimeError("Method not found"))]

        result = await fetch_all(servers, timeout=1)

        assert isinstance(result.errors["broken"], ListFailedError)
        assert result.matches == []
        assert fake_clients["broken"].closed

    async def test_failed_server_contributes_nothing(self, fake_server) -> None:
        """A server failing after listing part of its tools adds no matches."""
        servers = [fake_server("flaky", ["t1", "t2"], list_error=RuntimeError("dropped"))]

        result = await fetch_all(servers)

        assert result.matches == []
        assert "flaky" in result.errors

    async def test_servers_queried_concurrently(self, fake_server) -> None:
        servers = [fake_server(f"s{i}", [f"tool{i}"], delay=0.2) for i in range(5)]

        started = time.monotonic()
        result = await fetch_all(servers, timeout=2)
        elapsed = time.monotonic() - started

        assert len(result.matches) == 5
        assert elapsed < 0.8

    async def test_no_timeout(self, fake_server) -> None:
        servers = [fake_server("files", ["read_file"], delay=0.05)]

        result = await fetch_all(servers, timeout=None)

        assert [m.tool_name for m in result.matches] == ["read_file"]

    async def test_errors_follow_configured_order(self, fake_server) -> None:
        servers = [
            fake_server("z", list_error=RuntimeError("boom")),
            fake_server("a", delay=5),
            fake_server("m", connect_error=RuntimeError("refused")),
        ]

        result = await fetch_all(servers, timeout=0.1)

        assert list(result.errors) == ["z", "a", "m"]

    async def test_external_cancellation(self, fake_server, fake_clients) -> None:
        """Cancelling the whole fetch abandons unresponsive servers promptly."""
        servers = [fake_server("hung", ["tool"], delay=60), fake_server("fast", ["tool"])]

        task = asyncio.create_task(fetch_all(servers, timeout=None))
        await asyncio.sleep(0.1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert fake_clients["hung"].closed


class TestListServerTools:
    async def test_returns_tools(self, fake_server) -> None:
        server = fake_server("files", ["read_file"])
        tools = await list_server_tools(server)
        assert [t.name for t in tools] == ["read_file"]

    async def test_connect_error_wrapped(self, fake_server) -> None:
        server = fake_server("files", connect_error=ConnectionRefusedError())
        with pytest.raises(ConnectFailedError) as exc_info:
            await list_server_tools(server)
        assert exc_info.value.message == "ConnectionRefusedError"
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)
