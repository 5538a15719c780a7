"""MCP server configuration models.

A server is identified by a unique ``name`` and reached through exactly one
transport: a stdio subprocess or a network stream (SSE or streamable HTTP).
Configs are validated on construction and immutable afterwards.
"""

from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StdioTransportConfig(BaseModel):
    """Spawn the server as a subprocess and talk to it over stdin/stdout.

    Attributes:
        command: The command to run (e.g. ``"python"``).
        args: Command-line arguments passed to the server process.
        env: Environment variable overrides for the server process.
        cwd: Working directory for the server process.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["stdio"] = "stdio"
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("command cannot be empty")
        return value


class StreamTransportConfig(BaseModel):
    """Connect to an already running server over the network.

    Attributes:
        type: ``"sse"`` for Server-Sent Events, ``"streamable-http"`` (or its
            alias ``"http"``) for streamable HTTP.
        url: Absolute ``http``/``https`` URL of the server endpoint.
        headers: HTTP headers sent with every request.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["sse", "streamable-http", "http"] = "streamable-http"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _url_is_absolute(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"invalid URL '{value}', expected an absolute http(s) URL")
        return value


TransportConfig = Annotated[
    StdioTransportConfig | StreamTransportConfig,
    Field(discriminator="type"),
]


class ServerConfig(BaseModel):
    """Identity and connection recipe for one tool-providing server."""

    model_config = ConfigDict(frozen=True)

    name: str
    transport: TransportConfig

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("server name cannot be empty")
        return value

    @property
    def transport_type(self) -> str:
        return self.transport.type

    @property
    def target(self) -> str:
        """Human readable command line or URL for this server."""
        if isinstance(self.transport, StdioTransportConfig):
            return " ".join([self.transport.command, *self.transport.args])
        return self.transport.url
