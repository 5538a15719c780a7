"""Error types raised while searching tools.

Two families exist:

- Caller-input errors (``ConfigInvalidError``, ``PatternInvalidError``) are
  raised synchronously before any server is contacted.
- Per-server errors (subclasses of ``ServerQueryError``) are scoped to a
  single server. The orchestrator records them in an error map keyed by
  server name; they only abort a search when the caller asked to fail fast.
"""


class ToolSearchError(Exception):
    """Base class for all tool search errors."""

    pass


class ConfigInvalidError(ToolSearchError):
    """Raised when a server definition or config file is invalid."""

    pass


class PatternInvalidError(ToolSearchError):
    """Raised when a search pattern fails to compile."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid search pattern '{pattern}': {reason}")


class ServerQueryError(ToolSearchError):
    """Base class for failures querying a single server."""

    kind = "server_error"

    def __init__(self, server_name: str, message: str):
        self.server_name = server_name
        self.message = message
        super().__init__(f"[{server_name}] {message}")


class ConnectFailedError(ServerQueryError):
    """The transport could not be established or initialised."""

    kind = "connect_failed"


class ListFailedError(ServerQueryError):
    """The server was connected but listing its tools failed."""

    kind = "list_failed"


class ServerTimeoutError(ServerQueryError):
    """The server did not answer within the configured timeout."""

    kind = "timeout"

    def __init__(self, server_name: str, timeout: float):
        self.timeout = timeout
        super().__init__(server_name, f"Timed out after {timeout:g}s")
