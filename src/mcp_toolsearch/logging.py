import logging

from rich.console import Console
from rich.logging import RichHandler

# Libraries that log on every server connection
_CONNECTION_LOGGERS = ("fastmcp", "mcp", "httpx")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"mcp_toolsearch.{name}")


def configure_logging(
    level: str | int = "INFO",
    logger: logging.Logger | None = None,
) -> None:
    """Send diagnostics to stderr through a single rich handler.

    Level names are accepted in any case, so ``LOG_LEVEL=debug`` works.
    Connection libraries are kept at the same level, except that ``httpx``
    request lines only show up when debugging.
    """
    if isinstance(level, str):
        level = level.upper()

    if logger is None:
        logger = logging.getLogger("mcp_toolsearch")

    # stdout is reserved for search results
    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger.setLevel(level)
    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)

    for name in _CONNECTION_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(level)
        if name == "httpx" and logging.DEBUG < library_logger.level < logging.WARNING:
            library_logger.setLevel(logging.WARNING)

    logger.debug(f"Logging configured at {logging.getLevelName(logger.level)}")
