import asyncio
import gc
import json
import os
import warnings
from enum import Enum
from typing import Annotated, Any

import typer
import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mcp_toolsearch.errors import ConfigInvalidError, PatternInvalidError, ServerQueryError
from mcp_toolsearch.logging import configure_logging
from mcp_toolsearch.models.config import ToolSearchConfig
from mcp_toolsearch.models.search import (
    SearchCriteria,
    SearchFields,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SortOrder,
)
from mcp_toolsearch.models.server_config import StdioTransportConfig
from mcp_toolsearch.tool_search import search_with_criteria
from mcp_toolsearch.utils import load_config, options_from_config

app = typer.Typer(help="Search tools across MCP servers")
console = Console()
err_console = Console(stderr=True)

DEFAULT_CONFIG = "toolsearch_config.json"
_MAX_DESCRIPTION_LENGTH = 50

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Server configuration file")]
TimeoutOption = Annotated[
    float | None, typer.Option(help="Per-server timeout in seconds, 0 for no deadline")
]


class OutputFormat(str, Enum):
    text = "text"
    json = "json"
    table = "table"


@app.callback()
def main(
    log_level: Annotated[
        str, typer.Option(envvar="LOG_LEVEL", help="Log level for diagnostics on stderr")
    ] = "WARNING",
) -> None:
    load_dotenv()
    configure_logging(log_level)


def run_async_with_cleanup(coro: Any) -> Any:
    """Run a search coroutine to completion from synchronous CLI code.

    Stdio servers that were abandoned on timeout can leave subprocess
    transports behind. Their "Event loop is closed" warnings are suppressed
    and a final gc.collect() releases them.
    """
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message="Event loop is closed")
        try:
            return asyncio.run(coro)
        finally:
            gc.collect()


def _load_config_or_exit(path: str) -> ToolSearchConfig:
    try:
        return load_config(path)
    except ConfigInvalidError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e


def _truncate(text: str | None) -> str:
    if not text:
        return "N/A"
    if len(text) > _MAX_DESCRIPTION_LENGTH:
        return text[: _MAX_DESCRIPTION_LENGTH - 3] + "..."
    return text


def render_outcome(outcome: SearchOutcome, output: OutputFormat, header: str) -> None:
    """Print search results in the requested format."""
    if output is OutputFormat.json:
        console.print_json(json.dumps(outcome.to_dict()))
    elif not outcome.matches:
        console.print("No results found")
    elif output is OutputFormat.table:
        table = Table("Server", "Tool", "Description", title=escape(header))
        for match in outcome.matches:
            table.add_row(
                escape(match.server_name),
                escape(match.tool_name),
                escape(_truncate(match.tool.description)),
            )
        console.print(table)
    else:
        console.print(f"{header}\n", markup=False)
        for match in outcome.matches:
            lines = [f"Server: {match.server_name}", f"  Name: {match.tool_name}"]
            title = getattr(match.tool, "title", None)
            if title:
                lines.append(f"  Title: {title}")
            if match.tool.description:
                lines.append(f"  Description: {match.tool.description}")
            console.print("\n".join(lines) + "\n", markup=False, highlight=False)

    for server_name, error in outcome.errors.items():
        err_console.print(
            f"[yellow]Warning:[/yellow] server '{server_name}' failed ({error.kind}): "
            f"{escape(error.message)}",
            highlight=False,
        )


def _run_search(
    config: ToolSearchConfig,
    criteria: SearchCriteria,
    options: SearchOptions,
) -> SearchOutcome:
    try:
        return run_async_with_cleanup(search_with_criteria(config.servers, criteria, options))
    except ServerQueryError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e


def _build_options(
    config: ToolSearchConfig,
    limit: int | None,
    sort_by_tool: bool,
    timeout: float | None,
    fail_fast: bool,
) -> SearchOptions:
    overrides: dict[str, Any] = {
        "max_results": limit,
        "timeout": timeout,
        "sort_order": SortOrder.TOOL_THEN_SERVER if sort_by_tool else SortOrder.SERVER_THEN_TOOL,
    }
    if fail_fast:
        overrides["continue_on_error"] = False
    try:
        return options_from_config(config, **overrides)
    except ValidationError as e:
        err_console.print(f"[red]Invalid option:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Query: regex if it has ^$|*+?[]()\\, keywords if comma separated")],
    config: ConfigOption = DEFAULT_CONFIG,
    output: Annotated[OutputFormat, typer.Option("--format", "-f")] = OutputFormat.text,
    limit: Annotated[int | None, typer.Option("--limit", "-l", min=0)] = None,
    sort_by_tool: Annotated[bool, typer.Option(help="Sort by tool name, then server")] = False,
    mode: Annotated[SearchMode | None, typer.Option(help="Override the detected search mode")] = None,
    case_sensitive: Annotated[bool, typer.Option()] = False,
    field: Annotated[
        list[str] | None,
        typer.Option(help="Field to search (name, title, description, input_schema). Repeatable."),
    ] = None,
    timeout: TimeoutOption = None,
    fail_fast: Annotated[bool, typer.Option(help="Abort on the first server error")] = False,
) -> None:
    """
    Search for tools matching a query across all configured servers.
    """
    tool_config = _load_config_or_exit(config)

    try:
        fields = SearchFields.from_names(field) if field else SearchFields()
        if mode is None:
            criteria = SearchCriteria.auto(query, fields=fields, case_sensitive=case_sensitive)
        else:
            criteria = SearchCriteria(
                query=query, mode=mode, fields=fields, case_sensitive=case_sensitive
            )
    except (PatternInvalidError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(code=1) from e

    options = _build_options(tool_config, limit, sort_by_tool, timeout, fail_fast)
    outcome = _run_search(tool_config, criteria, options)
    render_outcome(outcome, output, f"Found {len(outcome.matches)} tool(s) matching '{query}'")


@app.command("list")
def list_tools(
    config: ConfigOption = DEFAULT_CONFIG,
    output: Annotated[OutputFormat, typer.Option("--format", "-f")] = OutputFormat.text,
    limit: Annotated[int | None, typer.Option("--limit", "-l", min=0)] = None,
    sort_by_tool: Annotated[bool, typer.Option(help="Sort by tool name, then server")] = False,
    timeout: TimeoutOption = None,
    fail_fast: Annotated[bool, typer.Option(help="Abort on the first server error")] = False,
) -> None:
    """
    List all tools from all configured servers.
    """
    tool_config = _load_config_or_exit(config)
    options = _build_options(tool_config, limit, sort_by_tool, timeout, fail_fast)
    outcome = _run_search(tool_config, SearchCriteria.match_all(), options)
    render_outcome(outcome, output, f"Found {len(outcome.matches)} tool(s) across all servers")


@app.command()
def validate(config: ConfigOption = DEFAULT_CONFIG) -> None:
    """
    Validate a server configuration file.
    """
    tool_config = _load_config_or_exit(config)
    console.print("[green]✓[/green] Configuration file is valid")
    console.print(f"[green]✓[/green] Found {len(tool_config.servers)} server(s)")
    for server in tool_config.servers:
        console.print(f"  - {server.name}", markup=False)


@app.command()
def servers(config: ConfigOption = DEFAULT_CONFIG) -> None:
    """
    Return a table of all configured servers
    """
    tool_config = _load_config_or_exit(config)
    table = Table("Name", "Type", "Command / Url", "Env")

    for server in tool_config.servers:
        env = ""
        if isinstance(server.transport, StdioTransportConfig):
            env = ", ".join(sorted(server.transport.env))
        table.add_row(server.name, server.transport_type, server.target, env)

    console.print(table)


@app.command()
def serve(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """
    Start the tool search HTTP API.
    """
    os.environ.setdefault("TOOLSEARCH_CONFIG", DEFAULT_CONFIG)
    uvicorn.run("mcp_toolsearch.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
