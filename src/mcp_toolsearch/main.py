import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from mcp_toolsearch.errors import PatternInvalidError, ServerQueryError
from mcp_toolsearch.logging import configure_logging, get_logger
from mcp_toolsearch.models.config import ToolSearchConfig
from mcp_toolsearch.models.search import SearchCriteria, SearchFields, SearchMode, SortOrder
from mcp_toolsearch.tool_search import search_with_criteria
from mcp_toolsearch.utils import load_config, options_from_config

# Load environment variables
load_dotenv()

# Configure logging
configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger("main")


class AppState:
    """Holds application-wide state initialised during the lifespan."""

    config: ToolSearchConfig


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the server configuration on startup."""
    config_path = os.getenv("TOOLSEARCH_CONFIG", "toolsearch_config.json")
    state.config = load_config(config_path)
    logger.info(f"Application started with {len(state.config.servers)} servers")
    yield
    logger.info("Application shut down")


app = FastAPI(lifespan=lifespan)


class SearchRequest(BaseModel):
    query: str = Field(title="Search query")
    mode: SearchMode | None = Field(default=None, title="Search mode, detected when omitted")
    fields: SearchFields = Field(default_factory=SearchFields, title="Fields to search")
    case_sensitive: bool = Field(default=False, title="Case sensitive matching")
    limit: int | None = Field(default=None, ge=0, title="Maximum number of results")
    sort_order: SortOrder = Field(default=SortOrder.SERVER_THEN_TOOL, title="Result ordering")
    timeout: float | None = Field(
        default=None, title="Per-server timeout in seconds, 0 or less for no deadline"
    )
    continue_on_error: bool | None = Field(
        default=None, title="Return partial results when servers fail"
    )


async def _run(criteria: SearchCriteria, **overrides: Any) -> dict[str, Any]:
    options = options_from_config(state.config, **overrides)
    try:
        outcome = await search_with_criteria(state.config.servers, criteria, options)
    except ServerQueryError as e:
        raise HTTPException(
            status_code=502,
            detail={"server": e.server_name, "kind": e.kind, "message": e.message},
        )
    return outcome.to_dict()


@app.post("/search")
async def search(req: SearchRequest) -> dict[str, Any]:
    try:
        if req.mode is None:
            criteria = SearchCriteria.auto(
                req.query, fields=req.fields, case_sensitive=req.case_sensitive
            )
        else:
            criteria = SearchCriteria(
                query=req.query,
                mode=req.mode,
                fields=req.fields,
                case_sensitive=req.case_sensitive,
            )
    except PatternInvalidError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await _run(
        criteria,
        max_results=req.limit,
        sort_order=req.sort_order,
        timeout=req.timeout,
        continue_on_error=req.continue_on_error,
    )


@app.get("/tools")
async def list_tools(
    limit: int | None = Query(default=None, ge=0),
    sort_order: SortOrder | None = None,
) -> dict[str, Any]:
    """List every tool from every configured server."""
    return await _run(SearchCriteria.match_all(), max_results=limit, sort_order=sort_order)


@app.get("/servers")
async def list_servers() -> list[dict[str, Any]]:
    """List configured servers."""
    return [
        {"name": server.name, "type": server.transport_type, "target": server.target}
        for server in state.config.servers
    ]
