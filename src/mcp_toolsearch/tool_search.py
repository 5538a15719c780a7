"""High level search entry points.

These tie the orchestrator and the matching engine together and apply the
``continue_on_error`` policy on top of the collected outcomes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from mcp_toolsearch.errors import ConfigInvalidError
from mcp_toolsearch.logging import get_logger
from mcp_toolsearch.matching import evaluate
from mcp_toolsearch.models.search import (
    SearchCriteria,
    SearchFields,
    SearchMode,
    SearchOptions,
    SearchOutcome,
    SortOrder,
)
from mcp_toolsearch.models.server_config import ServerConfig
from mcp_toolsearch.orchestrator import fetch_all

logger = get_logger("tool_search")


def validate_servers(servers: Sequence[ServerConfig]) -> None:
    """Check a server list before any query is issued.

    Raises:
        ConfigInvalidError: If an entry is not a ``ServerConfig`` or two
            servers share a name.
    """
    seen: set[str] = set()
    for server in servers:
        if not isinstance(server, ServerConfig):
            raise ConfigInvalidError(f"Expected ServerConfig, got {type(server).__name__}")
        if server.name in seen:
            raise ConfigInvalidError(f"Duplicate server name '{server.name}'")
        seen.add(server.name)


async def search_with_criteria(
    servers: Sequence[ServerConfig],
    criteria: SearchCriteria,
    options: SearchOptions | None = None,
) -> SearchOutcome:
    """Search all servers with explicit criteria and options.

    Raises:
        ConfigInvalidError: If the server list is invalid.
        ServerQueryError: If ``continue_on_error`` is False and any server
            failed. The first failed server in configured order is reported
            and results from the other servers are discarded.
    """
    options = options or SearchOptions()
    validate_servers(servers)

    fetched = await fetch_all(servers, options.timeout)

    if fetched.errors and not options.continue_on_error:
        first_error = next(iter(fetched.errors.values()))
        logger.error(f"Aborting search: {first_error}")
        raise first_error

    matches = evaluate(fetched.matches, criteria, options)
    return SearchOutcome(matches=matches, errors=dict(fetched.errors))


async def search(
    servers: Sequence[ServerConfig],
    query: str,
    options: SearchOptions | None = None,
) -> SearchOutcome:
    """Search with a raw query, auto-detecting the search mode."""
    criteria = SearchCriteria.auto(query)
    logger.debug(f"Query '{query}' searched as {criteria.mode.value}")
    return await search_with_criteria(servers, criteria, options)


async def list_all(
    servers: Sequence[ServerConfig],
    options: SearchOptions | None = None,
) -> SearchOutcome:
    """Return every tool from every server."""
    return await search_with_criteria(servers, SearchCriteria.match_all(), options)


class SearchBuilder:
    """Fluent construction of a search.

    Example:
        outcome = await (
            SearchBuilder(servers)
            .query("read,file")
            .limit(10)
            .sort_by_tool()
            .search()
        )
    """

    def __init__(self, servers: Sequence[ServerConfig]):
        self._servers = list(servers)
        self._query: str | None = None
        self._mode: SearchMode | None = None
        self._fields = SearchFields()
        self._case_sensitive = False
        self._options = SearchOptions()

    def query(self, query: str) -> SearchBuilder:
        """Set the query. The mode is auto-detected unless ``mode`` is called."""
        self._query = query
        return self

    def keywords(self, keywords: Iterable[str]) -> SearchBuilder:
        self._query = ",".join(keywords)
        self._mode = SearchMode.KEYWORDS
        return self

    def mode(self, mode: SearchMode) -> SearchBuilder:
        self._mode = mode
        return self

    def fields(self, fields: SearchFields) -> SearchBuilder:
        self._fields = fields
        return self

    def case_sensitive(self, sensitive: bool = True) -> SearchBuilder:
        self._case_sensitive = sensitive
        return self

    def limit(self, max_results: int) -> SearchBuilder:
        self._update_options(max_results=max_results)
        return self

    def timeout(self, seconds: float | None) -> SearchBuilder:
        self._update_options(timeout=seconds)
        return self

    def sort_by_tool(self) -> SearchBuilder:
        return self._sort(SortOrder.TOOL_THEN_SERVER)

    def sort_by_server(self) -> SearchBuilder:
        return self._sort(SortOrder.SERVER_THEN_TOOL)

    def unsorted(self) -> SearchBuilder:
        return self._sort(SortOrder.NONE)

    def fail_fast(self, enabled: bool = True) -> SearchBuilder:
        self._update_options(continue_on_error=not enabled)
        return self

    def _sort(self, order: SortOrder) -> SearchBuilder:
        self._update_options(sort_order=order)
        return self

    def _update_options(self, **changes: object) -> None:
        # Revalidate so limits and timeouts keep their bounds
        self._options = SearchOptions.model_validate({**self._options.model_dump(), **changes})

    @property
    def options(self) -> SearchOptions:
        return self._options

    def build_criteria(self) -> SearchCriteria:
        """Build the criteria, compiling any pattern.

        Raises:
            PatternInvalidError: If a regex query does not compile.
        """
        if self._query is None:
            return SearchCriteria.match_all()
        if self._mode is None:
            return SearchCriteria.auto(
                self._query, fields=self._fields, case_sensitive=self._case_sensitive
            )
        return SearchCriteria(
            query=self._query,
            mode=self._mode,
            fields=self._fields,
            case_sensitive=self._case_sensitive,
        )

    async def search(self) -> SearchOutcome:
        return await search_with_criteria(self._servers, self.build_criteria(), self._options)
