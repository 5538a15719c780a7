"""Matching engine over already fetched ``(server, tool)`` pairs.

Evaluation is a pure function: filter by ``SearchCriteria``, sort by the
requested ``SortOrder``, then truncate to ``max_results``. Truncation always
happens after sorting so a limited, sorted search yields a stable top-N.
"""

from collections.abc import Iterable, Sequence
from typing import Any

import mcp

from mcp_toolsearch.logging import get_logger
from mcp_toolsearch.models.search import (
    SearchCriteria,
    SearchMode,
    SearchOptions,
    SortOrder,
    ToolSearchMatch,
    detect_mode,
)

logger = get_logger("matching")

__all__ = [
    "detect_mode",
    "evaluate",
    "field_texts",
    "schema_text",
    "sort_matches",
    "tool_matches",
]


def _collect_schema_text(node: Any, parts: list[str]) -> None:
    if isinstance(node, dict):
        properties = node.get("properties")
        if isinstance(properties, dict):
            parts.extend(str(key) for key in properties)
        for value in node.values():
            _collect_schema_text(value, parts)
    elif isinstance(node, list):
        for item in node:
            _collect_schema_text(item, parts)
    elif isinstance(node, str):
        parts.append(node)


def schema_text(schema: Any) -> str:
    """Flatten an input schema into searchable text.

    Property names and every string value (descriptions, types, enum
    members, ...) are included, recursing through nested objects and arrays.
    """
    parts: list[str] = []
    _collect_schema_text(schema, parts)
    return " ".join(parts)


def field_texts(tool: mcp.Tool, criteria: SearchCriteria) -> list[str]:
    """Return the text of each enabled field present on ``tool``."""
    fields = criteria.fields
    texts: list[str] = []
    if fields.name and tool.name:
        texts.append(tool.name)
    if fields.title and getattr(tool, "title", None):
        texts.append(tool.title)
    if fields.description and tool.description:
        texts.append(tool.description)
    if fields.input_schema:
        text = schema_text(tool.inputSchema or {})
        if text:
            texts.append(text)
    return texts


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.casefold()


def _text_matches(text: str, criteria: SearchCriteria) -> bool:
    query = criteria.query or ""
    mode = criteria.mode
    if mode is SearchMode.SUBSTRING:
        return _fold(query, criteria.case_sensitive) in _fold(text, criteria.case_sensitive)
    if mode is SearchMode.REGEX:
        pattern = criteria.pattern
        return pattern is not None and pattern.search(text) is not None
    if mode is SearchMode.WORD_BOUNDARY:
        pattern = criteria.pattern
        folded = _fold(text, criteria.case_sensitive)
        return pattern is not None and pattern.search(folded) is not None
    if mode is SearchMode.KEYWORDS:
        folded = _fold(text, criteria.case_sensitive)
        return all(_fold(keyword, criteria.case_sensitive) in folded for keyword in criteria.keywords)
    raise ValueError(f"Unhandled search mode: {mode}")


def tool_matches(tool: mcp.Tool, criteria: SearchCriteria) -> bool:
    """Decide whether a single tool satisfies ``criteria``.

    A tool matches when any enabled field passes the mode test. Keywords are
    the exception: every keyword must appear, but they may be spread across
    different fields.
    """
    if criteria.exact_name is not None:
        if criteria.case_sensitive:
            return tool.name == criteria.exact_name
        return tool.name.casefold() == criteria.exact_name.casefold()

    if criteria.min_description_length is not None:
        if len(tool.description or "") < criteria.min_description_length:
            return False

    if criteria.query is None:
        return True

    texts = field_texts(tool, criteria)
    if not texts:
        return False

    if criteria.mode is SearchMode.KEYWORDS:
        # Newline keeps a keyword from matching across a field boundary
        return _text_matches("\n".join(texts), criteria)

    return any(_text_matches(text, criteria) for text in texts)


def sort_matches(matches: Iterable[ToolSearchMatch], order: SortOrder) -> list[ToolSearchMatch]:
    if order is SortOrder.SERVER_THEN_TOOL:
        return sorted(matches, key=lambda m: (m.server_name, m.tool_name))
    if order is SortOrder.TOOL_THEN_SERVER:
        return sorted(matches, key=lambda m: (m.tool_name, m.server_name))
    return list(matches)


def evaluate(
    matches: Sequence[ToolSearchMatch],
    criteria: SearchCriteria,
    options: SearchOptions,
) -> list[ToolSearchMatch]:
    """Filter, sort and limit fetched matches.

    Args:
        matches: ``(server, tool)`` pairs collected by the orchestrator.
        criteria: Which tools match.
        options: Sort order and result limit.

    Returns:
        The matching pairs in the requested order, at most ``max_results``.
    """
    if criteria.matches_everything:
        selected: Iterable[ToolSearchMatch] = matches
    else:
        selected = [match for match in matches if tool_matches(match.tool, criteria)]

    ordered = sort_matches(selected, options.sort_order)
    if options.max_results is not None:
        ordered = ordered[: options.max_results]

    logger.debug(f"Evaluated {len(matches)} tools, {len(ordered)} selected")
    return ordered
