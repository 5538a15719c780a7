"""Search models: what to match (criteria), how to run (options) and results.

``SearchCriteria`` is immutable. Any pattern it needs is compiled once when
the criteria is built and reused for every tool evaluated, so an invalid
regex is reported before a single server is contacted.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import mcp
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from mcp_toolsearch.errors import PatternInvalidError, ServerQueryError
from mcp_toolsearch.logging import get_logger

logger = get_logger("models.search")

DEFAULT_TIMEOUT = 30.0
KEYWORD_DELIMITER = ","
REGEX_METACHARACTERS = frozenset("^$|*+?[]()\\")


def _parse_timeout(value: str | None) -> float | None:
    """
    Convert an environment value to a per-server timeout in seconds.

    Returns None for non-positive values to indicate no deadline.
    """
    if value is None:
        return DEFAULT_TIMEOUT

    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning(
            f"Invalid TOOLSEARCH_TIMEOUT value '{value}'. "
            f"Falling back to default of {DEFAULT_TIMEOUT:g}s."
        )
        return DEFAULT_TIMEOUT

    if timeout <= 0:
        return None

    return timeout


def default_timeout() -> float | None:
    return _parse_timeout(os.getenv("TOOLSEARCH_TIMEOUT"))


class SearchMode(str, Enum):
    SUBSTRING = "substring"
    REGEX = "regex"
    KEYWORDS = "keywords"
    WORD_BOUNDARY = "word_boundary"


class SortOrder(str, Enum):
    SERVER_THEN_TOOL = "server_then_tool"
    TOOL_THEN_SERVER = "tool_then_server"
    NONE = "none"


def detect_mode(query: str) -> SearchMode:
    """Classify a raw query string.

    Regex if it contains any regex metacharacter, keywords if it contains the
    keyword delimiter, substring otherwise.
    """
    if any(char in REGEX_METACHARACTERS for char in query):
        return SearchMode.REGEX
    if KEYWORD_DELIMITER in query:
        return SearchMode.KEYWORDS
    return SearchMode.SUBSTRING


def split_keywords(query: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in query.split(KEYWORD_DELIMITER) if part.strip())


class SearchFields(BaseModel):
    """Which tool fields participate in matching."""

    model_config = ConfigDict(frozen=True)

    name: bool = True
    title: bool = True
    description: bool = True
    input_schema: bool = False

    @classmethod
    def all(cls) -> SearchFields:
        return cls(name=True, title=True, description=True, input_schema=True)

    @classmethod
    def none(cls) -> SearchFields:
        return cls(name=False, title=False, description=False, input_schema=False)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> SearchFields:
        """Build a field selection from names such as ``["name", "input_schema"]``."""
        selected = {name.strip().lower().replace("-", "_") for name in names}
        unknown = selected - set(cls.model_fields)
        if unknown:
            raise ValueError(
                f"Unknown search fields: {sorted(unknown)}. "
                f"Available: {sorted(cls.model_fields)}"
            )
        return cls(**{name: name in selected for name in cls.model_fields})

    @property
    def any_enabled(self) -> bool:
        return self.name or self.title or self.description or self.input_schema


class SearchCriteria(BaseModel):
    """Immutable description of which tools match.

    Attributes:
        query: Raw query text, interpreted according to ``mode``. ``None``
            matches every tool.
        mode: How ``query`` is tested against the tool fields.
        fields: Which tool fields are searched.
        case_sensitive: Compare without case folding.
        exact_name: When set, only a tool with exactly this name matches and
            ``query`` is ignored.
        min_description_length: Reject tools whose description is shorter.
    """

    model_config = ConfigDict(frozen=True)

    query: str | None = None
    mode: SearchMode = SearchMode.SUBSTRING
    fields: SearchFields = Field(default_factory=SearchFields)
    case_sensitive: bool = False
    exact_name: str | None = None
    min_description_length: int | None = Field(default=None, ge=0)

    _pattern: re.Pattern[str] | None = PrivateAttr(default=None)
    _keywords: tuple[str, ...] = PrivateAttr(default=())

    def model_post_init(self, __context: Any) -> None:
        if self.query is None:
            return

        if self.mode is SearchMode.REGEX:
            # User patterns cannot be casefolded safely, e.g. \S would become \s
            flags = 0 if self.case_sensitive else re.IGNORECASE
            try:
                self._pattern = re.compile(self.query, flags)
            except re.error as exc:
                raise PatternInvalidError(self.query, str(exc)) from exc
        elif self.mode is SearchMode.WORD_BOUNDARY:
            # Boundaries are any non-alphanumeric character, so "_" separates words.
            # Case-insensitive patterns are searched against casefolded text.
            query = self.query if self.case_sensitive else self.query.casefold()
            self._pattern = re.compile(rf"(?<![^\W_]){re.escape(query)}(?![^\W_])")
        elif self.mode is SearchMode.KEYWORDS:
            self._keywords = split_keywords(self.query)

    @property
    def pattern(self) -> re.Pattern[str] | None:
        """The compiled pattern for regex and word-boundary modes."""
        return self._pattern

    @property
    def keywords(self) -> tuple[str, ...]:
        return self._keywords

    @property
    def matches_everything(self) -> bool:
        return (
            self.query is None
            and self.exact_name is None
            and self.min_description_length is None
        )

    @classmethod
    def substring(cls, query: str, **kwargs: Any) -> SearchCriteria:
        return cls(query=query, mode=SearchMode.SUBSTRING, **kwargs)

    @classmethod
    def regex(cls, pattern: str, **kwargs: Any) -> SearchCriteria:
        return cls(query=pattern, mode=SearchMode.REGEX, **kwargs)

    @classmethod
    def word_boundary(cls, query: str, **kwargs: Any) -> SearchCriteria:
        return cls(query=query, mode=SearchMode.WORD_BOUNDARY, **kwargs)

    @classmethod
    def with_keywords(cls, keywords: str | Iterable[str], **kwargs: Any) -> SearchCriteria:
        if not isinstance(keywords, str):
            keywords = KEYWORD_DELIMITER.join(keywords)
        return cls(query=keywords, mode=SearchMode.KEYWORDS, **kwargs)

    @classmethod
    def with_name(cls, name: str, **kwargs: Any) -> SearchCriteria:
        return cls(exact_name=name, **kwargs)

    @classmethod
    def match_all(cls) -> SearchCriteria:
        return cls()

    @classmethod
    def auto(cls, query: str, **kwargs: Any) -> SearchCriteria:
        """Build criteria for a raw query, detecting the mode once up front."""
        return cls(query=query, mode=detect_mode(query), **kwargs)

    def _replace(self, **changes: Any) -> SearchCriteria:
        # Rebuild rather than model_copy so patterns are recompiled
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_mode(self, mode: SearchMode) -> SearchCriteria:
        return self._replace(mode=mode)

    def with_fields(self, fields: SearchFields) -> SearchCriteria:
        return self._replace(fields=fields)

    def with_case_sensitive(self, case_sensitive: bool = True) -> SearchCriteria:
        return self._replace(case_sensitive=case_sensitive)


class SearchOptions(BaseModel):
    """Execution policy for a search, independent of what matches.

    Attributes:
        timeout: Per-server deadline in seconds covering connect and list.
            ``None`` disables the deadline. Defaults to ``TOOLSEARCH_TIMEOUT``
            or 30 seconds.
        sort_order: Ordering applied after filtering.
        continue_on_error: Return partial results when servers fail. When
            False the first failed server's error is raised instead.
        max_results: Upper bound on returned matches, applied after sorting.
    """

    timeout: float | None = Field(default_factory=default_timeout, gt=0)
    sort_order: SortOrder = SortOrder.SERVER_THEN_TOOL
    continue_on_error: bool = True
    max_results: int | None = Field(default=None, ge=0)


class ToolSearchMatch(BaseModel):
    """A tool together with the name of the server that advertised it."""

    server_name: str
    tool: mcp.Tool

    @property
    def tool_name(self) -> str:
        return self.tool.name

    @property
    def key(self) -> tuple[str, str]:
        return (self.server_name, self.tool.name)


@dataclass(slots=True)
class SearchOutcome:
    """Matches from a search plus the servers that failed, keyed by name."""

    matches: list[ToolSearchMatch] = field(default_factory=list)
    errors: dict[str, ServerQueryError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [
                match.model_dump(mode="json", by_alias=True, exclude_none=True)
                for match in self.matches
            ],
            "errors": {
                name: {"kind": error.kind, "message": error.message}
                for name, error in self.errors.items()
            },
        }
