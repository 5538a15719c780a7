"""
Example: The four search modes.

Runs the same servers through substring, keyword, regex and word-boundary
searches and prints what each one finds.
"""

import asyncio
import os

from dotenv import load_dotenv

from mcp_toolsearch.logging import configure_logging
from mcp_toolsearch.models import SearchCriteria, SearchFields, SearchOptions
from mcp_toolsearch.tool_search import search_with_criteria
from mcp_toolsearch.utils import load_servers

load_dotenv()
configure_logging(level=os.getenv("LOG_LEVEL", "WARNING"))

CONFIG_PATH = os.getenv("TOOLSEARCH_CONFIG", "toolsearch_config.json")


async def main():
    servers = load_servers(CONFIG_PATH)
    options = SearchOptions(max_results=10)

    searches = {
        "substring 'file'": SearchCriteria.substring("file"),
        "keywords read + file": SearchCriteria.with_keywords(["read", "file"]),
        "regex ^(get|list)_": SearchCriteria.regex("^(get|list)_"),
        "word 'read' in names": SearchCriteria.word_boundary(
            "read", fields=SearchFields(name=True, title=False, description=False)
        ),
    }

    for label, criteria in searches.items():
        outcome = await search_with_criteria(servers, criteria, options)
        print(f"\n{label}: {len(outcome.matches)} match(es)")
        for match in outcome.matches:
            print(f"  {match.server_name}/{match.tool_name}")
        for server_name, error in outcome.errors.items():
            print(f"  ! {server_name}: {error.message}")


if __name__ == "__main__":
    asyncio.run(main())
