"""
Example: Partial results versus fail-fast.

By default a failing server is reported next to the results. With
``fail_fast()`` the first failed server aborts the search instead.
"""

import asyncio
import os

from dotenv import load_dotenv

from mcp_toolsearch import SearchBuilder, ServerQueryError, load_servers
from mcp_toolsearch.logging import configure_logging

load_dotenv()
configure_logging(level=os.getenv("LOG_LEVEL", "WARNING"))

CONFIG_PATH = os.getenv("TOOLSEARCH_CONFIG", "toolsearch_config.json")


async def main():
    servers = load_servers(CONFIG_PATH)

    outcome = await SearchBuilder(servers).timeout(5).sort_by_tool().search()
    print(f"Partial: {len(outcome.matches)} tools, {len(outcome.errors)} failed server(s)")
    for server_name, error in outcome.errors.items():
        print(f"  {server_name} ({error.kind}): {error.message}")

    try:
        outcome = await SearchBuilder(servers).timeout(5).fail_fast().search()
    except ServerQueryError as e:
        print(f"\nFail-fast aborted on '{e.server_name}': {e.message}")
    else:
        print(f"\nFail-fast: all servers answered, {len(outcome.matches)} tools")


if __name__ == "__main__":
    asyncio.run(main())
