from typing import Any

import httpx
from loguru import logger

from agentic_chat.errors import AppError
from agentic_chat.tools.web.search_provider import SearchProvider, SearchResult

_DEFAULT_COUNT = 5
_MAX_COUNT = 10
_MAX_QUERY_CHARS = 500


class WebSearchTool:
    def __init__(self, provider: SearchProvider) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return (
            "Search the web for current information: recent events, facts that may "
            "have changed, companies, products or technologies. Returns up to 10 "
            "results with titles, URLs and snippets."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": f"The search query (max {_MAX_QUERY_CHARS} characters). Be specific and clear.",
                },
                "numResults": {
                    "type": "number",
                    "description": f"Number of results to return (1-{_MAX_COUNT}, default {_DEFAULT_COUNT})",
                },
            },
            "required": ["query"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        parsed = _parse_request(tool_input)
        if isinstance(parsed, str):
            return parsed
        query, count = parsed

        try:
            results = await self._provider.search(query, count)
        except httpx.TimeoutException:
            return "Error: Search request timed out"
        except httpx.HTTPError as ex:
            logger.error(f"web_search error: {ex}")
            return f"Error: {ex}"
        except AppError as ex:
            if isinstance(getattr(ex, "original_error", None), httpx.TimeoutException):
                return "Error: Search request timed out"
            logger.error(f"web_search error: {ex.message}")
            return f"Error: {ex.message}"

        if not results:
            return f"No results found for: {query}"
        return _format_results(query, self._provider.provider_name, results)


def _parse_request(tool_input: dict[str, Any]) -> tuple[str, int] | str:
    """Validated ``(query, count)``, or the error text to hand back to the model."""
    query = str(tool_input.get("query", "")).strip()
    if not query:
        return "Error: query must not be empty"
    if len(query) > _MAX_QUERY_CHARS:
        return f"Error: query must be at most {_MAX_QUERY_CHARS} characters"

    try:
        count = int(tool_input.get("numResults", _DEFAULT_COUNT))
    except (TypeError, ValueError):
        return "Error: numResults must be a number"
    return query, max(1, min(_MAX_COUNT, count))


def _format_results(query: str, provider_name: str, results: list[SearchResult]) -> str:
    blocks = [f'Search: "{query}"\nProvider: {provider_name}\nResults: {len(results)}']
    for number, result in enumerate(results, 1):
        entry = [f"{number}. {result.title}", f"   {result.url}"]
        if result.byline:
            entry.append(f"   {result.byline}")
        if result.description:
            entry.append(f"   {result.description}")
        blocks.append("\n".join(entry))
    return "\n\n".join(blocks)


class UnconfiguredWebSearchTool:
    """Stands in for web_search when no search API key is configured."""

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return "Web search placeholder. Explains how to enable web search; returns no results."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query."},
            },
            "required": ["query"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        return (
            "Web search is not configured. Set EXA_API_KEY in the environment "
            "(get a key at https://exa.ai) to enable it. "
            f"Searched for: {tool_input.get('query', '')}"
        )
