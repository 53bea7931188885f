import asyncio
import unittest

import httpx

from agentic_chat.errors import CircuitOpenError, ExhaustedRetriesError
from agentic_chat.tools.web.search_provider import SearchProvider, SearchResult
from agentic_chat.tools.web.web_search_tool import UnconfiguredWebSearchTool, WebSearchTool


class _FakeProvider:
    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self._results = results or []
        self._error = error
        self.calls: list[tuple[str, int]] = []

    @property
    def provider_name(self) -> str:
        return "Fake"

    async def search(self, query: str, count: int) -> list[SearchResult]:
        self.calls.append((query, count))
        if self._error is not None:
            raise self._error
        return self._results


class WebSearchToolTests(unittest.TestCase):
    # -- properties --

    def test_fake_provider_satisfies_protocol(self) -> None:
        self.assertIsInstance(_FakeProvider(), SearchProvider)

    def test_schema(self) -> None:
        tool = WebSearchTool(_FakeProvider())
        self.assertEqual("web_search", tool.name)
        self.assertEqual(["query"], tool.input_schema["required"])

    # -- validation --

    def test_empty_query(self) -> None:
        provider = _FakeProvider()
        result = asyncio.run(WebSearchTool(provider).execute({"query": "   "}))
        self.assertEqual("Error: query must not be empty", result)
        self.assertEqual([], provider.calls)

    def test_query_too_long(self) -> None:
        result = asyncio.run(WebSearchTool(_FakeProvider()).execute({"query": "q" * 501}))
        self.assertEqual("Error: query must be at most 500 characters", result)

    def test_num_results_must_be_numeric(self) -> None:
        result = asyncio.run(WebSearchTool(_FakeProvider()).execute({"query": "q", "numResults": "many"}))
        self.assertEqual("Error: numResults must be a number", result)

    def test_num_results_is_clamped(self) -> None:
        provider = _FakeProvider()
        tool = WebSearchTool(provider)
        asyncio.run(tool.execute({"query": "q", "numResults": 50}))
        asyncio.run(tool.execute({"query": "q", "numResults": 0}))
        asyncio.run(tool.execute({"query": "q"}))
        self.assertEqual([10, 1, 5], [count for _, count in provider.calls])

    # -- results --

    def test_formats_results(self) -> None:
        provider = _FakeProvider(
            [
                SearchResult(
                    title="Python 3.14 released",
                    url="https://example.test/news",
                    description="Release notes",
                    published_date="2026-10-01",
                    author="PSF",
                ),
                SearchResult(title="Docs", url="https://example.test/docs", description=""),
            ]
        )

        result = asyncio.run(WebSearchTool(provider).execute({"query": "python release"}))

        self.assertEqual(
            "\n".join(
                [
                    'Search: "python release"',
                    "Provider: Fake",
                    "Results: 2",
                    "",
                    "1. Python 3.14 released",
                    "   https://example.test/news",
                    "   PSF | 2026-10-01",
                    "   Release notes",
                    "",
                    "2. Docs",
                    "   https://example.test/docs",
                ]
            ),
            result,
        )

    def test_no_results(self) -> None:
        result = asyncio.run(WebSearchTool(_FakeProvider()).execute({"query": "zzzz"}))
        self.assertEqual("No results found for: zzzz", result)

    # -- errors --

    def test_timeout(self) -> None:
        provider = _FakeProvider(error=httpx.ReadTimeout("slow"))
        result = asyncio.run(WebSearchTool(provider).execute({"query": "q"}))
        self.assertEqual("Error: Search request timed out", result)

    def test_timeout_after_retries(self) -> None:
        timeout = httpx.ReadTimeout("slow")
        provider = _FakeProvider(error=ExhaustedRetriesError("Failed after 3 retries: slow", original_error=timeout))
        result = asyncio.run(WebSearchTool(provider).execute({"query": "q"}))
        self.assertEqual("Error: Search request timed out", result)

    def test_open_circuit(self) -> None:
        provider = _FakeProvider(error=CircuitOpenError("Circuit breaker 'exa-search' is open."))
        result = asyncio.run(WebSearchTool(provider).execute({"query": "q"}))
        self.assertEqual("Error: Circuit breaker 'exa-search' is open.", result)


class UnconfiguredWebSearchToolTests(unittest.TestCase):
    def test_explains_how_to_enable(self) -> None:
        tool = UnconfiguredWebSearchTool()
        result = asyncio.run(tool.execute({"query": "weather"}))
        self.assertEqual("web_search", tool.name)
        self.assertIn("EXA_API_KEY", result)
        self.assertTrue(result.endswith("Searched for: weather"))


if __name__ == "__main__":
    unittest.main()
