import httpx

from agentic_chat.reliability import CircuitBreaker, RetryOptions, with_retry
from agentic_chat.tools.web.search_provider import SearchResult

_EXA_SEARCH_URL = "https://api.exa.ai/search"
_TIMEOUT_SECONDS = 30
_SNIPPET_MAX_CHARACTERS = 500


class ExaSearchProvider:
    def __init__(
        self,
        api_key: str,
        *,
        retry_options: RetryOptions | None = None,
        breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._retry_options = retry_options or RetryOptions()
        self._breaker = breaker or CircuitBreaker(name="exa-search")
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "Exa"

    async def search(self, query: str, count: int) -> list[SearchResult]:
        data = await with_retry(
            lambda: self._breaker.execute(lambda: self._post(query, count)),
            self._retry_options,
        )
        return [
            SearchResult(
                title=r.get("title") or "Untitled",
                url=r.get("url", ""),
                description=r.get("text") or r.get("snippet") or "",
                published_date=r.get("publishedDate") or r.get("published_date"),
                author=r.get("author"),
            )
            for r in data.get("results", [])
        ]

    async def _post(self, query: str, count: int) -> dict:
        headers = {
            "x-api-key": self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body = {
            "query": query,
            "numResults": count,
            "type": "auto",
            "contents": {"text": {"maxCharacters": _SNIPPET_MAX_CHARACTERS}},
        }

        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, transport=self._transport) as client:
            response = await client.post(_EXA_SEARCH_URL, headers=headers, json=body)

        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {response.status_code} from Exa Search API",
                request=response.request,
                response=response,
            )

        return response.json()
