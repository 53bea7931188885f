from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    description: str
    published_date: str | None = None
    author: str | None = None

    @property
    def byline(self) -> str:
        """``author | published_date`` with missing parts left out."""
        return " | ".join(p for p in (self.author, self.published_date) if p)


@runtime_checkable
class SearchProvider(Protocol):
    """A web search backend. ``search`` raises on transport and API errors."""

    @property
    def provider_name(self) -> str: ...

    async def search(self, query: str, count: int) -> list[SearchResult]: ...
