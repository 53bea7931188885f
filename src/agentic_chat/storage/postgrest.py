from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from agentic_chat.reliability import CircuitBreaker, RetryOptions, with_retry

NO_ROWS_CODE = "PGRST116"
FOREIGN_KEY_VIOLATION_CODE = "23503"

_REST_PATH = "/rest/v1"
_TIMEOUT_SECONDS = 30.0
_SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class PostgrestError(Exception):
    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details

    @classmethod
    def from_response(cls, response: httpx.Response) -> PostgrestError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or f"HTTP {response.status_code} from remote store"
        return cls(
            str(message),
            code=body.get("code"),
            status_code=response.status_code,
            details=body.get("details") or body.get("hint"),
        )


class PostgrestClient:
    """Minimal async client for a PostgREST endpoint (e.g. Supabase)."""

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = _TIMEOUT_SECONDS,
        retry_options: RetryOptions | None = None,
        breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        base_url = httpx.URL(url.rstrip("/") + _REST_PATH)
        if base_url.scheme not in ("http", "https") or not base_url.host:
            raise ValueError(f"Remote store URL must be an http(s) URL, got {url!r}")
        if not api_key:
            raise ValueError("Remote store API key must not be empty")

        self._retry_options = retry_options or RetryOptions()
        self._breaker = breaker or CircuitBreaker(name="remote-store")
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
        )

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def aclose(self) -> None:
        await self._http.aclose()

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        embedded_order: dict[str, str] | None = None,
        single: bool = False,
    ) -> Any:
        params = self._filter_params(filters)
        params["select"] = columns
        if order:
            params["order"] = order
        for relation, relation_order in (embedded_order or {}).items():
            params[f"{relation}.order"] = relation_order
        headers = {"Accept": _SINGLE_OBJECT_MEDIA_TYPE} if single else None
        response = await self._request("GET", table, params=params, headers=headers)
        return response.json()

    async def insert(self, table: str, row: dict[str, Any], *, single: bool = False) -> Any:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = _SINGLE_OBJECT_MEDIA_TYPE
        response = await self._request("POST", table, json_body=row, headers=headers)
        return response.json()

    async def update(self, table: str, values: dict[str, Any], *, filters: dict[str, Any]) -> list[dict]:
        response = await self._request(
            "PATCH",
            table,
            params=self._filter_params(filters),
            json_body=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def delete(self, table: str, *, filters: dict[str, Any]) -> list[dict]:
        response = await self._request(
            "DELETE",
            table,
            params=self._filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    def _filter_params(self, filters: dict[str, Any] | None) -> dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        async def send() -> httpx.Response:
            try:
                response = await self._http.request(
                    method, f"/{table}", params=params, json=json_body, headers=headers
                )
            except httpx.HTTPError as ex:
                raise PostgrestError(f"Network error calling {table}: {ex}") from ex
            # Only transport failures and 5xx count against the breaker.
            if response.status_code >= 500:
                raise PostgrestError.from_response(response)
            return response

        logger.debug(f"Remote store request: {method} {table} params={params}")
        response = await with_retry(lambda: self._breaker.execute(send), self._retry_options)
        if response.status_code >= 400:
            raise PostgrestError.from_response(response)
        return response
