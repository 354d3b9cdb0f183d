from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Literal, Mapping

import httpx


log = logging.getLogger(__name__)

Verb = Literal["GET", "POST", "DELETE"]

MAX_LOGGED_BODY = 20_000


@dataclass(frozen=True)
class HttpResult:
    ok: bool
    status_code: int | None
    body: Any
    error_message: str | None = None


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}...(truncated, {len(text)} chars)"


def _ms_since(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


def decode_body(resp: httpx.Response, *, limit: int = MAX_LOGGED_BODY) -> Any:
    """JSON when the exchange says so, otherwise the raw text (capped). Empty bodies are None."""
    if not resp.content:
        return None
    content_type = resp.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return resp.json()
        except ValueError:
            return {"raw": _truncate(resp.text, limit)}
    return {"raw": _truncate(resp.text, limit), "content_type": content_type or None}


async def _on_request(request: httpx.Request) -> None:
    log.info("exchange request: %s %s", request.method, request.url.path)


async def _on_response(response: httpx.Response) -> None:
    level = logging.INFO if response.is_success else logging.WARNING
    log.log(level, "exchange response: %d %s %s", response.status_code, response.request.method, response.request.url.path)


class JsonHttpClient:
    """
    Pooled httpx client speaking JSON to one base URL.

    HTTP and transport failures come back as a non-ok HttpResult; nothing here
    raises or retries.
    """

    def __init__(
        self,
        *,
        base_url: str,
        auth: tuple[str, str] | None = None,
        timeout_seconds: float = 15.0,
        default_headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            auth=auth,
            timeout=timeout_seconds,
            headers=dict(default_headers or {}),
            transport=transport,
            event_hooks={"request": [_on_request], "response": [_on_response]},
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_json(
        self,
        verb: Verb,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> HttpResult:
        started = time.perf_counter()
        try:
            resp = await self._client.request(verb, url, params=params, json=json_body)
        except httpx.TimeoutException as e:
            log.warning("exchange %s %s timed out after %dms", verb, url, _ms_since(started))
            return HttpResult(False, None, None, str(e) or "request timed out")
        except httpx.RequestError as e:
            # DNS, refused connection, TLS
            log.warning("exchange %s %s failed: %s", verb, url, type(e).__name__)
            return HttpResult(False, None, None, str(e) or type(e).__name__)

        body = decode_body(resp)
        log.debug("exchange %s %s took %dms", verb, url, _ms_since(started))
        if resp.is_success:
            return HttpResult(True, resp.status_code, body)
        return HttpResult(False, resp.status_code, body, f"{resp.status_code} {resp.reason_phrase}".strip())

    async def get_json(self, url: str, *, params: Mapping[str, str] | None = None) -> HttpResult:
        return await self.request_json("GET", url, params=params)

    async def post_json(self, url: str, payload: Any, *, params: Mapping[str, str] | None = None) -> HttpResult:
        return await self.request_json("POST", url, params=params, json_body=payload)

    async def delete(self, url: str, *, params: Mapping[str, str] | None = None) -> HttpResult:
        return await self.request_json("DELETE", url, params=params)
