"""HTTP transport shared by all bindings."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlencode

import aiohttp

from homepoll._constants import HTTP_TIMEOUT_SEC
from homepoll._redact import redact_for_log, redact_url
from homepoll.exceptions import HomePollParseError, HomePollTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Fully buffered HTTP response."""

    status: int
    reason: str
    url: str
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise HomePollParseError(f"Invalid JSON from {self.url}: {self.text()[:200]}", url=self.url) from exc


def build_url(url: str, params: Mapping[str, str] | None) -> str:
    if not params:
        return url
    return f"{url}?{urlencode(params)}"


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Tests pass fake transports; production code uses :class:`HttpTransport`.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | str | None = None,
        allow_redirects: bool = True,
        raise_for_status: bool = True,
    ) -> HttpResponse:
        ...


class HttpTransport:
    """aiohttp backed transport.

    Any response other than ``200`` raises :class:`HomePollTransportError`
    unless ``raise_for_status`` is disabled by the caller.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = HTTP_TIMEOUT_SEC) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | str | None = None,
        allow_redirects: bool = True,
        raise_for_status: bool = True,
    ) -> HttpResponse:
        complete_url = build_url(url, params)
        param_text = urlencode(params) if params else ""
        _logger.debug("%s %s headers=%s", method, redact_url(complete_url), redact_for_log(dict(headers or {})))

        try:
            async with self._http.request(
                method,
                complete_url,
                headers=dict(headers or {}),
                data=data,
                allow_redirects=allow_redirects,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                response = HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    url=complete_url,
                    body=body,
                    headers={k: v for k, v in resp.headers.items()},
                )
        except aiohttp.ClientError as exc:
            raise HomePollTransportError(
                f"Request to {url} failed: {exc}",
                reason=str(exc),
                url=complete_url,
                params=param_text,
            ) from exc
        except TimeoutError as exc:
            raise HomePollTransportError(
                f"Request to {url} timed out",
                reason="timeout",
                url=complete_url,
                params=param_text,
            ) from exc

        if raise_for_status and response.status != 200:
            raise HomePollTransportError(
                f"HTTP {response.status} from {url}: {response.text()[:200]}",
                status_code=response.status,
                reason=response.reason,
                url=complete_url,
                params=param_text,
            )
        return response
