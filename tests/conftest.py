from __future__ import annotations

import json
import socket
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from homepoll._transport import HttpResponse, build_url
from homepoll.exceptions import HomePollTransportError

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def load_json(name: str) -> Any:
    return json.loads(load_fixture(name))


def json_response(payload: Any, *, status: int = 200, url: str = "", headers: Mapping[str, str] | None = None) -> HttpResponse:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return HttpResponse(status=status, reason="OK" if status == 200 else "Error", url=url, body=body, headers=dict(headers or {}))


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    params: dict[str, str]
    data: Any
    allow_redirects: bool


@dataclass
class FakeTransport:
    """Returns queued responses in order and records every request.

    A queued exception is raised instead of returned. Non-200 responses
    raise like the real transport unless the caller disabled it.
    """

    responses: list[HttpResponse | Exception] = field(default_factory=list)
    requests: list[RecordedRequest] = field(default_factory=list)

    def queue(self, *items: HttpResponse | Exception) -> None:
        self.responses.extend(items)

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
        self.requests.append(
            RecordedRequest(method, url, dict(headers or {}), dict(params or {}), data, allow_redirects)
        )
        if not self.responses:
            raise AssertionError(f"Unexpected request {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if raise_for_status and item.status != 200:
            raise HomePollTransportError(
                f"HTTP {item.status}",
                status_code=item.status,
                reason=item.reason,
                url=build_url(url, params),
            )
        return item


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@dataclass
class Recorder:
    """Collects handler callbacks."""

    states: dict[str, Any] = field(default_factory=dict)
    statuses: list[tuple[Any, Any, str]] = field(default_factory=list)

    def on_state(self, channel_uid: str, state: Any) -> None:
        self.states[channel_uid] = state

    def on_status(self, status: Any, detail: Any, description: str) -> None:
        self.statuses.append((status, detail, description))

    def text(self, channel_uid: str) -> str:
        return str(self.states[channel_uid])


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def busy_port() -> Iterator[int]:
    """A localhost port held by a listening socket."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen(1)
        yield sock.getsockname()[1]
