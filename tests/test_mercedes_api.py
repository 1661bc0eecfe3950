from __future__ import annotations

import base64
from urllib.parse import parse_qs, urlsplit

import pytest
from conftest import FakeTransport, json_response, load_json

from homepoll._api.mercedes import (
    authorization_url,
    callback_url,
    container_url,
    exchange_code,
    fetch_container,
    refresh_token,
    scopes,
)
from homepoll._transport import HttpResponse
from homepoll.config import MercedesMeConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollParseError, HomePollTransportError
from homepoll.models.auth import Token

CONFIG = MercedesMeConfig(client_id="client", client_secret="secret", callback_ip="192.168.1.10", callback_port=8090)
VIN = "W1K2938901F123456"


def test_callback_url() -> None:
    assert callback_url(CONFIG) == "http://192.168.1.10:8090/mb-callback"


def test_scopes_follow_enabled_containers() -> None:
    assert scopes(CONFIG).split() == [
        "mb:vehicle:mbdata:evstatus",
        "mb:vehicle:mbdata:fuelstatus",
        "mb:vehicle:mbdata:payasyoudrive",
        "mb:vehicle:mbdata:vehiclelock",
        "mb:vehicle:mbdata:vehiclestatus",
        "offline_access",
    ]
    only_odo = MercedesMeConfig(
        client_id="c", client_secret="s", vehicle_scope=False, lock_scope=False, fuel_scope=False, ev_scope=False
    )
    assert scopes(only_odo) == "mb:vehicle:mbdata:payasyoudrive offline_access"


def test_authorization_url() -> None:
    parts = urlsplit(authorization_url(CONFIG))
    query = parse_qs(parts.query)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://id.mercedes-benz.com/as/authorization.oauth2"
    assert query["client_id"] == ["client"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["http://192.168.1.10:8090/mb-callback"]
    assert "offline_access" in query["scope"][0].split()
    assert "+" not in parts.query


@pytest.mark.asyncio
async def test_exchange_code(transport: FakeTransport) -> None:
    transport.queue(
        json_response({"access_token": "at", "refresh_token": "rt", "token_type": "Bearer", "expires_in": 7199})
    )

    token = await exchange_code(transport, CONFIG, "code-1", now=100.0)

    assert token.bearer == "Bearer at"
    assert token.expires_at == pytest.approx(7299.0)
    request = transport.requests[0]
    assert request.url == "https://id.mercedes-benz.com/as/token.oauth2"
    assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"client:secret").decode()
    form = parse_qs(request.data)
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["code-1"]
    assert form["redirect_uri"] == ["http://192.168.1.10:8090/mb-callback"]


@pytest.mark.asyncio
async def test_exchange_failure(transport: FakeTransport) -> None:
    transport.queue(HttpResponse(status=400, reason="Bad Request", url=""))
    with pytest.raises(HomePollAuthenticationError):
        await exchange_code(transport, CONFIG, "bad")


@pytest.mark.asyncio
async def test_refresh_keeps_refresh_token(transport: FakeTransport) -> None:
    transport.queue(json_response({"access_token": "at-2", "token_type": "Bearer", "expires_in": 7199}))
    old = Token(token_type="Bearer", access_token="at-1", refresh_token="rt-1", expires_at=10.0)

    token = await refresh_token(transport, CONFIG, old, now=100.0)

    assert token.access_token == "at-2"
    assert token.refresh_token == "rt-1"
    assert parse_qs(transport.requests[0].data) == {"grant_type": ["refresh_token"], "refresh_token": ["rt-1"]}


@pytest.mark.asyncio
async def test_refresh_without_refresh_token(transport: FakeTransport) -> None:
    with pytest.raises(HomePollAuthenticationError):
        await refresh_token(transport, CONFIG, Token())
    assert transport.requests == []


class TestContainers:
    TOKEN = Token(token_type="Bearer", access_token="at", expires_at=10**10)

    @pytest.mark.asyncio
    async def test_elements(self, transport: FakeTransport) -> None:
        transport.queue(json_response(load_json("mercedes/status.json")))

        elements = await fetch_container(transport, self.TOKEN, VIN, "vehiclestatus")

        assert len(elements) == 16
        assert transport.requests[0].url == container_url(VIN, "vehiclestatus")
        assert transport.requests[0].url.endswith(f"/vehicles/{VIN}/containers/vehiclestatus")
        assert transport.requests[0].headers["Authorization"] == "Bearer at"

    @pytest.mark.asyncio
    async def test_no_content(self, transport: FakeTransport) -> None:
        transport.queue(HttpResponse(status=204, reason="No Content", url=""))
        assert await fetch_container(transport, self.TOKEN, VIN, "payasyoudrive") == []

    @pytest.mark.asyncio
    async def test_error_status(self, transport: FakeTransport) -> None:
        transport.queue(HttpResponse(status=401, reason="Unauthorized", url="u"))
        with pytest.raises(HomePollTransportError) as info:
            await fetch_container(transport, self.TOKEN, VIN, "payasyoudrive")
        assert info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_not_a_list(self, transport: FakeTransport) -> None:
        transport.queue(json_response({"odo": {"value": "1"}}))
        with pytest.raises(HomePollParseError):
            await fetch_container(transport, self.TOKEN, VIN, "payasyoudrive")
