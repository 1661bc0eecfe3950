from __future__ import annotations

import base64
import hashlib
from urllib.parse import parse_qs

import pytest
from conftest import FakeTransport, json_response

from homepoll._api.bmw_auth import (
    PkceMaterial,
    basic_auth,
    code_from_url,
    get_auth_code,
    request_token,
)
from homepoll._transport import HttpResponse
from homepoll.config import MyBmwConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollTransportError

OAUTH_CONFIG = {
    "clientName": "mybmwapp",
    "clientSecret": "client-secret",
    "clientId": "client-id",
    "gcdmBaseUrl": "https://customer.bmwgroup.com",
    "returnUrl": "com.bmw.connected://oauth",
    "brand": "bmw",
    "language": "en",
    "country": "DE",
    "authorizationEndpoint": "https://customer.bmwgroup.com/oneid/login",
    "tokenEndpoint": "https://customer.bmwgroup.com/gcdm/oauth/token",
    "scopes": ["openid", "profile", "vehicle_data"],
    "promptValues": ["login"],
}

LOGIN_BODY = b'{"redirect_to":"redirect_uri=com.bmw.connected://oauth&state=abc&authorization=AUTH123"}'
TOKEN_ANSWER = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "token_type": "Bearer",
    "expires_in": 3599,
    "scope": "openid profile vehicle_data",
    "id_token": "id-1",
}


def _config() -> MyBmwConfig:
    return MyBmwConfig(username="user@example.com", password="pw", region="ROW")


def _queue_login(transport: FakeTransport, token_answer: dict[str, object] | None = None) -> None:
    transport.queue(
        json_response(OAUTH_CONFIG),
        HttpResponse(status=200, reason="OK", url="", body=LOGIN_BODY),
        HttpResponse(
            status=302,
            reason="Found",
            url="",
            headers={"Location": "com.bmw.connected://oauth?code=CODE456&state=abc&client_id=client-id"},
        ),
        json_response(TOKEN_ANSWER if token_answer is None else token_answer),
    )


class TestHelpers:
    def test_get_auth_code(self) -> None:
        assert get_auth_code(LOGIN_BODY.decode()) == "AUTH123"
        assert get_auth_code('{"error":"invalid"}') == ""

    def test_code_from_url(self) -> None:
        assert code_from_url("com.bmw.connected://oauth?code=CODE456&state=abc") == "CODE456"
        assert code_from_url(None) == ""
        assert code_from_url("com.bmw.connected://oauth?state=abc") == ""

    def test_pkce_from_seeds(self) -> None:
        pkce = PkceMaterial.from_seeds("a" * 64, "b" * 16)
        expected_verifier = base64.urlsafe_b64encode(b"a" * 64).decode().rstrip("=")
        assert pkce.code_verifier == expected_verifier
        digest = hashlib.sha256(expected_verifier.encode()).digest()
        assert pkce.code_challenge == base64.urlsafe_b64encode(digest).decode().rstrip("=")
        assert len(pkce.code_challenge) == 43
        assert "=" not in pkce.state

    def test_generated_pkce_differs(self) -> None:
        assert PkceMaterial.generate().code_verifier != PkceMaterial.generate().code_verifier

    def test_basic_auth_keeps_padding(self) -> None:
        assert basic_auth("id", "secret") == "Basic " + base64.urlsafe_b64encode(b"id:secret").decode()


class TestRequestToken:
    @pytest.mark.asyncio
    async def test_full_login(self, transport: FakeTransport) -> None:
        _queue_login(transport)
        pkce = PkceMaterial.from_seeds("v" * 64, "s" * 16)

        token = await request_token(transport, _config(), pkce=pkce, now=1000.0)

        assert token.bearer == "Bearer access-1"
        assert token.refresh_token == "refresh-1"
        assert token.expires_at == pytest.approx(4599.0)
        assert token.is_valid(now=1000.0)

        config_call, login_call, code_call, token_call = transport.requests
        assert config_call.method == "GET"
        assert config_call.url == "https://cocoapi.bmwgroup.com/eadrax-ucs/v1/presentation/oauth/config"
        assert config_call.headers["x-user-agent"].startswith("android")

        login = parse_qs(login_call.data)
        assert login_call.url == "https://customer.bmwgroup.com/oauth/authenticate"
        assert login["username"] == ["user@example.com"]
        assert login["grant_type"] == ["authorization_code"]
        assert login["code_challenge"] == [pkce.code_challenge]
        assert login["code_challenge_method"] == ["S256"]
        assert login["scope"] == ["openid profile vehicle_data"]
        assert login["nonce"] == ["login_nonce"]

        assert code_call.allow_redirects is False
        assert parse_qs(code_call.data)["authorization"] == ["AUTH123"]

        token_form = parse_qs(token_call.data)
        assert token_call.url == OAUTH_CONFIG["tokenEndpoint"]
        assert token_call.headers["Authorization"] == basic_auth("client-id", "client-secret")
        assert token_form["code"] == ["CODE456"]
        assert token_form["code_verifier"] == [pkce.code_verifier]
        assert token_form["redirect_uri"] == ["com.bmw.connected://oauth"]

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_auth_error(self, transport: FakeTransport) -> None:
        transport.queue(HomePollTransportError("boom", status_code=500, reason="Server Error"))
        with pytest.raises(HomePollAuthenticationError):
            await request_token(transport, _config())

    @pytest.mark.asyncio
    async def test_empty_token_rejected(self, transport: FakeTransport) -> None:
        _queue_login(transport, {"token_type": "Bearer", "expires_in": 3599})
        with pytest.raises(HomePollAuthenticationError):
            await request_token(transport, _config(), now=1000.0)
