"""Mercedes me OAuth and vehicle data endpoints.

Endpoints:
  - id.mercedes-benz.com /as/authorization.oauth2 (browser redirect)
  - id.mercedes-benz.com /as/token.oauth2 (code exchange, refresh)
  - api.mercedes-benz.com /vehicledata/v2/vehicles/{vin}/containers/{container}
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote, urlencode

from homepoll._constants import (
    CONTENT_TYPE_JSON_ENCODED,
    CONTENT_TYPE_URL_ENCODED,
    MB_AUTH_URL,
    MB_CALLBACK_PATH,
    MB_CONTAINER_SCOPES,
    MB_SCOPE_OFFLINE,
    MB_TOKEN_URL,
    MB_VEHICLE_DATA_URL,
)
from homepoll._redact import redact_for_log
from homepoll._transport import Transport
from homepoll.config import MercedesMeConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollParseError, HomePollTransportError
from homepoll.models.auth import AuthResponse, Token

_logger = logging.getLogger(__name__)


def callback_url(config: MercedesMeConfig) -> str:
    return f"http://{config.callback_ip}:{config.callback_port}{MB_CALLBACK_PATH}"


def scopes(config: MercedesMeConfig) -> str:
    """Space separated scopes of the enabled containers plus ``offline_access``."""
    requested = [MB_CONTAINER_SCOPES[name] for name in config.containers()]
    requested.append(MB_SCOPE_OFFLINE)
    return " ".join(requested)


def authorization_url(config: MercedesMeConfig) -> str:
    """URL the user opens in a browser to grant access."""
    params = {
        "client_id": config.client_id,
        "response_type": "code",
        "scope": scopes(config),
        "redirect_uri": callback_url(config),
    }
    return f"{MB_AUTH_URL}?{urlencode(params, quote_via=quote)}"


def _basic_auth(config: MercedesMeConfig) -> str:
    raw = f"{config.client_id}:{config.client_secret}".encode()
    return "Basic " + base64.b64encode(raw).decode("ascii")


async def _token_request(
    transport: Transport,
    config: MercedesMeConfig,
    form: dict[str, str],
    *,
    step: str,
) -> AuthResponse:
    try:
        response = await transport.request(
            "POST",
            MB_TOKEN_URL,
            headers={"Authorization": _basic_auth(config), "Content-Type": CONTENT_TYPE_URL_ENCODED},
            data=urlencode(form),
        )
        payload = response.json()
    except (HomePollTransportError, HomePollParseError) as exc:
        raise HomePollAuthenticationError(f"Token {step} failed: {exc}", step=step) from exc
    if not isinstance(payload, dict):
        raise HomePollAuthenticationError("Unexpected token payload", step=step)
    _logger.debug("Token %s response: %s", step, redact_for_log(payload))
    return AuthResponse.model_validate(payload)


async def exchange_code(
    transport: Transport,
    config: MercedesMeConfig,
    code: str,
    *,
    now: float | None = None,
) -> Token:
    """Trade the callback ``code`` for a token."""
    form = {"grant_type": "authorization_code", "code": code, "redirect_uri": callback_url(config)}
    answer = await _token_request(transport, config, form, step="exchange")
    token = answer.to_token(now=now)
    if not token.is_valid(now):
        raise HomePollAuthenticationError("Token endpoint returned no usable token", step="exchange")
    return token


async def refresh_token(
    transport: Transport,
    config: MercedesMeConfig,
    token: Token,
    *,
    now: float | None = None,
) -> Token:
    """Refresh *token*; the old refresh token is kept when none is returned."""
    if not token.refresh_token:
        raise HomePollAuthenticationError("No refresh token available", step="refresh")
    form = {"grant_type": "refresh_token", "refresh_token": token.refresh_token}
    answer = await _token_request(transport, config, form, step="refresh")
    refreshed = answer.to_token(now=now)
    if not refreshed.refresh_token:
        refreshed = refreshed.model_copy(update={"refresh_token": token.refresh_token})
    if not refreshed.is_valid(now):
        raise HomePollAuthenticationError("Refresh returned no usable token", step="refresh")
    return refreshed


def container_url(vin: str, container: str) -> str:
    return f"{MB_VEHICLE_DATA_URL}/{vin}/containers/{container}"


async def fetch_container(transport: Transport, token: Token, vin: str, container: str) -> list[dict[str, Any]]:
    """Elements of one vehicle data container.

    ``204 No Content`` (no data since the last call) yields an empty list.
    """
    response = await transport.request(
        "GET",
        container_url(vin, container),
        headers={"Authorization": token.bearer, "accept": CONTENT_TYPE_JSON_ENCODED},
        raise_for_status=False,
    )
    if response.status == 204:
        return []
    if response.status != 200:
        raise HomePollTransportError(
            f"HTTP {response.status} from {container}",
            status_code=response.status,
            reason=response.reason,
            url=response.url,
        )
    payload = response.json()
    if not isinstance(payload, list):
        raise HomePollParseError(f"Container {container} is not a JSON array", url=response.url)
    return [item for item in payload if isinstance(item, dict)]
