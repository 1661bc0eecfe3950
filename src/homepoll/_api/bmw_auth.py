"""BMW / MINI OAuth2 PKCE token exchange.

Endpoints:
  - /eadrax-ucs/v1/presentation/oauth/config (step 1, OAuth parameters)
  - <gcdmBaseUrl>/oauth/authenticate (steps 2 and 3, login and code)
  - <tokenEndpoint> (step 4, token)

The login always runs against the rest-of-world server, whatever region
the account is configured for.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode

from homepoll._constants import (
    API_OAUTH_CONFIG,
    AUTHORIZATION_CODE,
    CONTENT_TYPE_URL_ENCODED,
    EADRAX_SERVER_MAP,
    EMPTY,
    HEADER_ACP_SUBSCRIPTION_KEY,
    HEADER_X_USER_AGENT,
    LOGIN_NONCE,
    OAUTH_ENDPOINT,
    OCP_APIM_KEYS,
    REGION_ROW,
    USER_AGENT_BMW,
)
from homepoll._redact import redact_for_log
from homepoll._transport import Transport
from homepoll.config import MyBmwConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollError
from homepoll.mapping.converter import get_random_string
from homepoll.models.auth import AuthQueryResponse, AuthResponse, Token

_logger = logging.getLogger(__name__)

_AUTHORIZATION = "authorization"
_CODE = "code"


def _b64url(raw: bytes, *, padding: bool = False) -> str:
    encoded = base64.urlsafe_b64encode(raw).decode("ascii")
    return encoded if padding else encoded.rstrip("=")


@dataclass(frozen=True)
class PkceMaterial:
    """Verifier, challenge and state of one login attempt."""

    code_verifier: str
    code_challenge: str
    state: str

    @classmethod
    def generate(cls) -> PkceMaterial:
        return cls.from_seeds(get_random_string(64), get_random_string(16))

    @classmethod
    def from_seeds(cls, verifier_seed: str, state_seed: str) -> PkceMaterial:
        """Derive the PKCE values from the random seed strings.

        The verifier is the unpadded base64url form of *verifier_seed*, the
        challenge the unpadded base64url SHA-256 of the verifier.
        """
        verifier = _b64url(verifier_seed.encode("utf-8"))
        challenge = _b64url(hashlib.sha256(verifier.encode("utf-8")).digest())
        state = _b64url(state_seed.encode("utf-8"))
        return cls(code_verifier=verifier, code_challenge=challenge, state=state)


def get_auth_code(body: str) -> str:
    """Extract the ``authorization`` value from a login answer.

    The body is split on ``&``; the first part starting with
    ``authorization`` carries the value after ``=`` up to the first
    double quote. Returns an empty string when no such part exists.
    """
    for part in body.split("&"):
        if part.startswith(_AUTHORIZATION):
            pieces = part.split("=")
            if len(pieces) < 2:
                return EMPTY
            return pieces[1].split('"')[0]
    return EMPTY


def code_from_url(location: str | None) -> str:
    """Concatenate the values of every query key ending in ``code``."""
    if not location:
        return EMPTY
    found = []
    for key, value in parse_qsl(location, keep_blank_values=True):
        if key.endswith(_CODE):
            found.append(value)
    return "".join(found)


def basic_auth(client_id: str, client_secret: str) -> str:
    """``Basic`` header value; base64url with padding kept."""
    return "Basic " + _b64url(f"{client_id}:{client_secret}".encode(), padding=True)


def build_base_params(aqr: AuthQueryResponse, pkce: PkceMaterial) -> dict[str, str]:
    return {
        "client_id": aqr.client_id,
        "response_type": _CODE,
        "redirect_uri": aqr.return_url,
        "state": pkce.state,
        "nonce": LOGIN_NONCE,
        "scope": " ".join(aqr.scopes),
        "code_challenge": pkce.code_challenge,
        "code_challenge_method": "S256",
    }


async def fetch_oauth_config(transport: Transport) -> AuthQueryResponse:
    """Step 1: query the OAuth parameters."""
    url = f"https://{EADRAX_SERVER_MAP[REGION_ROW]}{API_OAUTH_CONFIG}"
    response = await transport.request(
        "GET",
        url,
        headers={
            HEADER_ACP_SUBSCRIPTION_KEY: OCP_APIM_KEYS[REGION_ROW],
            HEADER_X_USER_AGENT: USER_AGENT_BMW,
        },
    )
    payload = response.json()
    if not isinstance(payload, dict):
        raise HomePollAuthenticationError("Unexpected OAuth config payload", step="config")
    return AuthQueryResponse.model_validate(payload)


async def request_token(
    transport: Transport,
    config: MyBmwConfig,
    *,
    pkce: PkceMaterial | None = None,
    now: float | None = None,
) -> Token:
    """Run the four step login and return a fresh token.

    Parameters
    ----------
    transport : Transport
        HTTP transport.
    config : MyBmwConfig
        Account credentials.
    pkce : PkceMaterial or None
        Fixed PKCE material, generated when omitted.
    now : float or None
        Epoch seconds used to compute the token expiry.

    Raises
    ------
    HomePollAuthenticationError
        When any step fails or the final answer holds no usable token.
    """
    material = pkce or PkceMaterial.generate()
    form_headers = {"Content-Type": CONTENT_TYPE_URL_ENCODED}

    try:
        aqr = await fetch_oauth_config(transport)
        base_params = build_base_params(aqr, material)
        auth_url = aqr.gcdm_base_url + OAUTH_ENDPOINT

        # Step 2: username / password
        login_params = {
            **base_params,
            "grant_type": AUTHORIZATION_CODE,
            "username": config.username,
            "password": config.password,
        }
        login_response = await transport.request(
            "POST",
            auth_url,
            headers=form_headers,
            data=urlencode(login_params),
            raise_for_status=False,
        )
        auth_code = get_auth_code(login_response.text())
        _logger.debug("Login answered %s, authorization found=%s", login_response.status, bool(auth_code))

        # Step 3: authorization -> code (redirect not followed)
        code_response = await transport.request(
            "POST",
            auth_url,
            headers=form_headers,
            data=urlencode({**base_params, _AUTHORIZATION: auth_code}),
            allow_redirects=False,
            raise_for_status=False,
        )
        code = code_from_url(code_response.headers.get("Location") or code_response.headers.get("location"))

        # Step 4: code -> token
        token_params = {
            _CODE: code,
            "code_verifier": material.code_verifier,
            "redirect_uri": aqr.return_url,
            "grant_type": AUTHORIZATION_CODE,
        }
        token_response = await transport.request(
            "POST",
            aqr.token_endpoint,
            headers={**form_headers, "Authorization": basic_auth(aqr.client_id, aqr.client_secret)},
            data=urlencode(token_params),
        )
        payload = token_response.json()
    except HomePollAuthenticationError:
        raise
    except HomePollError as exc:
        raise HomePollAuthenticationError(f"Authorization failed: {exc}", step="login") from exc

    if not isinstance(payload, dict):
        raise HomePollAuthenticationError("Unexpected token payload", step="token")
    _logger.debug("Token response: %s", redact_for_log(payload))
    token = AuthResponse.model_validate(payload).to_token(now=now)
    if not token.is_valid(now):
        raise HomePollAuthenticationError("Token endpoint returned no usable token", step="token")
    return token
