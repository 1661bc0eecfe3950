"""OAuth models shared by the vehicle bindings."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from homepoll.models._base import HomePollBaseModel


class Token(BaseModel):
    """Bearer token with an absolute expiry.

    Parameters
    ----------
    token_type : str
        Usually ``"Bearer"``.
    access_token : str
        The token value.
    refresh_token : str
        Refresh token, empty when the vendor does not issue one.
    expires_at : float
        Epoch seconds after which the token is no longer usable.
    """

    model_config = ConfigDict(frozen=True)

    token_type: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expires_at: float = 0.0

    @classmethod
    def issue(
        cls,
        token_type: str,
        access_token: str,
        expires_in: int | float,
        *,
        refresh_token: str = "",
        now: float | None = None,
    ) -> Token:
        issued_at = time.time() if now is None else now
        return cls(
            token_type=token_type,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=issued_at + float(expires_in),
        )

    def is_valid(self, now: float | None = None) -> bool:
        """Both parts present and more than one second of lifetime left."""
        if not self.token_type or not self.access_token:
            return False
        current = time.time() if now is None else now
        return (self.expires_at - current) > 1

    @property
    def bearer(self) -> str:
        return f"{self.token_type} {self.access_token}"


class AuthQueryResponse(HomePollBaseModel):
    """OAuth parameters published by the BMW configuration endpoint."""

    client_name: str = ""
    client_secret: str = ""
    client_id: str = ""
    gcdm_base_url: str = ""
    return_url: str = ""
    brand: str = ""
    language: str = ""
    country: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    scopes: list[str] = Field(default_factory=list)
    prompt_values: list[str] = Field(default_factory=list)


class AuthResponse(HomePollBaseModel):
    """Token endpoint answer (RFC 6749 snake_case keys)."""

    token_type: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expires_in: int = -1
    scope: str = ""
    id_token: str = ""

    def to_token(self, now: float | None = None) -> Token:
        return Token.issue(
            self.token_type,
            self.access_token,
            self.expires_in,
            refresh_token=self.refresh_token,
            now=now,
        )
