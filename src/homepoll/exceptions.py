"""Custom exception hierarchy for homepoll."""

from __future__ import annotations

import json
from typing import Any


class HomePollError(Exception):
    """Base exception for all homepoll errors."""


class HomePollConfigError(HomePollError):
    """Invalid or missing configuration."""


class HomePollTransportError(HomePollError):
    """HTTP-level failure (network, non-200, invalid body).

    Carries the same fields the bindings log as a "network error"
    fingerprint: the requested url, the HTTP status, the reason phrase
    and the request parameters.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str = "",
        url: str = "",
        params: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason or message
        self.url = url
        self.params = params
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status_code if self.status_code is not None else -1,
            "reason": self.reason,
            "params": self.params,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class HomePollAuthenticationError(HomePollError):
    """Token acquisition or refresh failed."""

    def __init__(self, message: str, *, step: str = "") -> None:
        self.step = step
        super().__init__(message)


class HomePollParseError(HomePollError):
    """Vendor response could not be parsed into the expected structure."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)
