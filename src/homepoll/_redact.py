"""Masking of credentials in debug output.

Account passwords, OAuth client secrets, authorization codes and bearer
tokens travel in headers, form bodies, JSON answers and redirect URLs.
Everything logged at DEBUG goes through :func:`redact_for_log` or
:func:`redact_url` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "<redacted>"

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "clientsecret",
        "accesstoken",
        "refreshtoken",
        "idtoken",
        "code",
        "codeverifier",
        "authorization",
        "ocpapimsubscriptionkey",
        "apikey",
        "cookie",
        "setcookie",
    }
)


def is_secret_key(key: str) -> bool:
    """``clientSecret``, ``client_secret`` and ``Client-Secret`` all match."""
    return key.lower().replace("-", "").replace("_", "") in _SECRET_KEYS


def redact_url(url: str) -> str:
    """*url* with secret query parameters masked."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, REDACTED if is_secret_key(k) else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Copy of *value* with secrets masked, long strings cut and bytes summarized."""
    if _depth > 20:
        return "<max-depth>"
    if isinstance(value, Mapping):
        return {
            str(k): REDACTED if is_secret_key(str(k)) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str):
        if value.startswith(("http://", "https://")):
            value = redact_url(value)
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    return value
