from __future__ import annotations

from typing import Any, Mapping, Optional


def credential_from_meta(meta: Optional[Mapping[str, Any]]) -> str:
    """Read an API key from request metadata (`apiKey` or `auth.apiKey`)."""
    if not isinstance(meta, Mapping):
        return ""
    value = meta.get("apiKey")
    if isinstance(value, str):
        return value
    auth = meta.get("auth")
    if isinstance(auth, Mapping):
        value = auth.get("apiKey")
        if isinstance(value, str):
            return value
    return ""


def credential_from_headers(headers: Optional[Mapping[str, str]]) -> str:
    """
    Read a credential from HTTP headers.

    `X-Api-Key` wins; otherwise an `Authorization: Bearer <token>` header (scheme is case-insensitive).
    """
    if not headers:
        return ""
    value = (_header(headers, "x-api-key") or "").strip()
    if value:
        return value
    auth = (_header(headers, "authorization") or "").strip()
    if auth.lower().startswith("bearer "):
        return auth[len("bearer ") :].strip()
    return ""


def extract_credential(meta: Optional[Mapping[str, Any]], headers: Optional[Mapping[str, str]]) -> str:
    return credential_from_meta(meta) or credential_from_headers(headers)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Starlette's Headers is case-insensitive already; plain dicts are not.
    value = headers.get(name)
    if value is not None:
        return value
    for k, v in headers.items():
        if str(k).lower() == name:
            return v
    return None
