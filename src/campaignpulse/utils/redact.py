from __future__ import annotations

from collections.abc import Mapping

_SECRET_HEADERS = {"authorization", "cookie", "x-api-key"}


def redact_token(token: str | None, *, keep: int = 4) -> str:
    if not token:
        return ""
    if token.lower().startswith("bearer "):
        return f"Bearer {redact_token(token[7:], keep=keep)}"
    if len(token) <= keep:
        return "*" * len(token)
    return f"{token[:keep]}…{'*' * 8}"


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of request headers that is safe to log."""
    return {
        name: redact_token(value) if name.lower() in _SECRET_HEADERS else value
        for name, value in headers.items()
    }
