from __future__ import annotations

from campaignpulse.utils.redact import redact_headers, redact_token


def test_redact_token() -> None:
    assert redact_token("abcdefghijkl") == "abcd…********"
    assert redact_token("abc") == "***"
    assert redact_token("Bearer abcdefghijkl") == "Bearer abcd…********"
    assert redact_token(None) == ""


def test_redact_headers_only_touches_secrets() -> None:
    out = redact_headers({"Authorization": "Bearer secret-token", "Version": "2021-07-28"})
    assert "secret-token" not in out["Authorization"]
    assert out["Version"] == "2021-07-28"
