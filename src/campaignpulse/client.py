from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import Settings
from .utils.redact import redact_headers

logger = logging.getLogger(__name__)

# Upstream returns this on 401/403 for endpoints the IAM layer has not been
# configured for; it says nothing about the token's scopes.
IAM_UNSUPPORTED_MARKERS = ("not yet supported by the iam service", "update your iam config")


class EspError(RuntimeError):
    pass


class AuthError(EspError):
    pass


class ApiError(EspError):
    def __init__(self, message: str, *, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class NetworkError(EspError):
    pass


@dataclass(frozen=True)
class EndpointFailure:
    label: str
    url: str
    status_code: int | None
    detail: str

    @property
    def is_auth(self) -> bool:
        if self.status_code not in (401, 403):
            return False
        lowered = self.detail.lower()
        return not any(marker in lowered for marker in IAM_UNSUPPORTED_MARKERS)

    def message(self, resource: str) -> str:
        status = self.status_code if self.status_code is not None else "network"
        suffix = f": {self.detail}" if self.detail else ""
        return f"{resource} API error ({status}){suffix}"


class EndpointsExhaustedError(ApiError):
    """Every candidate endpoint for a resource failed."""

    def __init__(
        self,
        message: str,
        *,
        attempts: list[EndpointFailure],
        hint: str,
        auth_failed: bool,
    ):
        last = attempts[-1] if attempts else None
        super().__init__(
            message,
            status_code=last.status_code if last else None,
            details=[vars(a) for a in attempts],
        )
        self.attempts = attempts
        self.hint = hint
        self.auth_failed = auth_failed


@dataclass(frozen=True)
class DebugInfo:
    method: str
    url: str
    status_code: int | None
    request_id: str | None


@dataclass(frozen=True)
class EndpointResponse:
    url: str
    status_code: int
    text: str
    payload: Any
    debug: DebugInfo

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class EspClient:
    """Thin async wrapper over the provider REST API.

    Never raises for HTTP status; callers decide whether a non-2xx is an
    endpoint-shape miss or something worth surfacing.
    """

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            headers={
                "Accept": "application/json",
                "Version": self.settings.api_version,
            },
            transport=transport,
        )

    async def __aenter__(self) -> EspClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, token: str, accept: str | None = None) -> EndpointResponse:
        headers = {"Authorization": f"Bearer {token}"}
        if accept:
            headers["Accept"] = accept
        logger.debug("GET %s headers=%s", url, redact_headers(headers))

        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Network timeout calling {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error calling {url}") from e

        dbg = self._debug_summary(resp, method="GET", url=url)
        text = resp.text
        return EndpointResponse(
            url=url,
            status_code=resp.status_code,
            text=text,
            payload=_safe_json(text),
            debug=dbg,
        )

    def _debug_summary(self, resp: httpx.Response, *, method: str, url: str) -> DebugInfo:
        request_id = resp.headers.get("x-request-id") or resp.headers.get("x-correlation-id")
        return DebugInfo(method=method, url=url, status_code=resp.status_code, request_id=request_id)


def _safe_json(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def summarize_error_body(body: str) -> str:
    trimmed = (body or "").strip()
    if not trimmed:
        return ""

    parsed = _safe_json(trimmed)
    if isinstance(parsed, dict):
        for key in ("message", "error", "msg", "detail"):
            value = parsed.get(key)
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value if v is not None)
            if value not in (None, "") and not isinstance(value, dict):
                return str(value).strip()

    return " ".join(trimmed[:180].split())
