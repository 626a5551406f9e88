from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass, field

import httpx

from .analytics.deep import JsonObject, JsonValue, as_object
from .client import (
    EndpointFailure,
    EndpointResponse,
    EndpointsExhaustedError,
    EspClient,
    NetworkError,
    summarize_error_body,
)
from .endpoints import EndpointCandidate, EndpointGroup, ResourceEndpoints
from .models import is_finite

logger = logging.getLogger(__name__)

RowExtractor = Callable[[JsonValue], list[JsonObject]]


@dataclass
class FallbackAttempt:
    response: EndpointResponse | None = None
    candidate: EndpointCandidate | None = None
    failures: list[EndpointFailure] = field(default_factory=list)
    attempted: bool = False


class EndpointFallbackFetcher:
    """Tries candidate URLs for one resource strictly in order."""

    def __init__(self, client: EspClient):
        self.client = client

    async def _request(
        self,
        candidate: EndpointCandidate,
        *,
        token: str,
        accept: str | None,
    ) -> EndpointResponse | EndpointFailure:
        try:
            resp = await self.client.get(candidate.url, token=token, accept=accept)
        except NetworkError as e:
            logger.debug("%s: %s", candidate.label, e)
            return EndpointFailure(candidate.label, candidate.url, None, str(e))

        logger.debug("%s -> %s (%s)", candidate.label, resp.status_code, candidate.url)
        if not resp.ok:
            detail = summarize_error_body(resp.text)
            return EndpointFailure(candidate.label, candidate.url, resp.status_code, detail)
        return resp

    async def fetch_first(
        self,
        candidates: Iterable[EndpointCandidate],
        *,
        token: str,
        skip_urls: set[str] | None = None,
        accept: str | None = None,
    ) -> FallbackAttempt:
        """First 2xx response; failures are collected, never raised."""
        attempt = FallbackAttempt()
        for candidate in candidates:
            if skip_urls is not None:
                if candidate.url in skip_urls:
                    continue
                skip_urls.add(candidate.url)
            attempt.attempted = True

            result = await self._request(candidate, token=token, accept=accept)
            if isinstance(result, EndpointFailure):
                attempt.failures.append(result)
                continue
            attempt.response = result
            attempt.candidate = candidate
            break
        return attempt

    async def fetch_each(
        self,
        candidates: Iterable[EndpointCandidate],
        *,
        token: str,
        failures: list[EndpointFailure],
        accept: str | None = None,
    ) -> AsyncIterator[tuple[EndpointCandidate, EndpointResponse]]:
        """Every 2xx response, in candidate order. Used when results are compared."""
        for candidate in candidates:
            result = await self._request(candidate, token=token, accept=accept)
            if isinstance(result, EndpointFailure):
                failures.append(result)
                continue
            yield candidate, result


def extract_next_page(payload: JsonValue) -> str | int | None:
    root = as_object(payload)
    if root is None:
        return None
    meta = as_object(root.get("meta")) or {}
    pagination = as_object(root.get("pagination")) or {}
    links = as_object(root.get("links")) or {}

    for candidate in (
        root.get("nextPageUrl"),
        root.get("nextPage"),
        meta.get("nextPageUrl"),
        meta.get("nextPage"),
        pagination.get("nextPageUrl"),
        pagination.get("nextPage"),
        links.get("next"),
    ):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
        if is_finite(candidate) and candidate > 0:
            return int(candidate)
    return None


def resolve_next_url(signal: str | int, *, current_url: str, base_url: str, token_param: str) -> str:
    """Turn a next-page signal into a request URL.

    URLs and paths are used as-is (relative to ``base_url``); numeric signals
    set ``page`` and any other string (digit-only cursors included) sets
    ``token_param`` on the current URL.
    """
    if isinstance(signal, int):
        return str(httpx.URL(current_url).copy_set_param("page", str(signal)))
    if signal.startswith(("http://", "https://")):
        return signal
    if signal.startswith("/"):
        return f"{base_url}{signal}"
    if "/" in signal or "?" in signal:
        return f"{base_url}/{signal.lstrip('/')}"
    return str(httpx.URL(current_url).copy_set_param(token_param, signal))


class PaginatedResourceFetcher:
    def __init__(
        self,
        fallback: EndpointFallbackFetcher,
        *,
        base_url: str,
        max_pages: int = 30,
        token_param: str = "startAfterId",
    ):
        self.fallback = fallback
        self.base_url = base_url
        self.max_pages = max_pages
        self.token_param = token_param

    async def fetch_group(
        self,
        group: EndpointGroup,
        *,
        token: str,
        resource: str,
        extract_rows: RowExtractor,
    ) -> list[JsonObject]:
        """All rows of one listing, following next-page signals.

        Stops when no signal is found, a page is empty, a next URL repeats, or
        ``max_pages`` pages have been read.
        """
        rows: list[JsonObject] = []
        seen_urls: set[str] = set()
        next_url: str | None = None

        for page in range(self.max_pages):
            candidates = (EndpointCandidate(group.label, next_url),) if next_url else group.candidates
            attempt = await self.fallback.fetch_first(candidates, token=token, skip_urls=seen_urls)

            if attempt.response is None:
                if not attempt.attempted:
                    break
                if rows:
                    logger.warning("%s page %d failed, keeping %d rows", group.label, page + 1, len(rows))
                    break
                raise exhausted_error(resource, attempt.failures, hint="")

            page_rows = extract_rows(attempt.response.payload)
            rows.extend(page_rows)
            logger.debug("%s page %d: %d rows", group.label, page + 1, len(page_rows))

            signal = extract_next_page(attempt.response.payload)
            if signal is None or not page_rows:
                break
            next_url = resolve_next_url(
                signal,
                current_url=attempt.response.url,
                base_url=self.base_url,
                token_param=self.token_param,
            )
        return rows

    async def fetch_resource(
        self,
        resource: ResourceEndpoints,
        *,
        token: str,
        extract_rows: RowExtractor,
    ) -> list[JsonObject]:
        """Rows from the first group that has any.

        A group that answered with an empty listing is remembered and returned
        when no later group does better; only when every group failed is an
        error raised.
        """
        failures: list[EndpointFailure] = []
        first_empty: list[JsonObject] | None = None

        for group in resource.groups:
            try:
                rows = await self.fetch_group(
                    group, token=token, resource=resource.name, extract_rows=extract_rows
                )
            except EndpointsExhaustedError as e:
                failures.extend(e.attempts)
                logger.debug("%s group %s failed: %s", resource.name, group.label, e)
                continue
            if rows:
                return rows
            if first_empty is None:
                first_empty = rows

        if first_empty is not None:
            return first_empty
        if failures and all(f.status_code is None for f in failures):
            raise NetworkError(failures[-1].message(resource.name))
        logger.warning("all %d %s endpoint variants failed", len(failures), resource.name)
        raise exhausted_error(resource.name, failures, hint=resource.reauthorize_hint)


def exhausted_error(resource: str, failures: list[EndpointFailure], *, hint: str) -> EndpointsExhaustedError:
    auth_failed = any(f.is_auth for f in failures)
    detail = failures[-1].message(resource) if failures else f"Failed to fetch {resource}"
    parts = [detail]
    if auth_failed and hint:
        parts.append("Likely missing OAuth scope.")
    if hint:
        parts.append(hint)
    return EndpointsExhaustedError(" ".join(parts), attempts=failures, hint=hint, auth_failed=auth_failed)
