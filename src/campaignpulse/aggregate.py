"""Fan campaign and workflow reads out across many dealer accounts."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from .concurrency import run_bounded
from .config import Settings
from .models import CampaignRecord, WorkflowRecord
from .service import CampaignAnalyticsService

logger = logging.getLogger(__name__)

R = TypeVar("R", CampaignRecord, WorkflowRecord)


@dataclass(frozen=True)
class Credentials:
    token: str
    location_id: str
    dealer: str | None = None


class CredentialResolver(Protocol):
    async def resolve(self, account_key: str) -> Credentials | None: ...


class SettingsCredentialResolver:
    """Resolve account keys against the ``[accounts.<key>]`` config tables."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def resolve(self, account_key: str) -> Credentials | None:
        account = self.settings.accounts.get(account_key)
        if account is None:
            return None
        return Credentials(token=account.token, location_id=account.location_id, dealer=account.dealer)


@dataclass(frozen=True)
class AccountSummary:
    count: int = 0
    connected: bool = False


@dataclass
class AggregateResult(Generic[R]):
    records: list[R] = field(default_factory=list)
    per_account: dict[str, AccountSummary] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    skipped_no_credentials: int = 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_json_dict(self) -> dict:
        return {
            "records": [r.to_json_dict() for r in self.records],
            "perAccount": {
                key: {"count": s.count, "connected": s.connected} for key, s in self.per_account.items()
            },
            "errors": dict(self.errors),
            "skippedNoCredentials": self.skipped_no_credentials,
            "errorCount": self.error_count,
        }


async def _aggregate(
    account_keys: Iterable[str],
    resolver: CredentialResolver,
    fetch: Callable[[Credentials], Awaitable[list[R]]],
    *,
    limit: int,
) -> AggregateResult[R]:
    result: AggregateResult[R] = AggregateResult()

    resolved: list[tuple[str, Credentials]] = []
    for key in dict.fromkeys(k.strip() for k in account_keys if k and k.strip()):
        creds = await resolver.resolve(key)
        if creds is None or not creds.token or not creds.location_id:
            result.skipped_no_credentials += 1
            result.per_account[key] = AccountSummary()
            continue
        resolved.append((key, creds))

    def task(creds: Credentials) -> Callable[[], Awaitable[list[R]]]:
        return lambda: fetch(creds)

    outcomes = await run_bounded([task(creds) for _, creds in resolved], limit)

    for (key, creds), outcome in zip(resolved, outcomes):
        if not outcome.ok:
            logger.warning("account %s failed: %s", key, outcome.error)
            result.errors[key] = str(outcome.error)
            result.per_account[key] = AccountSummary(count=0, connected=True)
            continue
        records = outcome.value or []
        result.records.extend(
            r.model_copy(update={"account_key": key, "dealer": creds.dealer or key}) for r in records
        )
        result.per_account[key] = AccountSummary(count=len(records), connected=True)

    logger.debug(
        "aggregated %d records from %d accounts (%d skipped, %d errors)",
        len(result.records),
        len(resolved),
        result.skipped_no_credentials,
        result.error_count,
    )
    return result


async def aggregate_campaigns(
    service: CampaignAnalyticsService,
    resolver: CredentialResolver,
    account_keys: Iterable[str],
    *,
    limit: int = 5,
    force_refresh: bool = False,
) -> AggregateResult[CampaignRecord]:
    async def fetch(creds: Credentials) -> list[CampaignRecord]:
        return await service.fetch_campaigns(creds.token, creds.location_id, force_refresh=force_refresh)

    return await _aggregate(account_keys, resolver, fetch, limit=limit)


async def aggregate_workflows(
    service: CampaignAnalyticsService,
    resolver: CredentialResolver,
    account_keys: Iterable[str],
    *,
    limit: int = 3,
    force_refresh: bool = False,
) -> AggregateResult[WorkflowRecord]:
    async def fetch(creds: Credentials) -> list[WorkflowRecord]:
        return await service.fetch_workflows(creds.token, creds.location_id, force_refresh=force_refresh)

    return await _aggregate(account_keys, resolver, fetch, limit=limit)
