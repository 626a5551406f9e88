"""Overlay push-driven webhook counters onto polled campaign records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from .models import CampaignRecord, Number, WebhookCounterRecord, is_finite
from .utils.time import earliest_iso

WebhookCounters = Mapping[str, WebhookCounterRecord]

# (analytics field, webhook counter field)
_MERGED_COUNTS = (
    ("delivered", "delivered_count"),
    ("opened", "opened_count"),
    ("clicked", "clicked_count"),
    ("bounced", "bounced_count"),
    ("unsubscribed", "unsubscribed_count"),
)


class WebhookStatsStore(Protocol):
    async def get_stats_for_account(self, account_id: str) -> WebhookCounters: ...


class InMemoryWebhookStatsStore:
    """Read side of the webhook counters, keyed by account then campaign id."""

    def __init__(self, counters: Mapping[str, Iterable[WebhookCounterRecord]] | None = None):
        self._counters: dict[str, dict[str, WebhookCounterRecord]] = {}
        for account_id, records in (counters or {}).items():
            for record in records:
                self.put(account_id, record)

    def put(self, account_id: str, record: WebhookCounterRecord) -> None:
        self._counters.setdefault(account_id.strip(), {})[record.campaign_id] = record

    async def get_stats_for_account(self, account_id: str) -> WebhookCounters:
        return dict(self._counters.get(account_id.strip(), {}))


def merge_count(existing: Number | None, incoming: int) -> Number | None:
    """Larger of the two; a zero or missing incoming counter changes nothing."""
    if not is_finite(incoming) or incoming <= 0:
        return existing
    if existing is None or not is_finite(existing):
        return incoming
    return max(existing, incoming)


def find_counters(campaign: CampaignRecord, counters: WebhookCounters) -> WebhookCounterRecord | None:
    for identifier in campaign.identifiers():
        found = counters.get(identifier)
        if found is not None:
            return found
    return None


def merge_webhook_stats(campaigns: list[CampaignRecord], counters: WebhookCounters) -> list[CampaignRecord]:
    """Return copies of ``campaigns`` with webhook counters merged in.

    Counts never go down, and ``sent_at`` only ever moves earlier.
    """
    if not counters:
        return campaigns

    merged: list[CampaignRecord] = []
    for campaign in campaigns:
        stats = find_counters(campaign, counters)
        if stats is None:
            merged.append(campaign)
            continue

        counts = {
            field: merge_count(getattr(campaign.analytics, field), getattr(stats, counter))
            for field, counter in _MERGED_COUNTS
        }
        analytics = campaign.analytics.model_copy(update=counts)
        merged.append(
            campaign.model_copy(
                update={
                    "analytics": analytics,
                    "sent_at": earliest_iso(campaign.sent_at, stats.first_delivered_at),
                }
            )
        )
    return merged
