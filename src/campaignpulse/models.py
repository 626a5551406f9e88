from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = int | float

COUNT_FIELDS: tuple[str, ...] = (
    "sent",
    "delivered",
    "opened",
    "clicked",
    "replied",
    "bounced",
    "failed",
    "unsubscribed",
)
RATE_FIELDS: tuple[str, ...] = ("open_rate", "click_rate", "reply_rate")
METRIC_FIELDS: tuple[str, ...] = COUNT_FIELDS + RATE_FIELDS


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AnalyticsRecord(_Record):
    """Engagement metrics for one sent campaign.

    Counts are raw event totals; rates are unit fractions (0.25 == 25%).
    Every field is optional because upstream payloads rarely carry all of them.
    """

    sent: Number | None = None
    delivered: Number | None = None
    opened: Number | None = None
    clicked: Number | None = None
    replied: Number | None = None
    bounced: Number | None = None
    failed: Number | None = None
    unsubscribed: Number | None = None

    open_rate: float | None = None
    click_rate: float | None = None
    reply_rate: float | None = None

    # Endpoint label (or fallback path) that produced the values.
    source: str | None = None

    def metrics(self) -> dict[str, Number]:
        out: dict[str, Number] = {}
        for name in METRIC_FIELDS:
            value = getattr(self, name)
            if is_finite(value):
                out[name] = value
        return out

    def has_metrics(self) -> bool:
        return bool(self.metrics())


class CampaignRecord(_Record):
    id: str
    campaign_id: str | None = None
    schedule_id: str | None = None
    bulk_request_id: str | None = None
    parent_id: str | None = None

    name: str = ""
    status: str = "unknown"

    created_at: str | None = None
    updated_at: str | None = None
    scheduled_at: str | None = None
    sent_at: str | None = None

    analytics: AnalyticsRecord = Field(default_factory=AnalyticsRecord)

    location_id: str | None = None
    account_key: str | None = None
    dealer: str | None = None

    def identifiers(self) -> list[str]:
        """Own identifiers in lookup order (schedule, campaign, record)."""
        return [value for value in (self.schedule_id, self.campaign_id, self.id) if value]

    def dedupe_key(self) -> str:
        timestamp = self.created_at or self.updated_at or self.sent_at or ""
        return "|".join(
            [
                self.schedule_id or self.id or "no-id",
                self.campaign_id or "no-campaign",
                self.name.lower(),
                self.status.lower(),
                timestamp,
            ]
        )


class WorkflowRecord(_Record):
    id: str
    name: str = ""
    status: str = "unknown"
    created_at: str = ""
    updated_at: str = ""

    location_id: str | None = None
    account_key: str | None = None
    dealer: str | None = None

    def dedupe_key(self) -> str:
        return "|".join(
            [
                self.id or "no-id",
                self.name.lower(),
                self.status.lower(),
                self.updated_at or self.created_at or "",
            ]
        )


class WebhookCounterRecord(_Record):
    """Push-driven counters for one campaign, maintained by the webhook ingester."""

    campaign_id: str
    delivered_count: int = 0
    opened_count: int = 0
    clicked_count: int = 0
    bounced_count: int = 0
    complained_count: int = 0
    unsubscribed_count: int = 0
    first_delivered_at: datetime | None = None
    last_event_at: datetime | None = None


class CampaignIdentifiers(_Record):
    schedule_id: str | None = None
    campaign_id: str | None = None
    record_id: str | None = None

    def normalized(self) -> set[str]:
        return {normalize_id(v) for v in (self.schedule_id, self.campaign_id, self.record_id)} - {""}

    def is_empty(self) -> bool:
        return not self.normalized()


def is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def normalize_id(value: str | None) -> str:
    return (value or "").strip().lower()
