"""Turn raw listing rows into campaign and workflow records."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from .analytics import reconcile
from .analytics.aliases import (
    CAMPAIGN_ID_KEYS,
    CREATED_KEYS,
    METRIC_CONTAINERS,
    NAME_KEYS,
    ROW_ALIASES,
    SCHEDULE_ID_KEYS,
    SCHEDULED_KEYS,
    SENT_AT_KEYS,
    STATUS_KEYS,
    UPDATED_KEYS,
    WORKFLOW_CREATED_KEYS,
    WORKFLOW_ID_KEYS,
    WORKFLOW_NAME_KEYS,
    WORKFLOW_STATUS_KEYS,
    WORKFLOW_UPDATED_KEYS,
)
from .analytics.deep import JsonObject, as_object, first_number, first_number_deep, first_string
from .analytics.extractor import extract_from_payload
from .models import RATE_FIELDS, AnalyticsRecord, CampaignRecord, Number, WorkflowRecord
from .utils.numbers import to_unit_rate
from .utils.time import to_iso_timestamp

T = TypeVar("T")

_ID_KEYS = ("id", "_id")


def first_timestamp(record: JsonObject, keys: Iterable[str]) -> str | None:
    for key in keys:
        value = to_iso_timestamp(record.get(key))
        if value:
            return value
    return None


def _row_metrics(row: JsonObject) -> AnalyticsRecord:
    sources = [row] + [obj for key in METRIC_CONTAINERS if (obj := as_object(row.get(key))) is not None]

    def metric(keys: tuple[str, ...]) -> Number | None:
        for source in sources:
            value = first_number(source, keys)
            if value is not None:
                return value
            deep = first_number_deep(source, keys)
            if deep is not None:
                return deep
        return None

    extracted = extract_from_payload(row)
    values: dict[str, Number | None] = {}
    for name, keys in ROW_ALIASES.items():
        value = metric(keys)
        if value is not None and name in RATE_FIELDS:
            value = to_unit_rate(value)
        values[name] = value if value is not None else getattr(extracted, name)
    return AnalyticsRecord(**{k: v for k, v in values.items() if v is not None})


def normalize_campaign_row(row: JsonObject, location_id: str) -> CampaignRecord:
    campaign_obj = as_object(row.get("campaign"))
    email_obj = as_object(row.get("email"))
    schedule_obj = as_object(row.get("schedule"))

    campaign_id = (
        first_string(row, CAMPAIGN_ID_KEYS)
        or first_string(campaign_obj, _ID_KEYS)
        or first_string(email_obj, _ID_KEYS)
    )
    schedule_id = (
        first_string(row, SCHEDULE_ID_KEYS)
        or first_string(schedule_obj, _ID_KEYS)
        or first_string(row, _ID_KEYS)
    )
    canonical_id = first_string(row, _ID_KEYS) or campaign_id or schedule_id or ""

    return CampaignRecord(
        id=canonical_id,
        campaign_id=campaign_id,
        schedule_id=schedule_id,
        bulk_request_id=first_string(row, ("bulkRequestId", "bulkReqId")),
        parent_id=first_string(row, ("parentId", "parent_id", "folderId", "folder_id")),
        name=first_string(row, NAME_KEYS) or "",
        status=first_string(row, STATUS_KEYS) or "unknown",
        created_at=first_timestamp(row, CREATED_KEYS),
        updated_at=first_timestamp(row, UPDATED_KEYS),
        scheduled_at=first_timestamp(row, SCHEDULED_KEYS),
        sent_at=first_timestamp(row, SENT_AT_KEYS),
        analytics=reconcile.finalize(_row_metrics(row)),
        location_id=location_id,
    )


def normalize_workflow_row(row: JsonObject, location_id: str) -> WorkflowRecord:
    return WorkflowRecord(
        id=first_string(row, WORKFLOW_ID_KEYS) or "",
        name=first_string(row, WORKFLOW_NAME_KEYS) or "",
        status=first_string(row, WORKFLOW_STATUS_KEYS) or "unknown",
        created_at=first_timestamp(row, WORKFLOW_CREATED_KEYS) or "",
        updated_at=first_timestamp(row, WORKFLOW_UPDATED_KEYS) or "",
        location_id=location_id,
    )


def dedupe_by_key(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Keep the first item for each key, preserving order."""
    seen: set[str] = set()
    out: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def normalize_campaigns(rows: Iterable[JsonObject], location_id: str) -> list[CampaignRecord]:
    campaigns = [normalize_campaign_row(row, location_id) for row in rows]
    return dedupe_by_key(campaigns, CampaignRecord.dedupe_key)


def normalize_workflows(rows: Iterable[JsonObject], location_id: str) -> list[WorkflowRecord]:
    workflows = [normalize_workflow_row(row, location_id) for row in rows]
    return dedupe_by_key((w for w in workflows if w.id or w.name), WorkflowRecord.dedupe_key)
