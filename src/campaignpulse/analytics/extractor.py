"""Build ``AnalyticsRecord`` candidates from one upstream response."""

from __future__ import annotations

import json
import re
from functools import lru_cache

from ..discovery import extract_campaign_rows
from ..models import RATE_FIELDS, AnalyticsRecord, CampaignIdentifiers, Number, normalize_id
from ..utils.numbers import NUMBER_PATTERN, parse_number, to_unit_rate
from . import reconcile
from .aliases import (
    CAMPAIGN_ID_KEYS,
    JSON_ALIASES,
    ROW_SCHEDULE_KEYS,
    SELF_ID_KEYS,
    TEXT_ALIASES,
    TEXT_LABELS,
)
from .deep import (
    BUCKET_MAX_DEPTH,
    DEFAULT_MAX_DEPTH,
    JsonObject,
    JsonValue,
    extract_bucket_metrics,
    first_number_deep,
    first_string,
)

_VALUE = rf"({NUMBER_PATTERN}%?)"


def _build(values: dict[str, Number | None]) -> AnalyticsRecord:
    # Rates are stored as unit fractions whatever the provider sent.
    for name in RATE_FIELDS:
        values[name] = to_unit_rate(values.get(name))
    return AnalyticsRecord(**{k: v for k, v in values.items() if v is not None})


def extract_from_payload(payload: JsonValue, max_depth: int = DEFAULT_MAX_DEPTH) -> AnalyticsRecord:
    """Alias-driven extraction, with bucket-shaped values filling remaining gaps."""
    values: dict[str, Number | None] = {
        name: first_number_deep(payload, aliases, max_depth) for name, aliases in JSON_ALIASES.items()
    }
    for name, value in extract_bucket_metrics(payload).items():
        if values.get(name) is None:
            values[name] = value
    return _build(values)


@lru_cache(maxsize=256)
def _alias_patterns(alias: str) -> tuple[re.Pattern[str], ...]:
    escaped = re.escape(alias)
    return (
        re.compile(rf"[\"']{escaped}[\"']\s*[:=]\s*[\"']?{_VALUE}", re.IGNORECASE),
        re.compile(rf"\b{escaped}\b\s*[:=]\s*{_VALUE}", re.IGNORECASE),
    )


@lru_cache(maxsize=64)
def _label_patterns(label: str) -> tuple[re.Pattern[str], ...]:
    escaped = re.escape(label)
    return (
        re.compile(rf"\b{escaped}\b[^\d%]{{0,40}}{_VALUE}", re.IGNORECASE),
        re.compile(rf"\b{escaped}\b[^\d%]{{0,80}}\({_VALUE}\)", re.IGNORECASE),
    )


def _search(text: str, patterns: tuple[re.Pattern[str], ...]) -> Number | None:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        parsed = parse_number(match.group(1))
        if parsed is not None:
            return parsed
    return None


def read_number_by_aliases(text: str, aliases: tuple[str, ...]) -> Number | None:
    for alias in aliases:
        found = _search(text, _alias_patterns(alias))
        if found is not None:
            return found
    return None


def read_number_by_labels(text: str, labels: tuple[str, ...]) -> Number | None:
    for label in labels:
        found = _search(text, _label_patterns(label))
        if found is not None:
            return found
    return None


def extract_from_text(text: str) -> AnalyticsRecord:
    """Regex fallback for bodies that are not (valid) JSON."""
    if not text.strip():
        return AnalyticsRecord()
    values: dict[str, Number | None] = {
        name: read_number_by_aliases(text, aliases) for name, aliases in TEXT_ALIASES.items()
    }
    for name, labels in TEXT_LABELS.items():
        if values.get(name) is None:
            values[name] = read_number_by_labels(text, labels)
    return _build(values)


def _row_ids(row: JsonObject) -> list[str]:
    return [
        normalize_id(first_string(row, ROW_SCHEDULE_KEYS)),
        normalize_id(first_string(row, CAMPAIGN_ID_KEYS)),
    ]


def identifier_candidates(
    payload: JsonValue,
    identifiers: CampaignIdentifiers,
    max_depth: int = BUCKET_MAX_DEPTH,
) -> list[AnalyticsRecord]:
    """Candidates scoped to the requested campaign.

    Covers matching list rows, an aggregate when several rows match, objects
    keyed by the identifier and objects whose own id is the identifier.
    """
    wanted = identifiers.normalized()
    candidates: list[AnalyticsRecord] = []
    matched_rows: list[AnalyticsRecord] = []
    seen: set[str] = set()

    for row in extract_campaign_rows(payload):
        ids = _row_ids(row)
        if not any(i and i in wanted for i in ids):
            continue
        dedupe_key = "|".join(i for i in ids if i) or json.dumps(row, sort_keys=True, default=str)[:300]
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)
        analytics = extract_from_payload(row)
        if analytics.has_metrics():
            matched_rows.append(analytics)
            candidates.append(analytics)

    if len(matched_rows) > 1:
        candidates.append(reconcile.aggregate(matched_rows))

    def collect(node: JsonValue, depth: int) -> None:
        if depth > max_depth or node is None:
            return
        if isinstance(node, list):
            for item in node:
                collect(item, depth + 1)
            return
        if not isinstance(node, dict):
            return

        for key, value in node.items():
            if normalize_id(key) in wanted and isinstance(value, dict):
                analytics = extract_from_payload(value)
                if analytics.has_metrics():
                    candidates.append(analytics)

        own_id = normalize_id(first_string(node, SELF_ID_KEYS))
        if own_id and own_id in wanted:
            analytics = extract_from_payload(node)
            if analytics.has_metrics():
                candidates.append(analytics)

        for value in node.values():
            collect(value, depth + 1)

    collect(payload, 0)
    return candidates


def extract_for_identifiers(payload: JsonValue, identifiers: CampaignIdentifiers) -> AnalyticsRecord:
    """Whole-payload extraction reconciled with identifier-scoped candidates."""
    whole = extract_from_payload(payload)
    if identifiers.is_empty():
        return whole

    candidates: list[AnalyticsRecord] = []
    if whole.has_metrics():
        candidates.append(whole)
    candidates.extend(identifier_candidates(payload, identifiers))

    best = reconcile.select_best(candidates)
    if best is None:
        return whole
    return reconcile.overlay(whole, best)


def extract_response(body: str, payload: JsonValue, identifiers: CampaignIdentifiers) -> AnalyticsRecord:
    """JSON-derived fields take precedence over regex hits from the raw body."""
    from_text = extract_from_text(body)
    from_payload = extract_for_identifiers(payload, identifiers)
    return reconcile.overlay(from_text, from_payload)
