"""Pick one answer out of several metric candidates and backfill derived fields."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models import COUNT_FIELDS, AnalyticsRecord, Number, is_finite
from ..utils.numbers import to_unit_rate

# (count field, rate field) pairs the finalizer derives from each other.
_RATE_PAIRS = (("opened", "open_rate"), ("clicked", "click_rate"), ("replied", "reply_rate"))

QualityKey = tuple[int, float, float]


def finalize(record: AnalyticsRecord) -> AnalyticsRecord:
    """Backfill delivered, rates and counts without touching present values.

    Delivered falls back to sent first; every rate/count derivation then uses
    ``delivered`` (or ``sent``) as its base, and only when that base is positive.
    """
    values = record.model_dump()

    if values["delivered"] is None and values["sent"] is not None:
        # Payloads that report skipped/bounced separately still treat sent as delivered.
        values["delivered"] = values["sent"]

    base = values["delivered"] if values["delivered"] is not None else values["sent"]
    if base is not None and base > 0:
        for count_field, rate_field in _RATE_PAIRS:
            if values[rate_field] is None and values[count_field] is not None:
                values[rate_field] = values[count_field] / base
        for count_field, rate_field in _RATE_PAIRS:
            unit = to_unit_rate(values[rate_field])
            if values[count_field] is None and unit is not None:
                values[count_field] = round(base * unit)

    return AnalyticsRecord.model_validate(values)


def present_count(record: AnalyticsRecord) -> int:
    return len(record.metrics())


def volume(record: AnalyticsRecord) -> float:
    total = 0.0
    for name in COUNT_FIELDS:
        value = getattr(record, name)
        if is_finite(value):
            total += max(0, value)
    return total


def priority(record: AnalyticsRecord) -> float:
    if record.delivered is not None:
        base: Number = record.delivered
    elif record.sent is not None:
        base = record.sent
    else:
        base = 0
    return base + (record.opened or 0) + (record.clicked or 0)


def quality_key(record: AnalyticsRecord) -> QualityKey:
    """Sort key: more fields, then more volume, then more delivered/open/click signal."""
    return (present_count(record), volume(record), priority(record))


def select_best(candidates: Sequence[AnalyticsRecord]) -> AnalyticsRecord | None:
    """Highest ``quality_key``; the earliest candidate wins ties."""
    best: AnalyticsRecord | None = None
    for candidate in candidates:
        if best is None or quality_key(candidate) > quality_key(best):
            best = candidate
    return best


def aggregate(records: Iterable[AnalyticsRecord]) -> AnalyticsRecord:
    """Sum the counts of several matched rows (rates are not summed)."""
    totals: dict[str, Number] = {}
    for record in records:
        for name in COUNT_FIELDS:
            value = getattr(record, name)
            if value is not None:
                totals[name] = totals.get(name, 0) + value
    return AnalyticsRecord(**totals)


def overlay(base: AnalyticsRecord, winner: AnalyticsRecord) -> AnalyticsRecord:
    """``winner``'s present fields on top of ``base``."""
    merged = base.model_dump()
    merged.update(winner.model_dump(exclude_none=True))
    return AnalyticsRecord.model_validate(merged)
