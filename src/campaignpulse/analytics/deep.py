from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeAlias, Union

from ..models import Number
from ..utils.numbers import number_like
from .aliases import BUCKET_LABEL_KEYS, BUCKET_LABEL_RULES, BUCKET_VALUE_KEYS

JsonValue: TypeAlias = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]
JsonObject: TypeAlias = dict[str, JsonValue]

DEFAULT_MAX_DEPTH = 6
BUCKET_MAX_DEPTH = 7

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_key(key: str) -> str:
    """``"Opened Count"``, ``"opened_count"`` and ``"openedCount"`` all become ``"openedcount"``."""
    return _NON_ALNUM_RE.sub("", key.lower())


def as_object(value: JsonValue) -> JsonObject | None:
    return value if isinstance(value, dict) else None


def first_string(record: JsonObject | None, keys: Iterable[str]) -> str | None:
    if not record:
        return None
    for key in keys:
        value = record.get(key)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def first_number(record: JsonObject | None, keys: Iterable[str]) -> Number | None:
    if not record:
        return None
    for key in keys:
        parsed = number_like(record.get(key))
        if parsed is not None:
            return parsed
    return None


def first_number_deep(
    value: JsonValue,
    keys: Iterable[str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Number | None:
    """First number stored under any of ``keys`` anywhere in ``value``.

    Objects are checked key-by-key before their children are descended into,
    so a shallow match beats a deeper one. When a matched key holds an object
    or array, its first numeric leaf is used. Nothing deeper than
    ``max_depth`` is inspected.
    """
    targets = {normalize_key(k) for k in keys}

    def matched_value(node: JsonValue, depth: int) -> Number | None:
        if depth > max_depth or node is None:
            return None
        direct = number_like(node)
        if direct is not None:
            return direct
        if isinstance(node, list):
            children: Iterable[JsonValue] = node
        elif isinstance(node, dict):
            children = node.values()
        else:
            return None
        for child in children:
            found = matched_value(child, depth + 1)
            if found is not None:
                return found
        return None

    def walk(node: JsonValue, depth: int) -> Number | None:
        if depth > max_depth or node is None:
            return None
        if isinstance(node, list):
            for item in node:
                found = walk(item, depth + 1)
                if found is not None:
                    return found
            return None
        if not isinstance(node, dict):
            return None

        for key, child in node.items():
            if normalize_key(key) in targets:
                found = matched_value(child, depth + 1)
                if found is not None:
                    return found

        for child in node.values():
            found = walk(child, depth + 1)
            if found is not None:
                return found
        return None

    return walk(value, 0)


def bucket_label_to_metric(label: str) -> str | None:
    normalized = normalize_key(label)
    if not normalized:
        return None
    for needles, metric in BUCKET_LABEL_RULES:
        if any(needle in normalized for needle in needles):
            return metric
    return None


_TIMESTAMP_SUFFIXES = ("at", "on", "date", "time")


def _is_map_metric_key(key: str) -> bool:
    # Rates and timestamps share label words with counts ("openRate", "sentAt").
    normalized = normalize_key(key)
    if normalized.endswith("rate") or "percent" in normalized or normalized == "ctr":
        return False
    return not normalized.endswith(_TIMESTAMP_SUFFIXES)


def extract_bucket_metrics(payload: JsonValue, max_depth: int = BUCKET_MAX_DEPTH) -> dict[str, Number]:
    """Metrics from label/count shapes.

    Handles arrays such as ``[{"status": "opened", "count": 10}]`` as well as
    map-like objects such as ``{"opened": 10, "clicked": 3}``. Keeps the largest
    value seen per metric, since payloads often carry both totals and breakdowns.
    """
    out: dict[str, Number] = {}

    def keep(metric: str, value: Number | None) -> None:
        if value is None:
            return
        if metric not in out or value > out[metric]:
            out[metric] = value

    def walk(node: JsonValue, depth: int) -> None:
        if depth > max_depth or node is None:
            return

        if isinstance(node, list):
            for item in node:
                if isinstance(item, dict):
                    label = first_string(item, BUCKET_LABEL_KEYS) or ""
                    metric = bucket_label_to_metric(label) if label else None
                    if metric:
                        keep(metric, first_number(item, BUCKET_VALUE_KEYS))
                walk(item, depth + 1)
            return

        if not isinstance(node, dict):
            return

        for key, child in node.items():
            if not _is_map_metric_key(key):
                continue
            metric = bucket_label_to_metric(key)
            if metric:
                keep(metric, number_like(child))

        for child in node.values():
            walk(child, depth + 1)

    walk(payload, 0)
    return out
