"""Locate the list of entity rows inside an arbitrary list-endpoint payload."""

from __future__ import annotations

from collections.abc import Callable

from .analytics.aliases import (
    NAME_KEYS,
    ROW_TIMESTAMP_KEYS,
    STATUS_KEYS,
    WORKFLOW_CREATED_KEYS,
    WORKFLOW_ID_KEYS,
    WORKFLOW_NAME_KEYS,
    WORKFLOW_STATUS_KEYS,
    WORKFLOW_UPDATED_KEYS,
)
from .analytics.deep import JsonObject, JsonValue, as_object, first_string

MAX_SCAN_DEPTH = 6
SAMPLE_SIZE = 20

RowScorer = Callable[[JsonObject], int]


def _pick_array(*values: JsonValue) -> list[JsonObject]:
    for value in values:
        if isinstance(value, list):
            return [row for row in value if isinstance(row, dict)]
    return []


def score_campaign_row(row: JsonObject) -> int:
    score = 0
    if first_string(row, ("id", "_id", "campaignId", "campaign_id", "emailId", "scheduleId")):
        score += 2
    if first_string(row, NAME_KEYS):
        score += 2
    if first_string(row, STATUS_KEYS):
        score += 1
    if first_string(row, ROW_TIMESTAMP_KEYS):
        score += 1
    return score


def score_workflow_row(row: JsonObject) -> int:
    score = 0
    if first_string(row, WORKFLOW_ID_KEYS):
        score += 2
    if first_string(row, WORKFLOW_NAME_KEYS):
        score += 2
    if first_string(row, WORKFLOW_STATUS_KEYS):
        score += 1
    if first_string(row, WORKFLOW_CREATED_KEYS + WORKFLOW_UPDATED_KEYS):
        score += 1
    return score


def find_best_entity_array(
    payload: JsonValue,
    row_score: RowScorer,
    *,
    max_depth: int = MAX_SCAN_DEPTH,
) -> list[JsonObject]:
    """Best-looking array of objects anywhere in ``payload``.

    Each array is rated on a sample of its first rows:
    ``confidence * 100 + average score * 10 + length``; arrays whose sampled rows
    all score zero are ignored.
    """
    arrays: list[list[JsonObject]] = []

    def walk(value: JsonValue, depth: int) -> None:
        if depth > max_depth or value is None:
            return
        if isinstance(value, list):
            records = [item for item in value if isinstance(item, dict)]
            if records:
                arrays.append(records)
            for item in value:
                walk(item, depth + 1)
            return
        if isinstance(value, dict):
            for nested in value.values():
                walk(nested, depth + 1)

    walk(payload, 0)

    best: list[JsonObject] = []
    best_score = -1.0
    for rows in arrays:
        scores = [row_score(row) for row in rows[:SAMPLE_SIZE]]
        matched = sum(1 for s in scores if s > 0)
        if matched == 0:
            continue
        average = sum(scores) / len(scores)
        confidence = matched / len(scores)
        total = confidence * 100 + average * 10 + len(rows)
        if total > best_score:
            best_score = total
            best = rows
    return best


def extract_campaign_rows(payload: JsonValue, max_depth: int = MAX_SCAN_DEPTH) -> list[JsonObject]:
    if isinstance(payload, list):
        return _pick_array(payload)
    root = as_object(payload) or {}
    data = as_object(root.get("data")) or {}
    direct = _pick_array(
        root.get("campaigns"),
        root.get("schedules"),
        root.get("emailSchedules"),
        root.get("emails"),
        data.get("campaigns"),
        data.get("schedules"),
        data.get("emailSchedules"),
        data.get("emails"),
        root.get("items"),
        data.get("items"),
        root.get("results"),
        root.get("data"),
    )
    if direct:
        return direct
    return find_best_entity_array(root, score_campaign_row, max_depth=max_depth)


def extract_workflow_rows(payload: JsonValue, max_depth: int = MAX_SCAN_DEPTH) -> list[JsonObject]:
    if isinstance(payload, list):
        return _pick_array(payload)
    root = as_object(payload) or {}
    data = as_object(root.get("data")) or {}
    direct = _pick_array(
        root.get("workflows"),
        data.get("workflows"),
        root.get("items"),
        data.get("items"),
        root.get("results"),
        root.get("data"),
    )
    if direct:
        return direct
    return find_best_entity_array(root, score_workflow_row, max_depth=max_depth)
