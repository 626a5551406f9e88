from __future__ import annotations

from campaignpulse.analytics.deep import (
    bucket_label_to_metric,
    extract_bucket_metrics,
    first_number_deep,
    first_string,
    normalize_key,
)


def test_normalize_key() -> None:
    assert normalize_key("Opened Count") == normalize_key("opened_count") == normalize_key("openedCount")


def test_first_number_deep_nested_and_formatted() -> None:
    payload = {"data": {"stats": {"opened_count": "1,200"}}}
    assert first_number_deep(payload, ("openedCount",)) == 1200


def test_first_number_deep_prefers_shallow_match() -> None:
    payload = {"a": {"openCount": 5}, "openCount": 7}
    assert first_number_deep(payload, ("openCount",)) == 7


def test_first_number_deep_object_value_uses_first_leaf() -> None:
    assert first_number_deep({"opens": {"unique": 3, "total": 9}}, ("opens",)) == 3


def test_first_number_deep_respects_depth() -> None:
    payload = {"l1": {"l2": {"l3": {"l4": {"l5": {"l6": {"l7": {"opened": 1}}}}}}}}
    assert first_number_deep(payload, ("opened",)) is None
    assert first_number_deep(payload, ("opened",), max_depth=10) == 1


def test_first_number_deep_inside_arrays() -> None:
    payload = {"results": [{"meta": {}}, {"clicks": 4}]}
    assert first_number_deep(payload, ("clicks",)) == 4


def test_first_string_skips_structures() -> None:
    assert first_string({"name": {"x": 1}, "title": " Spring "}, ("name", "title")) == "Spring"
    assert first_string({"id": 42}, ("id",)) == "42"
    assert first_string(None, ("id",)) is None


def test_bucket_label_to_metric() -> None:
    assert bucket_label_to_metric("Unsubscribed") == "unsubscribed"
    assert bucket_label_to_metric("hard_bounce") == "bounced"
    assert bucket_label_to_metric("read") == "opened"
    assert bucket_label_to_metric("Delivered") == "delivered"
    assert bucket_label_to_metric("processed") == "sent"
    assert bucket_label_to_metric("complained") is None
    assert bucket_label_to_metric("") is None


def test_extract_bucket_metrics_array_rows() -> None:
    payload = {
        "events": [
            {"status": "Opened", "count": 10},
            {"status": "clicked", "count": "3"},
            {"type": "hard_bounce", "total": 2},
            {"status": "complained", "count": 4},
        ]
    }
    assert extract_bucket_metrics(payload) == {"opened": 10, "clicked": 3, "bounced": 2}


def test_extract_bucket_metrics_map_keeps_max_and_skips_rates_and_dates() -> None:
    payload = {
        "opened": 10,
        "openRate": 45.0,
        "sentAt": 1700000000,
        "breakdown": {"opened": 4, "clicked": 3},
    }
    assert extract_bucket_metrics(payload) == {"opened": 10, "clicked": 3}
