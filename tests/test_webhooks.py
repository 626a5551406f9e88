from __future__ import annotations

from datetime import datetime, timezone

from campaignpulse.models import AnalyticsRecord, CampaignRecord, WebhookCounterRecord
from campaignpulse.webhooks import InMemoryWebhookStatsStore, merge_count, merge_webhook_stats


def _campaign(**analytics) -> CampaignRecord:
    return CampaignRecord(
        id="s1",
        schedule_id="s1",
        campaign_id="c1",
        name="Promo",
        sent_at="2024-03-02T00:00:00.000Z",
        analytics=AnalyticsRecord(**analytics),
    )


def test_merge_count_never_decreases() -> None:
    assert merge_count(30, 20) == 30
    assert merge_count(10, 20) == 20
    assert merge_count(None, 5) == 5
    assert merge_count(7, 0) == 7
    assert merge_count(None, 0) is None


async def test_merge_webhook_stats_from_store() -> None:
    store = InMemoryWebhookStatsStore(
        {
            "loc1": [
                WebhookCounterRecord(
                    campaign_id="c1",
                    opened_count=20,
                    clicked_count=12,
                    first_delivered_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
                )
            ]
        }
    )
    counters = await store.get_stats_for_account("loc1")

    original = _campaign(delivered=100, opened=30)
    [merged] = merge_webhook_stats([original], counters)

    assert merged.analytics.opened == 30
    assert merged.analytics.clicked == 12
    assert merged.analytics.delivered == 100
    assert merged.sent_at == "2024-03-01T00:00:00.000Z"
    # inputs are not mutated
    assert original.analytics.clicked is None


def test_merge_webhook_stats_keeps_earlier_sent_at_and_unmatched() -> None:
    counters = {
        "s1": WebhookCounterRecord(
            campaign_id="s1",
            delivered_count=150,
            first_delivered_at=datetime(2024, 3, 5, tzinfo=timezone.utc),
        )
    }
    unmatched = CampaignRecord(id="zz", name="Other")
    merged = merge_webhook_stats([_campaign(delivered=100), unmatched], counters)

    assert merged[0].analytics.delivered == 150
    assert merged[0].sent_at == "2024-03-02T00:00:00.000Z"
    assert merged[1] is unmatched


def test_merge_webhook_stats_naive_first_delivered_at() -> None:
    counters = {
        "s1": WebhookCounterRecord(
            campaign_id="s1",
            delivered_count=5,
            first_delivered_at="2024-03-01T00:00:00",
        )
    }
    [merged] = merge_webhook_stats([_campaign(delivered=3)], counters)

    assert merged.analytics.delivered == 5
    assert merged.sent_at == "2024-03-01T00:00:00.000Z"
