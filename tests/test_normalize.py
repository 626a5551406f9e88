from __future__ import annotations

import pytest

from campaignpulse.normalize import (
    normalize_campaign_row,
    normalize_campaigns,
    normalize_workflow_row,
    normalize_workflows,
)


def test_normalize_campaign_row_reads_nested_metrics() -> None:
    row = {
        "id": "s1",
        "campaignId": "c1",
        "name": "Spring",
        "status": "completed",
        "createdAt": 1700000000000,
        "stats": {"delivered": 200, "openRate": "25%"},
    }
    campaign = normalize_campaign_row(row, "loc1")

    assert campaign.id == "s1"
    assert campaign.schedule_id == "s1"
    assert campaign.campaign_id == "c1"
    assert campaign.created_at == "2023-11-14T22:13:20.000Z"
    assert campaign.location_id == "loc1"
    assert campaign.analytics.delivered == 200
    assert campaign.analytics.open_rate == pytest.approx(0.25)
    assert campaign.analytics.opened == 50
    assert campaign.analytics.sent is None


def test_normalize_campaign_row_defaults() -> None:
    campaign = normalize_campaign_row({"campaign": {"id": "c7"}}, "loc1")
    assert campaign.id == "c7"
    assert campaign.campaign_id == "c7"
    assert campaign.name == ""
    assert campaign.status == "unknown"
    assert not campaign.analytics.has_metrics()


def test_normalize_campaigns_dedupes() -> None:
    row = {"id": "s1", "name": "Promo", "status": "sent", "createdAt": "2024-01-01T00:00:00Z"}
    other = dict(row, id="s2")
    campaigns = normalize_campaigns([row, dict(row), other], "loc1")
    assert [c.id for c in campaigns] == ["s1", "s2"]


def test_normalize_workflows() -> None:
    rows = [
        {"_id": "wf1", "name": "Welcome", "status": "published", "updatedAt": 1700000000},
        {"_id": "wf1", "name": "Welcome", "status": "published", "updatedAt": 1700000000},
        {"status": "draft"},
    ]
    workflows = normalize_workflows(rows, "loc1")
    assert len(workflows) == 1
    assert workflows[0].id == "wf1"
    assert workflows[0].updated_at == "2023-11-14T22:13:20.000Z"
    assert normalize_workflow_row({"id": 5}, "loc1").id == "5"
