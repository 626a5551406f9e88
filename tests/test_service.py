from __future__ import annotations

import asyncio
import dataclasses

import httpx
import pytest
from conftest import TOKEN, mock_api, not_found

from campaignpulse.client import AuthError, EndpointsExhaustedError, EspClient, NetworkError
from campaignpulse.models import WebhookCounterRecord
from campaignpulse.service import CampaignAnalyticsService
from campaignpulse.webhooks import InMemoryWebhookStatsStore

FORBIDDEN = {"message": "The token is not authorized for this scope."}

SCHEDULE_ROWS = {
    "schedules": [
        {"id": "s1", "campaignId": "c1", "name": "Promo", "status": "sent", "sentCount": 80, "openedCount": 20},
        {"id": "s1", "campaignId": "c1", "name": "Promo", "status": "sent", "sentCount": 80, "openedCount": 20},
        {"id": "s2", "campaignId": "c2", "name": "Recap", "status": "draft"},
    ]
}


def _stats_then_404(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/emails/campaigns/c1/stats":
        return httpx.Response(200, json={"data": {"campaignId": "c1", "sentCount": 100, "openedCount": 25}})
    return not_found(request)


async def test_campaign_analytics_end_to_end(settings) -> None:
    with mock_api(_stats_then_404):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert record.sent == 100
    assert record.delivered == 100
    assert record.opened == 25
    assert record.open_rate == pytest.approx(0.25)
    assert record.source == "emails/campaigns/{id}/stats"


async def test_campaign_analytics_matches_row_in_listing_payload(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/campaigns/c1":
            return httpx.Response(200, json={"campaigns": [{"id": "c1", "sentCount": 100, "openedCount": 25}]})
        return not_found(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert (record.sent, record.delivered, record.opened) == (100, 100, 25)
    assert record.open_rate == pytest.approx(0.25)
    assert record.source == "emails/campaigns/{id}"


async def test_campaign_analytics_requires_an_identifier(settings) -> None:
    async with EspClient(settings) as client:
        service = CampaignAnalyticsService(client, settings)
        with pytest.raises(ValueError):
            await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="  ")


async def test_campaign_analytics_prefers_richer_endpoint(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/campaigns/c1":
            return httpx.Response(200, json={"campaign": {"id": "c1", "opened": 3}})
        if request.url.path == "/emails/campaigns/c1/analytics":
            return httpx.Response(200, json={"delivered": 400, "opened": 100, "clicked": 20})
        return not_found(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert (record.delivered, record.opened, record.clicked) == (400, 100, 20)
    assert record.click_rate == pytest.approx(0.05)
    assert record.source == "emails/campaigns/{id}/analytics"


async def test_campaign_analytics_falls_back_to_campaign_list(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/schedule":
            return httpx.Response(200, json=SCHEDULE_ROWS)
        return not_found(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert (record.sent, record.delivered, record.opened) == (80, 80, 20)
    assert record.source == "campaign-list"


async def test_campaign_analytics_retries_with_agency_token(settings) -> None:
    settings = dataclasses.replace(settings, agency_token="tok-agency")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers["authorization"] != "Bearer tok-agency":
            return httpx.Response(403, json=FORBIDDEN)
        return _stats_then_404(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert record.opened == 25


async def test_campaign_analytics_auth_failure_raises(settings) -> None:
    with mock_api(lambda request: httpx.Response(403, json=FORBIDDEN)):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            with pytest.raises(AuthError) as exc_info:
                await service.fetch_campaign_analytics(TOKEN, "loc1", schedule_id="s1")

    assert "re-authorize" in str(exc_info.value)
    assert "emails/schedule.readonly" in str(exc_info.value)


async def test_campaign_analytics_iam_false_positive_returns_empty(settings) -> None:
    body = {"message": "This route is not yet supported by the IAM Service."}
    with mock_api(lambda request: httpx.Response(401, json=body)):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert not record.has_metrics()


async def test_campaign_analytics_network_down(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            with pytest.raises(NetworkError):
                await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")


async def test_fetch_campaigns_all_forbidden(settings) -> None:
    with mock_api(lambda request: httpx.Response(403, json=FORBIDDEN)) as router:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            with pytest.raises(EndpointsExhaustedError) as exc_info:
                await service.fetch_campaigns(TOKEN, "loc1")
        # 16 schedule variants plus 4 campaign variants
        assert len(router.calls) == 20

    message = str(exc_info.value)
    assert "403" in message
    assert "re-authorize" in message


async def test_fetch_campaigns_dedupes_and_caches(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/schedule":
            return httpx.Response(200, json=SCHEDULE_ROWS)
        return not_found(request)

    with mock_api(handler) as router:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            first = await service.fetch_campaigns(TOKEN, "loc1")
            assert len(router.calls) == 1

            again = await service.fetch_campaigns(TOKEN, "loc1")
            assert again == first
            assert len(router.calls) == 1

            await service.fetch_campaigns(TOKEN, "loc1", force_refresh=True)
            assert len(router.calls) == 2

            service.invalidate_cache()
            await service.fetch_campaigns(TOKEN, "loc1")
            assert len(router.calls) == 3

    assert [c.id for c in first] == ["s1", "s2"]
    assert first[0].analytics.open_rate == pytest.approx(0.25)
    assert first[1].status == "draft"


async def test_fetch_campaigns_merges_webhook_counters(settings) -> None:
    store = InMemoryWebhookStatsStore({"loc1": [WebhookCounterRecord(campaign_id="c1", clicked_count=7)]})

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/schedule":
            return httpx.Response(200, json=SCHEDULE_ROWS)
        return not_found(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings, webhook_store=store)
            campaigns = await service.fetch_campaigns(TOKEN, "loc1")

    assert campaigns[0].analytics.clicked == 7
    assert campaigns[1].analytics.clicked is None


async def test_fetch_campaigns_survives_webhook_store_failure(settings) -> None:
    class BrokenStore:
        async def get_stats_for_account(self, account_id: str):
            raise RuntimeError("store offline")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/emails/schedule":
            return httpx.Response(200, json=SCHEDULE_ROWS)
        return not_found(request)

    with mock_api(handler):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings, webhook_store=BrokenStore())
            campaigns = await service.fetch_campaigns(TOKEN, "loc1")

    assert len(campaigns) == 2


async def test_fetch_workflows_paginates(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path != "/workflows/":
            return not_found(request)
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json={"workflows": [{"id": f"b{i}", "name": "B"} for i in range(10)]})
        return httpx.Response(
            200,
            json={
                "workflows": [{"id": f"a{i}", "name": "A"} for i in range(100)],
                "links": {"next": str(request.url.copy_set_param("page", "2"))},
            },
        )

    with mock_api(handler) as router:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            workflows = await service.fetch_workflows(TOKEN, "loc1")
        assert len(router.calls) == 2

    assert len(workflows) == 110
    assert workflows[0].location_id == "loc1"


SENT_ROWS = {
    "schedules": [
        {"id": "s1", "campaignId": "c1", "name": "Promo", "sentAt": "2024-03-02T00:00:00Z", "sentCount": 80},
    ]
}


def _naive_counter_store() -> InMemoryWebhookStatsStore:
    return InMemoryWebhookStatsStore(
        {
            "loc1": [
                WebhookCounterRecord(
                    campaign_id="c1",
                    delivered_count=5,
                    clicked_count=9,
                    first_delivered_at="2024-03-01T00:00:00",
                )
            ]
        }
    )


def _sent_rows_then_404(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/emails/schedule":
        return httpx.Response(200, json=SENT_ROWS)
    return not_found(request)


async def test_fetch_campaigns_merges_naive_webhook_timestamp(settings) -> None:
    with mock_api(_sent_rows_then_404):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings, webhook_store=_naive_counter_store())
            [campaign] = await service.fetch_campaigns(TOKEN, "loc1")

    assert campaign.sent_at == "2024-03-01T00:00:00.000Z"
    assert campaign.analytics.delivered == 80
    assert campaign.analytics.clicked == 9


async def test_campaign_analytics_list_fallback_with_naive_webhook_timestamp(settings) -> None:
    with mock_api(_sent_rows_then_404):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings, webhook_store=_naive_counter_store())
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1")

    assert record.source == "campaign-list"
    assert (record.sent, record.clicked) == (80, 9)


async def test_campaign_analytics_timeout_raises_network_error(settings, monkeypatch) -> None:
    async def slow_cascade(*args, **kwargs):
        await asyncio.sleep(5)

    async with EspClient(settings) as client:
        service = CampaignAnalyticsService(client, settings)
        monkeypatch.setattr(service, "_analytics_cascade", slow_cascade)
        with pytest.raises(NetworkError, match="timed out"):
            await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1", timeout=0.01)


async def test_campaign_analytics_within_timeout(settings) -> None:
    with mock_api(_stats_then_404):
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            record = await service.fetch_campaign_analytics(TOKEN, "loc1", campaign_id="c1", timeout=10)

    assert record.opened == 25
