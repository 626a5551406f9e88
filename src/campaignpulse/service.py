from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .analytics import reconcile
from .analytics.extractor import extract_response
from .cache import CampaignCache, WorkflowCache
from .client import AuthError, EndpointFailure, EspClient, NetworkError
from .config import Settings
from .discovery import extract_campaign_rows, extract_workflow_rows
from .endpoints import (
    EMAIL_SCHEDULE_SCOPE,
    EndpointCandidate,
    analytics_candidates,
    campaign_resources,
    reauthorize_hint,
    workflow_resources,
)
from .fetcher import EndpointFallbackFetcher, PaginatedResourceFetcher, exhausted_error
from .models import AnalyticsRecord, CampaignIdentifiers, CampaignRecord, WorkflowRecord, normalize_id
from .normalize import normalize_campaigns, normalize_workflows
from .webhooks import InMemoryWebhookStatsStore, WebhookStatsStore, merge_webhook_stats

logger = logging.getLogger(__name__)

ANALYTICS_ACCEPT = "application/json,*/*"


@dataclass
class AnalyticsProbe:
    """Outcome of probing every analytics endpoint with one token."""

    best_with_metrics: AnalyticsRecord | None = None
    best_any: AnalyticsRecord | None = None
    failures: list[EndpointFailure] = field(default_factory=list)


class CampaignAnalyticsService:
    """Caller-facing entry point for campaign, analytics and workflow reads."""

    def __init__(
        self,
        client: EspClient,
        settings: Settings,
        *,
        campaign_cache: CampaignCache | None = None,
        workflow_cache: WorkflowCache | None = None,
        webhook_store: WebhookStatsStore | None = None,
    ):
        self.client = client
        self.settings = settings
        self.campaign_cache = campaign_cache or CampaignCache(settings.cache_ttl_seconds)
        self.workflow_cache = workflow_cache or WorkflowCache(settings.cache_ttl_seconds)
        self.webhook_store: WebhookStatsStore = webhook_store or InMemoryWebhookStatsStore()
        self.fallback = EndpointFallbackFetcher(client)
        self.pages = PaginatedResourceFetcher(
            self.fallback,
            base_url=settings.base_url,
            max_pages=settings.max_pages,
            token_param=settings.page_token_param,
        )

    def invalidate_cache(self, location_id: str | None = None) -> None:
        self.campaign_cache.invalidate(location_id)
        self.workflow_cache.invalidate(location_id)

    # Campaigns

    async def fetch_campaigns(
        self,
        token: str,
        location_id: str,
        *,
        force_refresh: bool = False,
    ) -> list[CampaignRecord]:
        cached = self.campaign_cache.get(location_id, force_refresh=force_refresh)
        if cached is not None:
            return cached

        depth = self.settings.max_scan_depth
        rows = await self.pages.fetch_resource(
            campaign_resources(self.settings, location_id),
            token=token,
            extract_rows=lambda payload: extract_campaign_rows(payload, depth),
        )
        campaigns = normalize_campaigns(rows, location_id)
        campaigns = await self._merge_webhook_counters(campaigns, location_id)

        self.campaign_cache.set(location_id, campaigns)
        logger.debug("cached %d campaigns for %s", len(campaigns), location_id)
        return campaigns

    async def _merge_webhook_counters(
        self,
        campaigns: list[CampaignRecord],
        location_id: str,
    ) -> list[CampaignRecord]:
        try:
            counters = await self.webhook_store.get_stats_for_account(location_id)
        except Exception as e:
            # Polled data is still usable without the webhook overlay.
            logger.warning("failed to read webhook stats for %s: %s", location_id, e)
            return campaigns
        return merge_webhook_stats(campaigns, counters)

    # Analytics

    async def _probe_analytics(
        self,
        token: str,
        candidates: list[EndpointCandidate],
        identifiers: CampaignIdentifiers,
    ) -> AnalyticsProbe:
        probe = AnalyticsProbe()
        responses = self.fallback.fetch_each(
            candidates, token=token, failures=probe.failures, accept=ANALYTICS_ACCEPT
        )
        async for candidate, resp in responses:
            payload = resp.payload
            if payload is None:
                payload = {"raw": resp.text} if resp.text.strip() else {}
            record = reconcile.finalize(extract_response(resp.text, payload, identifiers))
            record = record.model_copy(update={"source": candidate.label})

            if probe.best_any is None or reconcile.quality_key(record) > reconcile.quality_key(probe.best_any):
                probe.best_any = record
            if record.has_metrics() and (
                probe.best_with_metrics is None
                or reconcile.quality_key(record) > reconcile.quality_key(probe.best_with_metrics)
            ):
                probe.best_with_metrics = record
        return probe

    async def _analytics_from_campaign_list(
        self,
        token: str,
        location_id: str,
        identifiers: CampaignIdentifiers,
        source: str,
    ) -> AnalyticsRecord | None:
        wanted = identifiers.normalized()
        try:
            campaigns = await self.fetch_campaigns(token, location_id, force_refresh=True)
        except Exception as e:
            # The listing is a secondary source; the cascade continues without it.
            logger.debug("campaign-list fallback failed: %s", e)
            return None

        for campaign in campaigns:
            if wanted & {normalize_id(i) for i in campaign.identifiers()}:
                return campaign.analytics.model_copy(update={"source": source})
        return None

    async def fetch_campaign_analytics(
        self,
        token: str,
        location_id: str,
        *,
        schedule_id: str | None = None,
        campaign_id: str | None = None,
        record_id: str | None = None,
        timeout: float | None = None,
    ) -> AnalyticsRecord:
        """Best available metrics for one sent campaign.

        Every analytics endpoint variant is probed and the best-scoring record
        with real metrics wins. Failing that, the campaign listing is searched
        for the identifier, then the same cascade is retried with the agency
        token when one is configured. A metric-less record is returned as a
        last resort; auth failures are raised only when nothing answered.

        ``timeout`` bounds the whole cascade in seconds and raises
        ``NetworkError`` when exceeded.
        """
        identifiers = CampaignIdentifiers(
            schedule_id=(schedule_id or "").strip() or None,
            campaign_id=(campaign_id or "").strip() or None,
            record_id=(record_id or "").strip() or None,
        )
        if identifiers.is_empty():
            raise ValueError("schedule_id, campaign_id, or record_id is required")

        if timeout is None:
            return await self._analytics_cascade(token, location_id, identifiers)
        try:
            return await asyncio.wait_for(
                self._analytics_cascade(token, location_id, identifiers), timeout
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(f"campaign analytics timed out after {timeout:g}s") from e

    async def _analytics_cascade(
        self,
        token: str,
        location_id: str,
        identifiers: CampaignIdentifiers,
    ) -> AnalyticsRecord:
        candidates = analytics_candidates(
            self.settings,
            location_id,
            schedule_id=identifiers.schedule_id,
            campaign_id=identifiers.campaign_id,
            record_id=identifiers.record_id,
        )

        tokens = [(token, "campaign-list")]
        agency = self.settings.agency_token
        if agency and agency != token:
            tokens.append((agency, "campaign-list (agency)"))

        best: AnalyticsRecord | None = None
        failures: list[EndpointFailure] = []
        for current_token, list_source in tokens:
            probe = await self._probe_analytics(current_token, candidates, identifiers)
            if probe.best_with_metrics is not None:
                return probe.best_with_metrics
            if best is None:
                best = probe.best_any
            failures.extend(probe.failures)

            from_list = await self._analytics_from_campaign_list(
                current_token, location_id, identifiers, list_source
            )
            if from_list is not None and from_list.has_metrics():
                return from_list
            if best is None:
                best = from_list

        if best is not None:
            return best
        auth_failures = [f for f in failures if f.is_auth]
        if auth_failures:
            err = exhausted_error(
                "campaign analytics", auth_failures, hint=reauthorize_hint(EMAIL_SCHEDULE_SCOPE)
            )
            raise AuthError(str(err)) from err
        if failures and all(f.status_code is None for f in failures):
            raise NetworkError(failures[-1].message("campaign analytics"))
        return AnalyticsRecord()

    # Workflows

    async def fetch_workflows(
        self,
        token: str,
        location_id: str,
        *,
        force_refresh: bool = False,
    ) -> list[WorkflowRecord]:
        cached = self.workflow_cache.get(location_id, force_refresh=force_refresh)
        if cached is not None:
            return cached

        depth = self.settings.max_scan_depth
        rows = await self.pages.fetch_resource(
            workflow_resources(self.settings, location_id),
            token=token,
            extract_rows=lambda payload: extract_workflow_rows(payload, depth),
        )
        workflows = normalize_workflows(rows, location_id)
        self.workflow_cache.set(location_id, workflows)
        return workflows
