"""Ordered candidate endpoints for each logical resource.

The upstream API is undocumented and differs per account and plan, so each
resource is reached through a list of URL variants tried strictly in order.
Add or reorder variants here; the fetch code does not need to change.

Templates are formatted with ``base``, ``backend``, ``page_size`` and the
URL-encoded ``location_id`` / ``schedule_id`` / ``campaign_id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .config import Settings

EMAIL_SCHEDULE_SCOPE = "emails/schedule.readonly"
WORKFLOW_SCOPE = "workflows.readonly"

EMAIL_SCHEDULE_LIST: tuple[str, ...] = (
    "{base}/emails/schedule?locationId={location_id}&limit={page_size}&includeStats=true",
    "{base}/emails/schedule/?locationId={location_id}&limit={page_size}&includeStats=true",
    "{base}/emails/schedule?locationId={location_id}&limit={page_size}&includeAnalytics=true",
    "{base}/emails/schedule/?locationId={location_id}&limit={page_size}&includeAnalytics=true",
    "{base}/emails/schedule?locationId={location_id}&limit={page_size}&includeStats=true&includeAnalytics=true",
    "{base}/emails/schedule/?locationId={location_id}&limit={page_size}&includeStats=true&includeAnalytics=true",
    "{base}/emails/schedule?locationId={location_id}&includeStats=true",
    "{base}/emails/schedule/?locationId={location_id}&includeStats=true",
    "{base}/emails/schedule?locationId={location_id}&includeAnalytics=true",
    "{base}/emails/schedule/?locationId={location_id}&includeAnalytics=true",
    "{base}/emails/schedule?locationId={location_id}&limit={page_size}",
    "{base}/emails/schedule/?locationId={location_id}&limit={page_size}",
    "{base}/emails/schedule?locationId={location_id}",
    "{base}/emails/schedule/?locationId={location_id}",
    "{base}/emails/schedule",
    "{base}/emails/schedule/",
)

CAMPAIGN_LIST: tuple[str, ...] = (
    "{base}/campaigns/?locationId={location_id}&limit={page_size}&status=all",
    "{base}/campaigns?locationId={location_id}&limit={page_size}&status=all",
    "{base}/campaigns/search?locationId={location_id}&limit={page_size}&status=all",
    "{base}/campaigns/search/?locationId={location_id}&limit={page_size}&status=all",
)

WORKFLOW_LIST: tuple[str, ...] = (
    # Location-scoped variants
    "{base}/workflows/?locationId={location_id}&limit={page_size}",
    "{base}/workflows?locationId={location_id}&limit={page_size}",
    "{base}/workflows/?locationId={location_id}",
    "{base}/workflows?locationId={location_id}",
    # Plain list variants
    "{base}/workflows/?limit={page_size}",
    "{base}/workflows?limit={page_size}",
    "{base}/workflows/",
    "{base}/workflows",
    # Search-style fallbacks
    "{base}/workflows/search?locationId={location_id}&limit={page_size}",
    "{base}/workflows/search/?locationId={location_id}&limit={page_size}",
    "{base}/workflows/search?locationId={location_id}",
    "{base}/workflows/search/?locationId={location_id}",
    "{base}/workflows/search?limit={page_size}",
    "{base}/workflows/search/?limit={page_size}",
    "{base}/workflows/search",
    "{base}/workflows/search/",
)

# (label, template) pairs; the label becomes AnalyticsRecord.source.
SCHEDULE_ANALYTICS: tuple[tuple[str, str], ...] = (
    (
        "emails/schedule?includeStats",
        "{base}/emails/schedule?locationId={location_id}&scheduleId={schedule_id}"
        "&limit={page_size}&includeStats=true",
    ),
    (
        "emails/schedule?includeAnalytics",
        "{base}/emails/schedule?locationId={location_id}&scheduleId={schedule_id}"
        "&limit={page_size}&includeAnalytics=true",
    ),
    (
        "emails/schedule list includeStats",
        "{base}/emails/schedule?locationId={location_id}&limit={page_size}&includeStats=true",
    ),
    (
        "emails/schedule list includeAnalytics",
        "{base}/emails/schedule?locationId={location_id}&limit={page_size}&includeAnalytics=true",
    ),
    ("emails/schedule/{id}", "{base}/emails/schedule/{schedule_id}?locationId={location_id}"),
    (
        "emails/schedule/{id}?includeStats",
        "{base}/emails/schedule/{schedule_id}?locationId={location_id}&includeStats=true",
    ),
    (
        "emails/schedule/{id}?includeAnalytics",
        "{base}/emails/schedule/{schedule_id}?locationId={location_id}&includeAnalytics=true",
    ),
    ("emails/schedule/{id}/stats", "{base}/emails/schedule/{schedule_id}/stats?locationId={location_id}"),
    (
        "emails/schedule/{id}/analytics",
        "{base}/emails/schedule/{schedule_id}/analytics?locationId={location_id}",
    ),
    ("emails/schedule/{id}/report", "{base}/emails/schedule/{schedule_id}/report?locationId={location_id}"),
    ("emails/schedule/stats", "{base}/emails/schedule/stats?locationId={location_id}&scheduleId={schedule_id}"),
    ("emails/schedule/report", "{base}/emails/schedule/report?locationId={location_id}&scheduleId={schedule_id}"),
    ("backend emails/schedule/report", "{backend}/emails/schedule/report/{location_id}/{schedule_id}"),
    ("backend emails/schedule/analytics", "{backend}/emails/schedule/analytics/{location_id}/{schedule_id}"),
    ("backend emails/schedule/stats", "{backend}/emails/schedule/stats/{location_id}/{schedule_id}"),
)

CAMPAIGN_ANALYTICS: tuple[tuple[str, str], ...] = (
    ("emails/campaigns/{id}", "{base}/emails/campaigns/{campaign_id}?locationId={location_id}"),
    ("emails/campaigns/{id}/stats", "{base}/emails/campaigns/{campaign_id}/stats?locationId={location_id}"),
    (
        "emails/campaigns/{id}/analytics",
        "{base}/emails/campaigns/{campaign_id}/analytics?locationId={location_id}",
    ),
    ("emails/campaigns/{id}/report", "{base}/emails/campaigns/{campaign_id}/report?locationId={location_id}"),
    ("emails/campaigns/stats", "{base}/emails/campaigns/stats?locationId={location_id}&campaignId={campaign_id}"),
    ("campaigns/{id}/stats", "{base}/campaigns/{campaign_id}/stats?locationId={location_id}"),
)


@dataclass(frozen=True)
class EndpointCandidate:
    label: str
    url: str


@dataclass(frozen=True)
class EndpointGroup:
    """Candidates for one logical listing, paginated as a unit."""

    label: str
    candidates: tuple[EndpointCandidate, ...]


@dataclass(frozen=True)
class ResourceEndpoints:
    name: str
    scope: str
    groups: tuple[EndpointGroup, ...]

    @property
    def reauthorize_hint(self) -> str:
        return reauthorize_hint(self.scope)


def reauthorize_hint(scope: str) -> str:
    return f'If this is an OAuth-connected account, re-authorize with "{scope}".'


def _format(template: str, settings: Settings, **ids: str) -> str:
    values = {key: quote(value, safe="") for key, value in ids.items()}
    return template.format(
        base=settings.base_url,
        backend=settings.backend_base_url,
        page_size=settings.page_size,
        **values,
    )


def _group(label: str, templates: tuple[str, ...], settings: Settings, location_id: str) -> EndpointGroup:
    return EndpointGroup(
        label=label,
        candidates=tuple(
            EndpointCandidate(label=label, url=_format(t, settings, location_id=location_id)) for t in templates
        ),
    )


def campaign_resources(settings: Settings, location_id: str) -> ResourceEndpoints:
    return ResourceEndpoints(
        name="campaigns",
        scope=EMAIL_SCHEDULE_SCOPE,
        groups=(
            _group("emails/schedule", EMAIL_SCHEDULE_LIST, settings, location_id),
            _group("campaigns", CAMPAIGN_LIST, settings, location_id),
        ),
    )


def workflow_resources(settings: Settings, location_id: str) -> ResourceEndpoints:
    # Each variant is its own group: an empty listing moves on to the next variant.
    return ResourceEndpoints(
        name="workflows",
        scope=WORKFLOW_SCOPE,
        groups=tuple(
            EndpointGroup(
                label="workflows",
                candidates=(
                    EndpointCandidate(label="workflows", url=_format(t, settings, location_id=location_id)),
                ),
            )
            for t in WORKFLOW_LIST
        ),
    )


def analytics_candidates(
    settings: Settings,
    location_id: str,
    *,
    schedule_id: str | None = None,
    campaign_id: str | None = None,
    record_id: str | None = None,
) -> list[EndpointCandidate]:
    candidates: list[EndpointCandidate] = []
    schedule_lookup_id = schedule_id or record_id
    if schedule_lookup_id:
        candidates.extend(
            EndpointCandidate(
                label=label,
                url=_format(template, settings, location_id=location_id, schedule_id=schedule_lookup_id),
            )
            for label, template in SCHEDULE_ANALYTICS
        )
    if campaign_id:
        candidates.extend(
            EndpointCandidate(
                label=label,
                url=_format(template, settings, location_id=location_id, campaign_id=campaign_id),
            )
            for label, template in CAMPAIGN_ANALYTICS
        )
    return candidates
