from __future__ import annotations

import typer

from ..aggregate import SettingsCredentialResolver, aggregate_campaigns
from ..client import EspClient
from ..config import Settings
from ..models import AnalyticsRecord, CampaignRecord
from ..service import CampaignAnalyticsService
from .common import dump_or_human, json_requested, load_settings_or_exit, require_location, run_or_exit

app = typer.Typer(add_completion=False)


def _fmt(value: float | int | None, *, rate: bool = False) -> str:
    if value is None:
        return "-"
    if rate:
        return f"{value * 100:.1f}%"
    return str(value)


def _analytics_line(a: AnalyticsRecord) -> str:
    return (
        f"sent={_fmt(a.sent)} delivered={_fmt(a.delivered)} opened={_fmt(a.opened)} "
        f"clicked={_fmt(a.clicked)} bounced={_fmt(a.bounced)} unsubscribed={_fmt(a.unsubscribed)} "
        f"open_rate={_fmt(a.open_rate, rate=True)} click_rate={_fmt(a.click_rate, rate=True)}"
    )


def _campaign_line(c: CampaignRecord) -> str:
    prefix = f"[{c.dealer}] " if c.dealer else ""
    return f"{prefix}id={c.id} status={c.status} name={c.name} {_analytics_line(c.analytics)}"


@app.command("list")
def list_campaigns(
    ctx: typer.Context,
    location_id: str | None = typer.Option(None, "--location-id"),
    force_refresh: bool = typer.Option(False, "--force-refresh", help="Bypass the listing cache."),
    base_url: str | None = typer.Option(None, "--base-url"),
) -> None:
    """List sent campaigns with their engagement metrics."""

    json_output = json_requested(ctx)
    settings = load_settings_or_exit(base_url=base_url, location_id=location_id)
    token, location = require_location(settings)

    async def work() -> list[CampaignRecord]:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            return await service.fetch_campaigns(token, location, force_refresh=force_refresh)

    campaigns = run_or_exit(work())
    dump_or_human(
        payload=[c.to_json_dict() for c in campaigns],
        json_output=json_output,
        human_lines=[_campaign_line(c) for c in campaigns],
    )


@app.command("analytics")
def campaign_analytics(
    ctx: typer.Context,
    schedule_id: str | None = typer.Option(None, "--schedule-id"),
    campaign_id: str | None = typer.Option(None, "--campaign-id"),
    record_id: str | None = typer.Option(None, "--record-id"),
    location_id: str | None = typer.Option(None, "--location-id"),
    base_url: str | None = typer.Option(None, "--base-url"),
    timeout: float | None = typer.Option(None, "--timeout", help="Deadline in seconds for the whole lookup."),
) -> None:
    """Fetch the best available metrics for one campaign."""

    json_output = json_requested(ctx)
    if not any((schedule_id, campaign_id, record_id)):
        typer.echo("Provide --schedule-id, --campaign-id, or --record-id", err=True)
        raise typer.Exit(code=2)

    settings = load_settings_or_exit(base_url=base_url, location_id=location_id)
    token, location = require_location(settings)

    async def work() -> AnalyticsRecord:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            return await service.fetch_campaign_analytics(
                token,
                location,
                schedule_id=schedule_id,
                campaign_id=campaign_id,
                record_id=record_id,
                timeout=timeout,
            )

    record = run_or_exit(work())
    lines = [_analytics_line(record)]
    if record.source:
        lines.append(f"source={record.source}")
    dump_or_human(payload=record.to_json_dict(), json_output=json_output, human_lines=lines)


def _account_keys(settings: Settings, requested: list[str] | None) -> list[str]:
    return list(requested) if requested else list(settings.accounts)


@app.command("aggregate")
def aggregate(
    ctx: typer.Context,
    account: list[str] | None = typer.Option(
        None,
        "--account",
        help="Account key from [accounts.<key>] (repeatable). Defaults to all configured.",
    ),
    force_refresh: bool = typer.Option(False, "--force-refresh"),
    base_url: str | None = typer.Option(None, "--base-url"),
) -> None:
    """List campaigns across dealer accounts."""

    json_output = json_requested(ctx)
    settings = load_settings_or_exit(base_url=base_url)
    keys = _account_keys(settings, account)
    if not keys:
        typer.echo("No accounts configured. Add [accounts.<key>] tables to config.toml.", err=True)
        raise typer.Exit(code=3)

    async def work():
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            return await aggregate_campaigns(
                service,
                SettingsCredentialResolver(settings),
                keys,
                limit=settings.concurrency_limit,
                force_refresh=force_refresh,
            )

    result = run_or_exit(work())
    lines = [_campaign_line(c) for c in result.records]
    for key, summary in result.per_account.items():
        state = "connected" if summary.connected else "no credentials"
        lines.append(f"account={key} campaigns={summary.count} {state}")
    for key, message in result.errors.items():
        lines.append(f"account={key} error={message}")
    dump_or_human(payload=result.to_json_dict(), json_output=json_output, human_lines=lines)
