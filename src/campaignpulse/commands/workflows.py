from __future__ import annotations

import typer

from ..client import EspClient
from ..models import WorkflowRecord
from ..service import CampaignAnalyticsService
from .common import dump_or_human, json_requested, load_settings_or_exit, require_location, run_or_exit

app = typer.Typer(add_completion=False)


@app.command("list")
def list_workflows(
    ctx: typer.Context,
    location_id: str | None = typer.Option(None, "--location-id"),
    force_refresh: bool = typer.Option(False, "--force-refresh"),
    base_url: str | None = typer.Option(None, "--base-url"),
) -> None:
    """List automation workflows for a location."""

    json_output = json_requested(ctx)
    settings = load_settings_or_exit(base_url=base_url, location_id=location_id)
    token, location = require_location(settings)

    async def work() -> list[WorkflowRecord]:
        async with EspClient(settings) as client:
            service = CampaignAnalyticsService(client, settings)
            return await service.fetch_workflows(token, location, force_refresh=force_refresh)

    workflows = run_or_exit(work())
    dump_or_human(
        payload=[w.to_json_dict() for w in workflows],
        json_output=json_output,
        human_lines=[f"id={w.id} status={w.status} updated={w.updated_at or '-'} name={w.name}" for w in workflows],
    )
