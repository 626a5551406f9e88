from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable
from typing import Any, TypeVar

import typer

from ..client import ApiError, AuthError, NetworkError
from ..config import ConfigError, Settings, load_settings

T = TypeVar("T")


def load_settings_or_exit(*, base_url: str | None, location_id: str | None = None) -> Settings:
    try:
        return load_settings(base_url=base_url, location_id=location_id)
    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=3) from e


def require_location(settings: Settings) -> tuple[str, str]:
    if not settings.api_token:
        typer.echo("Missing API token. Set CAMPAIGNPULSE_API_TOKEN or api_token in config.toml.", err=True)
        raise typer.Exit(code=3)
    if not settings.location_id:
        typer.echo("Missing --location-id (or CAMPAIGNPULSE_LOCATION_ID).", err=True)
        raise typer.Exit(code=2)
    return settings.api_token, settings.location_id


def run_or_exit(work: Awaitable[T]) -> T:
    try:
        return asyncio.run(work)
    except AuthError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=3) from e
    except NetworkError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=4) from e
    except ApiError as e:
        typer.echo(f"{e} Details: {json.dumps(e.details, indent=2, default=str)}", err=True)
        raise typer.Exit(code=3) from e


def dump_or_human(*, payload: Any, json_output: bool, human_lines: list[str] | None = None) -> None:
    if json_output:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if human_lines is not None:
        for line in human_lines:
            typer.echo(line)
        return

    typer.echo(payload)


def json_requested(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("json")) if ctx.obj else False
