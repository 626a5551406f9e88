from __future__ import annotations

import logging

import typer

from .commands.campaigns import app as campaigns_app
from .commands.workflows import app as workflows_app

app = typer.Typer(add_completion=False)
app.add_typer(campaigns_app, name="campaigns")
app.add_typer(workflows_app, name="workflows")


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON."),
    debug: bool = typer.Option(False, "--debug", help="Log requests (redacted) to stderr."),
) -> None:
    ctx.obj = {"json": json_output, "debug": debug}
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

