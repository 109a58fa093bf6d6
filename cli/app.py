from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings


class ReadingKind(str, Enum):
    location = "location"
    geiger = "geiger"


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for submitting and reviewing device readings.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Reading log base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="Username (defaults to READING_LOG_USER env)."
    ),
    secret: Optional[str] = typer.Option(
        None, "--secret", "-p", help="Secret (defaults to READING_LOG_SECRET env)."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Device token for geiger submissions (defaults to READING_LOG_TOKEN env)."
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, username=user, secret=secret, token=token)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("ping")
def ping_command(
    ctx: typer.Context,
    lat: float = typer.Argument(..., help="Latitude in decimal degrees."),
    long: float = typer.Argument(..., help="Longitude in decimal degrees."),
    altitude: Optional[float] = typer.Option(None, "--altitude", help="Altitude in metres."),
    speed: Optional[float] = typer.Option(None, "--speed", help="Speed at the time of the fix."),
    count: Optional[int] = typer.Option(
        None, "--count", min=1, help="History length to keep for this log."
    ),
) -> None:
    """Submit a location reading."""
    state = _get_state(ctx)
    readings = state.client.submit_location(lat, long, altitude=altitude, speed=speed, count=count)
    typer.secho("Location reading accepted.", fg=typer.colors.GREEN)
    render_readings(ReadingKind.location.value, readings)


@app.command("geiger")
def geiger_command(
    ctx: typer.Context,
    cpm: int = typer.Argument(..., help="Counts per minute."),
    acpm: Optional[int] = typer.Option(None, "--acpm", help="Averaged counts per minute."),
    usv: Optional[float] = typer.Option(None, "--usv", help="Dose rate in uSv/h."),
    gid: Optional[str] = typer.Option(None, "--gid", help="Counter identifier."),
) -> None:
    """Submit a geiger counter sample."""
    state = _get_state(ctx)
    readings = state.client.submit_geiger(cpm, acpm=acpm, usv=usv, gid=gid)
    typer.secho("Geiger reading accepted.", fg=typer.colors.GREEN)
    render_readings(ReadingKind.geiger.value, readings)


@app.command("history")
def history_command(
    ctx: typer.Context,
    reading_type: ReadingKind = typer.Argument(..., help="Which log to read."),
    count: Optional[int] = typer.Option(
        None, "--count", "-n", min=1, help="Maximum number of readings to show."
    ),
) -> None:
    """Show the newest readings for a log."""
    state = _get_state(ctx)
    readings = state.client.history(reading_type.value, count=count)
    render_readings(reading_type.value, readings)
