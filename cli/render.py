from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Sequence

import typer

_LOCATION_FIELDS = ("lat", "long", "alt", "speed", "link")
_GEIGER_FIELDS = ("gid", "cpm", "acpm", "usv")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"  {key}: {value}")


def _format_time(value: Any) -> str:
    if not isinstance(value, int):
        return str(value)
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_readings(reading_type: str, readings: Sequence[Dict[str, Any]]) -> None:
    echo_heading(f"{reading_type.capitalize()} readings ({len(readings)}, newest first)")
    if not readings:
        typer.echo("No readings recorded.")
        return

    fields = _LOCATION_FIELDS if reading_type == "location" else _GEIGER_FIELDS
    for index, reading in enumerate(readings, start=1):
        typer.echo()
        typer.echo(f"#{index} {_format_time(reading.get('time'))} user={reading.get('user')}")
        echo_key_values((name, reading[name]) for name in fields if name in reading)
