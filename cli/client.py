from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


def _drop_empty(fields: Dict[str, Any]) -> Dict[str, str]:
    return {name: str(value) for name, value in fields.items() if value is not None}


class ApiClient:
    """Minimal HTTP client for the reading log service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def submit_location(
        self,
        lat: float,
        long: float,
        altitude: Optional[float] = None,
        speed: Optional[float] = None,
        count: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        form = self._credential_form("location")
        form.update(
            _drop_empty(
                {
                    "latlong": f"{lat},{long}",
                    "altitude": altitude,
                    "speed": speed,
                    "count": count,
                }
            )
        )
        return self._send("POST", data=form)

    def submit_geiger(
        self,
        cpm: int,
        acpm: Optional[int] = None,
        usv: Optional[float] = None,
        gid: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = _drop_empty({"CPM": cpm, "ACPM": acpm, "uSV": usv, "GID": gid})
        if self._config.has_credentials:
            form = self._credential_form("geiger")
            return self._send("POST", data=form, params=params)
        params["AID"] = self._require_token()
        return self._send("GET", params=params)

    def history(self, reading_type: str, count: Optional[int] = None) -> List[Dict[str, Any]]:
        if not self._config.has_credentials and reading_type == "geiger" and self._config.token:
            return self._send("GET", params={"AID": self._config.token})
        form = self._credential_form(reading_type)
        form.update(_drop_empty({"count": count}))
        return self._send("POST", data=form)

    def _credential_form(self, reading_type: str) -> Dict[str, str]:
        if not self._config.has_credentials:
            raise typer.BadParameter(
                "A username and secret are required (--user/--secret or READING_LOG_USER/READING_LOG_SECRET)."
            )
        return {
            "user": self._config.username or "",
            "pass": self._config.secret or "",
            "type": reading_type,
        }

    def _require_token(self) -> str:
        if not self._config.token:
            raise typer.BadParameter(
                "A device token or a username and secret is required (--token or READING_LOG_TOKEN)."
            )
        return self._config.token

    def _send(
        self,
        method: str,
        data: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        try:
            response = self._client.request(method, "/", data=data, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload from the reading log.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("err") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
