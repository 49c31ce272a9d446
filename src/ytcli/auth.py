#!/usr/bin/env python3
# src/ytcli/auth.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .client import YouTrackAPIError, YouTrackClient, normalize_base_url
from .formatting import to_json

logger = logging.getLogger(__name__)

ENV_BASE_URL = "YOUTRACK_BASE_URL"
ENV_TOKEN = "YOUTRACK_TOKEN"


class ConfigError(RuntimeError):
    """Raised when the base URL or token cannot be resolved."""


@dataclass
class Config:
    base_url: str
    token: str

    def to_dict(self) -> Dict[str, str]:
        return {"baseUrl": self.base_url, "token": self.token}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        base_url, token = data.get("baseUrl"), data.get("token")
        missing = _missing(base_url, token)
        if missing:
            raise ConfigError(
                f"Missing configuration: {', '.join(missing)}. "
                f"Run 'yt setup' first or set {ENV_BASE_URL} and {ENV_TOKEN}."
            )
        return cls(base_url=base_url, token=token)  # type: ignore[arg-type]


def _missing(base_url: Optional[str], token: Optional[str]) -> List[str]:
    missing = []
    if not base_url:
        missing.append(f"baseUrl ({ENV_BASE_URL})")
    if not token:
        missing.append(f"token ({ENV_TOKEN})")
    return missing


# -----------------------------
# File config
# -----------------------------
def get_config_path() -> Path:
    config_home = Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config")
    return config_home / "yt-cli" / "config.json"


def serialize_config(config: Config) -> str:
    return json.dumps(config.to_dict(), indent=2)


def parse_config(text: str) -> Dict[str, str]:
    """
    Parse persisted config text. Only string-valued `baseUrl`/`token`
    entries are kept; a partial file yields a partial dict.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Config root must be a JSON object")
    return {k: data[k] for k in ("baseUrl", "token") if isinstance(data.get(k), str)}


def _read_config() -> Dict[str, str]:
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        return parse_config(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Ignoring unreadable config at %s: %s", path, e)
        return {}


def get_config() -> Config:
    """
    Resolve the connection settings.

    Environment variables win when both are set; otherwise each field falls
    back to the persisted file on its own.
    """
    base_url = os.getenv(ENV_BASE_URL)
    token = os.getenv(ENV_TOKEN)
    if base_url and token:
        return Config(base_url=base_url, token=token)

    saved = _read_config()
    return Config.from_dict({
        "baseUrl": base_url or saved.get("baseUrl"),
        "token": token or saved.get("token"),
    })


def save_config(config: Config) -> Path:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_config(config), encoding="utf-8")
    logger.debug("Configuration written to %s", path)
    return path


# -----------------------------
# Click command (setup)
# -----------------------------
@click.command("setup")
@click.option("--url", "base_url", required=True, help="YouTrack base URL (e.g. https://yourcompany.youtrack.cloud)")
@click.option("--token", required=True, help="YouTrack permanent API token.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text", show_default=True,
              help="Output format.")
@click.option("--pretty", is_flag=True, help="Pretty-print JSON output (only with --format json).")
def setup(base_url: str, token: str, output_format: str, pretty: bool) -> None:
    """Save the YouTrack URL and token after validating them against the API."""
    config = Config(base_url=normalize_base_url(base_url), token=token)

    try:
        user = YouTrackClient.from_config(config).get_current_user()
    except YouTrackAPIError as e:
        click.echo(to_json({"error": "Connection failed", "details": str(e)}), err=True)
        raise SystemExit(1)

    path = save_config(config)

    if output_format == "json":
        click.echo(to_json({"ok": True, "configFile": str(path), "user": user}, pretty=pretty))
        return

    click.secho(f"✓ Configuration saved to {path}", fg="green")
    click.secho(f"✓ Connected as {user.get('name')} ({user.get('login')})", fg="green")
