"""Commands to inspect and validate fieldsync settings."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import typer
from pydantic import ValidationError

from ..config import get_settings, load_settings, snapshot_path
from ..exceptions import ConfigurationError

__all__ = ["app"]

app = typer.Typer(help="Inspect and validate synchronization settings.", add_completion=False)


def _describe_errors(exc: ConfigurationError) -> List[Dict[str, Any]]:
    cause = exc.__cause__
    if isinstance(cause, ValidationError):
        return [
            {"location": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in cause.errors()
        ]
    return [{"location": "", "message": str(exc)}]


@app.command("show")
def show_settings(
    config_file: Path = typer.Option(
        None,
        "--config-file",
        exists=True,
        dir_okay=False,
        readable=True,
        help="TOML/YAML configuration to use instead of FIELDSYNC_CONFIG_FILE.",
    ),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached settings and reload them."),
) -> None:
    """Print the resolved settings as JSON."""

    settings = get_settings(refresh=refresh, config_file=config_file)
    payload = {
        "config_source": str(config_file) if config_file else "environment",
        "snapshot_path": str(snapshot_path()),
        "settings": settings.model_dump(mode="json"),
    }
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("validate")
def validate_settings(
    config_file: Path = typer.Argument(..., dir_okay=False, help="Configuration file to validate."),
) -> None:
    """Validate a configuration file, exiting with status 1 when it is invalid."""

    try:
        load_settings(config_file)
    except FileNotFoundError as exc:
        typer.echo(json.dumps({"valid": False, "errors": [{"location": "", "message": str(exc)}]}, indent=2))
        raise typer.Exit(code=1)
    except ConfigurationError as exc:
        payload = {"valid": False, "errors": _describe_errors(exc)}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"valid": True, "config_file": str(config_file)}, indent=2, ensure_ascii=False))
