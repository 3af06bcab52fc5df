"""CLI app setup and common utilities.

This module creates the main Typer app and provides shared helpers for
loading JSON input files used by all commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from typer import Typer

from restbridge.config import config

# Initialize Typer app
app = Typer(
    name="restbridge",
    help="restbridge: run configuration-driven HTTP connectors against process data.",
)


def load_json(path: Optional[Path], default: Any = None) -> Any:
    """Load a JSON file, or return ``default`` when no path is given.

    Raises:
        typer.Exit: If the file is missing or not valid JSON.
    """
    if path is None:
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        typer.echo(f"❌ File not found: {path}", err=True)
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        typer.echo(f"❌ Invalid JSON in {path}: {e}", err=True)
        raise typer.Exit(1)


def echo_json(value: Any) -> None:
    """Print a value as indented JSON."""
    typer.echo(json.dumps(value, indent=2, ensure_ascii=False, default=str))


@app.callback()
def init_app(
    log_level: str = typer.Option(
        config.log_level,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
        envvar="RB_LOG_LEVEL",
    ),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="[%(levelname)s] %(name)s: %(message)s",
    )
