"""CLI package for restbridge.

The main Typer app is created in app.py and commands are registered by
importing the command modules.
"""

import restbridge.cli.commands_connector  # noqa: F401, E402
from restbridge.cli.app import app

__all__ = ["app"]
