"""Connector CLI commands.

Commands:
- call: Run a connector and print the mapped output
- compose-url: Print the URL a connector call would use
- eval: Evaluate a FEEL-like expression against a data file
- render: Render a mustache-style template against a data file
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import httpx
import typer

from restbridge.cli.app import app, echo_json, load_json
from restbridge.errors import HttpResponseError, MalformedUrlError, UnknownEndpointError


@app.command(name="call")
def connector_call(
    data_source: Path = typer.Argument(..., help="JSON file with endpoints, authtype and credentials"),
    connector_config: Path = typer.Argument(..., help="JSON file with endpoint name and mappings"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON file with the process data context"),
):
    """Send a connector request and print the mapped output.

    Examples:
        restbridge call datasource.json config.json --data data.json
    """
    from restbridge.engine import ConnectorEngine

    engine = ConnectorEngine(load_json(data_source))
    try:
        output = engine.request(load_json(data, {}), load_json(connector_config))
    except HttpResponseError as e:
        typer.echo(f"❌ HTTP error {e.status}: {e.response.body}", err=True)
        raise typer.Exit(1)
    except (MalformedUrlError, UnknownEndpointError) as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)
    except httpx.TransportError as e:
        typer.echo(f"❌ Network error: {e}", err=True)
        raise typer.Exit(1)

    echo_json(output)


@app.command(name="compose-url")
def connector_compose_url(
    data_source: Path = typer.Argument(..., help="JSON file with endpoints, authtype and credentials"),
    connector_config: Path = typer.Argument(..., help="JSON file with endpoint name and mappings"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON file with the process data context"),
):
    """Print the method and URL a connector call would use, without sending it.

    Authorization is not applied, so no token request is made.
    """
    from restbridge.engine import ConnectorEngine
    from restbridge.models import ConnectorConfig

    engine = ConnectorEngine(load_json(data_source))
    cfg = ConnectorConfig.model_validate(load_json(connector_config))
    try:
        request = engine.builder.build(load_json(data, {}), engine.endpoint(cfg.endpoint), cfg)
    except (MalformedUrlError, UnknownEndpointError) as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"{request.method} {request.url}")


@app.command(name="eval")
def expression_eval(
    expression: str = typer.Argument(..., help="FEEL-like expression, e.g. form.age >= 18"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON file with the process data context"),
):
    """Evaluate an expression against a data context.

    Failures print the inline diagnostic used in mapped output.
    """
    from restbridge.evaluation import ExpressionEvaluator, evaluate_safely

    echo_json(evaluate_safely(ExpressionEvaluator(), expression, load_json(data, {})))


@app.command(name="render")
def template_render(
    template: str = typer.Argument(..., help="Template, e.g. 'Hello {{ form.name }}'"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON file with the process data context"),
):
    """Render a mustache-style template against a data context."""
    from restbridge.evaluation import TemplateRenderer, render_safely

    typer.echo(render_safely(TemplateRenderer(), template, load_json(data, {})))
