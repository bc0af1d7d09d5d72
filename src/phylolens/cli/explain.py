"""
Explain command: describe a conservation score in plain language.
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from phylolens.cli.utils import configure_logging, load_config
from phylolens.clients.explainer import get_explainer, parse_query
from phylolens.core.constants import CONSERVATION_KEY
from phylolens.core.exceptions import ConfigurationError

console = Console()


def explain(
    conservation: float = typer.Option(
        ...,
        "--conservation",
        "-s",
        help="Conservation score to explain",
        min=0.0,
        max=1.0,
    ),
    query: str | None = typer.Option(
        None,
        "--query",
        help='Free-text request, e.g. "conservation in mammals"',
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file selecting the explanation backend",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Explain a conservation score using the configured backend.

    Without a config the offline template is used. With an http backend
    configured, the remote text is used when reachable and the template
    otherwise.
    """
    configure_logging(verbose, console)
    cfg = load_config(config, console)

    if query:
        params = parse_query(query)
        console.print(f"[dim]species={params.species} metric={params.metric}[/dim]")

    try:
        explainer = get_explainer(cfg)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(e.full_message)}[/red]")
        raise typer.Exit(code=1) from None

    with explainer:
        typer.echo(explainer.explain({CONSERVATION_KEY: conservation}))
