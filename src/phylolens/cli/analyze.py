"""
Analyze command for building a tree and conservation score from one input.

Reads FASTA or VCF (optionally gzipped), runs the analysis pipeline under
its wall-clock budget, and writes the Newick tree, a JSON result and,
optionally, the pairwise distance table.
"""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from phylolens.cli.utils import QuietConsole, configure_logging, load_config, spinner_progress
from phylolens.clients.explainer import get_explainer
from phylolens.core.exceptions import (
    AnalysisTimeoutError,
    PhylolensError,
    UnrecognizedFormatError,
)
from phylolens.core.io_utils import infer_output_format, write_dataframe
from phylolens.core.parsers import read_text
from phylolens.core.pipeline import AnalysisPipeline, AnalysisRuntime

console = Console()

EXIT_INPUT_ERROR = 1
EXIT_TIMEOUT = 2


class TableFormat(str, Enum):
    """Distance table output format."""

    CSV = "csv"
    PARQUET = "parquet"


def analyze(
    input_file: Path = typer.Argument(
        ...,
        help="FASTA or VCF file (may be gzipped)",
        exists=True,
        dir_okay=False,
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        exists=True,
        dir_okay=False,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the full result as JSON",
    ),
    newick: Path | None = typer.Option(
        None,
        "--newick",
        "-n",
        help="Write the Newick tree to this file instead of stdout",
    ),
    distances: Path | None = typer.Option(
        None,
        "--distances",
        "-d",
        help="Write the pairwise distance table",
    ),
    table_format: TableFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Distance table format (default: from the file extension)",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Wall-clock budget in seconds (overrides the config)",
        min=0.001,
    ),
    explain: bool = typer.Option(
        False,
        "--explain",
        "-e",
        help="Add a plain-language explanation of the scores",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Build a UPGMA tree and a conservation score from FASTA or VCF input.

    VCF input is converted to one zygosity-coded pseudo-sequence per sample
    before analysis.

    Examples:

        # Tree to stdout
        phylolens analyze sequences.fasta

        # Full result, tree file and distance table
        phylolens analyze calls.vcf.gz -o result.json -n tree.nwk -d distances.parquet

        # Longer budget with an explanation
        phylolens analyze sequences.fasta --timeout 120 --explain
    """
    configure_logging(verbose, console)
    out = QuietConsole(console, quiet=quiet)
    cfg = load_config(config, console)
    if timeout is not None:
        cfg = cfg.model_copy(update={"timeout_seconds": timeout})

    out.print("\n[bold blue]Phylolens Analysis[/bold blue]\n")
    out.print(f"[bold]Input:[/bold] {input_file}")

    try:
        raw_text = read_text(input_file)
    except OSError as e:
        console.print(f"[red]Error reading input: {escape(str(e))}[/red]")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from None

    with AnalysisRuntime() as runtime:
        pipeline = AnalysisPipeline(cfg, runtime)
        try:
            with spinner_progress("Building tree and scores...", console, quiet):
                if distances is not None:
                    result, matrix = pipeline.run_with_distances(raw_text)
                else:
                    result = pipeline.run(raw_text)
        except UnrecognizedFormatError as e:
            console.print(f"[red]Error: {escape(e.full_message)}[/red]")
            raise typer.Exit(code=EXIT_INPUT_ERROR) from None
        except AnalysisTimeoutError as e:
            console.print(f"[yellow]Timeout: {escape(e.full_message)}[/yellow]")
            raise typer.Exit(code=EXIT_TIMEOUT) from None
        except PhylolensError as e:
            console.print(f"[red]Error: {escape(e.full_message)}[/red]")
            raise typer.Exit(code=EXIT_INPUT_ERROR) from None

    if distances is not None:
        fmt = table_format.value if table_format else infer_output_format(distances)
        table = matrix.to_polars()
        write_dataframe(table, distances, fmt)
        out.print(f"[bold]Distances:[/bold] {distances} ({table.height} pairs)")

    summary = Table(show_header=False, box=None)
    summary.add_row("Format", result.format.value if result.format else "-")
    summary.add_row("Sequences", str(result.n_sequences))
    summary.add_row("Conservation", f"{result.conservation:.4f}")
    out.print(summary)

    payload = result.model_dump(mode="json")
    if explain:
        with get_explainer(cfg) as explainer:
            payload["explanation"] = explainer.explain(result.scores)
        out.print(f"\n[italic]{escape(payload['explanation'])}[/italic]")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(payload, indent=2) + "\n")
        out.print(f"[bold]Result:[/bold] {output}")

    if newick is not None:
        newick.parent.mkdir(parents=True, exist_ok=True)
        newick.write_text(result.newick + "\n")
        out.print(f"[bold]Tree:[/bold] {newick}")
    else:
        typer.echo(result.newick)
