"""
Main CLI entry point for phylolens.

Provides subcommands for the sequence-to-phylogeny pipeline:
- analyze: Build a UPGMA tree and conservation score
- detect: Report the input format
- convert: Encode VCF genotypes as pseudo-FASTA
- explain: Describe a conservation score in plain language
"""

from __future__ import annotations

import typer
from rich import print as rprint

from phylolens import __version__
from phylolens.cli import analyze, convert, explain

app = typer.Typer(
    name="phylolens",
    help="UPGMA trees and conservation scores from FASTA or VCF input",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"phylolens version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Phylolens: distance trees and conservation scores for sequence data.

    Accepts aligned FASTA or multi-sample VCF, builds a UPGMA tree from
    normalized Hamming distances and reports per-site conservation.
    """


app.command(name="analyze")(analyze.analyze)
app.command(name="detect")(convert.detect)
app.command(name="convert")(convert.convert)
app.command(name="explain")(explain.explain)


if __name__ == "__main__":
    app()
