"""
Format commands: detect the input format and convert VCF to pseudo-FASTA.
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from phylolens.cli.utils import QuietConsole, configure_logging
from phylolens.core.constants import DEFAULT_MAX_VARIANTS
from phylolens.core.exceptions import PhylolensError
from phylolens.core.formats import detect_format, prepare_input
from phylolens.core.parsers import read_text
from phylolens.models.results import InputFormat

console = Console()


def detect(
    input_file: Path = typer.Argument(
        ...,
        help="File to classify (may be gzipped)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """
    Print the detected input format (fasta, vcf or unknown).

    Exits with code 1 when the format is not recognized.
    """
    fmt = detect_format(read_text(input_file))
    typer.echo(fmt.value)
    if fmt == InputFormat.UNKNOWN:
        raise typer.Exit(code=1)


def convert(
    input_file: Path = typer.Argument(
        ...,
        help="VCF file to encode (may be gzipped)",
        exists=True,
        dir_okay=False,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output FASTA path (default: stdout)",
    ),
    max_variants: int = typer.Option(
        DEFAULT_MAX_VARIANTS,
        "--max-variants",
        "-m",
        help="Downsample to at most this many variants",
        min=1,
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
    Encode a VCF as one zygosity pseudo-sequence per sample.

    Each character is 0 (homozygous reference), 1 (heterozygous) or
    2 (homozygous alternate). FASTA input is passed through unchanged.

    Examples:

        phylolens convert calls.vcf.gz -o samples.fasta

        phylolens convert calls.vcf --max-variants 500
    """
    configure_logging(verbose, console)
    out = QuietConsole(console, quiet=quiet)

    try:
        prepared = prepare_input(read_text(input_file), max_variants=max_variants)
    except PhylolensError as e:
        console.print(f"[red]Error: {escape(e.full_message)}[/red]")
        raise typer.Exit(code=1) from None

    n_records = prepared.content.count(">")
    if output is None:
        typer.echo(prepared.content, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(prepared.content)
    out.print(
        f"[green]Wrote {n_records} {prepared.format.value} record(s) to {output}[/green]"
    )
