"""
I/O utilities for tabular outputs.

Provides consistent handling of distance-table formats (CSV/Parquet).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import polars as pl

OutputFormat = Literal["csv", "parquet"]


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "csv",
) -> None:
    """
    Write DataFrame to file in specified format.

    Parquet output uses zstd compression.

    Args:
        df: Polars DataFrame to write.
        path: Output file path.
        output_format: Output format - 'csv' or 'parquet'.

    Example:
        >>> df = pl.DataFrame({"seq_a": ["A"], "seq_b": ["B"], "distance": [0.5]})
        >>> write_dataframe(df, Path("distances.parquet"), "parquet")
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if output_format == "parquet":
        df.write_parquet(path, compression="zstd")
    else:
        df.write_csv(path)


def read_dataframe(path: Path) -> pl.DataFrame:
    """
    Read DataFrame from file, auto-detecting format from extension.

    Supports: .csv, .tsv, .parquet, .csv.gz, .tsv.gz

    Raises:
        ValueError: If file extension is not recognized.
    """
    suffix = path.suffix.lower()
    name = path.name.lower()

    if suffix == ".parquet":
        return pl.read_parquet(path)
    if suffix == ".csv" or name.endswith(".csv.gz"):
        return pl.read_csv(path)
    if suffix == ".tsv" or name.endswith(".tsv.gz"):
        return pl.read_csv(path, separator="\t")
    msg = f"Unrecognized file format: {path}"
    raise ValueError(msg)


def infer_output_format(path: Path) -> OutputFormat:
    """Pick 'parquet' for .parquet paths and 'csv' otherwise."""
    return "parquet" if path.suffix.lower() == ".parquet" else "csv"
