"""
Shared pytest fixtures for phylolens tests.

Provides reusable FASTA and VCF inputs and temporary files for unit and
integration testing.
"""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest


# =============================================================================
# FASTA Test Data Fixtures
# =============================================================================


@pytest.fixture
def two_seq_fasta() -> str:
    """Two sequences differing at one of two positions."""
    return ">A\nAC\n>B\nAG"


@pytest.fixture
def multi_seq_fasta() -> str:
    """Four aligned sequences forming two clear pairs."""
    return (
        ">seq1 first sample\n"
        "ACGTACGTAC\n"
        ">seq2\n"
        "ACGTACGTAA\n"
        ">seq3\n"
        "TTGTACCTGG\n"
        ">seq4\n"
        "TTGTACCTGC\n"
    )


@pytest.fixture
def ragged_fasta() -> str:
    """Sequences of unequal length, wrapped and in mixed case."""
    return ">x\nacgt\nAC\n\n>y\nACG\n>z\nA\n"


# =============================================================================
# VCF Test Data Fixtures
# =============================================================================


VCF_HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT"


@pytest.fixture
def simple_vcf() -> str:
    """Three samples over four variants, including phased and missing-ALT calls."""
    return "\n".join(
        [
            "##fileformat=VCFv4.2",
            "##source=test",
            f"{VCF_HEADER}\tS1\tS2\tS3",
            "1\t100\t.\tA\tG\t50\tPASS\t.\tGT:DP\t0/0:10\t0/1:12\t1/1:9",
            "1\t200\t.\tC\tT\t50\tPASS\t.\tGT\t0|1\t1|1\t0|0",
            "1\t300\t.\tG\t.\t50\tPASS\t.\tGT\t1/1\t1/1\t1/1",
            "1\t400\t.\tT\tA\t50\tPASS\t.\tGT\t1/1\t0/0\t0/1",
            "",
        ]
    )


@pytest.fixture
def vcf_header_only() -> str:
    """Header row with samples but no data lines."""
    return f"##fileformat=VCFv4.2\n{VCF_HEADER}\tS1\tS2\n"


@pytest.fixture
def make_vcf():
    """Factory for VCFs whose i-th variant genotype encodes i % 3 for every sample."""

    def _make(n_variants: int, samples: tuple[str, ...] = ("S1", "S2")) -> str:
        genotypes = ("0/0", "0/1", "1/1")
        lines = ["##fileformat=VCFv4.2", f"{VCF_HEADER}\t" + "\t".join(samples)]
        for i in range(n_variants):
            gt = genotypes[i % 3]
            calls = "\t".join(gt for _ in samples)
            lines.append(f"1\t{i + 1}\t.\tA\tG\t.\t.\t.\tGT\t{calls}")
        return "\n".join(lines) + "\n"

    return _make


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def fasta_file(tmp_path: Path, multi_seq_fasta: str) -> Path:
    """FASTA file on disk."""
    path = tmp_path / "sequences.fasta"
    path.write_text(multi_seq_fasta)
    return path


@pytest.fixture
def gz_vcf_file(tmp_path: Path, simple_vcf: str) -> Path:
    """Gzipped VCF file on disk."""
    path = tmp_path / "calls.vcf.gz"
    with gzip.open(path, "wt") as handle:
        handle.write(simple_vcf)
    return path


@pytest.fixture
def unknown_file(tmp_path: Path) -> Path:
    """File that is neither FASTA nor VCF."""
    path = tmp_path / "notes.txt"
    path.write_text("hello world\nthis is not sequence data\n")
    return path
