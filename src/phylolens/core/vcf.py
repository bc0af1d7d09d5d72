"""
VCF to pseudo-FASTA encoding.

Converts variant calls into one zygosity-coded pseudo-sequence per sample
so that VCF input can flow through the same distance, tree and
conservation steps as FASTA input. Each retained variant contributes one
character per sample:

    0 = homozygous reference, 1 = heterozygous, 2 = homozygous alternate
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from phylolens.core.constants import (
    CODE_HET,
    CODE_HOM_ALT,
    CODE_HOM_REF,
    DEFAULT_MAX_VARIANTS,
    FASTA_HEADER_PREFIX,
    VCF_ALT_ALLELE,
    VCF_ALT_INDEX,
    VCF_FIXED_COLUMNS,
    VCF_HEADER_PREFIX,
    VCF_MIN_FIELDS,
    VCF_MISSING_ALT,
    VCF_REF_INDEX,
)

logger = logging.getLogger(__name__)


class VariantRecord(NamedTuple):
    """
    One VCF data line reduced to what the encoder needs.

    Constructed per input line and consumed immediately; ``alt`` is None
    when the ALT column is empty.
    """

    ref: str
    alt: str | None
    genotypes: tuple[str, ...]

    @property
    def has_alt(self) -> bool:
        return bool(self.alt) and self.alt != VCF_MISSING_ALT


def find_header(lines: Iterable[str]) -> str | None:
    """Return the first line starting with '#CHROM', or None."""
    for line in lines:
        if line.startswith(VCF_HEADER_PREFIX):
            return line
    return None


def sample_names(header: str) -> list[str]:
    """Sample names are the header fields after the 9 fixed columns."""
    return header.split("\t")[VCF_FIXED_COLUMNS:]


def parse_variant_line(line: str) -> VariantRecord | None:
    """
    Parse one tab-delimited data line.

    Returns None for lines with fewer than 10 fields, so that a short line
    is skipped for every sample and all pseudo-sequences stay aligned.
    """
    parts = line.split("\t")
    if len(parts) < VCF_MIN_FIELDS:
        return None
    alt = parts[VCF_ALT_INDEX] or None
    return VariantRecord(
        ref=parts[VCF_REF_INDEX],
        alt=alt,
        genotypes=tuple(parts[VCF_FIXED_COLUMNS:]),
    )


def zygosity_code(genotype: str, has_alt: bool) -> str:
    """
    Encode one genotype call as a single character.

    Only the GT subfield (before the first ':') is used. Phased calls are
    normalized ('|' -> '/') before the alleles are split, and only allele
    "1" counts as alternate.

    Example:
        >>> zygosity_code("0/1:35:99", has_alt=True)
        '1'
        >>> zygosity_code("1|1", has_alt=True)
        '2'
        >>> zygosity_code("1/1", has_alt=False)
        '0'
    """
    if not has_alt:
        return CODE_HOM_REF
    gt = genotype.split(":", 1)[0]
    alleles = gt.replace("|", "/").split("/")
    alt_count = sum(1 for allele in alleles if allele == VCF_ALT_ALLELE)
    if alt_count >= 2:
        return CODE_HOM_ALT
    if alt_count == 1:
        return CODE_HET
    return CODE_HOM_REF


def downsample_variants(lines: Sequence[str], max_variants: int) -> Sequence[str]:
    """
    Deterministically reduce ``lines`` to at most ``max_variants`` records.

    Takes every floor(count / max_variants)-th record, then truncates to the
    budget, so the retained records span the whole file and repeated runs
    keep the same records.
    """
    count = len(lines)
    if count <= max_variants:
        return lines
    step = count // max_variants
    logger.info("VCF has %d variants, sampling %d (every %d)", count, max_variants, step)
    return lines[::step][:max_variants]


def vcf_to_pseudo_fasta(text: str, max_variants: int = DEFAULT_MAX_VARIANTS) -> str:
    """
    Convert VCF text into zygosity-coded pseudo-FASTA.

    Args:
        text: VCF file contents.
        max_variants: Variant budget; larger files are downsampled.

    Returns:
        FASTA text with one record per sample, in header order. Returns an
        empty string when no '#CHROM' header is present, which callers
        must treat as a failure.

    Example:
        >>> vcf = (
        ...     "#CHROM\\tPOS\\tID\\tREF\\tALT\\tQUAL\\tFILTER\\tINFO\\tFORMAT\\tS1\\tS2\\n"
        ...     "1\\t100\\t.\\tA\\tG\\t.\\t.\\t.\\tGT\\t0/1\\t1/1\\n"
        ... )
        >>> print(vcf_to_pseudo_fasta(vcf), end="")
        >S1
        1
        >S2
        2
    """
    lines = text.splitlines()
    header = find_header(lines)
    if header is None:
        logger.warning("No #CHROM header line found in VCF input")
        return ""

    samples = sample_names(header)
    codes: list[list[str]] = [[] for _ in samples]

    data_lines = [line for line in lines if line and not line.startswith("#")]
    skipped = 0
    for line in downsample_variants(data_lines, max_variants):
        record = parse_variant_line(line)
        if record is None:
            skipped += 1
            continue
        has_alt = record.has_alt
        for i, acc in enumerate(codes):
            genotype = record.genotypes[i] if i < len(record.genotypes) else ""
            acc.append(zygosity_code(genotype, has_alt))

    if skipped:
        logger.warning("Skipped %d VCF records with fewer than %d fields", skipped, VCF_MIN_FIELDS)

    return "".join(
        f"{FASTA_HEADER_PREFIX}{name}\n{''.join(acc)}\n"
        for name, acc in zip(samples, codes, strict=True)
    )
