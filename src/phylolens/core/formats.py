"""
Input format detection and normalization.

Classifies raw text as FASTA, VCF or unrecognized, and normalizes VCF to
pseudo-FASTA so the rest of the pipeline only ever sees FASTA text.
"""

from __future__ import annotations

import logging

from phylolens.core.constants import (
    DEFAULT_MAX_VARIANTS,
    FASTA_HEADER_PREFIX,
    VCF_HEADER_PREFIX,
    VCF_HEADER_SCAN_LINES,
    VCF_META_PREFIX,
)
from phylolens.core.exceptions import MalformedVcfHeaderError, UnrecognizedFormatError
from phylolens.core.vcf import find_header, vcf_to_pseudo_fasta
from phylolens.models.results import InputFormat, PreparedInput

logger = logging.getLogger(__name__)


def detect_format(text: str) -> InputFormat:
    """
    Classify raw text by its leading characters.

    FASTA if the trimmed text starts with '>'. VCF if it starts with '##'
    or any of its first three lines starts with '#CHROM'. Anything else is
    UNKNOWN.
    """
    trimmed = text.strip()
    if trimmed.startswith(FASTA_HEADER_PREFIX):
        return InputFormat.FASTA
    if trimmed.startswith(VCF_META_PREFIX):
        return InputFormat.VCF
    head = trimmed.split("\n", VCF_HEADER_SCAN_LINES)[:VCF_HEADER_SCAN_LINES]
    if any(line.startswith(VCF_HEADER_PREFIX) for line in head):
        return InputFormat.VCF
    return InputFormat.UNKNOWN


def prepare_input(text: str, max_variants: int = DEFAULT_MAX_VARIANTS) -> PreparedInput:
    """
    Detect the format of ``text`` and normalize it to FASTA.

    Args:
        text: Raw input text, already decompressed.
        max_variants: Variant budget passed to the VCF encoder.

    Returns:
        PreparedInput with the detected format and FASTA content.

    Raises:
        UnrecognizedFormatError: If the text is neither FASTA nor VCF.
        MalformedVcfHeaderError: If VCF-looking text has no '#CHROM' line.
    """
    fmt = detect_format(text)
    if fmt == InputFormat.FASTA:
        return PreparedInput(format=fmt, content=text)
    if fmt == InputFormat.VCF:
        content = vcf_to_pseudo_fasta(text, max_variants=max_variants)
        # A header without sample columns also encodes to an empty string
        if not content and find_header(text.splitlines()) is None:
            raise MalformedVcfHeaderError
        return PreparedInput(format=fmt, content=content)

    preview = text.strip()[:20]
    logger.debug("Unrecognized input starting with %r", preview)
    raise UnrecognizedFormatError(preview)
