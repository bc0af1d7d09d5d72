"""
Bounded FASTA parsing and gap padding.

The parser enforces the sequence-count and sequence-length limits that
keep the quadratic distance computation tractable. Padding is a separate
step so that callers can inspect the raw parse before all sequences are
brought to a common length.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path

from phylolens.core.constants import (
    DEFAULT_MAX_SEQUENCE_LENGTH,
    DEFAULT_MAX_SEQUENCES,
    FASTA_HEADER_PREFIX,
    GAP_CHAR,
)

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """
    Read an input file as text, transparently decompressing '.gz' files.

    Args:
        path: Path to a FASTA or VCF file (optionally gzipped).

    Returns:
        Decoded file contents.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    if not path.exists():
        msg = f"Input file not found: {path}"
        raise FileNotFoundError(msg)

    if path.suffix == ".gz":
        with gzip.open(path, "rt", errors="replace") as handle:
            return handle.read()
    return path.read_text(errors="replace")


class _FastaAccumulator:
    """Collects records while honoring the count and length limits."""

    def __init__(self, max_sequences: int, max_length: int) -> None:
        self.max_sequences = max_sequences
        self.max_length = max_length
        self.records: dict[str, str] = {}
        self.truncated = 0

    @property
    def full(self) -> bool:
        return len(self.records) >= self.max_sequences

    def finalize(self, seq_id: str, chunks: list[str]) -> None:
        if self.full:
            return
        sequence = "".join(chunks)
        if len(sequence) > self.max_length:
            sequence = sequence[: self.max_length]
            self.truncated += 1
        if seq_id in self.records:
            logger.warning("Duplicate sequence identifier '%s'; keeping the last record", seq_id)
        self.records[seq_id] = sequence


def parse_fasta(
    text: str,
    max_sequences: int = DEFAULT_MAX_SEQUENCES,
    max_length: int = DEFAULT_MAX_SEQUENCE_LENGTH,
) -> dict[str, str]:
    """
    Parse FASTA text into an ordered mapping of identifier to sequence.

    A line starting with '>' begins a new record whose identifier is the
    first whitespace-delimited token after '>'. Following lines are
    uppercased and concatenated until the next header. Blank lines and
    lines before the first header are ignored.

    Args:
        text: FASTA-formatted text.
        max_sequences: Stop recording once this many records are stored.
        max_length: Longer sequences are truncated to this length.

    Returns:
        Mapping of identifier to uppercase sequence, in input order.

    Example:
        >>> parse_fasta(">A\\nAC\\n>B\\nAG")
        {'A': 'AC', 'B': 'AG'}
    """
    acc = _FastaAccumulator(max_sequences, max_length)
    current_id: str | None = None
    chunks: list[str] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(FASTA_HEADER_PREFIX):
            if current_id is not None:
                acc.finalize(current_id, chunks)
            if acc.full:
                logger.warning(
                    "Reached the limit of %d sequences; ignoring remaining records",
                    max_sequences,
                )
                current_id = None
                break
            tokens = line[1:].split()
            current_id = tokens[0] if tokens else ""
            chunks = []
        elif current_id is not None:
            chunks.append(line.upper())

    if current_id is not None:
        acc.finalize(current_id, chunks)

    if acc.truncated:
        logger.warning(
            "Truncated %d sequence(s) to the maximum length of %d",
            acc.truncated,
            max_length,
        )
    logger.debug("Parsed %d FASTA record(s)", len(acc.records))
    return acc.records


def pad_sequences(seqs: dict[str, str], gap_char: str = GAP_CHAR) -> dict[str, str]:
    """
    Right-pad every sequence with ``gap_char`` to the longest length.

    Returns a new mapping in the same order; the input is not modified.
    """
    if not seqs:
        return {}
    max_len = max(len(s) for s in seqs.values())
    return {k: v + gap_char * (max_len - len(v)) for k, v in seqs.items()}
