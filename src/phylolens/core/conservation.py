"""
Per-site conservation scoring.

For each alignment column, conservation is the frequency of the most
common non-gap character divided by the number of non-gap characters.
Columns made only of gaps are skipped. The summary score is the mean
over the remaining columns, so it always lies in [0, 1].
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np

from phylolens.core.constants import GAP_CHAR
from phylolens.core.distances import encode_sequences
from phylolens.core.parsers import pad_sequences

logger = logging.getLogger(__name__)


def column_conservation(seqs: Mapping[str, str], gap_char: str = GAP_CHAR) -> np.ndarray:
    """
    Conservation ratio of every column.

    Sequences shorter than the longest one are treated as gap-padded.

    Returns:
        Float array of length max(len(seq)); all-gap columns are NaN.
    """
    if not seqs:
        return np.empty(0, dtype=np.float64)

    padded = pad_sequences(dict(seqs), gap_char)
    columns = encode_sequences(list(padded.values()))
    if columns.shape[1] == 0:
        return np.empty(0, dtype=np.float64)

    residues = columns != ord(gap_char)
    residue_counts = residues.sum(axis=0)

    top_counts = np.zeros(columns.shape[1], dtype=np.int64)
    for symbol in np.unique(columns[residues]):
        top_counts = np.maximum(top_counts, (columns == symbol).sum(axis=0))

    ratios = np.full(columns.shape[1], np.nan, dtype=np.float64)
    scored = residue_counts > 0
    ratios[scored] = top_counts[scored] / residue_counts[scored]
    return ratios


def conservation_score(seqs: Mapping[str, str], gap_char: str = GAP_CHAR) -> float:
    """
    Mean column conservation over columns with at least one non-gap character.

    Returns 0.0 when no column qualifies.

    Example:
        >>> conservation_score({"A": "AC", "B": "AG"})
        0.75
    """
    ratios = column_conservation(seqs, gap_char)
    scored = ratios[~np.isnan(ratios)]
    if scored.size == 0:
        return 0.0
    skipped = ratios.size - scored.size
    if skipped:
        logger.debug("Skipped %d all-gap column(s)", skipped)
    return float(scored.mean())
