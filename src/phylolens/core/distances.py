"""
Pairwise sequence distances.

Computes normalized Hamming distances between all sequence pairs. The
computation is O(n^2 * L) for n sequences of length L, which is acceptable
only because the parser bounds both n and L. Comparisons are vectorized
with numpy: each sequence becomes a row of integer code points and one row is
compared against all later rows at once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np
import polars as pl

logger = logging.getLogger(__name__)


def hamming_distance(a: str, b: str) -> float:
    """
    Normalized Hamming distance between two sequences.

    Mismatches over the shorter length plus the length difference, divided
    by the longer length (or 1 when both are empty). Always in [0, 1].

    Example:
        >>> hamming_distance("AC", "AG")
        0.5
        >>> hamming_distance("ACGT", "AC")
        0.5
    """
    shorter = min(len(a), len(b))
    mismatches = sum(1 for i in range(shorter) if a[i] != b[i]) + abs(len(a) - len(b))
    return mismatches / max(len(a), len(b), 1)


def encode_sequences(sequences: Sequence[str]) -> np.ndarray:
    """
    Stack equal-length sequences into an (n, L) array of code points.

    Each character becomes its uint32 code point, so comparisons run on
    integers rather than numpy string elements.
    """
    if not sequences:
        return np.empty((0, 0), dtype=np.uint32)
    return np.stack(
        [np.frombuffer(seq.encode("utf-32-le"), dtype=np.uint32) for seq in sequences]
    )


class DistanceMatrix:
    """
    Symmetric matrix of pairwise distances with identifier lookup.

    The diagonal is zero and ``distance(a, b) == distance(b, a)``.

    Example:
        >>> dm = pairwise_distances(["A", "B"], {"A": "AC", "B": "AG"})
        >>> dm.distance("A", "B")
        0.5
        >>> dm.pairs()
        {('A', 'B'): 0.5}
    """

    def __init__(self, ids: Sequence[str], values: np.ndarray) -> None:
        if values.shape != (len(ids), len(ids)):
            msg = f"Distance values must be {len(ids)}x{len(ids)}, got {values.shape}"
            raise ValueError(msg)
        self.ids = list(ids)
        self.values = values
        self._index = {seq_id: i for i, seq_id in enumerate(self.ids)}

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, seq_id: object) -> bool:
        return seq_id in self._index

    def distance(self, a: str, b: str) -> float:
        """Distance between two identifiers; raises KeyError if either is unknown."""
        return float(self.values[self._index[a], self._index[b]])

    def get(self, a: str, b: str, default: float = 0.0) -> float:
        """Distance between two identifiers, or ``default`` if either is unknown."""
        if a not in self._index or b not in self._index:
            return default
        return self.distance(a, b)

    def pairs(self) -> dict[tuple[str, str], float]:
        """Distances for every i < j pair, keyed by ``(ids[i], ids[j])``."""
        n = len(self.ids)
        return {
            (self.ids[i], self.ids[j]): float(self.values[i, j])
            for i in range(n)
            for j in range(i + 1, n)
        }

    def to_polars(self) -> pl.DataFrame:
        """Long-format table with columns ``seq_a``, ``seq_b``, ``distance``."""
        pairs = self.pairs()
        return pl.DataFrame(
            {
                "seq_a": [a for a, _ in pairs],
                "seq_b": [b for _, b in pairs],
                "distance": list(pairs.values()),
            },
            schema={"seq_a": pl.Utf8, "seq_b": pl.Utf8, "distance": pl.Float64},
        )

    @classmethod
    def from_pairs(
        cls,
        ids: Sequence[str],
        pairs: Mapping[tuple[str, str], float],
        default: float = 0.0,
    ) -> DistanceMatrix:
        """
        Build a matrix from an unordered-pair mapping.

        Either key order is accepted. Missing pairs take ``default``.
        """
        n = len(ids)
        values = np.zeros((n, n), dtype=np.float64)
        missing = 0
        for i in range(n):
            for j in range(i + 1, n):
                a, b = ids[i], ids[j]
                if (a, b) in pairs:
                    d = pairs[(a, b)]
                elif (b, a) in pairs:
                    d = pairs[(b, a)]
                else:
                    d = default
                    missing += 1
                values[i, j] = values[j, i] = d
        if missing:
            logger.debug("%d distance pair(s) missing; using %.4f", missing, default)
        return cls(ids, values)


def pairwise_distances(ids: Sequence[str], seqs: Mapping[str, str]) -> DistanceMatrix:
    """
    Compute normalized Hamming distances for all identifier pairs.

    Sequences are expected to be padded to equal length (see
    ``pad_sequences``); unequal lengths fall back to the scalar metric.

    Args:
        ids: Ordered identifiers; the order fixes the matrix layout.
        seqs: Mapping of identifier to sequence.

    Returns:
        DistanceMatrix over ``ids``.
    """
    n = len(ids)
    values = np.zeros((n, n), dtype=np.float64)
    if n < 2:
        return DistanceMatrix(ids, values)

    lengths = {len(seqs[seq_id]) for seq_id in ids}
    if len(lengths) > 1:
        logger.debug("Sequences have unequal lengths; using scalar distance")
        for i in range(n):
            for j in range(i + 1, n):
                values[i, j] = values[j, i] = hamming_distance(seqs[ids[i]], seqs[ids[j]])
        return DistanceMatrix(ids, values)

    length = lengths.pop()
    if length == 0:
        return DistanceMatrix(ids, values)

    encoded = encode_sequences([seqs[seq_id] for seq_id in ids])
    for i in range(n - 1):
        mismatches = np.count_nonzero(encoded[i + 1 :] != encoded[i], axis=1)
        row = mismatches / length
        values[i, i + 1 :] = row
        values[i + 1 :, i] = row
    return DistanceMatrix(ids, values)
