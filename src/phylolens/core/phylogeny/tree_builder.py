"""Build UPGMA trees from pairwise sequence distances.

This module agglomerates sequences into a rooted, ultrametric tree using
UPGMA (average-linkage) clustering and serializes it as Newick notation
with fixed four-decimal branch lengths.

Clusters live in an arena: a list of ClusterNode records addressed by
stable integer indices, with distances held in a square numpy matrix over
the same indices. Leaves take indices 0..n-1 and every merge appends a new
record. Each merge scans the active upper triangle for the minimum, so the
whole build is O(n^3); that is acceptable for the parser's sequence limit
and should be replaced by a priority structure if the limit is raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from io import StringIO
from typing import TYPE_CHECKING

import numpy as np

from phylolens.core.constants import (
    BRANCH_LENGTH_FORMAT,
    DEFAULT_MISSING_DISTANCE,
    PLACEHOLDER_LEAF,
    SINGLE_LEAF_LENGTH,
)
from phylolens.core.distances import DistanceMatrix

if TYPE_CHECKING:
    from Bio.Phylo.BaseTree import Tree

logger = logging.getLogger(__name__)

# Characters that force a Newick label to be quoted
_NEWICK_RESERVED = frozenset("()[]':;, \t")

Distances = DistanceMatrix | Mapping[tuple[str, str], float]


@dataclass
class ClusterNode:
    """A node of the clustering tree.

    Attributes:
        name: Leaf identifier; None for internal nodes.
        children: Child clusters (empty for leaves).
        height: Distance from this node down to its leaves (0 for leaves).
        size: Number of original leaves below this node.
        branch_length: Length of the edge to the parent, >= 0.
    """

    name: str | None = None
    children: list[ClusterNode] = field(default_factory=list)
    height: float = 0.0
    size: int = 1
    branch_length: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @classmethod
    def leaf(cls, name: str, branch_length: float = 0.0) -> ClusterNode:
        return cls(name=name, branch_length=branch_length)

    @classmethod
    def join(cls, children: Sequence[ClusterNode], height: float) -> ClusterNode:
        """Create a parent at ``height``, setting each child's branch length.

        Branch length is ``height - child.height`` clamped to 0.
        """
        for child in children:
            child.branch_length = max(height - child.height, 0.0)
        return cls(
            children=list(children),
            height=height,
            size=sum(child.size for child in children),
        )

    def leaves(self) -> list[str]:
        """Leaf names in left-to-right order."""
        if self.is_leaf:
            return [self.name or ""]
        names: list[str] = []
        for child in self.children:
            names.extend(child.leaves())
        return names

    def to_newick(self) -> str:
        """Serialize this subtree as a ';'-terminated Newick string.

        Every non-root node carries a branch length; the root does not.
        """
        if self.is_leaf:
            # A lone leaf still needs an edge, so wrap it in a root
            return f"({self._format(self)});"
        inner = ",".join(self._format(child) for child in self.children)
        return f"({inner});"

    @classmethod
    def _format(cls, node: ClusterNode) -> str:
        length = BRANCH_LENGTH_FORMAT.format(node.branch_length)
        if node.is_leaf:
            return f"{format_label(node.name or '')}:{length}"
        inner = ",".join(cls._format(child) for child in node.children)
        return f"({inner}):{length}"


def format_label(name: str) -> str:
    """Quote a Newick label if it contains reserved characters."""
    if name and not _NEWICK_RESERVED.intersection(name):
        return name
    escaped = name.replace("'", "''")
    return f"'{escaped}'"


def _distance_values(
    ids: Sequence[str],
    distances: Distances,
    missing_distance: float,
) -> np.ndarray:
    """Square distance matrix over ``ids`` with missing entries filled."""
    if isinstance(distances, DistanceMatrix):
        if distances.ids == list(ids):
            values = distances.values.astype(np.float64, copy=True)
        else:
            n = len(ids)
            values = np.zeros((n, n), dtype=np.float64)
            for i in range(n):
                for j in range(i + 1, n):
                    d = distances.get(ids[i], ids[j], missing_distance)
                    values[i, j] = values[j, i] = d
    else:
        values = DistanceMatrix.from_pairs(ids, distances, default=missing_distance).values

    nan_count = int(np.isnan(values).sum()) // 2
    if nan_count:
        logger.debug("%d distance(s) are NaN; using %.4f", nan_count, missing_distance)
        values = np.where(np.isnan(values), missing_distance, values)
    return values


def upgma(
    ids: Sequence[str],
    distances: Distances,
    missing_distance: float = DEFAULT_MISSING_DISTANCE,
) -> ClusterNode:
    """Cluster identifiers into a rooted tree using UPGMA.

    Base cases:
        - no identifiers: a root holding a single placeholder leaf
        - one identifier: a root holding that leaf with length 1.0
        - two identifiers: both under one root, each at distance / 2

    General case: repeatedly merge the closest pair of active clusters. Ties
    go to the first pair in ascending (i, j) order of arena indices. The
    merged cluster sits at half the pair distance, and its distance to every
    other cluster k is the size-weighted average
    ``(d(i,k) * size(i) + d(j,k) * size(j)) / (size(i) + size(j))``.

    Args:
        ids: Ordered leaf identifiers.
        distances: DistanceMatrix or mapping of identifier pairs to distance.
        missing_distance: Substituted for pairs absent from ``distances``.

    Returns:
        Root ClusterNode.
    """
    n = len(ids)
    if n == 0:
        return ClusterNode.join([ClusterNode.leaf(PLACEHOLDER_LEAF)], height=0.0)
    if n == 1:
        return ClusterNode.join([ClusterNode.leaf(ids[0])], height=SINGLE_LEAF_LENGTH)

    base = _distance_values(ids, distances, missing_distance)
    if n == 2:
        return ClusterNode.join(
            [ClusterNode.leaf(ids[0]), ClusterNode.leaf(ids[1])],
            height=float(base[0, 1]) / 2.0,
        )

    capacity = 2 * n - 1
    arena: list[ClusterNode] = [ClusterNode.leaf(name) for name in ids]
    matrix = np.full((capacity, capacity), np.inf, dtype=np.float64)
    matrix[:n, :n] = base
    active = np.zeros(capacity, dtype=bool)
    active[:n] = True
    upper = np.triu(np.ones((capacity, capacity), dtype=bool), k=1)

    while int(active.sum()) > 1:
        candidates = np.where(upper & active[:, None] & active[None, :], matrix, np.inf)
        i, j = divmod(int(np.argmin(candidates)), capacity)
        d_ij = float(matrix[i, j])

        left, right = arena[i], arena[j]
        merged = ClusterNode.join([left, right], height=d_ij / 2.0)
        k = len(arena)
        arena.append(merged)

        active[i] = active[j] = False
        others = np.flatnonzero(active)
        updated = (matrix[i, others] * left.size + matrix[j, others] * right.size) / merged.size
        matrix[k, others] = updated
        matrix[others, k] = updated
        active[k] = True
        logger.debug("Merged clusters %d and %d at height %.4f", i, j, merged.height)

    return arena[int(np.flatnonzero(active)[0])]


def build_newick(
    ids: Sequence[str],
    distances: Distances,
    missing_distance: float = DEFAULT_MISSING_DISTANCE,
) -> str:
    """Build a UPGMA tree and return it as ';'-terminated Newick.

    Example:
        >>> build_newick(["A", "B"], {("A", "B"): 0.5})
        '(A:0.2500,B:0.2500);'
    """
    newick = upgma(ids, distances, missing_distance).to_newick()
    if not newick.endswith(";"):
        newick += ";"
    return newick


def parse_newick(newick: str) -> Tree:
    """Parse a Newick string into a BioPython tree.

    Raises:
        ValueError: If the string is not valid Newick.
    """
    from Bio import Phylo
    from Bio.Phylo.NewickIO import NewickError

    try:
        return Phylo.read(StringIO(newick), "newick")
    except NewickError as e:
        msg = f"Invalid Newick tree: {e}"
        raise ValueError(msg) from e


def tip_names(newick: str) -> list[str]:
    """Leaf names of a Newick tree, in tree order."""
    tree = parse_newick(newick)
    return [tip.name for tip in tree.get_terminals()]
