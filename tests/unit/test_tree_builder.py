"""Tests for the UPGMA tree builder.

Tests base cases, merge order, branch lengths and Newick serialization.
"""

from __future__ import annotations

import numpy as np
import pytest

from phylolens.core.distances import DistanceMatrix
from phylolens.core.phylogeny.tree_builder import (
    ClusterNode,
    build_newick,
    format_label,
    parse_newick,
    tip_names,
    upgma,
)


class TestBaseCases:
    """Tests for zero, one and two identifiers."""

    def test_empty(self) -> None:
        assert build_newick([], {}) == "(A:0.0000);"

    def test_single(self) -> None:
        assert build_newick(["X"], {}) == "(X:1.0000);"

    def test_two(self) -> None:
        assert build_newick(["A", "B"], {("A", "B"): 0.5}) == "(A:0.2500,B:0.2500);"

    def test_two_missing_distance(self) -> None:
        assert build_newick(["A", "B"], {}, missing_distance=0.2) == "(A:0.1000,B:0.1000);"


class TestUpgma:
    """Tests for the general agglomeration."""

    def test_three_taxa(self) -> None:
        """Closest pair merges first; the outer taxon joins at the average distance."""
        pairs = {("A", "B"): 0.2, ("A", "C"): 0.6, ("B", "C"): 0.4}

        newick = build_newick(["A", "B", "C"], pairs)

        # (A,B) at 0.1 takes index 3, so C (index 2) is the left child
        # d(C,(A,B)) = (0.6 + 0.4) / 2 = 0.5 -> root at 0.25
        assert newick == "(C:0.2500,(A:0.1000,B:0.1000):0.1500);"

    def test_size_weighted_average(self) -> None:
        """Cluster distances are weighted by cluster size, not simple means."""
        ids = ["A", "B", "C", "D"]
        values = np.array(
            [
                [0.0, 0.1, 0.3, 0.9],
                [0.1, 0.0, 0.3, 0.9],
                [0.3, 0.3, 0.0, 0.6],
                [0.9, 0.9, 0.6, 0.0],
            ]
        )
        root = upgma(ids, DistanceMatrix(ids, values))

        # (A,B)@0.05, ((A,B),C)@0.15, then D: (0.9*2 + 0.6*1) / 3 = 0.8 -> 0.4
        assert root.height == pytest.approx(0.4)
        assert root.size == 4
        assert root.leaves() == ["D", "C", "A", "B"]

    def test_tie_breaks_on_lowest_pair(self) -> None:
        """Equal distances merge the first pair in (i, j) order."""
        ids = ["A", "B", "C"]
        values = np.full((3, 3), 0.4)
        np.fill_diagonal(values, 0.0)

        newick = build_newick(ids, DistanceMatrix(ids, values))

        assert newick == "(C:0.2000,(A:0.2000,B:0.2000):0.0000);"

    def test_deterministic(self) -> None:
        ids = [f"s{i}" for i in range(12)]
        rng = np.random.default_rng(7)
        values = rng.random((12, 12))
        values = (values + values.T) / 2
        np.fill_diagonal(values, 0.0)
        dm = DistanceMatrix(ids, values)

        assert build_newick(ids, dm) == build_newick(ids, dm)

    def test_ultrametric_and_non_negative(self) -> None:
        ids = [f"s{i}" for i in range(8)]
        rng = np.random.default_rng(3)
        values = rng.random((8, 8))
        values = (values + values.T) / 2
        np.fill_diagonal(values, 0.0)

        tree = parse_newick(build_newick(ids, DistanceMatrix(ids, values)))

        depths = [tree.distance(tip) for tip in tree.get_terminals()]
        assert max(depths) - min(depths) < 1e-3
        assert all(clade.branch_length >= 0 for clade in tree.find_clades() if clade is not tree.root)

    def test_nan_distances_use_missing(self) -> None:
        ids = ["A", "B", "C"]
        values = np.array([[0.0, np.nan, 0.4], [np.nan, 0.0, 0.4], [0.4, 0.4, 0.0]])

        newick = build_newick(ids, DistanceMatrix(ids, values), missing_distance=0.0)

        assert "(A:0.0000,B:0.0000)" in newick

    def test_matrix_with_other_order(self) -> None:
        dm = DistanceMatrix.from_pairs(["C", "B", "A"], {("A", "B"): 0.2, ("A", "C"): 0.6, ("B", "C"): 0.4})

        assert build_newick(["A", "B", "C"], dm) == "(C:0.2500,(A:0.1000,B:0.1000):0.1500);"


class TestNewickOutput:
    """Tests for Newick serialization."""

    def test_every_tip_present(self) -> None:
        ids = ["a", "b", "c", "d", "e"]
        pairs = {(x, y): 0.1 * (i + j) for i, x in enumerate(ids) for j, y in enumerate(ids) if i < j}

        names = tip_names(build_newick(ids, pairs))

        assert sorted(names) == ids

    def test_four_decimal_lengths(self) -> None:
        newick = build_newick(["A", "B"], {("A", "B"): 1 / 3})
        assert newick == "(A:0.1667,B:0.1667);"

    def test_quoted_labels(self) -> None:
        assert format_label("plain_name") == "plain_name"
        assert format_label("has space") == "'has space'"
        assert format_label("it's") == "'it''s'"
        assert format_label("") == "''"

    def test_invalid_newick(self) -> None:
        with pytest.raises(ValueError, match="Invalid Newick"):
            parse_newick("((A:0.1,B:0.1);")


class TestClusterNode:
    """Tests for ClusterNode helpers."""

    def test_join_clamps_negative_branch(self) -> None:
        child = ClusterNode(children=[ClusterNode.leaf("a"), ClusterNode.leaf("b")], height=0.5, size=2)
        parent = ClusterNode.join([child, ClusterNode.leaf("c")], height=0.3)

        assert child.branch_length == 0.0
        assert parent.size == 3

    def test_leaf(self) -> None:
        leaf = ClusterNode.leaf("x")
        assert leaf.is_leaf
        assert leaf.leaves() == ["x"]
