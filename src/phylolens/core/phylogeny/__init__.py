"""Phylogeny module for tree building.

Provides UPGMA clustering of pairwise sequence distances into rooted
Newick trees, plus helpers to parse and inspect the resulting notation.
"""

from phylolens.core.phylogeny.tree_builder import (
    ClusterNode,
    build_newick,
    parse_newick,
    tip_names,
    upgma,
)

__all__ = [
    "ClusterNode",
    "build_newick",
    "parse_newick",
    "tip_names",
    "upgma",
]
