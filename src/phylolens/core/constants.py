"""
Constants used throughout the phylolens package.

Centralizes format markers, default limits, and placeholder values
to improve maintainability and consistency.
"""

from __future__ import annotations

# =============================================================================
# Format Markers
# =============================================================================

FASTA_HEADER_PREFIX = ">"
VCF_META_PREFIX = "##"
VCF_HEADER_PREFIX = "#CHROM"

# Number of leading lines inspected for a '#CHROM' header during detection
VCF_HEADER_SCAN_LINES = 3

# Fixed VCF columns before the per-sample genotype columns
# (CHROM POS ID REF ALT QUAL FILTER INFO FORMAT)
VCF_FIXED_COLUMNS = 9
VCF_MIN_FIELDS = VCF_FIXED_COLUMNS + 1
VCF_REF_INDEX = 3
VCF_ALT_INDEX = 4
VCF_MISSING_ALT = "."
VCF_ALT_ALLELE = "1"

# =============================================================================
# Zygosity Codes (one character per variant in the pseudo-sequence)
# =============================================================================

CODE_HOM_REF = "0"
CODE_HET = "1"
CODE_HOM_ALT = "2"

# =============================================================================
# Default Limits
#
# Inputs are bounded before the O(n^2 * L) distance computation and the
# O(n^3) clustering.
# =============================================================================

DEFAULT_MAX_SEQUENCES = 200
DEFAULT_MAX_SEQUENCE_LENGTH = 50_000
DEFAULT_MAX_VARIANTS = 10_000
DEFAULT_TIMEOUT_SECONDS = 30.0

GAP_CHAR = "-"

# Substituted for pairs missing from a distance table
DEFAULT_MISSING_DISTANCE = 0.0

# =============================================================================
# Tree Placeholders
# =============================================================================

BRANCH_LENGTH_FORMAT = "{:.4f}"

# Tree returned when nothing could be parsed
EMPTY_TREE_NEWICK = "(A:0.0000,B:0.0000);"

# Leaf used when the builder receives no identifiers at all
PLACEHOLDER_LEAF = "A"

# Synthetic second leaf for single-sequence inputs, placed at maximal distance
OUTGROUP_NAME = "outgroup"
OUTGROUP_DISTANCE = 1.0

# Branch length of a lone leaf
SINGLE_LEAF_LENGTH = 1.0

CONSERVATION_KEY = "conservation"
