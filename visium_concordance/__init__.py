"""visium-concordance: expert regions vs clusters for Visium spatial data.

This package provides tools for:
- Canonicalizing expert tissue-region annotations and joining them to spots
- Normalization and graph clustering of spots (via scanpy)
- Scoring agreement between expert regions and clusters (Adjusted Rand Index)
- Per-region differential expression and top-marker selection
- Exporting the poster figure set

Example usage:
    >>> from visium_concordance.core.workflow import run_concordance
    >>> result = run_concordance("sample.h5ad", "annotation.csv", "out/")
    >>> result.agreement.ari
"""

__version__ = "0.1.0"
