"""Differential marker summaries for plot annotation.

Example Usage
-------------
>>> from visium_concordance.core.markers import summarize_markers
>>> summary = summarize_markers(records)
>>> summary["hypertrophic"][["rank", "gene", "pvals_adj"]]
"""

from .summary import (
    MarkerSummaryConfig,
    flag_significant,
    get_group_markers,
    strip_suffix,
    summarize_markers,
    summary_to_frame,
    top_markers,
)

__all__ = [
    "MarkerSummaryConfig",
    "flag_significant",
    "get_group_markers",
    "strip_suffix",
    "summarize_markers",
    "summary_to_frame",
    "top_markers",
]
