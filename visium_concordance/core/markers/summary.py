"""Per-group selection of top differential markers.

Differential test records come from ``scanpy.tl.rank_genes_groups`` via
``DERunner``: one row per (group, gene) with ``names``,
``logfoldchanges`` and ``pvals_adj``. The summarizer only appends two
columns (``gene`` and ``significant``) and selects rows; it never changes
the test statistics.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pandas as pd
import yaml

from ..errors import MissingGroupError

logger = logging.getLogger(__name__)

# scanpy / anndata make duplicate feature names unique as Gene, Gene.1, ...
_DUPLICATE_SUFFIX = re.compile(r"\.\d+$")

REQUIRED_COLUMNS = ("names", "logfoldchanges", "pvals_adj")


@dataclass
class MarkerSummaryConfig:
    """Thresholds for marker selection.

    Attributes
    ----------
    pval_threshold : float
        Adjusted p-value must be strictly below this value
    lfc_threshold : float
        Absolute log2 fold change must be strictly above this value
    top_k : int
        Markers kept per group
    """

    pval_threshold: float = 0.05
    lfc_threshold: float = 0.5
    top_k: int = 5

    @classmethod
    def from_yaml(cls, path: Path) -> "MarkerSummaryConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "markers" in data:
            data = data["markers"]
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pval_threshold": self.pval_threshold,
            "lfc_threshold": self.lfc_threshold,
            "top_k": self.top_k,
        }


def strip_suffix(name: str) -> str:
    """Remove a trailing ``.<digits>`` disambiguation suffix.

    >>> strip_suffix("Col10a1.1")
    'Col10a1'
    >>> strip_suffix("Col10a1")
    'Col10a1'
    """
    return _DUPLICATE_SUFFIX.sub("", str(name))


def _check_columns(records: pd.DataFrame) -> None:
    missing = [c for c in REQUIRED_COLUMNS if c not in records.columns]
    if missing:
        raise ValueError(
            f"Differential test records missing columns: {missing} "
            f"(found: {list(records.columns)})"
        )


def flag_significant(
    records: pd.DataFrame,
    pval_threshold: float = 0.05,
    lfc_threshold: float = 0.5,
) -> pd.DataFrame:
    """Return a copy of ``records`` with ``gene`` and ``significant`` columns.

    A record is significant iff ``pvals_adj < pval_threshold`` and
    ``|logfoldchanges| > lfc_threshold``. NaN statistics are never
    significant.
    """
    _check_columns(records)
    flagged = records.copy()
    flagged["gene"] = flagged["names"].map(strip_suffix)
    flagged["significant"] = (
        (flagged["pvals_adj"] < pval_threshold)
        & (flagged["logfoldchanges"].abs() > lfc_threshold)
    ).astype(bool)
    return flagged


def top_markers(
    records: pd.DataFrame,
    top_k: int = 5,
    pval_threshold: float = 0.05,
    lfc_threshold: float = 0.5,
) -> pd.DataFrame:
    """Select the ``top_k`` most significant markers of one group.

    Significant records are ordered by ascending adjusted p-value with a
    stable sort, so ties keep their input order.
    """
    if "significant" not in records.columns:
        records = flag_significant(records, pval_threshold, lfc_threshold)
    significant = records[records["significant"]]
    ranked = significant.sort_values("pvals_adj", ascending=True, kind="mergesort")
    top = ranked.head(top_k).copy()
    top["rank"] = range(1, len(top) + 1)
    return top


def summarize_markers(
    records: pd.DataFrame,
    config: Optional[MarkerSummaryConfig] = None,
    group_col: str = "group",
    groups: Optional[Iterable[Any]] = None,
) -> Dict[str, pd.DataFrame]:
    """Top markers for every group of a partition.

    Parameters
    ----------
    records : pd.DataFrame
        Differential test records with a ``group_col`` column
    config : MarkerSummaryConfig, optional
        Selection thresholds
    group_col : str
        Column naming the group of each record
    groups : iterable, optional
        Groups to summarize. Defaults to every group in ``records`` in
        order of first appearance.

    Returns
    -------
    Dict[str, pd.DataFrame]
        Group -> at most ``top_k`` rows, rank 1 first

    Raises
    ------
    MissingGroupError
        If a requested group has no records
    """
    config = config or MarkerSummaryConfig()
    if group_col not in records.columns:
        raise ValueError(f"Differential test records have no '{group_col}' column")

    flagged = flag_significant(records, config.pval_threshold, config.lfc_threshold)
    group_labels = flagged[group_col].astype(str)
    available = list(dict.fromkeys(group_labels))

    if groups is None:
        groups = available
    summary: Dict[str, pd.DataFrame] = {}
    for group in groups:
        group = str(group)
        if group not in available:
            raise MissingGroupError(group, available)
        subset = flagged[group_labels == group]
        summary[group] = top_markers(subset, top_k=config.top_k)
        logger.debug(
            "Group %s: %d significant of %d records, kept %d",
            group,
            int(subset["significant"].sum()),
            len(subset),
            len(summary[group]),
        )
    return summary


def get_group_markers(summary: Dict[str, pd.DataFrame], group: Any) -> pd.DataFrame:
    """Markers of ``group`` from a ``summarize_markers`` result."""
    key = str(group)
    if key not in summary:
        raise MissingGroupError(key, summary.keys())
    return summary[key]


def summary_to_frame(summary: Dict[str, pd.DataFrame], group_col: str = "group") -> pd.DataFrame:
    """Concatenate a marker summary into one long table."""
    frames = []
    for group, df in summary.items():
        df = df.copy()
        df[group_col] = group
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=[group_col, "rank", "gene", "names",
                                     "logfoldchanges", "pvals_adj"])
    combined = pd.concat(frames, ignore_index=True)
    leading = [group_col, "rank", "gene"]
    return combined[leading + [c for c in combined.columns if c not in leading]]
