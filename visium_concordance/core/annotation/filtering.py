"""Removal of spots without an expert label."""

from __future__ import annotations

import logging
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)


def filter_labels(labels: pd.Series, unlabeled: str = "") -> pd.Series:
    """Return the entries of ``labels`` that carry a usable label.

    Missing values count as unlabeled.
    """
    keep = labels.notna() & (labels.astype(str) != unlabeled)
    return labels[keep]


def filter_unlabeled(
    adata: Any,  # AnnData
    label_key: str = "expert_label",
    unlabeled: str = "",
    logger: Optional[logging.Logger] = None,
) -> Any:
    """Drop spots whose canonical label is the unlabeled value.

    The result is a structural copy: counts, layers, coordinates and every
    other per-spot array lose the removed spots, so downstream length
    invariants hold.

    Parameters
    ----------
    adata : AnnData
        Dataset with ``label_key`` in ``obs``
    label_key : str
        obs column with canonical labels
    unlabeled : str
        Value meaning "no annotation"

    Returns
    -------
    AnnData
        Filtered copy

    Raises
    ------
    KeyError
        If ``label_key`` is not in ``adata.obs``
    ValueError
        If no labelled spot remains
    """
    log = logger or logging.getLogger(__name__)
    if label_key not in adata.obs:
        raise KeyError(f"Label column '{label_key}' not found in adata.obs")

    labels = adata.obs[label_key]
    mask = (labels.notna() & (labels.astype(str) != unlabeled)).to_numpy()
    n_kept = int(mask.sum())

    if n_kept == 0:
        raise ValueError(f"No spots carry a label in '{label_key}'")

    log.info(
        "Filtering unlabeled spots: %d -> %d (%d removed)",
        adata.n_obs,
        n_kept,
        adata.n_obs - n_kept,
    )
    subset = adata[mask].copy()
    if isinstance(subset.obs[label_key].dtype, pd.CategoricalDtype):
        subset.obs[label_key] = subset.obs[label_key].cat.remove_unused_categories()
    return subset
