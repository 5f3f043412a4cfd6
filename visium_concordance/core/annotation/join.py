"""Attach expert labels to dataset spots.

Two strategies are available:

- ``join_by_key`` matches annotation rows to spots by barcode and rejects
  any missing, extra or duplicated barcode.
- ``join_by_position`` assumes the annotation rows are in exactly the same
  order as the dataset spots. It only checks lengths and cannot detect a
  reordered file, so ``join_annotations`` uses it only when the annotation
  table carries no barcode column.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import pandas as pd

from ..errors import AlignmentError
from .canonicalize import LabelRuleTable
from .config import AnnotationConfig

logger = logging.getLogger(__name__)


def _duplicates(values: Sequence[Any]) -> list:
    index = pd.Index(values)
    return index[index.duplicated()].unique().tolist()


def join_by_position(unit_ids: Sequence[str], labels: Sequence[str]) -> pd.Series:
    """Pair spot ids with labels by row position.

    Parameters
    ----------
    unit_ids : Sequence[str]
        Spot barcodes in dataset order
    labels : Sequence[str]
        Labels in annotation-file order

    Returns
    -------
    pd.Series
        Labels indexed by spot id, one entry per spot

    Raises
    ------
    AlignmentError
        If the sequences differ in length or spot ids repeat
    """
    unit_ids = list(unit_ids)
    labels = list(labels)
    if len(unit_ids) != len(labels):
        raise AlignmentError(
            f"Annotation has {len(labels)} rows but dataset has "
            f"{len(unit_ids)} spots"
        )
    dup = _duplicates(unit_ids)
    if dup:
        raise AlignmentError("Duplicate spot ids in dataset", dup)
    return pd.Series(labels, index=pd.Index(unit_ids, name="barcode"), dtype=object)


def join_by_key(unit_ids: Sequence[str], annotation: pd.Series) -> pd.Series:
    """Pair spot ids with labels by barcode.

    Parameters
    ----------
    unit_ids : Sequence[str]
        Spot barcodes in dataset order
    annotation : pd.Series
        Labels indexed by barcode

    Returns
    -------
    pd.Series
        Labels indexed by spot id, in dataset order

    Raises
    ------
    AlignmentError
        On duplicate barcodes in either source, or barcodes present in only
        one of them
    """
    unit_index = pd.Index([str(u) for u in unit_ids], name="barcode")
    annotation = annotation.copy()
    annotation.index = annotation.index.astype(str)

    dup = _duplicates(unit_index)
    if dup:
        raise AlignmentError("Duplicate spot ids in dataset", dup)
    dup = _duplicates(annotation.index)
    if dup:
        raise AlignmentError("Duplicate barcodes in annotation", dup)

    missing = unit_index.difference(annotation.index)
    if len(missing):
        raise AlignmentError(
            f"{len(missing)} dataset spots have no annotation row",
            missing.tolist(),
        )
    extra = annotation.index.difference(unit_index)
    if len(extra):
        raise AlignmentError(
            f"{len(extra)} annotation rows match no dataset spot",
            extra.tolist(),
        )

    joined = annotation.reindex(unit_index)
    joined.index.name = "barcode"
    return joined.astype(object)


def join_annotations(
    adata: Any,  # AnnData
    table: pd.DataFrame,
    config: Optional[AnnotationConfig] = None,
    rules: Optional[LabelRuleTable] = None,
    logger: Optional[logging.Logger] = None,
) -> pd.Series:
    """Canonicalize expert labels and write them to ``adata.obs``.

    Adds ``config.raw_key`` (raw labels) and ``config.label_key``
    (canonical labels) to ``adata.obs``. The key join is used when
    ``config.barcode_column`` is a column of ``table``.

    Parameters
    ----------
    adata : AnnData
        Spatial dataset, modified in place
    table : pd.DataFrame
        Annotation table
    config : AnnotationConfig, optional
        Column names and rules. Defaults are used if None.
    rules : LabelRuleTable, optional
        Prebuilt rule table; built from ``config`` if None.
    logger : logging.Logger, optional
        Logger instance

    Returns
    -------
    pd.Series
        Canonical labels indexed by barcode
    """
    config = config or AnnotationConfig()
    if rules is None:
        rules = LabelRuleTable.from_config(config)
    log = logger or logging.getLogger(__name__)

    if config.label_column not in table.columns:
        raise ValueError(
            f"Annotation table has no column '{config.label_column}' "
            f"(available: {list(table.columns)})"
        )

    raw_labels = table[config.label_column]
    if config.barcode_column and config.barcode_column in table.columns:
        keyed = pd.Series(
            raw_labels.to_numpy(),
            index=table[config.barcode_column].astype(str),
            name=config.label_column,
        )
        raw = join_by_key(adata.obs_names, keyed)
        log.info("Joined %d annotation rows by '%s'", len(raw), config.barcode_column)
    else:
        log.warning(
            "Annotation table has no barcode column; joining %d rows by position. "
            "Row order must match the dataset exactly.",
            len(table),
        )
        raw = join_by_position(adata.obs_names, raw_labels.tolist())

    raw = raw.where(raw.notna(), config.unlabeled).astype(str)
    canonical = rules.canonicalize_series(raw)

    n_rewritten, n_unknown = rules.summarize(raw)
    log.info(
        "Canonicalized labels: %d rewritten by rules, %d unknown, %d unlabeled",
        n_rewritten,
        n_unknown,
        int((canonical == config.unlabeled).sum()),
    )

    adata.obs[config.raw_key] = raw.to_numpy()
    adata.obs[config.label_key] = canonical.to_numpy()
    canonical.name = config.label_key
    return canonical
