"""Adjusted Rand Index between two partitions of the same spots.

The index is computed from the contingency table with exact integer and
rational arithmetic, so small tables do not suffer floating-point
cancellation:

    ARI = (sum_ij C(n_ij, 2) - E) / (0.5 * (sum_i C(a_i, 2) + sum_j C(b_j, 2)) - E)
    E   = sum_i C(a_i, 2) * sum_j C(b_j, 2) / C(n, 2)

Degenerate inputs
-----------------
- fewer than two spots: ``DegenerateInputError``
- zero denominator, which happens only when both partitions are a single
  category or both are all singletons (identical up to relabeling): 1.0
- exactly one partition is a single category: ``DegeneratePartitionError``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import AlignmentError, DegenerateInputError, DegeneratePartitionError

PartitionLike = Union[pd.Series, Sequence[Any], np.ndarray]


def _comb2(x: int) -> int:
    return x * (x - 1) // 2


def _as_series(partition: PartitionLike, name: str) -> pd.Series:
    if isinstance(partition, pd.Series):
        return partition
    return pd.Series(list(partition), name=name)


def align_partitions(a: PartitionLike, b: PartitionLike) -> tuple:
    """Align two partitions over the same spots.

    Series are matched by index; plain sequences by position. Missing
    values are not allowed: a partition must be total.

    Raises
    ------
    AlignmentError
        If the spot sets differ, an index repeats, or a label is missing
    """
    a = _as_series(a, "a")
    b = _as_series(b, "b")

    if len(a) != len(b):
        raise AlignmentError(
            f"Partitions cover different numbers of spots ({len(a)} vs {len(b)})"
        )
    for s, label in ((a, "first"), (b, "second")):
        if s.index.has_duplicates:
            raise AlignmentError(
                f"Duplicate spot ids in {label} partition",
                s.index[s.index.duplicated()].unique().tolist(),
            )
        if s.isna().any():
            raise AlignmentError(
                f"{label.capitalize()} partition is not total; unassigned spots",
                s.index[s.isna().to_numpy()].tolist(),
            )

    if not a.index.equals(b.index):
        only_a = a.index.difference(b.index)
        only_b = b.index.difference(a.index)
        if len(only_a) or len(only_b):
            raise AlignmentError(
                "Partitions cover different spots",
                list(only_a) + list(only_b),
            )
        b = b.reindex(a.index)
    return a, b


def _factorize(s: pd.Series):
    # Labels are compared as they are, so 1 and "1" stay distinct
    try:
        return pd.factorize(s, sort=True)
    except TypeError:
        return pd.factorize(s, sort=False)


def contingency_table(a: PartitionLike, b: PartitionLike) -> pd.DataFrame:
    """Count spots for every (category in a, category in b) pair.

    Returns
    -------
    pd.DataFrame
        Rows are categories of ``a``, columns categories of ``b``,
        integer counts
    """
    a, b = align_partitions(a, b)
    if len(a) == 0:
        raise DegenerateInputError("No spots to compare")
    codes_a, cats_a = _factorize(a)
    codes_b, cats_b = _factorize(b)
    counts = np.zeros((len(cats_a), len(cats_b)), dtype=np.int64)
    np.add.at(counts, (codes_a, codes_b), 1)
    return pd.DataFrame(
        counts,
        index=pd.Index(cats_a, name=a.name or "a"),
        columns=pd.Index(cats_b, name=b.name or "b"),
    )


def ari_from_contingency(table: Union[pd.DataFrame, np.ndarray]) -> float:
    """Adjusted Rand Index from a contingency table of counts."""
    counts = np.asarray(table, dtype=np.int64)
    n = int(counts.sum())
    if n < 2:
        raise DegenerateInputError(
            f"Adjusted Rand Index needs at least 2 spots, got {n}"
        )

    sum_cells = sum(_comb2(int(x)) for x in counts.ravel())
    row_sums = [int(x) for x in counts.sum(axis=1) if x > 0]
    col_sums = [int(x) for x in counts.sum(axis=0) if x > 0]
    sum_a = sum(_comb2(x) for x in row_sums)
    sum_b = sum(_comb2(x) for x in col_sums)
    total_pairs = _comb2(n)

    expected = Fraction(sum_a * sum_b, total_pairs)
    max_index = Fraction(sum_a + sum_b, 2)
    denominator = max_index - expected

    if denominator == 0:
        # Both single-category or both all-singleton: same partition
        return 1.0

    if len(row_sums) == 1 or len(col_sums) == 1:
        raise DegeneratePartitionError(
            "One partition places all spots in a single category "
            f"({len(row_sums)} vs {len(col_sums)} categories)"
        )

    return float((sum_cells - expected) / denominator)


def adjusted_rand_index(a: PartitionLike, b: PartitionLike) -> float:
    """Adjusted Rand Index of two partitions of the same spots.

    Parameters
    ----------
    a, b : pd.Series or sequence
        Category label per spot. Series are aligned by index.

    Returns
    -------
    float
        1.0 for identical partitions up to relabeling, about 0 for chance
        agreement, negative for worse than chance

    Raises
    ------
    AlignmentError
        If the partitions do not cover the same spots
    DegenerateInputError
        If fewer than two spots are given
    DegeneratePartitionError
        If exactly one partition has a single category
    """
    return ari_from_contingency(contingency_table(a, b))


@dataclass
class AgreementResult:
    """Agreement between two partitions.

    Attributes
    ----------
    ari : float
        Adjusted Rand Index
    n_units : int
        Number of spots compared
    name_a, name_b : str
        Partition names
    n_categories_a, n_categories_b : int
        Number of distinct categories in each partition
    contingency : pd.DataFrame
        Spot counts per category pair
    """

    ari: float
    n_units: int
    name_a: str = "a"
    name_b: str = "b"
    n_categories_a: int = 0
    n_categories_b: int = 0
    contingency: pd.DataFrame = field(default_factory=pd.DataFrame)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "ari": round(self.ari, 6),
            "n_units": self.n_units,
            "partition_a": self.name_a,
            "partition_b": self.name_b,
            "n_categories_a": self.n_categories_a,
            "n_categories_b": self.n_categories_b,
        }


def compare_partitions(
    a: PartitionLike,
    b: PartitionLike,
    name_a: Optional[str] = None,
    name_b: Optional[str] = None,
) -> AgreementResult:
    """Compute the ARI and contingency table of two partitions."""
    a = _as_series(a, name_a or "a")
    b = _as_series(b, name_b or "b")
    name_a = name_a or str(a.name or "a")
    name_b = name_b or str(b.name or "b")
    table = contingency_table(a.rename(name_a), b.rename(name_b))
    return AgreementResult(
        ari=ari_from_contingency(table),
        n_units=int(table.to_numpy().sum()),
        name_a=name_a,
        name_b=name_b,
        n_categories_a=table.shape[0],
        n_categories_b=table.shape[1],
        contingency=table,
    )

