"""Agreement between expert regions and automated clusters.

Example Usage
-------------
>>> from visium_concordance.core.agreement import compare_partitions
>>> result = compare_partitions(
...     adata.obs["expert_label"], adata.obs["cluster"],
...     name_a="expert", name_b="cluster",
... )
>>> result.ari
"""

from .ari import (
    AgreementResult,
    adjusted_rand_index,
    align_partitions,
    ari_from_contingency,
    compare_partitions,
    contingency_table,
)

__all__ = [
    "AgreementResult",
    "adjusted_rand_index",
    "align_partitions",
    "ari_from_contingency",
    "compare_partitions",
    "contingency_table",
]
