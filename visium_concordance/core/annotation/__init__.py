"""Expert annotation reconciliation.

Canonicalizes raw expert region labels, joins them onto dataset spots and
drops spots without a label.

Example Usage
-------------
>>> from visium_concordance.core.annotation import (
...     AnnotationConfig, join_annotations, filter_unlabeled,
... )
>>> config = AnnotationConfig(label_column="annotation")
>>> join_annotations(adata, table, config)
>>> adata = filter_unlabeled(adata, label_key=config.label_key)
"""

from .config import AnnotationConfig, DEFAULT_RULES, DEFAULT_VOCABULARY
from .canonicalize import LabelRuleTable, canonicalize
from .join import join_annotations, join_by_key, join_by_position
from .filtering import filter_labels, filter_unlabeled

__all__ = [
    "AnnotationConfig",
    "DEFAULT_RULES",
    "DEFAULT_VOCABULARY",
    "LabelRuleTable",
    "canonicalize",
    "join_annotations",
    "join_by_key",
    "join_by_position",
    "filter_labels",
    "filter_unlabeled",
]
