"""Normalization, clustering and differential expression.

Thin, configurable wrappers around scanpy. No statistics are
reimplemented here.

Example Usage
-------------
>>> from visium_concordance.core.clustering import (
...     ClusteringEngine, DERunner, ConcordanceConfig,
... )
>>> config = ConcordanceConfig()
>>> engine = ClusteringEngine(config)
>>> engine.normalize(adata)
>>> result = engine.run_clustering(adata)
>>> de = DERunner(config).run_de_tests(adata, groupby="cluster")
"""

from .config import (
    ClusteringConfig,
    ConcordanceConfig,
    DEConfig,
    FigureConfig,
)
from .engine import ClusteringEngine, ClusteringResult
from .de import DERunner, DEResult, RECORD_COLUMNS

__all__ = [
    "ClusteringConfig",
    "ConcordanceConfig",
    "DEConfig",
    "FigureConfig",
    "ClusteringEngine",
    "ClusteringResult",
    "DERunner",
    "DEResult",
    "RECORD_COLUMNS",
]
