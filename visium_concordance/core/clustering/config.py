"""Configuration classes for the concordance workflow.

All parameters are configurable through YAML so the same workflow serves
other Visium sections and annotation exports.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..annotation.config import AnnotationConfig
from ..markers.summary import MarkerSummaryConfig


@dataclass
class ClusteringConfig:
    """Configuration for normalization and graph clustering.

    Attributes
    ----------
    min_cells : int
        Drop genes detected in fewer spots than this
    normalization : str
        ``pearson_residuals`` (analytic Pearson residuals, the scanpy
        counterpart of SCTransform) or ``log1p`` (total-count scaling then
        log1p)
    n_top_genes : int
        Highly variable genes kept for PCA
    target_sum : float
        Per-spot total of the log-normalized matrix used for DE and plots
    n_pcs : int
        Number of principal components for neighbors
    neighbors_k : int
        k for the neighborhood graph
    resolution : float
        Community-detection resolution
    algorithm : str
        ``leiden`` or ``louvain``
    random_seed : int
        Random seed for reproducibility
    compute_umap : bool
        Compute UMAP embeddings for visualization
    cluster_key : str
        obs column receiving cluster assignments
    """

    min_cells: int = 3
    normalization: str = "pearson_residuals"
    n_top_genes: int = 3000
    target_sum: float = 1e4
    n_pcs: int = 30
    neighbors_k: int = 15
    resolution: float = 0.8
    algorithm: str = "leiden"
    random_seed: int = 1337
    compute_umap: bool = True
    cluster_key: str = "cluster"


@dataclass
class DEConfig:
    """Configuration for differential expression analysis.

    Attributes
    ----------
    method : str
        DE method (wilcoxon, t-test, logreg, ...)
    tie_correct : bool
        Apply tie correction for Wilcoxon test
    pts : bool
        Report the fraction of spots expressing each gene
    """

    method: str = "wilcoxon"
    tie_correct: bool = True
    pts: bool = True


@dataclass
class FigureConfig:
    """Configuration for figure export.

    Attributes
    ----------
    dpi : int
        Figure resolution
    format : str
        File extension passed to matplotlib
    spot_size : float, optional
        Spot diameter scale for spatial plots; scanpy default if None
    skip : bool
        Skip figure generation
    """

    dpi: int = 300
    format: str = "png"
    spot_size: Optional[float] = None
    skip: bool = False


@dataclass
class ConcordanceConfig:
    """Master configuration for a concordance run.

    Attributes
    ----------
    annotation : AnnotationConfig
        Expert label loading and canonicalization
    clustering : ClusteringConfig
        Normalization and clustering
    de : DEConfig
        Differential expression
    markers : MarkerSummaryConfig
        Top marker selection
    figures : FigureConfig
        Figure export
    """

    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    de: DEConfig = field(default_factory=DEConfig)
    markers: MarkerSummaryConfig = field(default_factory=MarkerSummaryConfig)
    figures: FigureConfig = field(default_factory=FigureConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConcordanceConfig":
        """Build from a plain mapping."""
        data = data or {}
        if "concordance" in data:
            data = data["concordance"] or {}
        return cls(
            annotation=AnnotationConfig.from_dict(data.get("annotation", {})),
            clustering=ClusteringConfig(**data.get("clustering", {})),
            de=DEConfig(**data.get("de", {})),
            markers=MarkerSummaryConfig(**data.get("markers", {})),
            figures=FigureConfig(**data.get("figures", {})),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "ConcordanceConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def default(cls) -> "ConcordanceConfig":
        """Create default configuration."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "annotation": self.annotation.to_dict(),
            "clustering": {
                "min_cells": self.clustering.min_cells,
                "normalization": self.clustering.normalization,
                "n_top_genes": self.clustering.n_top_genes,
                "target_sum": self.clustering.target_sum,
                "n_pcs": self.clustering.n_pcs,
                "neighbors_k": self.clustering.neighbors_k,
                "resolution": self.clustering.resolution,
                "algorithm": self.clustering.algorithm,
                "random_seed": self.clustering.random_seed,
                "compute_umap": self.clustering.compute_umap,
                "cluster_key": self.clustering.cluster_key,
            },
            "de": {
                "method": self.de.method,
                "tie_correct": self.de.tie_correct,
                "pts": self.de.pts,
            },
            "markers": self.markers.to_dict(),
            "figures": {
                "dpi": self.figures.dpi,
                "format": self.figures.format,
                "spot_size": self.figures.spot_size,
                "skip": self.figures.skip,
            },
        }
