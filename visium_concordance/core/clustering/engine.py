"""Normalization and graph clustering of Visium spots.

Pipeline: counts layer -> log-normalized X -> highly variable genes ->
PCA input (Pearson residuals or scaled log expression) -> PCA ->
neighbors -> Leiden / Louvain (-> UMAP optional).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import numpy as np
from scipy import sparse

from .config import ClusteringConfig, ConcordanceConfig

SUPPORTED_NORMALIZATIONS = ("pearson_residuals", "log1p")
SUPPORTED_ALGORITHMS = ("leiden", "louvain")


@dataclass
class ClusteringResult:
    """Result from clustering operation.

    Attributes
    ----------
    n_clusters : int
        Number of clusters found
    cluster_key : str
        Key in adata.obs containing cluster assignments
    cluster_sizes : Dict[str, int]
        Map of cluster ID to spot count
    n_hvg : int
        Number of highly variable genes used for PCA
    n_pcs : int
        Number of principal components actually used
    normalization : str
        Normalization flavor used for the PCA input
    algorithm : str
        Community-detection algorithm
    """

    n_clusters: int = 0
    cluster_key: str = "cluster"
    cluster_sizes: Dict[str, int] = field(default_factory=dict)
    n_hvg: int = 0
    n_pcs: int = 0
    normalization: str = ""
    algorithm: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "n_clusters": self.n_clusters,
            "cluster_key": self.cluster_key,
            "cluster_sizes": {str(k): int(v) for k, v in self.cluster_sizes.items()},
            "n_hvg": self.n_hvg,
            "n_pcs": self.n_pcs,
            "normalization": self.normalization,
            "algorithm": self.algorithm,
        }


class ClusteringEngine:
    """Normalization and clustering engine built on scanpy.

    Parameters
    ----------
    config : ConcordanceConfig, optional
        Run configuration. If None, uses defaults.
    logger : logging.Logger, optional
        Logger instance. If None, creates default logger.

    Example
    -------
    >>> from visium_concordance.core.clustering import ClusteringEngine
    >>> engine = ClusteringEngine()
    >>> engine.normalize(adata)
    >>> result = engine.run_clustering(adata)
    """

    def __init__(
        self,
        config: Optional[ConcordanceConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ConcordanceConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._check_dependencies()
        self._validate(self.config.clustering)

    def _check_dependencies(self) -> None:
        """Check for required dependencies."""
        try:
            import scanpy
        except ImportError:
            raise RuntimeError(
                "Clustering requires scanpy. Install with: pip install scanpy"
            )

    @staticmethod
    def _validate(cfg: ClusteringConfig) -> None:
        if cfg.normalization not in SUPPORTED_NORMALIZATIONS:
            raise ValueError(
                f"Unknown normalization '{cfg.normalization}' "
                f"(expected one of {SUPPORTED_NORMALIZATIONS})"
            )
        if cfg.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unknown clustering algorithm '{cfg.algorithm}' "
                f"(expected one of {SUPPORTED_ALGORITHMS})"
            )

    def normalize(
        self,
        adata: Any,  # AnnData
        counts_layer: str = "counts",
    ) -> int:
        """Normalize counts and flag highly variable genes, in place.

        Raw counts are kept in ``adata.layers[counts_layer]``; ``adata.X``
        becomes total-count scaled, log1p transformed expression.

        Parameters
        ----------
        adata : AnnData
            Dataset with raw counts in X (modified in place)
        counts_layer : str
            Layer receiving the raw counts

        Returns
        -------
        int
            Number of highly variable genes
        """
        import scanpy as sc

        cfg = self.config.clustering

        n_genes = adata.n_vars
        sc.pp.filter_genes(adata, min_cells=cfg.min_cells)
        if adata.n_vars < n_genes:
            self.logger.info(
                "Dropped %d genes detected in < %d spots",
                n_genes - adata.n_vars,
                cfg.min_cells,
            )

        if counts_layer not in adata.layers:
            adata.layers[counts_layer] = adata.X.copy()

        n_top = min(cfg.n_top_genes, adata.n_vars)
        if cfg.normalization == "pearson_residuals":
            sc.experimental.pp.highly_variable_genes(
                adata,
                flavor="pearson_residuals",
                n_top_genes=n_top,
                layer=counts_layer,
            )

        sc.pp.normalize_total(adata, target_sum=cfg.target_sum)
        sc.pp.log1p(adata)

        if cfg.normalization == "log1p":
            sc.pp.highly_variable_genes(adata, flavor="seurat", n_top_genes=n_top)

        n_hvg = int(adata.var["highly_variable"].sum())
        adata.uns["normalization"] = {
            "flavor": cfg.normalization,
            "counts_layer": counts_layer,
            "n_top_genes": n_hvg,
        }
        self.logger.info(
            "Normalized %d spots (%s), %d highly variable genes",
            adata.n_obs,
            cfg.normalization,
            n_hvg,
        )
        return n_hvg

    def pca_input(
        self,
        adata: Any,  # AnnData
        counts_layer: str = "counts",
    ) -> Any:
        """Build the highly-variable-gene matrix fed into PCA.

        Returns
        -------
        AnnData
            Copy restricted to highly variable genes, X holding Pearson
            residuals or scaled log expression
        """
        import scanpy as sc

        if "highly_variable" not in adata.var:
            raise ValueError("Run normalize() before clustering")

        subset = adata[:, adata.var["highly_variable"].to_numpy()].copy()
        if self.config.clustering.normalization == "pearson_residuals":
            subset.X = subset.layers[counts_layer].copy()
            sc.experimental.pp.normalize_pearson_residuals(subset)
        else:
            if sparse.issparse(subset.X):
                subset.X = subset.X.toarray()
            sc.pp.scale(subset, max_value=10)
        return subset

    def run_clustering(
        self,
        adata: Any,  # AnnData
        cluster_key: Optional[str] = None,
        resolution: Optional[float] = None,
        random_seed: Optional[int] = None,
        compute_umap: Optional[bool] = None,
    ) -> ClusteringResult:
        """Run PCA, neighbors and community detection.

        Parameters
        ----------
        adata : AnnData
            Normalized dataset (modified in place)
        cluster_key : str, optional
            obs column for cluster labels. Uses config default if None.
        resolution : float, optional
            Clustering resolution. Uses config default if None.
        random_seed : int, optional
            Random seed. Uses config default if None.
        compute_umap : bool, optional
            Compute UMAP embeddings. Uses config default if None.

        Returns
        -------
        ClusteringResult
            Clustering result with cluster statistics
        """
        import scanpy as sc

        cfg = self.config.clustering
        cluster_key = cluster_key if cluster_key is not None else cfg.cluster_key
        resolution = resolution if resolution is not None else cfg.resolution
        random_seed = random_seed if random_seed is not None else cfg.random_seed
        compute_umap = compute_umap if compute_umap is not None else cfg.compute_umap

        subset = self.pca_input(adata)
        use_pcs = min(cfg.n_pcs, max(subset.n_vars - 1, 1), max(subset.n_obs - 1, 1))

        self.logger.info(
            "Running clustering: n_pcs=%d, neighbors_k=%d, %s resolution=%.3f",
            use_pcs,
            cfg.neighbors_k,
            cfg.algorithm,
            resolution,
        )

        sc.tl.pca(subset, n_comps=use_pcs, svd_solver="arpack", random_state=random_seed)
        adata.obsm["X_pca"] = np.asarray(subset.obsm["X_pca"])
        adata.uns["pca"] = subset.uns["pca"]

        sc.pp.neighbors(
            adata,
            n_neighbors=cfg.neighbors_k,
            n_pcs=use_pcs,
            use_rep="X_pca",
            random_state=random_seed,
        )

        if cfg.algorithm == "leiden":
            sc.tl.leiden(
                adata,
                resolution=resolution,
                random_state=random_seed,
                key_added=cluster_key,
                flavor="igraph",
                n_iterations=2,
                directed=False,
            )
        else:
            sc.tl.louvain(
                adata,
                resolution=resolution,
                random_state=random_seed,
                key_added=cluster_key,
            )

        if compute_umap:
            self.logger.info("Computing UMAP...")
            sc.tl.umap(adata, random_state=random_seed)

        result = ClusteringResult(
            cluster_key=cluster_key,
            n_hvg=subset.n_vars,
            n_pcs=use_pcs,
            normalization=cfg.normalization,
            algorithm=cfg.algorithm,
        )
        result.n_clusters = adata.obs[cluster_key].nunique()
        result.cluster_sizes = adata.obs[cluster_key].value_counts().to_dict()

        self.logger.info(
            "Computed %s clustering with %d clusters", cfg.algorithm, result.n_clusters
        )
        return result
