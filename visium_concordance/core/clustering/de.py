"""Differential expression testing between groups of spots.

Wraps ``scanpy.tl.rank_genes_groups`` and returns the full table of
differential test records (every gene of every group) as a DataFrame.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional
import logging
import time

import pandas as pd

from .config import ConcordanceConfig

RECORD_COLUMNS = ["group", "names", "scores", "logfoldchanges", "pvals", "pvals_adj"]


@dataclass
class DEResult:
    """Result from differential expression testing.

    Attributes
    ----------
    records : pd.DataFrame
        One row per (group, gene) with scores, log2 fold change and
        adjusted p-values
    groupby : str
        obs column that defined the groups
    groups : List[str]
        Groups tested
    skipped : List[str]
        Groups left out for having fewer than 2 spots
    key_added : str
        Key in adata.uns containing the raw scanpy results
    elapsed_seconds : float
        Time taken for DE computation
    """

    records: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=RECORD_COLUMNS))
    groupby: str = ""
    groups: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    key_added: str = ""
    elapsed_seconds: float = 0.0


class DERunner:
    """Differential expression test runner.

    Parameters
    ----------
    config : ConcordanceConfig, optional
        Run configuration. If None, uses defaults.
    logger : logging.Logger, optional
        Logger instance. If None, creates default logger.

    Example
    -------
    >>> from visium_concordance.core.clustering import DERunner
    >>> runner = DERunner()
    >>> result = runner.run_de_tests(adata, groupby="expert_label")
    >>> result.records.head()
    """

    def __init__(
        self,
        config: Optional[ConcordanceConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ConcordanceConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._check_dependencies()

    def _check_dependencies(self) -> None:
        """Check for required dependencies."""
        try:
            import scanpy
        except ImportError:
            raise RuntimeError(
                "Differential expression requires scanpy. "
                "Install with: pip install scanpy"
            )

    def run_de_tests(
        self,
        adata: Any,  # AnnData
        groupby: str,
        method: Optional[str] = None,
        layer: Optional[str] = None,
        key_added: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ) -> DEResult:
        """Test every group against the rest.

        Parameters
        ----------
        adata : AnnData
            Dataset with log-normalized expression in X and ``groupby`` in obs
        groupby : str
            obs column defining the partition to test
        method : str, optional
            DE method. Uses config default if None.
        layer : str, optional
            Layer to test instead of X
        key_added : str, optional
            Key to store results in adata.uns
        output_dir : Path, optional
            If given, the record table is written to
            ``de_<groupby>.csv`` in this directory

        Returns
        -------
        DEResult
            Full table of differential test records
        """
        import scanpy as sc

        cfg = self.config.de
        method = method if method is not None else cfg.method
        key_added = key_added or f"de_{groupby}"

        if groupby not in adata.obs:
            raise KeyError(f"Grouping column '{groupby}' not found in adata.obs")

        groups = adata.obs[groupby].astype(str)
        counts = groups.value_counts()
        testable = sorted(counts[counts >= 2].index.tolist())
        skipped = sorted(counts[counts < 2].index.tolist())
        if len(testable) < 2:
            raise ValueError(
                f"Differential expression needs at least 2 groups with 2 or more "
                f"spots in '{groupby}' (found {len(testable)})"
            )
        if skipped:
            self.logger.warning(
                "Skipping groups with fewer than 2 spots in '%s': %s",
                groupby,
                skipped,
            )

        # rank_genes_groups requires a categorical grouping
        adata.obs[groupby] = pd.Categorical(groups)

        self.logger.info(
            "Computing differential expression (method=%s, groupby=%s, layer=%s): "
            "%d spots, %d groups",
            method,
            groupby,
            layer or "X",
            adata.n_obs,
            len(testable),
        )

        start = time.time()
        kwargs = {"tie_correct": cfg.tie_correct} if method == "wilcoxon" else {}
        sc.tl.rank_genes_groups(
            adata,
            groupby=groupby,
            groups=testable,
            reference="rest",
            method=method,
            n_genes=adata.n_vars,
            layer=layer,
            use_raw=False,
            key_added=key_added,
            pts=cfg.pts,
            **kwargs,
        )
        elapsed = time.time() - start

        records = sc.get.rank_genes_groups_df(adata, group=None, key=key_added)
        records["group"] = records["group"].astype(str)
        records = records.dropna(subset=["names"]).reset_index(drop=True)

        result = DEResult(
            records=records,
            groupby=groupby,
            groups=testable,
            skipped=skipped,
            key_added=key_added,
            elapsed_seconds=elapsed,
        )
        self.logger.info(
            "%s DE on '%s' completed in %.1f seconds (%d records)",
            method,
            groupby,
            elapsed,
            len(records),
        )

        if output_dir is not None:
            path = Path(output_dir) / f"de_{groupby}.csv"
            path.parent.mkdir(parents=True, exist_ok=True)
            records.to_csv(path, index=False)
            self.logger.info("Wrote %s", path)

        return result
