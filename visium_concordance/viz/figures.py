"""Export of the fixed poster figure set."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import re

import pandas as pd

from ..core.clustering.config import FigureConfig
from ..core.markers.summary import MarkerSummaryConfig
from .plots import plot_contingency_heatmap, plot_spatial, plot_umap, plot_volcano


def _slug(name: str) -> str:
    return re.sub(r"[^\w\-]+", "_", str(name)).strip("_") or "group"


def generate_figures(
    adata: Any,  # AnnData
    output_dir: Path,
    label_key: str,
    cluster_key: str,
    contingency: Optional[pd.DataFrame] = None,
    de_records: Optional[Dict[str, pd.DataFrame]] = None,
    figure_config: Optional[FigureConfig] = None,
    marker_config: Optional[MarkerSummaryConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Write the poster figures, skipping any that fail.

    Figures: spatial plots of expert regions and clusters, UMAPs of both,
    the region-by-cluster heatmap and one volcano plot per group of each
    differential test table.

    Parameters
    ----------
    adata : AnnData
        Filtered, clustered dataset
    output_dir : Path
        Output directory for figures
    label_key : str
        obs column with canonical expert labels
    cluster_key : str
        obs column with cluster assignments
    contingency : pd.DataFrame, optional
        Region-by-cluster spot counts
    de_records : Dict[str, pd.DataFrame], optional
        Partition name -> differential test records
    figure_config : FigureConfig, optional
        dpi, format and spot size
    marker_config : MarkerSummaryConfig, optional
        Volcano thresholds and number of labelled genes
    logger : logging.Logger, optional
        Logger instance

    Returns
    -------
    List[str]
        Paths of generated figures
    """
    logger = logger or logging.getLogger(__name__)
    fig_cfg = figure_config or FigureConfig()
    mk_cfg = marker_config or MarkerSummaryConfig()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    ext = fig_cfg.format.lstrip(".")

    generated: List[str] = []

    def _attempt(name: str, func, *args, **kwargs) -> None:
        try:
            path = func(*args, **kwargs)
        except Exception as e:
            logger.warning("Failed to generate %s: %s", name, e)
            return
        if path is not None:
            generated.append(str(path))
            logger.info("Generated: %s", Path(path).name)

    for key, title in ((label_key, "Expert annotation"), (cluster_key, "Clusters")):
        _attempt(
            f"spatial plot of {key}",
            plot_spatial,
            adata,
            color=key,
            output_path=output_dir / f"spatial_{_slug(key)}.{ext}",
            title=title,
            spot_size=fig_cfg.spot_size,
            dpi=fig_cfg.dpi,
        )
        _attempt(
            f"UMAP of {key}",
            plot_umap,
            adata,
            color=key,
            output_path=output_dir / f"umap_{_slug(key)}.{ext}",
            title=title,
            dpi=fig_cfg.dpi,
        )

    if contingency is not None:
        _attempt(
            "contingency heatmap",
            plot_contingency_heatmap,
            contingency,
            output_path=output_dir / f"contingency_heatmap.{ext}",
            title="Expert regions vs clusters",
            dpi=fig_cfg.dpi,
        )

    for partition, records in (de_records or {}).items():
        for group in records["group"].astype(str).unique():
            _attempt(
                f"volcano plot of {partition}={group}",
                plot_volcano,
                records[records["group"].astype(str) == group],
                group=group,
                output_path=output_dir / f"volcano_{_slug(partition)}_{_slug(group)}.{ext}",
                pval_threshold=mk_cfg.pval_threshold,
                lfc_threshold=mk_cfg.lfc_threshold,
                top_k=mk_cfg.top_k,
                dpi=fig_cfg.dpi,
            )

    logger.info("Generated %d figures in %s", len(generated), output_dir)
    return generated
