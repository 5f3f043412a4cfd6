"""Figure functions for the concordance poster set.

Provides:
- Spatial spot plot colored by a partition
- UMAP colored by a partition
- Expert-vs-cluster contingency heatmap
- Volcano plot with the top markers labelled
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from ..core.markers.summary import flag_significant, top_markers
from .style import VOLCANO_COLORS, get_color_palette, save_figure, set_publication_style

logger = logging.getLogger(__name__)

# -log10 of adjusted p-values of exactly zero
_MIN_PVAL = 1e-300


def _set_palette(adata: Any, key: str) -> None:
    """Store a fixed color per category so every figure agrees."""
    categories = adata.obs[key].astype("category")
    adata.obs[key] = categories
    palette = get_color_palette(categories.cat.categories)
    adata.uns[f"{key}_colors"] = [palette[str(c)] for c in categories.cat.categories]


def plot_spatial(
    adata: Any,  # AnnData
    color: str,
    output_path: Path,
    title: Optional[str] = None,
    spot_size: Optional[float] = None,
    dpi: int = 300,
) -> Path:
    """Plot spots over the tissue image, colored by ``color``.

    Falls back to a plain coordinate scatter when the dataset carries no
    image metadata.
    """
    import matplotlib.pyplot as plt
    import scanpy as sc

    set_publication_style()
    _set_palette(adata, color)

    if "spatial" in adata.uns and adata.uns["spatial"]:
        sc.pl.spatial(
            adata,
            color=color,
            spot_size=spot_size,
            title=title or color,
            show=False,
        )
        fig = plt.gcf()
    else:
        coords = np.asarray(adata.obsm["spatial"])
        fig, ax = plt.subplots(figsize=(8, 8))
        labels = adata.obs[color]
        colors = dict(zip(labels.cat.categories, adata.uns[f"{color}_colors"]))
        for label in labels.cat.categories:
            mask = (labels == label).to_numpy()
            ax.scatter(
                coords[mask, 0],
                coords[mask, 1],
                s=spot_size or 20,
                c=colors[label],
                label=str(label),
            )
        ax.invert_yaxis()
        ax.set_aspect("equal")
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_title(title or color)
        ax.legend(loc="center left", bbox_to_anchor=(1, 0.5), frameon=False)

    return save_figure(fig, output_path, dpi=dpi)


def plot_umap(
    adata: Any,  # AnnData
    color: str,
    output_path: Path,
    title: Optional[str] = None,
    dpi: int = 300,
) -> Optional[Path]:
    """Plot the UMAP embedding colored by ``color``."""
    import matplotlib.pyplot as plt
    import scanpy as sc

    if "X_umap" not in adata.obsm:
        logger.warning("X_umap not found, skipping UMAP plot")
        return None

    set_publication_style()
    _set_palette(adata, color)
    fig, ax = plt.subplots(figsize=(7, 6))
    sc.pl.umap(adata, color=color, title=title or color, ax=ax, show=False)
    return save_figure(fig, output_path, dpi=dpi)


def plot_contingency_heatmap(
    contingency: pd.DataFrame,
    output_path: Path,
    title: Optional[str] = None,
    normalize_rows: bool = True,
    dpi: int = 300,
) -> Path:
    """Heatmap of spot counts per (expert region, cluster) pair.

    With ``normalize_rows`` cells show the fraction of each region's spots
    falling in each cluster, annotated with raw counts.
    """
    import matplotlib.pyplot as plt
    import seaborn as sns

    set_publication_style()
    values = contingency.astype(float)
    if normalize_rows:
        values = values.div(values.sum(axis=1).replace(0, np.nan), axis=0).fillna(0.0)

    width = max(6.0, 0.6 * contingency.shape[1] + 3)
    height = max(4.0, 0.5 * contingency.shape[0] + 2)
    fig, ax = plt.subplots(figsize=(width, height))
    sns.heatmap(
        values,
        annot=contingency.to_numpy(),
        fmt="d",
        cmap="Blues",
        cbar_kws={"label": "Fraction of region" if normalize_rows else "Spots"},
        ax=ax,
    )
    ax.set_xlabel(contingency.columns.name or "cluster")
    ax.set_ylabel(contingency.index.name or "region")
    if title:
        ax.set_title(title)
    return save_figure(fig, output_path, dpi=dpi)


def plot_volcano(
    records: pd.DataFrame,
    group: str,
    output_path: Path,
    pval_threshold: float = 0.05,
    lfc_threshold: float = 0.5,
    top_k: int = 5,
    dpi: int = 300,
    figsize: Tuple[float, float] = (7, 6),
) -> Path:
    """Volcano plot of one group's differential test records.

    Significant genes are colored by direction; the ``top_k`` most
    significant are labelled with their suffix-stripped names.
    """
    import matplotlib.pyplot as plt

    set_publication_style()
    flagged = flag_significant(records, pval_threshold, lfc_threshold)
    flagged["neg_log10_padj"] = -np.log10(flagged["pvals_adj"].clip(lower=_MIN_PVAL))

    up = flagged["significant"] & (flagged["logfoldchanges"] > 0)
    down = flagged["significant"] & (flagged["logfoldchanges"] < 0)
    ns = ~flagged["significant"]

    fig, ax = plt.subplots(figsize=figsize)
    for mask, key, label in (
        (ns, "ns", "Not significant"),
        (up, "up", f"Up (n={int(up.sum())})"),
        (down, "down", f"Down (n={int(down.sum())})"),
    ):
        subset = flagged[mask]
        if len(subset) == 0:
            continue
        ax.scatter(
            subset["logfoldchanges"],
            subset["neg_log10_padj"],
            c=VOLCANO_COLORS[key],
            s=8 if key == "ns" else 14,
            alpha=0.5 if key == "ns" else 0.8,
            label=label,
            linewidths=0,
        )

    for _, row in top_markers(flagged, top_k=top_k).iterrows():
        ax.annotate(
            row["gene"],
            (row["logfoldchanges"], row["neg_log10_padj"]),
            xytext=(4, 4),
            textcoords="offset points",
            fontsize=8,
        )

    ax.axvline(lfc_threshold, color="black", linestyle="--", linewidth=0.8, alpha=0.5)
    ax.axvline(-lfc_threshold, color="black", linestyle="--", linewidth=0.8, alpha=0.5)
    ax.axhline(-np.log10(pval_threshold), color="black", linestyle="--",
               linewidth=0.8, alpha=0.5)
    ax.set_xlabel("log2 fold change")
    ax.set_ylabel("-log10 adjusted p-value")
    ax.set_title(f"{group} vs rest")
    ax.legend(loc="best", frameon=False)
    return save_figure(fig, output_path, dpi=dpi)
