"""Figures for visium-concordance runs."""

from .figures import generate_figures
from .plots import (
    plot_contingency_heatmap,
    plot_spatial,
    plot_umap,
    plot_volcano,
)
from .style import REGION_COLORS, get_color_palette, save_figure

__all__ = [
    "generate_figures",
    "plot_contingency_heatmap",
    "plot_spatial",
    "plot_umap",
    "plot_volcano",
    "REGION_COLORS",
    "get_color_palette",
    "save_figure",
]
