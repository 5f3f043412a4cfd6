"""Unit tests for figure helpers."""

import matplotlib.pyplot as plt
import pandas as pd

from visium_concordance.viz import (
    REGION_COLORS,
    generate_figures,
    get_color_palette,
    plot_contingency_heatmap,
    plot_spatial,
    plot_volcano,
)


class TestPalette:
    """Tests for color assignment."""

    def test_region_colors_fixed(self):
        palette = get_color_palette(["chondrocyte", "superficial"])
        assert palette["chondrocyte"] == REGION_COLORS["chondrocyte"]

    def test_unknown_labels_get_colors(self):
        palette = get_color_palette(["0", "1", "2"])
        assert len(set(palette.values())) == 3


class TestPlots:
    """Tests for individual plots."""

    def test_volcano(self, de_records, tmp_output_dir):
        records = de_records[de_records["group"] == "chondrocyte"]
        n_open = len(plt.get_fignums())
        path = plot_volcano(records, "chondrocyte", tmp_output_dir / "volcano.png", dpi=40)
        assert path.exists()
        assert len(plt.get_fignums()) == n_open

    def test_contingency_heatmap(self, tmp_output_dir):
        table = pd.DataFrame(
            [[5, 1], [0, 4]],
            index=pd.Index(["chondrocyte", "superficial"], name="expert_label"),
            columns=pd.Index(["0", "1"], name="cluster"),
        )
        path = plot_contingency_heatmap(table, tmp_output_dir / "heatmap.png", dpi=40)
        assert path.exists()

    def test_spatial_without_image(self, visium_adata, tmp_output_dir):
        path = plot_spatial(visium_adata, "true_region", tmp_output_dir / "spatial.png", dpi=40)
        assert path.exists()
        assert len(visium_adata.uns["true_region_colors"]) == 3


class TestGenerateFigures:
    """Tests for the figure set."""

    def test_failures_are_skipped(self, visium_adata, tmp_output_dir):
        # No cluster column: those figures fail and are skipped
        figures = generate_figures(
            visium_adata,
            tmp_output_dir,
            label_key="true_region",
            cluster_key="cluster",
        )
        assert len(figures) == 1
        assert figures[0].endswith("spatial_true_region.png")
