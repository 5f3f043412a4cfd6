"""Style utilities and color schemes for concordance figures.

This module provides consistent styling across all figures:
- Color palette for growth-plate regions
- Matplotlib style configuration
- Figure saving utilities
"""

from pathlib import Path
from typing import Dict, Iterable, List, Union
import logging

logger = logging.getLogger(__name__)

# Growth-plate regions, ordered from articular surface to bone
REGION_COLORS: Dict[str, str] = {
    "superficial": "#f1c40f",
    "chondrocyte": "#3498db",
    "pre-hypertrophic": "#9b59b6",
    "hypertrophic": "#e74c3c",
    "secondary hypertrophic": "#e67e22",
    "pre-osteoblast": "#27ae60",
}

VOLCANO_COLORS: Dict[str, str] = {
    "up": "#c0392b",
    "down": "#2980b9",
    "ns": "#bdc3c7",
}


def set_publication_style():
    """Set matplotlib style for poster-quality figures."""
    import matplotlib.pyplot as plt

    plt.rcParams.update({
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.grid": False,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "font.size": 10,
        "axes.labelsize": 11,
        "axes.titlesize": 12,
        "xtick.labelsize": 9,
        "ytick.labelsize": 9,
        "legend.fontsize": 9,
    })


def _fallback_palette(n: int) -> List[str]:
    """Hex colors from a qualitative colormap."""
    import matplotlib
    from matplotlib.colors import to_hex

    cmap = matplotlib.colormaps["tab20" if n > 10 else "tab10"]
    return [to_hex(cmap(i % cmap.N)) for i in range(n)]


def get_color_palette(labels: Iterable[str]) -> Dict[str, str]:
    """Map labels to colors; known regions keep their fixed color."""
    labels = [str(label) for label in labels]
    unknown = [label for label in labels if label not in REGION_COLORS]
    fallback = dict(zip(unknown, _fallback_palette(len(unknown))))
    return {label: REGION_COLORS.get(label, fallback.get(label)) for label in labels}


def save_figure(
    fig,
    output_path: Union[str, Path],
    dpi: int = 200,
    close: bool = True,
) -> Path:
    """Save matplotlib figure with consistent settings.

    Args:
        fig: Matplotlib figure object
        output_path: Path to save figure
        dpi: Resolution
        close: Whether to close figure after saving

    Returns:
        Path to saved figure
    """
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.savefig(
            output_path,
            dpi=dpi,
            bbox_inches="tight",
            facecolor="white",
            edgecolor="none",
        )
    finally:
        if close:
            plt.close(fig)

    logger.debug("Saved figure to %s", output_path)
    return output_path
