"""I/O utilities for visium-concordance.

Provides logging, CSV I/O, and spatial dataset loading.
"""

from .logging import (
    get_timestamped_log_path,
    log_yaml,
    setup_logging,
)
from .csv import (
    ensure_output_dir,
    load_annotation_table,
    load_de_records,
    write_dataframe,
)
from .spatial import load_spatial_dataset

__all__ = [
    # Logging
    "get_timestamped_log_path",
    "log_yaml",
    "setup_logging",
    # CSV I/O
    "ensure_output_dir",
    "load_annotation_table",
    "load_de_records",
    "write_dataframe",
    # Spatial
    "load_spatial_dataset",
]
