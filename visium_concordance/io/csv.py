"""CSV I/O utilities for visium-concordance.

Provides loading of the expert annotation table and writing of result
tables.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it.

    Parameters
    ----------
    path : PathLike
        Directory path to create.

    Returns
    -------
    Path
        The created/existing directory path.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _validate_columns(df: pd.DataFrame, required: List[str], path: PathLike) -> None:
    """Validate that required columns are present.

    Raises
    ------
    ValueError
        If any required columns are missing.
    """
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(
            f"Table {path} missing columns: {missing} (found: {list(df.columns)})"
        )


def load_annotation_table(
    path: PathLike,
    label_column: str = "annotation",
    barcode_column: Optional[str] = None,
) -> pd.DataFrame:
    """Read the comma-separated expert annotation table.

    Empty cells are read as empty strings, which mark unlabeled spots.

    Parameters
    ----------
    path : PathLike
        Path to annotation CSV file.
    label_column : str
        Column holding the raw expert label.
    barcode_column : str, optional
        Column holding spot barcodes. Validated only when given and
        present; a table without it is joined by row position.

    Returns
    -------
    pd.DataFrame
        Annotation table with label (and barcode) columns as strings.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the table is empty or the label column is missing.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Annotation table not found: {csv_path}")
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    if df.empty:
        raise ValueError(f"Annotation table {csv_path} is empty")
    _validate_columns(df, [label_column], csv_path)

    df[label_column] = df[label_column].str.strip()
    if barcode_column and barcode_column in df.columns:
        df[barcode_column] = df[barcode_column].str.strip()
    logger.info("Loaded %d annotation rows from %s", len(df), csv_path)
    return df


def load_de_records(path: PathLike) -> pd.DataFrame:
    """Read a differential test record table written by ``DERunner``."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Differential test table not found: {csv_path}")
    df = pd.read_csv(csv_path)
    _validate_columns(df, ["group", "names", "logfoldchanges", "pvals_adj"], csv_path)
    df["group"] = df["group"].astype(str)
    return df


def write_dataframe(df: pd.DataFrame, path: PathLike, *, index: bool = False) -> Path:
    """Write DataFrame to path ensuring the parent directory exists.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to write.
    path : PathLike
        Output path.
    index : bool
        Whether to write row index (default: False).

    Returns
    -------
    Path
        The output path.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=index)
    return output_path
