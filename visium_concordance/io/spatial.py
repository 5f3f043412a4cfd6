"""Loading of Visium spatial datasets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Duplicate feature names become Gene, Gene.1, ... so the marker
# summarizer can strip the suffix again.
UNIQUE_JOIN = "."


def load_spatial_dataset(
    path: PathLike,
    count_file: str = "filtered_feature_bc_matrix.h5",
    library_id: Optional[str] = None,
    require_spatial: bool = True,
) -> Any:
    """Load a Visium dataset from an ``.h5ad`` file or a Space Ranger directory.

    Parameters
    ----------
    path : PathLike
        ``.h5ad`` file, or Space Ranger ``outs`` directory
    count_file : str
        Count matrix inside the Space Ranger directory
    library_id : str, optional
        Library id for the tissue image metadata
    require_spatial : bool
        Fail if ``obsm["spatial"]`` is missing

    Returns
    -------
    AnnData
        Dataset with unique feature names and raw counts in X

    Raises
    ------
    FileNotFoundError
        If the path does not exist
    ValueError
        If spot coordinates are required but missing
    """
    import scanpy as sc

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spatial dataset not found: {path}")

    if path.is_dir():
        logger.info("Reading Space Ranger output from %s", path)
        adata = sc.read_visium(path, count_file=count_file, library_id=library_id)
    else:
        logger.info("Reading AnnData from %s", path)
        adata = sc.read_h5ad(path)

    n_dup = int(adata.var_names.duplicated().sum())
    if n_dup:
        logger.info("Making %d duplicate feature names unique", n_dup)
    adata.var_names_make_unique(join=UNIQUE_JOIN)
    adata.obs_names = adata.obs_names.astype(str)

    if require_spatial and "spatial" not in adata.obsm:
        raise ValueError(f"Dataset {path} has no spot coordinates in obsm['spatial']")

    logger.info("Loaded: %d spots, %d features", adata.n_obs, adata.n_vars)
    return adata
