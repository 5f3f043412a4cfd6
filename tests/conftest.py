"""Pytest configuration and shared fixtures for visium-concordance tests."""

import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Import mock data generators
from tests.fixtures import (
    create_annotation_table,
    create_de_records,
    create_mock_visium,
)


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by CLI runs so later tests log cleanly."""
    yield
    logger = logging.getLogger("visium_concordance")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ============================================================================
# Mock Data Fixtures
# ============================================================================


@pytest.fixture
def visium_adata():
    """Mock Visium dataset with 150 spots and 60 genes."""
    return create_mock_visium(n_spots=150, n_genes=60)


@pytest.fixture
def annotation_table(visium_adata) -> pd.DataFrame:
    """Shuffled expert annotation table with barcodes for ``visium_adata``."""
    return create_annotation_table(visium_adata)


@pytest.fixture
def de_records() -> pd.DataFrame:
    """Differential test records for two groups, ten genes each."""
    return create_de_records()


@pytest.fixture
def six_unit_partitions() -> dict:
    """Six spots split 3/3, plus a relabeled and a shuffled counterpart."""
    index = [f"u{i}" for i in range(1, 7)]
    return {
        "a": pd.Series(list("xxxyyy"), index=index, name="a"),
        "relabeled": pd.Series(list("yyyxxx"), index=index, name="relabeled"),
        "shuffled": pd.Series(list("xyxyxy"), index=index, name="shuffled"),
    }


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def fast_config():
    """Small, fast configuration for end-to-end runs."""
    from visium_concordance.core.clustering import ConcordanceConfig

    config = ConcordanceConfig()
    config.clustering.normalization = "log1p"
    config.clustering.n_top_genes = 40
    config.clustering.n_pcs = 10
    config.clustering.neighbors_k = 10
    config.clustering.resolution = 0.5
    config.clustering.compute_umap = False
    config.figures.skip = True
    return config


@pytest.fixture
def sample_config_yaml(tmp_path) -> Path:
    """Create sample run configuration file."""
    import yaml

    config = {
        "concordance": {
            "annotation": {
                "label_column": "region",
                "barcode_column": "spot",
                "rules": {"chondrocytes": "chondrocyte"},
            },
            "clustering": {
                "normalization": "log1p",
                "resolution": 0.5,
                "algorithm": "louvain",
            },
            "de": {"method": "t-test"},
            "markers": {"top_k": 3, "pval_threshold": 0.01},
            "figures": {"dpi": 100, "skip": True},
        }
    }

    path = tmp_path / "concordance.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path


@pytest.fixture
def fast_config_yaml(tmp_path, fast_config) -> Path:
    """``fast_config`` written to a YAML file."""
    import yaml

    path = tmp_path / "fast.yaml"
    with open(path, "w") as f:
        yaml.safe_dump({"concordance": fast_config.to_dict()}, f)
    return path


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def visium_files(tmp_path, visium_adata, annotation_table) -> dict:
    """Mock dataset and annotation table written to disk."""
    dataset = tmp_path / "sample.h5ad"
    visium_adata.write_h5ad(dataset)
    annotation = tmp_path / "annotation.csv"
    annotation_table.to_csv(annotation, index=False)
    return {"dataset": dataset, "annotation": annotation}
