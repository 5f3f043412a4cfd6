"""Unit tests for I/O utilities."""

import logging

import pandas as pd
import pytest
import yaml

from visium_concordance.io import (
    ensure_output_dir,
    get_timestamped_log_path,
    load_annotation_table,
    load_de_records,
    load_spatial_dataset,
    log_yaml,
    setup_logging,
    write_dataframe,
)


class TestAnnotationTable:
    """Tests for load_annotation_table."""

    def test_strips_and_keeps_empty(self, tmp_path):
        path = tmp_path / "annotation.csv"
        path.write_text("Barcode,annotation\n AAAC-1 , chondrocytes\nAAAG-1,\n")
        df = load_annotation_table(path, barcode_column="Barcode")
        assert df["annotation"].tolist() == ["chondrocytes", ""]
        assert df["Barcode"].tolist() == ["AAAC-1", "AAAG-1"]

    def test_na_strings_are_labels(self, tmp_path):
        path = tmp_path / "annotation.csv"
        path.write_text("annotation\nNA\nsuperficial\n")
        df = load_annotation_table(path)
        assert df["annotation"].tolist() == ["NA", "superficial"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_annotation_table(tmp_path / "missing.csv")

    def test_missing_label_column(self, tmp_path):
        path = tmp_path / "annotation.csv"
        path.write_text("region\nsuperficial\n")
        with pytest.raises(ValueError, match="annotation"):
            load_annotation_table(path)

    def test_empty_table(self, tmp_path):
        path = tmp_path / "annotation.csv"
        path.write_text("annotation\n")
        with pytest.raises(ValueError, match="empty"):
            load_annotation_table(path)


class TestDERecords:
    """Tests for load_de_records and write_dataframe."""

    def test_round_trip(self, de_records, tmp_output_dir):
        path = write_dataframe(de_records, tmp_output_dir / "nested" / "de.csv")
        assert path.exists()
        loaded = load_de_records(path)
        assert len(loaded) == len(de_records)
        assert loaded["group"].tolist() == de_records["group"].tolist()

    def test_integer_groups_become_strings(self, tmp_path):
        path = tmp_path / "de.csv"
        pd.DataFrame({
            "group": [0, 1],
            "names": ["a", "b"],
            "logfoldchanges": [1.0, 2.0],
            "pvals_adj": [0.01, 0.02],
        }).to_csv(path, index=False)
        assert load_de_records(path)["group"].tolist() == ["0", "1"]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "de.csv"
        pd.DataFrame({"group": ["a"], "names": ["x"]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="logfoldchanges"):
            load_de_records(path)

    def test_ensure_output_dir(self, tmp_path):
        target = ensure_output_dir(tmp_path / "a" / "b")
        assert target.is_dir()


class TestSpatialDataset:
    """Tests for load_spatial_dataset."""

    def test_load_h5ad_makes_names_unique(self, visium_adata, tmp_path):
        names = list(visium_adata.var_names)
        names[10] = names[11] = "Col10a1"
        visium_adata.var_names = names
        path = tmp_path / "sample.h5ad"
        visium_adata.write_h5ad(path)

        adata = load_spatial_dataset(path)

        assert adata.var_names.is_unique
        assert "Col10a1" in adata.var_names
        assert "Col10a1.1" in adata.var_names
        assert adata.obsm["spatial"].shape == (adata.n_obs, 2)

    def test_missing_spatial(self, visium_adata, tmp_path):
        del visium_adata.obsm["spatial"]
        path = tmp_path / "sample.h5ad"
        visium_adata.write_h5ad(path)
        with pytest.raises(ValueError, match="spatial"):
            load_spatial_dataset(path)
        assert load_spatial_dataset(path, require_spatial=False).n_obs == visium_adata.n_obs

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_spatial_dataset(tmp_path / "missing.h5ad")


class TestLogging:
    """Tests for logging helpers."""

    def test_timestamped_log_path(self, tmp_path):
        path = get_timestamped_log_path(tmp_path / "concordance.log")
        assert path.parent == tmp_path
        assert path.name.startswith("concordance_")
        assert path.suffix == ".log"

    def test_setup_logging_file(self, tmp_path):
        logger = setup_logging(
            verbose=True, log_dir=tmp_path, name="visium_concordance.test_io", timestamped=False
        )
        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert "hello" in (tmp_path / "concordance.log").read_text()

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_log_yaml_appends_documents(self, tmp_path):
        path = tmp_path / "records.yaml"
        log_yaml(path, {"run": 1})
        log_yaml(path, {"run": 2})
        docs = [d for d in yaml.safe_load_all(path.read_text()) if d]
        assert docs == [{"run": 1}, {"run": 2}]
