"""Unit tests for the command-line interface."""

import pandas as pd
import pytest
from click.testing import CliRunner

from visium_concordance import __version__
from visium_concordance.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def spot_table(tmp_path, six_unit_partitions):
    p = six_unit_partitions
    df = pd.DataFrame({
        "barcode": list(p["a"].index) + ["u7"],
        "expert_label": list(p["a"]) + [""],
        "cluster": list(p["shuffled"]) + ["x"],
        "flat": ["z"] * 7,
    })
    path = tmp_path / "spot_labels.csv"
    df.to_csv(path, index=False)
    return path


class TestCliGroup:
    """Tests for the top-level group."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "agreement", "markers"):
            assert command in result.output


class TestAgreementCommand:
    """Tests for the agreement command."""

    def test_ari(self, runner, spot_table):
        result = runner.invoke(
            cli,
            ["agreement", "--table", str(spot_table), "--col-a", "expert_label", "--col-b", "cluster"],
        )
        assert result.exit_code == 0, result.output
        assert "-0.1111" in result.output
        assert "6 spots" in result.output

    def test_missing_column(self, runner, spot_table):
        result = runner.invoke(
            cli, ["agreement", "--table", str(spot_table), "--col-a", "expert_label", "--col-b", "nope"]
        )
        assert result.exit_code != 0
        assert "nope" in result.output

    def test_degenerate_exits_nonzero(self, runner, spot_table):
        result = runner.invoke(
            cli, ["agreement", "--table", str(spot_table), "--col-a", "expert_label", "--col-b", "flat"]
        )
        assert result.exit_code == 1


class TestMarkersCommand:
    """Tests for the markers command."""

    def test_markers(self, runner, de_records, tmp_path):
        records = tmp_path / "de.csv"
        de_records.to_csv(records, index=False)
        out = tmp_path / "top.csv"

        result = runner.invoke(
            cli, ["markers", "--records", str(records), "--out", str(out), "--top-k", "3"]
        )

        assert result.exit_code == 0, result.output
        assert "chondrocyte: Col2a1, Col10a1, Acan" in result.output
        top = pd.read_csv(out)
        assert len(top) == 6
        assert set(top["group"]) == {"chondrocyte", "hypertrophic"}

    def test_missing_group(self, runner, de_records, tmp_path):
        records = tmp_path / "de.csv"
        de_records.to_csv(records, index=False)
        result = runner.invoke(
            cli,
            ["markers", "--records", str(records), "--out", str(tmp_path / "top.csv"),
             "--group", "superficial"],
        )
        assert result.exit_code == 1


class TestRunCommand:
    """Tests for the run command."""

    def test_run(self, runner, visium_files, fast_config_yaml, tmp_path):
        pytest.importorskip("igraph")
        out = tmp_path / "out"
        result = runner.invoke(
            cli,
            [
                "run",
                "--dataset", str(visium_files["dataset"]),
                "--annotation", str(visium_files["annotation"]),
                "--out", str(out),
                "--config", str(fast_config_yaml),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "ARI (expert_label vs cluster)" in result.output
        assert (out / "summary.yaml").exists()
        assert (out / "spot_labels.csv").exists()

    def test_run_alignment_failure(self, runner, visium_files, fast_config_yaml, tmp_path):
        table = pd.read_csv(visium_files["annotation"], dtype=str, keep_default_na=False)
        bad = tmp_path / "bad.csv"
        table.iloc[:-1].to_csv(bad, index=False)

        result = runner.invoke(
            cli,
            [
                "run",
                "--dataset", str(visium_files["dataset"]),
                "--annotation", str(bad),
                "--out", str(tmp_path / "out"),
                "--config", str(fast_config_yaml),
            ],
        )
        assert result.exit_code == 1
