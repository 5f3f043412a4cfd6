"""Unit tests for the Adjusted Rand Index."""

import numpy as np
import pandas as pd
import pytest

from visium_concordance.core.agreement import (
    AgreementResult,
    adjusted_rand_index,
    align_partitions,
    ari_from_contingency,
    compare_partitions,
    contingency_table,
)
from visium_concordance.core.errors import (
    AlignmentError,
    DegenerateInputError,
    DegeneratePartitionError,
)


class TestAdjustedRandIndex:
    """Tests for adjusted_rand_index."""

    def test_identical(self, six_unit_partitions):
        a = six_unit_partitions["a"]
        assert adjusted_rand_index(a, a) == 1.0

    def test_relabeled(self, six_unit_partitions):
        p = six_unit_partitions
        assert adjusted_rand_index(p["a"], p["relabeled"]) == 1.0

    def test_shuffled_exact_value(self, six_unit_partitions):
        # Contingency [[2, 1], [1, 2]]: sum_cells = 2, row/col sums 6,
        # expected = 36 / 15, max = 6 -> (2 - 2.4) / (6 - 2.4) = -1/9
        p = six_unit_partitions
        ari = adjusted_rand_index(p["a"], p["shuffled"])
        assert ari < 1.0
        assert ari == pytest.approx(-1.0 / 9.0, abs=1e-12)

    def test_symmetric(self, six_unit_partitions):
        p = six_unit_partitions
        assert adjusted_rand_index(p["a"], p["shuffled"]) == adjusted_rand_index(
            p["shuffled"], p["a"]
        )

    def test_symmetric_random(self):
        rng = np.random.RandomState(0)
        a = rng.randint(0, 4, 200)
        b = rng.randint(0, 6, 200)
        assert adjusted_rand_index(a, b) == adjusted_rand_index(b, a)

    def test_self_agreement_random(self):
        rng = np.random.RandomState(1)
        a = rng.choice(["r1", "r2", "r3", "r4"], 300)
        assert adjusted_rand_index(a, a) == 1.0

    def test_random_partitions_near_zero(self):
        rng = np.random.RandomState(2024)
        values = [
            adjusted_rand_index(rng.randint(0, 5, 500), rng.randint(0, 7, 500))
            for _ in range(50)
        ]
        assert abs(np.mean(values)) < 0.01

    def test_integer_and_string_labels(self):
        assert adjusted_rand_index([0, 0, 1, 1], ["a", "a", "b", "b"]) == 1.0

    def test_series_aligned_by_index(self, six_unit_partitions):
        a = six_unit_partitions["a"]
        reordered = a.iloc[::-1]
        assert adjusted_rand_index(a, reordered) == 1.0

    def test_matches_known_value(self):
        # Reference value from the Hubert & Arabie formula
        a = [0, 0, 0, 1, 1, 1, 2, 2, 2]
        b = [0, 0, 1, 1, 1, 2, 2, 2, 2]
        # contingency [[2,1,0],[0,2,1],[0,0,3]]
        # sum_cells = 1+1+3 = 5, sum_a = 9, sum_b = 1+3+6 = 10, N = 36
        expected_index = 9 * 10 / 36
        max_index = (9 + 10) / 2
        expected = (5 - expected_index) / (max_index - expected_index)
        assert adjusted_rand_index(a, b) == pytest.approx(expected)


class TestDegenerateInputs:
    """Tests for the zero-denominator convention."""

    def test_fewer_than_two_units(self):
        with pytest.raises(DegenerateInputError):
            adjusted_rand_index(["x"], ["y"])

    def test_empty(self):
        with pytest.raises(DegenerateInputError):
            adjusted_rand_index([], [])

    def test_both_single_category(self):
        assert adjusted_rand_index(["x"] * 5, ["c1"] * 5) == 1.0

    def test_both_all_singletons(self):
        assert adjusted_rand_index(list("abcd"), [1, 2, 3, 4]) == 1.0

    def test_one_single_category_raises(self):
        with pytest.raises(DegeneratePartitionError):
            adjusted_rand_index(["x"] * 6, list("xxxyyy"))

    def test_degenerate_partition_is_degenerate_input(self):
        assert issubclass(DegeneratePartitionError, DegenerateInputError)


class TestAlignment:
    """Tests for partition alignment."""

    def test_length_mismatch(self):
        with pytest.raises(AlignmentError, match="different numbers"):
            adjusted_rand_index([0, 1, 1], [0, 1])

    def test_different_spots(self):
        a = pd.Series(["x", "y"], index=["s1", "s2"])
        b = pd.Series(["x", "y"], index=["s1", "s3"])
        with pytest.raises(AlignmentError, match="different spots"):
            adjusted_rand_index(a, b)

    def test_missing_label(self):
        a = pd.Series(["x", None, "y"], index=["s1", "s2", "s3"])
        b = pd.Series(["x", "y", "y"], index=["s1", "s2", "s3"])
        with pytest.raises(AlignmentError, match="not total"):
            adjusted_rand_index(a, b)

    def test_duplicate_index(self):
        a = pd.Series(["x", "y"], index=["s1", "s1"])
        with pytest.raises(AlignmentError, match="Duplicate"):
            align_partitions(a, a)

    def test_reindexes_second(self):
        a = pd.Series(["x", "y"], index=["s1", "s2"])
        b = pd.Series(["q", "p"], index=["s2", "s1"])
        _, aligned = align_partitions(a, b)
        assert aligned.tolist() == ["p", "q"]


class TestContingency:
    """Tests for contingency tables and compare_partitions."""

    def test_contingency_counts(self, six_unit_partitions):
        p = six_unit_partitions
        table = contingency_table(p["a"], p["shuffled"])
        assert table.loc["x", "x"] == 2
        assert table.loc["x", "y"] == 1
        assert table.to_numpy().sum() == 6
        assert table.index.name == "a"
        assert table.columns.name == "shuffled"

    def test_ari_from_array(self):
        assert ari_from_contingency(np.array([[3, 0], [0, 3]])) == 1.0

    def test_compare_partitions(self, six_unit_partitions):
        p = six_unit_partitions
        result = compare_partitions(p["a"], p["shuffled"], name_a="expert", name_b="cluster")
        assert isinstance(result, AgreementResult)
        assert result.n_units == 6
        assert result.n_categories_a == 2
        assert result.n_categories_b == 2
        assert result.contingency.index.name == "expert"
        report = result.to_dict()
        assert report["partition_a"] == "expert"
        assert report["ari"] == pytest.approx(-0.111111)

    def test_labels_compared_without_string_coercion(self):
        # 1 and "1" are different categories
        table = contingency_table([1, "1", 1, "1"], list("abab"))
        assert table.shape == (2, 2)
        assert table.to_numpy().sum() == 4
        assert adjusted_rand_index([1, "1", 1, "1"], list("abab")) == 1.0

    def test_categorical_labels(self):
        a = pd.Series(pd.Categorical(["x", "x", "y", "y"], categories=["x", "y", "z"]))
        b = pd.Series([0, 0, 1, 1])
        table = contingency_table(a, b)
        assert table.index.tolist() == ["x", "y"]
        assert table.columns.tolist() == [0, 1]
        assert adjusted_rand_index(a, b) == 1.0


class TestReferenceImplementation:
    """Cross-check against scikit-learn on non-degenerate partitions."""

    def test_matches_sklearn(self):
        metrics = pytest.importorskip("sklearn.metrics")
        rng = np.random.RandomState(11)
        for n_a, n_b in ((2, 3), (4, 4), (6, 9)):
            a = rng.randint(0, n_a, 120)
            b = np.where(rng.rand(120) < 0.6, a, rng.randint(0, n_b, 120))
            assert adjusted_rand_index(a, b) == pytest.approx(
                metrics.adjusted_rand_score(a, b), abs=1e-12
            )
