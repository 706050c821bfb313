"""
Tests for cell generation and dataset assembly.
"""

import numpy as np
import pytest

from rmpower.errors import DimensionMismatchError, InvalidDistributionError, InvalidParameterError
from rmpower.stats.data_generation import assemble_dataset, check_design, generate_cell, summarize_cells
from rmpower.stats.distributions import make_support


class TestGenerateCell:
    """Test generate_cell."""

    @pytest.mark.parametrize("n,mean,sd", [(1, 50, 10), (25, 10, 3), (200, 95, 20)])
    def test_n_values_within_support(self, rng, n, mean, sd):
        values, ids = generate_cell(n, mean, sd, make_support(), "g", rng)
        assert len(values) == n
        assert len(ids) == n
        assert values.min() >= 1
        assert values.max() <= 100

    def test_subject_ids(self, rng):
        _, ids = generate_cell(3, 50, 10, make_support(), "treatment", rng)
        assert ids == ["treatment_1", "treatment_2", "treatment_3"]

    @pytest.mark.parametrize("n", [0, -3])
    def test_bad_n_raises(self, rng, n):
        with pytest.raises(InvalidParameterError, match="Sample size"):
            generate_cell(n, 50, 10, make_support(), "g", rng)

    def test_non_integer_n_raises(self, rng):
        with pytest.raises(InvalidParameterError):
            generate_cell(2.5, 50, 10, make_support(), "g", rng)

    @pytest.mark.parametrize("sd", [0, -1, np.nan])
    def test_bad_sd_raises(self, rng, sd):
        with pytest.raises(InvalidParameterError, match="Standard deviation"):
            generate_cell(10, 50, sd, make_support(), "g", rng)

    def test_mean_far_outside_support(self, rng):
        with pytest.raises(InvalidDistributionError):
            generate_cell(10, 10_000, 1, make_support(), "g", rng)

    def test_custom_family(self, rng):
        def top_only(support, mean, sd):
            w = np.zeros(len(support))
            w[-1] = 1.0
            return w

        values, _ = generate_cell(20, 50, 10, make_support(), "g", rng, family=top_only)
        assert np.all(values == 100)


class TestAssembleDataset:
    """Test assemble_dataset."""

    def test_columns_and_row_count(self, rng):
        data = assemble_dataset(12, [50] * 6, 10, ["a", "b"], 3, rng)
        assert list(data.columns) == ["subject", "group", "time", "value"]
        assert len(data) == 12 * 2 * 3

    @pytest.mark.parametrize("groups,times", [(["a", "b"], 2), (["a", "b", "c"], 2), (["a", "b"], 4)])
    def test_every_subject_measured_at_every_time(self, rng, groups, times):
        n = 15
        data = assemble_dataset(n, [40] * (len(groups) * times), 5, groups, times, rng)
        per_subject = data.groupby(["subject", "group"])["time"].apply(lambda t: sorted(t))
        assert len(per_subject) == n * len(groups)
        for observed in per_subject:
            assert observed == list(range(1, times + 1))

    def test_ids_prefixed_by_group(self, rng):
        data = assemble_dataset(5, [50] * 4, 10, ["control", "treatment"], 2, rng)
        for subject, group in zip(data["subject"], data["group"]):
            assert subject.startswith(f"{group}_")
        assert data["subject"].nunique() == 10

    def test_group_major_order(self, rng):
        data = assemble_dataset(2, [50] * 4, 10, ["control", "treatment"], 2, rng)
        assert list(data["group"]) == ["control"] * 4 + ["treatment"] * 4
        assert list(data["time"]) == [1, 1, 2, 2, 1, 1, 2, 2]
        assert list(data["subject"][:4]) == ["control_1", "control_2", "control_1", "control_2"]

    def test_cell_means_follow_design(self, rng):
        data = assemble_dataset(1000, [50, 50, 50, 45], 10, ["control", "treatment"], 2, rng)
        summary = summarize_cells(data).set_index(["group", "time"])
        assert summary.loc[("treatment", 2), "mean"] == pytest.approx(45, abs=1.0)
        for cell in [("control", 1), ("control", 2), ("treatment", 1)]:
            assert summary.loc[cell, "mean"] == pytest.approx(50, abs=1.0)
        assert (summary["n"] == 1000).all()

    def test_per_cell_sds(self, rng):
        data = assemble_dataset(2000, [50] * 4, [2, 2, 2, 15], ["a", "b"], 2, rng)
        summary = summarize_cells(data).set_index(["group", "time"])
        assert summary.loc[("a", 1), "sd"] == pytest.approx(2, abs=0.3)
        assert summary.loc[("b", 2), "sd"] == pytest.approx(15, abs=1.0)

    def test_values_within_custom_support(self, rng):
        data = assemble_dataset(200, [3, 3, 3, 4], 1.5, ["a", "b"], 2, rng, support=make_support(1, 5))
        assert data["value"].between(1, 5).all()

    def test_reproducible(self):
        a = assemble_dataset(20, [50] * 4, 10, ["a", "b"], 2, np.random.default_rng(3))
        b = assemble_dataset(20, [50] * 4, 10, ["a", "b"], 2, np.random.default_rng(3))
        assert a.equals(b)

    @pytest.mark.parametrize("means", [[50] * 3, [50] * 5, []])
    def test_means_dimension_mismatch(self, means):
        rng = np.random.default_rng(0)
        with pytest.raises(DimensionMismatchError, match="4 cells expected"):
            assemble_dataset(10, means, 10, ["a", "b"], 2, rng)

    def test_sds_dimension_mismatch(self, rng):
        with pytest.raises(DimensionMismatchError):
            assemble_dataset(10, [50] * 4, [10, 10], ["a", "b"], 2, rng)

    def test_mismatch_raises_before_sampling(self):
        rng = np.random.default_rng(0)
        with pytest.raises(DimensionMismatchError):
            assemble_dataset(10, [50] * 3, 10, ["a", "b"], 2, rng)
        # No draws were consumed
        assert rng.random() == np.random.default_rng(0).random()

    def test_zero_sd_in_any_cell_raises_before_sampling(self):
        rng = np.random.default_rng(0)
        with pytest.raises(InvalidParameterError, match="b/time 2"):
            assemble_dataset(10, [50] * 4, [10, 10, 10, 0], ["a", "b"], 2, rng)
        assert rng.random() == np.random.default_rng(0).random()


class TestCheckDesign:
    def test_scalar_sd_broadcast(self):
        sds = check_design([1, 2, 3, 4, 5, 6], 2.5, ["a", "b", "c"], 2)
        assert list(sds) == [2.5] * 6

    def test_duplicate_groups_raise(self):
        with pytest.raises(InvalidParameterError, match="unique"):
            check_design([1, 2, 3, 4], 1, ["a", "a"], 2)

    def test_zero_times_raise(self):
        with pytest.raises(InvalidParameterError, match="time points"):
            check_design([], 1, ["a", "b"], 0)

    def test_no_groups_raise(self):
        with pytest.raises(InvalidParameterError):
            check_design([], 1, [], 2)
