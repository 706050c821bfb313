"""
Parallel execution tests: the joblib worker pool must reproduce the
sequential run exactly for a fixed seed.
"""

import pytest

from rmpower import SimulationCancelled
from rmpower.core import DesignConfig, SimulationRunner, aggregate_power, build_grid
from tests.config import GROUPS, MEANS_EFFECT, N_REPS_CHECK, SD, SEED, TIMES
from tests.helpers.fitters import change_score_fitter, flaky_fitter

pytest.importorskip("joblib")


def _design():
    return DesignConfig(tuple(GROUPS), TIMES, tuple(float(m) for m in MEANS_EFFECT), (float(SD),) * 4)


@pytest.mark.parametrize("fitter", [change_score_fitter, flaky_fitter])
def test_parallel_matches_sequential(fitter):
    units = build_grid([20, 40], N_REPS_CHECK)
    sequential = SimulationRunner(seed=SEED).run(units, _design(), fitter=fitter)
    parallel = SimulationRunner(seed=SEED, parallel=True, n_cores=2).run(units, _design(), fitter=fitter)

    assert [r.unit for r in parallel] == list(units)
    assert aggregate_power(parallel, 0.05) == aggregate_power(sequential, 0.05)
    assert [r.fit.p_value for r in parallel] == [r.fit.p_value for r in sequential]


def test_parallel_model_run(effect_model):
    effect_model.set_replications(N_REPS_CHECK)
    sequential = effect_model.find_sample_size(20, 40, 20, print_results=False, return_results=True)

    effect_model.set_parallel(True, n_cores=2)
    parallel = effect_model.find_sample_size(20, 40, 20, print_results=False, return_results=True)

    assert parallel["model"]["parallel"] == effect_model.n_cores
    assert parallel["results"]["power_curve"] == sequential["results"]["power_curve"]


def test_parallel_cancellation_keeps_whole_batches():
    units = build_grid([20, 40], N_REPS_CHECK)
    runner = SimulationRunner(seed=SEED, parallel=True, n_cores=2, batch_size=4)
    calls = {"n": 0}

    def cancel_check():
        calls["n"] += 1
        return calls["n"] > 2

    with pytest.raises(SimulationCancelled) as excinfo:
        runner.run(units, _design(), fitter=change_score_fitter, cancel_check=cancel_check)
    partial = excinfo.value.results
    assert [r.unit for r in partial] == list(units[:8])
