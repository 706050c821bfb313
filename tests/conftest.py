"""
Shared pytest fixtures for RMPower tests.
"""

import contextlib
import io

import numpy as np
import pytest

from tests.config import GROUPS, MEANS_EFFECT, SD, SEED, TIMES


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running statistical tests")
    config.addinivalue_line("markers", "lme: tests that fit real mixed models (statsmodels)")


@pytest.fixture
def suppress_output():
    """Silence stdout/stderr produced by the model (seed messages, progress, tables)."""
    with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(io.StringIO()):
        yield


@pytest.fixture
def rng():
    return np.random.default_rng(SEED)


@pytest.fixture
def design():
    """Reference 2 x 2 design with a 5-point interaction effect."""
    from rmpower.core import DesignConfig

    return DesignConfig(
        groups=tuple(GROUPS),
        times=TIMES,
        means=tuple(float(m) for m in MEANS_EFFECT),
        sds=(float(SD),) * 4,
    )


@pytest.fixture
def effect_model(suppress_output):
    """RMPower model on the reference design using the fast change-score fitter."""
    from rmpower import RMPower
    from tests.helpers.fitters import change_score_fitter

    model = RMPower(groups=GROUPS, times=TIMES)
    model.set_design(MEANS_EFFECT, SD)
    model.set_seed(SEED)
    model.set_fitter(change_score_fitter)
    return model
