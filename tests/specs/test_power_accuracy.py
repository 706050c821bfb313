"""
Type I error and power accuracy tests.

Cells are simulated independently, so in a 2 x 2 design the interaction
test on change scores has an exact t-test power to compare against.
"""

import contextlib
import io

import pytest

from tests.config import GROUPS, N_REPS_STANDARD, SD, SEED, TIMES
from tests.helpers.fitters import change_score_fitter
from tests.helpers.mc_margins import change_score_power, mc_margin

pytestmark = pytest.mark.slow


@pytest.fixture(autouse=True)
def _quiet():
    with contextlib.redirect_stdout(io.StringIO()):
        yield


def _model(effect, alpha=0.05):
    from rmpower import RMPower

    m = RMPower(groups=GROUPS, times=TIMES)
    m.set_interaction_effect(baseline=50, effect=effect, sd=SD)
    m.set_replications(N_REPS_STANDARD)
    m.set_alpha(alpha)
    m.set_seed(SEED)
    m.set_fitter(change_score_fitter)
    return m


class TestTypeIError:
    """Under no interaction, the rejection rate must equal alpha."""

    @pytest.mark.parametrize("alpha", [0.05, 0.10])
    def test_null_rejection_rate(self, alpha):
        result = _model(0, alpha).find_power(40, print_results=False, return_results=True)
        power = result["results"]["power"]
        margin = mc_margin(alpha, N_REPS_STANDARD)
        assert abs(power - alpha * 100) < margin, f"Rejection rate under H0: {power:.2f}%, expected {alpha * 100}% +/- {margin:.2f}%"


class TestPowerAccuracy:
    """Simulated power must match the analytical t-test power."""

    @pytest.mark.parametrize("n", [30, 60, 90])
    def test_power_matches_analytical(self, n):
        result = _model(-5).find_power(n, print_results=False, return_results=True)
        power = result["results"]["power"]
        expected = change_score_power(5, SD, n)
        margin = mc_margin(expected / 100, N_REPS_STANDARD)
        assert abs(power - expected) < margin, f"n={n}: simulated {power:.2f}%, analytical {expected:.2f}% +/- {margin:.2f}%"
