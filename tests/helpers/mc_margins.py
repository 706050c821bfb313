"""
Monte Carlo margin-of-error calculations.
"""

import numpy as np
from scipy import stats

from tests.config import ALLOWED_BIAS, MC_Z


def mc_margin(p, n_reps, z=MC_Z):
    """
    MC margin of error for a rejection rate (in %).

    Half-width of an approximate normal CI for a binomial proportion,
    plus the allowed bias.
    """
    return z * np.sqrt(p * (1 - p) / n_reps) * 100 + ALLOWED_BIAS


def change_score_power(effect, sd, n_per_group, alpha=0.05):
    """Exact power (in %) of the two-sample t-test on change scores.

    Cells are drawn independently, so the change score of a subject has
    standard deviation ``sd * sqrt(2)``.
    """
    df = 2 * n_per_group - 2
    ncp = abs(effect) / (sd * np.sqrt(2) * np.sqrt(2 / n_per_group))
    t_crit = stats.t.ppf(1 - alpha / 2, df)
    power = stats.nct.sf(t_crit, df, ncp) + stats.nct.cdf(-t_crit, df, ncp)
    return power * 100
