"""Linear mixed-effects fit of the group x time interaction.

Fits ``value ~ C(group) * C(time)`` with a random intercept per subject
using statsmodels ``MixedLM`` (REML) and tests the interaction.

The interaction coefficients are addressed by an explicit handle built from
the factor levels under treatment coding, with the first configured group
and the first time point as reference levels::

    C(group)[T.<group>]:C(time)[T.<time>]

For a 2 x 2 design this is a single coefficient tested with its Wald
z-test. Larger designs have ``(G - 1) * (T - 1)`` interaction coefficients
that are tested jointly with a Wald chi-square test.
"""

import warnings
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import chi2 as _chi2_dist
from scipy.stats import norm as _norm_dist

from ..errors import ModelFitFailure

# Convergence chatter is expected with small samples; non-convergence is
# detected through ``result.converged`` instead.
warnings.filterwarnings("ignore", category=Warning, module="statsmodels")

FORMULA = "value ~ C(group) * C(time)"

# (optimizer, maxiter) tried in order until one converges
_FIT_ATTEMPTS = [
    ("lbfgs", 200),
    ("lbfgs", 1000),
    ("bfgs", 1000),
]


@dataclass(frozen=True)
class FitResult:
    """Interaction test extracted from one model fit.

    Either a successful fit (``p_value`` set) or a failed one
    (``failure_reason`` set, ``p_value`` is ``None``). Never mutated.

    Attributes:
        terms: Names of the tested interaction coefficients.
        estimates: Coefficient estimates, aligned with ``terms``.
        std_errors: Standard errors, aligned with ``terms``.
        statistic: Wald chi-square statistic (``z**2`` for one term).
        df: Degrees of freedom of the test.
        p_value: Two-sided p-value, ``None`` on failure.
        failure_reason: Why the fit failed, ``None`` on success.
    """

    terms: Tuple[str, ...] = ()
    estimates: Tuple[float, ...] = ()
    std_errors: Tuple[float, ...] = ()
    statistic: float = float("nan")
    df: int = 0
    p_value: Optional[float] = None
    failure_reason: Optional[str] = field(default=None)

    @classmethod
    def failed(cls, reason: str) -> "FitResult":
        return cls(failure_reason=reason)

    @property
    def ok(self) -> bool:
        return self.failure_reason is None and self.p_value is not None

    @property
    def estimate(self) -> Optional[float]:
        """Estimate of the interaction when it is a single coefficient."""
        return self.estimates[0] if len(self.estimates) == 1 else None

    @property
    def std_error(self) -> Optional[float]:
        return self.std_errors[0] if len(self.std_errors) == 1 else None


def interaction_terms(groups: Sequence[str], times: Sequence) -> Tuple[str, ...]:
    """Coefficient names of the group x time interaction.

    Args:
        groups: Group levels, reference level first.
        times: Time levels, reference level first.
    """
    return tuple(f"C(group)[T.{g}]:C(time)[T.{t}]" for g in list(groups)[1:] for t in list(times)[1:])


def _prepare_frame(dataset: pd.DataFrame) -> Tuple[pd.DataFrame, list, list]:
    """Make group and time categorical, preserving the generated level order."""
    group_levels = list(pd.unique(dataset["group"]))
    time_levels = sorted(pd.unique(dataset["time"]))
    data = dataset.copy()
    data["group"] = pd.Categorical(data["group"], categories=group_levels)
    data["time"] = pd.Categorical(data["time"], categories=time_levels)
    data["value"] = data["value"].astype(float)
    return data, group_levels, time_levels


def _fit_with_retry(model):
    """Fit with REML, moving down the optimizer ladder until convergence."""
    failure_reason = "Model did not converge"
    for method, max_iter in _FIT_ATTEMPTS:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = model.fit(reml=True, method=method, maxiter=max_iter)
        except (np.linalg.LinAlgError, ValueError, FloatingPointError, OverflowError) as e:
            failure_reason = f"{type(e).__name__}: {e}"
            continue

        if getattr(result, "converged", True):
            return result
        failure_reason = f"Model did not converge ({method}, maxiter={max_iter})"

    raise ModelFitFailure(failure_reason)


def _interaction_test(result, terms: Tuple[str, ...]) -> FitResult:
    """Wald test of the interaction coefficients of a fitted model."""
    fe_params = result.fe_params
    missing = [t for t in terms if t not in fe_params.index]
    if missing:
        raise ModelFitFailure(f"Interaction coefficients missing from fit: {missing}")

    estimates = fe_params.loc[list(terms)].to_numpy(dtype=float)
    cov = result.cov_params().loc[list(terms), list(terms)].to_numpy(dtype=float)
    std_errors = np.sqrt(np.diag(cov))

    try:
        statistic = float(estimates @ np.linalg.solve(cov, estimates))
    except np.linalg.LinAlgError as e:
        raise ModelFitFailure(f"Singular interaction covariance: {e}") from e

    if not np.isfinite(statistic) or not np.all(np.isfinite(std_errors)):
        raise ModelFitFailure("Non-finite interaction test statistic")

    df = len(terms)
    if df == 1:
        p_value = float(2.0 * _norm_dist.sf(abs(estimates[0] / std_errors[0])))
    else:
        p_value = float(_chi2_dist.sf(statistic, df))

    return FitResult(
        terms=terms,
        estimates=tuple(float(x) for x in estimates),
        std_errors=tuple(float(x) for x in std_errors),
        statistic=statistic,
        df=df,
        p_value=p_value,
    )


def fit_interaction_model(dataset: pd.DataFrame) -> FitResult:
    """Fit the random-intercept model and test the group x time interaction.

    Args:
        dataset: Long-format data with columns ``subject, group, time, value``.

    Returns:
        ``FitResult`` for the interaction.

    Raises:
        ModelFitFailure: If no optimizer converges, the interaction
            coefficients are missing from the fit, extracting the test from
            the fitted model fails, or the test statistic is not finite.
        ImportError: If statsmodels is not installed.
    """
    try:
        import statsmodels.formula.api as smf
    except ImportError as e:
        raise ImportError("statsmodels required for mixed models: pip install statsmodels") from e

    data, group_levels, time_levels = _prepare_frame(dataset)
    terms = interaction_terms(group_levels, time_levels)
    if not terms:
        raise ModelFitFailure("Design has no group x time interaction (need >= 2 groups and >= 2 time points)")

    model = smf.mixedlm(FORMULA, data, groups=data["subject"])
    result = _fit_with_retry(model)

    try:
        return _interaction_test(result, terms)
    except ModelFitFailure:
        raise
    except Exception as e:
        raise ModelFitFailure(f"{type(e).__name__}: {e}") from e
