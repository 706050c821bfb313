"""Discrete outcome distributions for RMPower.

Outcomes live on a finite, ordered integer support (1..100 by default).
A continuous density is discretised by evaluating it at every support
point; the resulting non-negative weights are normalised by the sampler.

Weight families are plain callables ``family(support, mean, sd)`` so any
distribution can drive the generator. Three are provided:

  - ``normal_weights`` (default)
  - ``SkewNormalWeights(shape)`` -- mean/sd-matched skew-normal
  - ``uniform_weights`` -- flat weights, ignores mean and sd

Usage:
    from rmpower.stats.distributions import normal_weights, sample_discrete
"""

from typing import Callable, Dict, Sequence, Union

import numpy as np
from scipy.stats import norm as _norm_dist
from scipy.stats import skewnorm as _skewnorm_dist

from ..errors import InvalidDistributionError, InvalidParameterError

WeightFamily = Callable[[np.ndarray, float, float], np.ndarray]


# ============================================================================
# Support
# ============================================================================


def make_support(lower: int = 1, upper: int = 100) -> np.ndarray:
    """Return the integer outcome support ``lower..upper`` (inclusive)."""
    if int(lower) != lower or int(upper) != upper:
        raise InvalidDistributionError(f"Support bounds must be integers, got ({lower}, {upper})")
    if upper < lower:
        raise InvalidDistributionError(f"Support upper bound ({upper}) is below lower bound ({lower})")
    return np.arange(int(lower), int(upper) + 1, dtype=np.int64)


# ============================================================================
# Sampler
# ============================================================================


def sample_discrete(
    support: Sequence,
    weights: Sequence[float],
    n: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw *n* values from *support* with replacement, proportional to *weights*.

    Args:
        support: Finite ordered set of admissible values.
        weights: One non-negative weight per support value. Need not sum to 1.
        n: Number of draws.
        rng: Random source; the only state this function touches.

    Returns:
        Array of length *n* with values taken from *support*.

    Raises:
        InvalidDistributionError: Empty support, length mismatch, negative or
            non-finite weights, or all weights zero.
    """
    support = np.asarray(support)
    weights = np.asarray(weights, dtype=float)

    if support.size == 0:
        raise InvalidDistributionError("Support is empty")
    if weights.shape != support.shape:
        raise InvalidDistributionError(f"Got {weights.size} weights for a support of {support.size} values")
    if not np.all(np.isfinite(weights)):
        raise InvalidDistributionError("Weights must be finite")
    if np.any(weights < 0):
        raise InvalidDistributionError("Weights must be non-negative")

    total = weights.sum()
    if total <= 0:
        raise InvalidDistributionError("All weights are zero")
    if n < 0:
        raise InvalidParameterError(f"Number of draws must be non-negative, got {n}")

    return rng.choice(support, size=int(n), replace=True, p=weights / total)


# ============================================================================
# Weight families
# ============================================================================


def normal_weights(support: np.ndarray, mean: float, sd: float) -> np.ndarray:
    """Normal density N(mean, sd) evaluated at each support point."""
    return _norm_dist.pdf(np.asarray(support, dtype=float), loc=mean, scale=sd)


def uniform_weights(support: np.ndarray, mean: float, sd: float) -> np.ndarray:
    """Equal weight on every support point."""
    return np.ones(len(support), dtype=float)


class SkewNormalWeights:
    """Skew-normal density with the requested mean and standard deviation.

    The location and scale are solved from the moments of the skew-normal
    so that the theoretical mean and sd of the (undiscretised) density
    equal the cell parameters. Positive *shape* skews right, negative left.
    """

    def __init__(self, shape: float = -4.0):
        self.shape = float(shape)

    def __call__(self, support: np.ndarray, mean: float, sd: float) -> np.ndarray:
        delta = self.shape / np.sqrt(1.0 + self.shape**2)
        scale = sd / np.sqrt(1.0 - 2.0 * delta**2 / np.pi)
        loc = mean - scale * delta * np.sqrt(2.0 / np.pi)
        return _skewnorm_dist.pdf(np.asarray(support, dtype=float), self.shape, loc=loc, scale=scale)

    def __repr__(self):
        return f"SkewNormalWeights(shape={self.shape})"


WEIGHT_FAMILIES: Dict[str, WeightFamily] = {
    "normal": normal_weights,
    "right_skewed": SkewNormalWeights(4.0),
    "left_skewed": SkewNormalWeights(-4.0),
    "uniform": uniform_weights,
}


def resolve_family(family: Union[str, WeightFamily, None]) -> WeightFamily:
    """Turn a family name (or callable, or ``None``) into a weight callable."""
    if family is None:
        return normal_weights
    if callable(family):
        return family
    key = str(family).lower().replace("-", "_").replace(" ", "_")
    if key not in WEIGHT_FAMILIES:
        raise ValueError(f"Unknown distribution '{family}'. Available: {', '.join(WEIGHT_FAMILIES)}")
    return WEIGHT_FAMILIES[key]
