"""RMPower - Monte Carlo sample-size estimation for repeated-measures designs.

Simulates a group x time experiment with a bounded integer outcome, fits a
random-intercept mixed model to every simulated study and reports the
empirical power of the group x time interaction per sample size.

Example:
    >>> from rmpower import RMPower
    >>>
    >>> model = RMPower(groups=["control", "treatment"], times=2)
    >>> model.set_design(means=[50, 50, 50, 45], sds=10)
    >>> model.set_seed(42)
    >>> model.find_sample_size(from_size=30, to_size=90, by=30)
"""

from importlib.metadata import version as _get_version

from .errors import (
    DimensionMismatchError,
    InvalidDistributionError,
    InvalidParameterError,
    ModelFitFailure,
    RMPowerError,
)
from .model import RMPower
from .progress import PrintReporter, ProgressReporter, SimulationCancelled, TqdmReporter

__version__ = _get_version("RMPower")

__all__ = [
    "RMPower",
    "RMPowerError",
    "InvalidDistributionError",
    "InvalidParameterError",
    "DimensionMismatchError",
    "ModelFitFailure",
    "SimulationCancelled",
    "ProgressReporter",
    "PrintReporter",
    "TqdmReporter",
]
