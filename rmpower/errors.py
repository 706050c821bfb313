"""Exception hierarchy for RMPower.

Configuration errors (``InvalidDistributionError``, ``InvalidParameterError``,
``DimensionMismatchError``) abort a run before any simulation work starts.
``ModelFitFailure`` is local to one grid unit and is recovered by excluding
the unit from the power denominator.
"""


class RMPowerError(Exception):
    """Base class for all RMPower errors."""

    pass


class InvalidDistributionError(RMPowerError, ValueError):
    """Raised when sampling weights do not describe a valid distribution."""

    pass


class InvalidParameterError(RMPowerError, ValueError):
    """Raised for a non-positive sample size or standard deviation."""

    pass


class DimensionMismatchError(RMPowerError, ValueError):
    """Raised when the means/sds do not match the groups x times layout."""

    pass


class ModelFitFailure(RMPowerError, RuntimeError):
    """Raised when the mixed model fails to converge for one dataset."""

    pass
