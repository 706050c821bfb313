"""
Validation utilities for RMPower.

This module provides validation functions for the scalar run settings
(alpha, power, replications, seed, sample-size ranges, parallel settings)
and for the shape of the group x time design.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Type, Union

__all__ = []

MAX_SEED = 2**32 - 1


@dataclass
class _ValidationResult:
    """Outcome of a validation check, carrying errors and warnings.

    Attributes:
        is_valid: ``True`` if no errors were found.
        errors: List of error messages (empty when valid).
        warnings: List of non-fatal warning messages.
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def raise_if_invalid(self, error_type: Type[Exception] = ValueError):
        """Raise *error_type* (``ValueError`` by default) if the validation failed."""
        if not self.is_valid:
            error_msg = "Validation failed:\n" + "\n".join(f"• {err}" for err in self.errors)
            raise error_type(error_msg)

    def print_warnings(self):
        for warning in self.warnings:
            print(f"Warning: {warning}")


class _Validator:
    """Static helpers for type and range checks used by all validators."""

    @staticmethod
    def _check_type(value: Any, expected_types: tuple, name: str) -> Optional[str]:
        """Check if value has expected type."""
        if isinstance(value, bool) or not isinstance(value, expected_types):
            actual_type = type(value).__name__
            expected = expected_types[0].__name__ if len(expected_types) == 1 else f"one of {[t.__name__ for t in expected_types]}"
            return f"{name} must be {expected}, got {actual_type}"
        return None

    @staticmethod
    def _check_range(
        value: Union[int, float],
        min_val: Optional[float],
        max_val: Optional[float],
        name: str,
    ) -> Optional[str]:
        """Check if value is within range."""
        if min_val is not None and value < min_val:
            return f"{name} must be >= {min_val}, got {value}"
        if max_val is not None and value > max_val:
            return f"{name} must be <= {max_val}, got {value}"
        return None


_validator = _Validator()


def _validate_numeric_parameter(
    value: Any,
    name: str,
    expected_types: tuple = (int, float),
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> _ValidationResult:
    """Generic validation for numeric parameters."""
    errors: List[str] = []
    warnings: List[str] = []

    type_error = _validator._check_type(value, expected_types, name)
    if type_error:
        errors.append(type_error)
        return _ValidationResult(False, errors, warnings)

    range_error = _validator._check_range(value, min_val, max_val, name)
    if range_error:
        errors.append(range_error)

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_power(power: Any) -> _ValidationResult:
    """Validate power parameter (0-100%)."""
    return _validate_numeric_parameter(power, "Power", min_val=0, max_val=100)


def _validate_alpha(alpha: Any) -> _ValidationResult:
    """Validate alpha level parameter (0-0.25)."""
    result = _validate_numeric_parameter(alpha, "Alpha", min_val=0, max_val=0.25)
    if result.is_valid and alpha == 0:
        result.errors.append("Alpha must be > 0")
        result.is_valid = False
    return result


def _validate_replications(n_replications: Any) -> _ValidationResult:
    """Validate the number of replications per sample size."""
    result = _validate_numeric_parameter(n_replications, "Number of replications", expected_types=(int,), min_val=1)
    if result.is_valid and n_replications < 100:
        result.warnings.append(
            f"Low replication count ({n_replications}). Power estimates have a Monte Carlo "
            f"standard error of up to {50 / n_replications**0.5:.1f} percentage points."
        )
    return result


def _validate_seed(seed: Any) -> _ValidationResult:
    """Validate the base seed (``None`` or a non-negative integer)."""
    if seed is None:
        return _ValidationResult(True, [], [])
    return _validate_numeric_parameter(seed, "seed", expected_types=(int,), min_val=0, max_val=MAX_SEED)


def _validate_sample_size(sample_size: Any) -> _ValidationResult:
    """Validate a per-group sample size (integer >= 2, warning below 10)."""
    result = _validate_numeric_parameter(sample_size, "sample_size", expected_types=(int,), min_val=2, max_val=100000)
    if result.is_valid and sample_size < 10:
        result.warnings.append(f"Very small sample size ({sample_size} per group); expect frequent fit failures.")
    return result


def _validate_sample_size_range(from_size: Any, to_size: Any, by: Any) -> _ValidationResult:
    """Validate sample size range parameters."""
    errors: List[str] = []
    warnings: List[str] = []

    for param, name in [(from_size, "from_size"), (to_size, "to_size"), (by, "by")]:
        if isinstance(param, bool) or not isinstance(param, int) or param <= 0:
            errors.append(f"{name} must be a positive integer, got {param}")

    if errors:
        return _ValidationResult(False, errors, warnings)

    if from_size < 2:
        errors.append(f"from_size must be at least 2 subjects per group, got {from_size}")

    if from_size >= to_size:
        errors.append(f"from_size ({from_size}) must be less than to_size ({to_size})")

    if by > (to_size - from_size):
        errors.append(f"Step size 'by' ({by}) is larger than range ({to_size - from_size}). This will only test one sample size.")

    n_tests = len(range(from_size, to_size + 1, by))
    if n_tests > 100:
        warnings.append(f"Large number of sample sizes to test ({n_tests}). This may take significant time.")

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_support(lower: Any, upper: Any) -> _ValidationResult:
    """Validate the outcome support bounds."""
    errors: List[str] = []
    for value, name in [(lower, "lower"), (upper, "upper")]:
        type_error = _validator._check_type(value, (int,), name)
        if type_error:
            errors.append(type_error)
    if errors:
        return _ValidationResult(False, errors, [])
    if upper <= lower:
        errors.append(f"upper ({upper}) must be greater than lower ({lower})")
    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_design_layout(groups: Sequence[Any], times: Any) -> _ValidationResult:
    """Validate that the design has an interaction to test.

    The group x time interaction needs at least two groups and two time
    points. Means/sds dimensions are checked separately (and raise
    ``DimensionMismatchError``).
    """
    errors: List[str] = []
    if isinstance(groups, str):
        errors.append("groups must be a sequence of labels, not a single string")
        return _ValidationResult(False, errors, [])
    if len(groups) < 2:
        errors.append(f"At least 2 groups are required to test the interaction, got {len(groups)}")
    if isinstance(times, bool) or not isinstance(times, int):
        errors.append(f"times must be an integer, got {type(times).__name__}")
    elif times < 2:
        errors.append(f"At least 2 time points are required to test the interaction, got {times}")
    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_parallel_settings(enable: Any, n_cores: Optional[int]) -> Tuple[Tuple[bool, int], _ValidationResult]:
    """Validate parallel processing settings.

    Args:
        enable: True or False
        n_cores: Number of CPU cores (positive int or None for auto)

    Returns:
        ((enable, n_cores), ValidationResult)
    """
    import multiprocessing as mp

    errors = []

    if enable not in (True, False):
        errors.append(f"enable must be True or False, got {enable!r}")
        return (False, 1), _ValidationResult(False, errors, [])

    max_cores = mp.cpu_count()
    validated_n_cores = max(1, max_cores // 2)

    if n_cores is not None:
        if isinstance(n_cores, bool) or not isinstance(n_cores, int) or n_cores <= 0:
            errors.append(f"n_cores must be a positive integer, got {n_cores}")
        else:
            validated_n_cores = min(n_cores, max_cores)

    return (bool(enable), validated_n_cores), _ValidationResult(len(errors) == 0, errors, [])
