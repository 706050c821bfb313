"""
Results processing for RMPower.

Turns per-unit fit results into an empirical power curve. Aggregation is a
pure function of the unit results and the significance threshold, so a
curve can be recomputed for any alpha without rerunning the simulation.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy.stats import norm as _norm_dist

from ..stats.mixed_models import FitResult
from .grid import GridUnit

CURVE_COLUMNS = [
    "sample_size",
    "power",
    "n_total",
    "n_failed",
    "n_significant",
    "mc_se",
    "ci_lower",
    "ci_upper",
]


@dataclass(frozen=True)
class UnitResult:
    """A grid unit together with the fit result it produced."""

    unit: GridUnit
    fit: FitResult

    @property
    def failed(self) -> bool:
        return not self.fit.ok


@dataclass(frozen=True)
class PowerPoint:
    """Power estimate and raw counts for one sample size."""

    sample_size: int
    n_total: int
    n_failed: int
    n_significant: int

    @property
    def n_used(self) -> int:
        return self.n_total - self.n_failed

    @property
    def power(self) -> float:
        """Share of non-failed units that reached significance (NaN if none)."""
        if self.n_used == 0:
            return float("nan")
        return self.n_significant / self.n_used

    @property
    def mc_se(self) -> float:
        """Monte Carlo standard error of the power estimate."""
        if self.n_used == 0:
            return float("nan")
        p = self.power
        return float(np.sqrt(p * (1.0 - p) / self.n_used))

    def wilson_interval(self, confidence: float = 0.95) -> Tuple[float, float]:
        """Wilson score interval for the power estimate."""
        n = self.n_used
        if n == 0:
            return float("nan"), float("nan")
        z = float(_norm_dist.ppf(0.5 + confidence / 2.0))
        p = self.power
        denom = 1.0 + z**2 / n
        centre = (p + z**2 / (2 * n)) / denom
        half = z * np.sqrt(p * (1.0 - p) / n + z**2 / (4 * n**2)) / denom
        return float(max(0.0, centre - half)), float(min(1.0, centre + half))


class PowerCurve:
    """Empirical power per sample size.

    Built by ``aggregate_power``; holds one ``PowerPoint`` per sample size,
    in ascending sample-size order.
    """

    def __init__(self, points: List[PowerPoint], alpha: float):
        self.points = sorted(points, key=lambda p: p.sample_size)
        self.alpha = alpha

    @property
    def sample_sizes(self) -> List[int]:
        return [p.sample_size for p in self.points]

    @property
    def powers(self) -> List[float]:
        return [p.power for p in self.points]

    @property
    def n_failed(self) -> int:
        return sum(p.n_failed for p in self.points)

    def as_dict(self) -> Dict[int, float]:
        """Mapping of sample size to power."""
        return {p.sample_size: p.power for p in self.points}

    def counts(self) -> Dict[int, Dict[str, int]]:
        """Raw counts per sample size, for auditing the power estimates."""
        return {
            p.sample_size: {"n_total": p.n_total, "n_failed": p.n_failed, "n_significant": p.n_significant}
            for p in self.points
        }

    def first_achieved(self, target_power: float) -> int:
        """Smallest tested sample size whose power reaches *target_power* (0-100).

        Returns ``-1`` if no tested sample size reaches it.
        """
        for p in self.points:
            if not np.isnan(p.power) and p.power * 100 >= target_power - 1e-9:
                return p.sample_size
        return -1

    def to_frame(self, confidence: float = 0.95) -> pd.DataFrame:
        rows = []
        for p in self.points:
            lower, upper = p.wilson_interval(confidence)
            rows.append([p.sample_size, p.power, p.n_total, p.n_failed, p.n_significant, p.mc_se, lower, upper])
        return pd.DataFrame(rows, columns=CURVE_COLUMNS)

    def to_csv(self, path, **kwargs) -> None:
        self.to_frame().to_csv(path, index=False, **kwargs)

    def __len__(self):
        return len(self.points)

    def __eq__(self, other):
        if not isinstance(other, PowerCurve):
            return NotImplemented
        return self.alpha == other.alpha and self.points == other.points

    def __repr__(self):
        body = ", ".join(f"{p.sample_size}: {p.power:.3f}" for p in self.points)
        return f"PowerCurve(alpha={self.alpha}, {{{body}}})"


def aggregate_power(results: Iterable[UnitResult], alpha: float) -> PowerCurve:
    """Compute empirical power per sample size.

    Failed units are dropped from the denominator of their sample size and
    counted separately; they are never treated as non-significant.
    Sample sizes may have unequal replication counts.

    Args:
        results: Unit results, in any order.
        alpha: Significance threshold (p <= alpha is significant).
    """
    totals: Dict[int, List[int]] = {}
    for r in results:
        counts = totals.setdefault(r.unit.sample_size, [0, 0, 0])
        counts[0] += 1
        if r.failed:
            counts[1] += 1
        elif r.fit.p_value <= alpha:
            counts[2] += 1

    points = [PowerPoint(ss, total, failed, significant) for ss, (total, failed, significant) in totals.items()]
    return PowerCurve(points, alpha)


def failure_reasons(results: Iterable[UnitResult]) -> Dict[str, int]:
    """Count failed units by failure reason."""
    reasons: Dict[str, int] = {}
    for r in results:
        if r.failed:
            reason = r.fit.failure_reason or "Unknown"
            reasons[reason] = reasons.get(reason, 0) + 1
    return reasons


def build_sample_size_result(
    groups: List[str],
    times: int,
    sample_sizes: List[int],
    alpha: float,
    n_replications: int,
    target_power: float,
    parallel: Union[bool, int],
    seed: Optional[int],
    curve: PowerCurve,
    n_units_planned: int,
    cancelled: bool,
    reasons: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    """
    Build the complete sample size analysis result dictionary.

    Args:
        groups: Group labels of the design
        times: Number of time points
        sample_sizes: Sample sizes (per group) tested
        alpha: Significance level
        n_replications: Replications per sample size
        target_power: Target power level (percentage)
        parallel: Whether parallel processing was used
        seed: Base seed of the run
        curve: Aggregated power curve
        n_units_planned: Number of grid units in the full grid
        cancelled: Whether the run stopped before finishing the grid
        reasons: Optional failure counts by reason

    Returns:
        Complete result dictionary
    """
    result = {
        "model": {
            "design": f"{len(groups)} groups x {times} time points",
            "groups": list(groups),
            "times": times,
            "alpha": alpha,
            "n_replications": n_replications,
            "target_power": target_power,
            "parallel": parallel,
            "seed": seed,
            "sample_size_range": {
                "from_size": sample_sizes[0],
                "to_size": sample_sizes[-1],
                "by": sample_sizes[1] - sample_sizes[0] if len(sample_sizes) > 1 else 1,
            },
        },
        "results": {
            "sample_sizes_tested": curve.sample_sizes,
            "powers": [p * 100 for p in curve.powers],
            "first_achieved": curve.first_achieved(target_power),
            "n_failed": {p.sample_size: p.n_failed for p in curve.points},
            "n_units_planned": n_units_planned,
            "n_units_completed": sum(p.n_total for p in curve.points),
            "cancelled": cancelled,
            "power_curve": curve,
        },
    }
    if reasons is not None:
        result["results"]["failure_reasons"] = reasons
    return result


def build_power_result(
    groups: List[str],
    times: int,
    sample_size: int,
    alpha: float,
    n_replications: int,
    target_power: float,
    parallel: Union[bool, int],
    seed: Optional[int],
    curve: PowerCurve,
    cancelled: bool,
    reasons: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    """Build the result dictionary for a single sample size."""
    point = curve.points[0] if curve.points else PowerPoint(sample_size, 0, 0, 0)
    result = {
        "model": {
            "design": f"{len(groups)} groups x {times} time points",
            "groups": list(groups),
            "times": times,
            "sample_size": sample_size,
            "alpha": alpha,
            "n_replications": n_replications,
            "target_power": target_power,
            "parallel": parallel,
            "seed": seed,
        },
        "results": {
            "power": point.power * 100,
            "n_total": point.n_total,
            "n_failed": point.n_failed,
            "n_significant": point.n_significant,
            "cancelled": cancelled,
            "power_curve": curve,
        },
    }
    if reasons is not None:
        result["results"]["failure_reasons"] = reasons
    return result
