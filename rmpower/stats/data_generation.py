"""
Synthetic repeated-measures data for RMPower.

One simulated study is a long-format table with one row per
subject x time point. Subjects belong to exactly one group and are
measured at every time point, so subject ids repeat across the time
dimension within a group; that repetition is what the random intercept
in the mixed model picks up.
"""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import DimensionMismatchError, InvalidParameterError
from .distributions import WeightFamily, make_support, normal_weights, sample_discrete

__all__ = ["generate_cell", "assemble_dataset", "summarize_cells", "check_design"]

DATASET_COLUMNS = ["subject", "group", "time", "value"]


def _check_sample_size(n) -> None:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise InvalidParameterError(f"Sample size must be an integer, got {type(n).__name__}")
    if n < 1:
        raise InvalidParameterError(f"Sample size must be >= 1, got {n}")


def _check_sd(sd, where: str = "") -> None:
    if not np.isfinite(sd) or sd <= 0:
        raise InvalidParameterError(f"Standard deviation must be > 0{where}, got {sd}")


def generate_cell(
    n: int,
    mean: float,
    sd: float,
    support: Sequence[int],
    group: str,
    rng: np.random.Generator,
    family: WeightFamily = normal_weights,
) -> Tuple[np.ndarray, List[str]]:
    """Generate the outcome values of one group x time cell.

    Args:
        n: Number of subjects in the cell.
        mean: Theoretical mean of the outcome.
        sd: Theoretical standard deviation of the outcome.
        support: Admissible outcome values.
        group: Group label, used to build subject ids.
        rng: Random source.
        family: Weight family turning (support, mean, sd) into weights.

    Returns:
        ``(values, subject_ids)`` where ``subject_ids[i] == f"{group}_{i + 1}"``.

    Raises:
        InvalidParameterError: If ``n < 1`` or ``sd <= 0``.
        InvalidDistributionError: If the weights vanish on the support
            (e.g. a mean far outside the support bounds).
    """
    _check_sample_size(n)
    _check_sd(sd)

    support = np.asarray(support)
    weights = family(support, mean, sd)
    values = sample_discrete(support, weights, n, rng)
    subject_ids = [f"{group}_{i}" for i in range(1, n + 1)]
    return values, subject_ids


def check_design(
    means: Sequence[float],
    sds: Union[float, Sequence[float]],
    groups: Sequence[str],
    times: int,
) -> np.ndarray:
    """Validate the cell layout and return the per-cell sds as an array.

    Cells are enumerated group-major: all times for the first group, then
    all times for the second group, and so on.

    Raises:
        DimensionMismatchError: If ``len(means)`` or ``len(sds)`` differs
            from ``len(groups) * times``.
        InvalidParameterError: For bad ``times``, group labels or sds.
    """
    if isinstance(times, bool) or not isinstance(times, (int, np.integer)) or times < 1:
        raise InvalidParameterError(f"Number of time points must be a positive integer, got {times}")
    groups = list(groups)
    if not groups:
        raise InvalidParameterError("At least one group label is required")
    if any(not str(g) for g in groups):
        raise InvalidParameterError("Group labels must be non-empty")
    if len(set(map(str, groups))) != len(groups):
        raise InvalidParameterError(f"Group labels must be unique, got {groups}")

    n_cells = len(groups) * times
    if len(means) != n_cells:
        raise DimensionMismatchError(
            f"Got {len(means)} means for {len(groups)} groups x {times} time points ({n_cells} cells expected)"
        )

    if np.ndim(sds) == 0:
        sd_array = np.full(n_cells, float(sds))
    else:
        sd_array = np.asarray(sds, dtype=float)
        if sd_array.size != n_cells:
            raise DimensionMismatchError(
                f"Got {sd_array.size} standard deviations for {len(groups)} groups x {times} time points "
                f"({n_cells} cells expected)"
            )

    for idx, sd in enumerate(sd_array):
        group, time = groups[idx // times], idx % times + 1
        _check_sd(sd, where=f" (cell {group}/time {time})")

    return sd_array


def assemble_dataset(
    n: int,
    means: Sequence[float],
    sds: Union[float, Sequence[float]],
    groups: Sequence[str],
    times: int,
    rng: np.random.Generator,
    support: Optional[Sequence[int]] = None,
    family: WeightFamily = normal_weights,
) -> pd.DataFrame:
    """Simulate one replication of the group x time design.

    Every argument is checked before the first draw, so a malformed design
    never yields a partial dataset.

    Args:
        n: Subjects per group (each measured at every time point).
        means: One theoretical mean per cell, group-major order.
        sds: One sd per cell (same order), or a scalar for all cells.
        groups: Group labels.
        times: Number of time points (labelled 1..times).
        rng: Random source.
        support: Outcome support, 1..100 when omitted.
        family: Weight family for the cell distributions.

    Returns:
        Long-format DataFrame with columns ``subject, group, time, value``
        and ``n * len(groups) * times`` rows.
    """
    _check_sample_size(n)
    sd_array = check_design(means, sds, groups, times)
    support = make_support() if support is None else np.asarray(support)

    frames = []
    for cell_idx, (group, time) in enumerate((g, t) for g in groups for t in range(1, times + 1)):
        values, subject_ids = generate_cell(
            n,
            float(means[cell_idx]),
            float(sd_array[cell_idx]),
            support,
            str(group),
            rng,
            family,
        )
        frames.append(
            pd.DataFrame(
                {
                    "subject": subject_ids,
                    "group": str(group),
                    "time": time,
                    "value": values,
                }
            )
        )

    return pd.concat(frames, ignore_index=True)[DATASET_COLUMNS]


def summarize_cells(dataset: pd.DataFrame) -> pd.DataFrame:
    """Empirical mean, sd and count of the outcome per group x time cell."""
    summary = dataset.groupby(["group", "time"], sort=False)["value"].agg(["mean", "std", "count"])
    return summary.reset_index().rename(columns={"std": "sd", "count": "n"})
