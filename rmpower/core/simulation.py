"""
Simulation execution for RMPower.

Each grid unit is generated and fitted independently: a dataset is drawn
from the design with the unit's own random stream, the mixed model is fitted,
and the interaction test is kept. Units share nothing but the read-only
``DesignConfig``, so they can run sequentially or on a joblib worker pool
with identical results for a fixed base seed.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import InvalidDistributionError, ModelFitFailure
from ..progress import SimulationCancelled
from ..stats.data_generation import assemble_dataset, check_design
from ..stats.distributions import WeightFamily, make_support, normal_weights
from ..stats.mixed_models import FitResult, fit_interaction_model
from ..utils.validators import MAX_SEED
from .grid import GridUnit, unit_rng
from .results import UnitResult

Fitter = Callable[[pd.DataFrame], FitResult]

# Errors from the fitter that mark a single unit as failed. Anything else
# (configuration errors, missing dependencies, bugs) aborts the run.
_FIT_ERRORS = (ModelFitFailure, np.linalg.LinAlgError, ArithmeticError)


@dataclass(frozen=True)
class DesignConfig:
    """Read-only description of the simulated design, shared by all units.

    Attributes:
        groups: Group labels; the first one is the reference level.
        times: Number of time points.
        means: Theoretical mean per cell, group-major order.
        sds: Theoretical sd per cell, same order.
        lower: Lowest admissible outcome value.
        upper: Highest admissible outcome value.
        family: Weight family used to discretise each cell distribution.
    """

    groups: Tuple[str, ...]
    times: int
    means: Tuple[float, ...]
    sds: Tuple[float, ...]
    lower: int = 1
    upper: int = 100
    family: WeightFamily = normal_weights

    @property
    def support(self) -> np.ndarray:
        return make_support(self.lower, self.upper)

    def validate(self) -> None:
        """Check the whole design before any unit runs.

        Raises:
            DimensionMismatchError: means/sds do not match groups x times.
            InvalidParameterError: Non-positive sd or malformed groups/times.
            InvalidDistributionError: A cell has no probability mass on the
                support, or the support bounds are invalid.
        """
        sds = check_design(self.means, self.sds, self.groups, self.times)
        support = self.support
        for idx, (mean, sd) in enumerate(zip(self.means, sds)):
            weights = np.asarray(self.family(support, float(mean), float(sd)), dtype=float)
            if weights.shape != support.shape or not np.all(np.isfinite(weights)) or np.any(weights < 0):
                raise InvalidDistributionError(f"Invalid weights for cell {self._cell_label(idx)}")
            if weights.sum() <= 0:
                raise InvalidDistributionError(
                    f"Cell {self._cell_label(idx)} (mean={mean}, sd={sd}) has no probability mass "
                    f"on the support {self.lower}..{self.upper}"
                )

    def _cell_label(self, idx: int) -> str:
        return f"{self.groups[idx // self.times]}/time {idx % self.times + 1}"

    def generate(self, n: int, rng: np.random.Generator) -> pd.DataFrame:
        """Draw one simulated dataset with *n* subjects per group."""
        return assemble_dataset(n, self.means, self.sds, self.groups, self.times, rng, self.support, self.family)


def run_unit(
    unit: GridUnit,
    design: DesignConfig,
    base_seed: int,
    fitter: Fitter = fit_interaction_model,
) -> UnitResult:
    """Generate and fit one grid unit.

    The dataset is always generated before the fit and is discarded once
    the fit result has been extracted. Fitter failures are converted into a
    failed ``FitResult``; every other error propagates.
    """
    rng = unit_rng(base_seed, unit)
    dataset = design.generate(unit.sample_size, rng)
    try:
        fit = fitter(dataset)
    except _FIT_ERRORS as e:
        fit = FitResult.failed(f"{type(e).__name__}: {e}")
    return UnitResult(unit, fit)


class SimulationRunner:
    """Executes the simulation grid.

    Units are dispatched in batches. Between batches the runner checks the
    cancellation callback and the timeout; once either fires, no further
    batches are dispatched and the collected results are handed back
    through ``SimulationCancelled``.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        parallel: bool = False,
        n_cores: int = 1,
        batch_size: Optional[int] = None,
    ):
        """Initialise the simulation runner.

        Args:
            seed: Base random seed. ``None`` draws a fresh seed in the
                ``set_seed`` range once, so all units of this runner share
                one base that can be passed back to reproduce the run.
            parallel: Run units on a joblib (loky) worker pool.
            n_cores: Number of worker processes when *parallel* is set.
            batch_size: Units dispatched between cancellation checks.
                Defaults to 1 when sequential and ``4 * n_cores`` when
                parallel.
        """
        self.seed = seed if seed is not None else int(np.random.SeedSequence().entropy % (MAX_SEED + 1))
        self.parallel = parallel
        self.n_cores = n_cores
        if batch_size is None:
            batch_size = 4 * n_cores if parallel else 1
        self.batch_size = max(1, int(batch_size))

    def run(
        self,
        units: Sequence[GridUnit],
        design: DesignConfig,
        fitter: Fitter = fit_interaction_model,
        progress=None,
        cancel_check: Optional[Callable[[], bool]] = None,
        timeout: Optional[float] = None,
    ) -> List[UnitResult]:
        """Run every unit of the grid.

        Args:
            units: Grid units to execute.
            design: Shared read-only design.
            fitter: Callable turning a dataset into a ``FitResult``.
            progress: Optional ``ProgressReporter`` (advanced by 1 per unit).
            cancel_check: Optional callable returning ``True`` to stop.
            timeout: Optional wall-clock limit in seconds.

        Returns:
            One ``UnitResult`` per unit, in grid order.

        Raises:
            SimulationCancelled: When cancelled or timed out; carries the
                results collected so far.
        """
        design.validate()

        deadline = time.monotonic() + timeout if timeout is not None else None

        def should_stop() -> Union[str, None]:
            if cancel_check is not None and cancel_check():
                return "Simulation cancelled by user"
            if deadline is not None and time.monotonic() >= deadline:
                return f"Simulation timed out after {timeout} s"
            return None

        batches = [units[i : i + self.batch_size] for i in range(0, len(units), self.batch_size)]
        collected: List[UnitResult] = []

        if self.parallel:
            from joblib import Parallel, delayed

            with Parallel(n_jobs=self.n_cores, backend="loky", verbose=0) as pool:
                for batch in batches:
                    reason = should_stop()
                    if reason:
                        raise SimulationCancelled(reason, results=collected)
                    batch_results = pool(delayed(run_unit)(u, design, self.seed, fitter) for u in batch)
                    collected.extend(batch_results)
                    if progress is not None:
                        progress.advance(len(batch_results))
        else:
            for batch in batches:
                reason = should_stop()
                if reason:
                    raise SimulationCancelled(reason, results=collected)
                for unit in batch:
                    collected.append(run_unit(unit, design, self.seed, fitter))
                    if progress is not None:
                        progress.advance(1)

        return collected
