"""
RMPower user-facing model.

Holds the configuration of a group x time repeated-measures design and
runs simulation-based power analysis for the group x time interaction.
All setters validate their input immediately and return ``self`` for
chaining.
"""

import sys
import warnings
from typing import Callable, List, Optional, Sequence, Union

import pandas as pd

from .core import (
    DesignConfig,
    GridUnit,
    SimulationRunner,
    aggregate_power,
    build_grid,
    build_power_result,
    build_sample_size_result,
    failure_reasons,
    sample_size_range,
    unit_rng,
)
from .core.results import PowerCurve, UnitResult
from .errors import InvalidParameterError
from .progress import PrintReporter, ProgressReporter, SimulationCancelled, compute_total_units
from .stats.data_generation import check_design
from .stats.distributions import WeightFamily, resolve_family
from .stats.mixed_models import FitResult, fit_interaction_model
from .utils.formatters import _format_results
from .utils.validators import (
    _validate_alpha,
    _validate_design_layout,
    _validate_parallel_settings,
    _validate_power,
    _validate_replications,
    _validate_sample_size,
    _validate_sample_size_range,
    _validate_seed,
    _validate_support,
)


class RMPower:
    """Monte Carlo power analysis for a group x time repeated-measures design.

    Each subject belongs to one group and is measured at every time point
    on a bounded integer outcome. Datasets are simulated from per-cell
    theoretical means and standard deviations, a random-intercept mixed
    model ``value ~ group * time + (1 | subject)`` is fitted to each, and
    power is the share of replications in which the interaction is
    significant.

    Example:
        >>> model = RMPower(groups=["control", "treatment"], times=2)
        >>> model.set_design(means=[50, 50, 50, 45], sds=10)
        >>> model.set_seed(2024)
        >>> model.find_sample_size(from_size=30, to_size=90, by=30)

    Attributes:
        groups: Group labels; the first is the reference level.
        times: Number of time points.
        alpha: Significance level (default 0.05).
        power: Target power in percent (default 80).
        n_replications: Replications per sample size (default 200).
        seed: Base random seed, ``None`` for random seeding.
        parallel: Whether grid units run on a joblib worker pool.
        n_cores: Worker processes used when *parallel* is set.
    """

    def __init__(self, groups: Sequence[str] = ("control", "treatment"), times: int = 2):
        result = _validate_design_layout(groups, times)
        result.raise_if_invalid(InvalidParameterError)

        self.groups: List[str] = [str(g) for g in groups]
        self.times = times
        self.means: Optional[List[float]] = None
        self.sds: Optional[List[float]] = None

        self.lower = 1
        self.upper = 100
        self._family: WeightFamily = resolve_family(None)
        self._fitter: Callable[[pd.DataFrame], FitResult] = fit_interaction_model

        self.alpha = 0.05
        self.power = 80.0
        self.n_replications = 200
        self.seed: Optional[int] = None

        self.parallel = False
        self.n_cores = 1

        self._last_results: List[UnitResult] = []
        self._last_seed: Optional[int] = None

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_design(
        self,
        means: Sequence[float],
        sds: Union[float, Sequence[float]],
        groups: Optional[Sequence[str]] = None,
        times: Optional[int] = None,
    ):
        """Set the theoretical mean and sd of every group x time cell.

        Cells are listed group-major: all time points of the first group,
        then all time points of the second group, and so on.

        Args:
            means: One mean per cell.
            sds: One sd per cell, or a single sd shared by all cells.
            groups: Optionally replace the group labels.
            times: Optionally replace the number of time points.

        Returns:
            self: For method chaining.

        Raises:
            DimensionMismatchError: If means/sds do not have
                ``len(groups) * times`` entries.
            InvalidParameterError: If any sd is not positive or the layout
                has fewer than two groups or time points.
        """
        groups = self.groups if groups is None else [str(g) for g in groups]
        times = self.times if times is None else times

        _validate_design_layout(groups, times).raise_if_invalid(InvalidParameterError)
        sd_array = check_design(means, sds, groups, times)

        self.groups = list(groups)
        self.times = times
        self.means = [float(m) for m in means]
        self.sds = [float(s) for s in sd_array]
        return self

    def set_interaction_effect(self, baseline: float, effect: float, sd: float):
        """Design with a single interaction effect.

        Every cell has mean *baseline* except the non-reference groups at
        the non-baseline time points, which are shifted by *effect*. With two
        groups and two times this gives ``[b, b, b, b + effect]``.

        Returns:
            self: For method chaining.
        """
        means = [
            baseline + (effect if g_idx > 0 and t_idx > 0 else 0.0)
            for g_idx in range(len(self.groups))
            for t_idx in range(self.times)
        ]
        return self.set_design(means, sd)

    def set_support(self, lower: int = 1, upper: int = 100):
        """Set the admissible outcome values to the integers ``lower..upper``.

        Returns:
            self: For method chaining.
        """
        _validate_support(lower, upper).raise_if_invalid()
        self.lower, self.upper = lower, upper
        return self

    def set_distribution(self, family: Union[str, WeightFamily]):
        """Set how cell distributions are discretised onto the support.

        Args:
            family: ``"normal"`` (default), ``"right_skewed"``,
                ``"left_skewed"``, ``"uniform"``, or any callable
                ``family(support, mean, sd) -> weights``.

        Returns:
            self: For method chaining.
        """
        self._family = resolve_family(family)
        return self

    def set_fitter(self, fitter: Optional[Callable[[pd.DataFrame], FitResult]] = None):
        """Replace the mixed-model fitter (``None`` restores the statsmodels default).

        The fitter receives one long-format dataset and returns a
        ``FitResult``; raising ``ModelFitFailure`` marks the unit as failed.

        Returns:
            self: For method chaining.
        """
        if fitter is not None and not callable(fitter):
            raise TypeError("fitter must be callable")
        self._fitter = fitter if fitter is not None else fit_interaction_model
        return self

    def set_alpha(self, alpha: float):
        """Set the significance level for hypothesis testing.

        Args:
            alpha: Type-I error rate (0-0.25). Default is 0.05.

        Returns:
            self: For method chaining.
        """
        _validate_alpha(alpha).raise_if_invalid()
        self.alpha = float(alpha)
        return self

    def set_power(self, power: float):
        """Set the target statistical power level (percentage, 0-100). Default is 80.

        Returns:
            self: For method chaining.
        """
        _validate_power(power).raise_if_invalid()
        self.power = float(power)
        return self

    def set_replications(self, n_replications: int):
        """Set the number of simulated studies per sample size.

        Returns:
            self: For method chaining.
        """
        result = _validate_replications(n_replications)
        result.print_warnings()
        result.raise_if_invalid()
        self.n_replications = n_replications
        return self

    def set_seed(self, seed: Optional[int] = None):
        """Set the base random seed for reproducibility.

        Every grid unit derives its own random stream from this seed and its
        (sample size, replication) coordinates.

        Args:
            seed: Non-negative integer, or ``None`` for random seeding.

        Returns:
            self: For method chaining.
        """
        _validate_seed(seed).raise_if_invalid()
        self.seed = seed
        if seed is not None:
            print(f"Seed set to: {seed}")
        else:
            print("Random seeding enabled")
        return self

    def set_parallel(self, enable: bool = True, n_cores: Optional[int] = None):
        """Enable or disable parallel processing with joblib.

        Args:
            enable: Run grid units on a worker pool.
            n_cores: Number of CPU cores to use. Defaults to
                ``cpu_count // 2``.

        Returns:
            self: For method chaining.
        """
        if enable is False:
            self.parallel, self.n_cores = False, 1
            return self

        settings, result = _validate_parallel_settings(enable, n_cores)
        result.raise_if_invalid()
        self.parallel, self.n_cores = settings
        return self

    # =========================================================================
    # Analysis
    # =========================================================================

    def _design_config(self) -> DesignConfig:
        if self.means is None or self.sds is None:
            raise InvalidParameterError("Design not set. Call set_design() or set_interaction_effect() first.")
        return DesignConfig(
            groups=tuple(self.groups),
            times=self.times,
            means=tuple(self.means),
            sds=tuple(self.sds),
            lower=self.lower,
            upper=self.upper,
            family=self._family,
        )

    def simulate_dataset(self, sample_size: int, replication: int = 1) -> pd.DataFrame:
        """Return the dataset a given grid unit would simulate.

        Uses the same random stream as ``find_power``/``find_sample_size``,
        so the returned data is exactly what the unit fits. Without a seed,
        the base seed of the most recent run is reused; before any run, a
        fresh random dataset is drawn.
        """
        design = self._design_config()
        design.validate()
        runner = SimulationRunner(seed=self.seed if self.seed is not None else self._last_seed)
        return design.generate(sample_size, unit_rng(runner.seed, GridUnit(sample_size, replication)))

    def _run_grid(self, sample_sizes, print_results, progress_callback, cancel_check, timeout):
        """Run the grid for *sample_sizes*; returns (unit results, cancelled, base seed)."""
        design = self._design_config()
        units = build_grid(sample_sizes, self.n_replications)

        if progress_callback is None:
            effective_cb = PrintReporter() if print_results else None
        elif progress_callback is False:
            effective_cb = None
        else:
            effective_cb = progress_callback

        reporter = None
        if effective_cb is not None:
            reporter = ProgressReporter(compute_total_units(self.n_replications, len(sample_sizes)), effective_cb)

        runner = SimulationRunner(seed=self.seed, parallel=self.parallel, n_cores=self.n_cores)

        # Design errors surface here, before the progress bar starts.
        design.validate()

        if reporter is not None:
            reporter.start()

        cancelled = False
        try:
            results = runner.run(
                units,
                design,
                fitter=self._fitter,
                progress=reporter,
                cancel_check=cancel_check,
                timeout=timeout,
            )
        except SimulationCancelled as e:
            results = e.results
            cancelled = True
            if isinstance(effective_cb, PrintReporter):
                sys.stderr.write("\n")
                sys.stderr.flush()
            warnings.warn(f"{e} after {len(results)} of {len(units)} units; power is based on the completed units.")
        else:
            if reporter is not None:
                reporter.finish()

        self._last_results = results
        self._last_seed = runner.seed
        return results, cancelled, runner.seed

    def _warn_failures(self, curve: PowerCurve):
        for point in curve.points:
            if point.n_failed:
                warnings.warn(
                    f"{point.n_failed}/{point.n_total} model fits failed at n={point.sample_size} "
                    f"({point.n_failed / point.n_total:.1%}); they are excluded from the power estimate."
                )

    def find_power(
        self,
        sample_size: int,
        print_results: bool = True,
        return_results: bool = False,
        verbose: bool = False,
        progress_callback=None,
        cancel_check: Optional[Callable[[], bool]] = None,
        timeout: Optional[float] = None,
    ):
        """Estimate power of the interaction test at one sample size.

        Args:
            sample_size: Subjects per group.
            print_results: Whether to print results.
            return_results: Return the results dict.
            verbose: Report fit failures (warnings and failure reasons).
            progress_callback: ``None`` (auto ``PrintReporter`` when
                printing), ``False`` (off), or a ``(current, total)`` callable.
            cancel_check: Optional callable returning ``True`` to stop.
            timeout: Optional wall-clock limit in seconds.

        Returns:
            dict or None: The results dictionary if *return_results*.
        """
        result = _validate_sample_size(sample_size)
        result.print_warnings()
        result.raise_if_invalid()

        results, cancelled, seed = self._run_grid([sample_size], print_results, progress_callback, cancel_check, timeout)
        curve = aggregate_power(results, self.alpha)
        if verbose:
            self._warn_failures(curve)

        output = build_power_result(
            groups=self.groups,
            times=self.times,
            sample_size=sample_size,
            alpha=self.alpha,
            n_replications=self.n_replications,
            target_power=self.power,
            parallel=self.n_cores if self.parallel else False,
            seed=seed,
            curve=curve,
            cancelled=cancelled,
            reasons=failure_reasons(results) if verbose else None,
        )

        if print_results:
            print(f"\n{'=' * 80}")
            print("POWER ANALYSIS RESULTS")
            print(f"{'=' * 80}")
            print(_format_results("power", output))

        return output if return_results else None

    def find_sample_size(
        self,
        from_size: int = 30,
        to_size: int = 200,
        by: int = 10,
        print_results: bool = True,
        summary: str = "short",
        return_results: bool = False,
        verbose: bool = False,
        progress_callback=None,
        cancel_check: Optional[Callable[[], bool]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Estimate the power curve over a grid of sample sizes.

        Args:
            from_size: Smallest sample size per group to test
            to_size: Largest sample size per group to test
            by: Step between sample sizes
            print_results: Whether to print results
            summary: Output detail level (``"short"`` or ``"long"``)
            return_results: Return results dict
            verbose: Report fit failures (warnings and failure reasons)
            progress_callback: ``None`` (auto ``PrintReporter`` when
                printing), ``False`` (off), or a ``(current, total)`` callable.
            cancel_check: Optional callable returning ``True`` to stop
                dispatching new units.
            timeout: Optional wall-clock limit in seconds.

        Returns:
            dict or None: If *return_results* is ``True``, a dictionary with
            ``"model"`` (run settings) and ``"results"`` (power per sample
            size, first sample size reaching the target power, failure
            counts and the ``PowerCurve``).
        """
        validation_result = _validate_sample_size_range(from_size, to_size, by)
        validation_result.print_warnings()
        validation_result.raise_if_invalid()

        sample_sizes = sample_size_range(from_size, to_size, by)
        results, cancelled, seed = self._run_grid(sample_sizes, print_results, progress_callback, cancel_check, timeout)
        curve = aggregate_power(results, self.alpha)
        if verbose:
            self._warn_failures(curve)

        output = build_sample_size_result(
            groups=self.groups,
            times=self.times,
            sample_sizes=sample_sizes,
            alpha=self.alpha,
            n_replications=self.n_replications,
            target_power=self.power,
            parallel=self.n_cores if self.parallel else False,
            seed=seed,
            curve=curve,
            n_units_planned=len(sample_sizes) * self.n_replications,
            cancelled=cancelled,
            reasons=failure_reasons(results) if verbose else None,
        )

        if print_results:
            print(f"\n{'=' * 80}")
            print("SAMPLE SIZE ANALYSIS RESULTS")
            print(f"{'=' * 80}")
            print(_format_results("sample_size", output, summary))

        return output if return_results else None

    def power_curve(self, alpha: Optional[float] = None) -> PowerCurve:
        """Re-aggregate the most recent run, optionally at a different alpha."""
        if alpha is None:
            alpha = self.alpha
        else:
            _validate_alpha(alpha).raise_if_invalid()
        if not self._last_results:
            raise RuntimeError("No simulation results yet. Run find_power() or find_sample_size() first.")
        return aggregate_power(self._last_results, alpha)

    def __repr__(self):
        return (
            f"RMPower(groups={self.groups}, times={self.times}, means={self.means}, "
            f"sds={self.sds}, support={self.lower}..{self.upper})"
        )
