"""
Core simulation components for RMPower.
"""

from .grid import GridUnit, build_grid, sample_size_range, unit_rng, unit_seed_sequence
from .results import (
    PowerCurve,
    PowerPoint,
    UnitResult,
    aggregate_power,
    build_power_result,
    build_sample_size_result,
    failure_reasons,
)
from .simulation import DesignConfig, SimulationRunner, run_unit

__all__ = [
    "GridUnit",
    "build_grid",
    "sample_size_range",
    "unit_rng",
    "unit_seed_sequence",
    "PowerCurve",
    "PowerPoint",
    "UnitResult",
    "aggregate_power",
    "build_power_result",
    "build_sample_size_result",
    "failure_reasons",
    "DesignConfig",
    "SimulationRunner",
    "run_unit",
]
