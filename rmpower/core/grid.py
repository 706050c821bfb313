"""
Simulation grid for RMPower.

The grid is the Cartesian product of the sample sizes under test and the
replication indices 1..R. Building it involves no randomness; each unit
gets its own seed derived from the base seed and its grid coordinates,
so units can run in any order or process and still reproduce the run.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True, order=True)
class GridUnit:
    """One simulation instance: a sample size (per group) and a replication index."""

    sample_size: int
    replication: int


def sample_size_range(from_size: int, to_size: int, by: int) -> List[int]:
    """Inclusive linear sequence ``from_size, from_size + by, ... <= to_size``."""
    if by < 1:
        raise ValueError(f"Step must be >= 1, got {by}")
    if to_size < from_size:
        raise ValueError(f"to_size ({to_size}) must be >= from_size ({from_size})")
    return list(range(from_size, to_size + 1, by))


def build_grid(sample_sizes: Sequence[int], n_replications: int) -> Tuple[GridUnit, ...]:
    """Enumerate every (sample size, replication) pair.

    Units are ordered by sample size (in the given order), then by
    replication 1..R.

    Raises:
        ValueError: On an empty or non-positive sample-size sequence or a
            replication count below 1.
    """
    sample_sizes = [int(s) for s in sample_sizes]
    if not sample_sizes:
        raise ValueError("At least one sample size is required")
    if any(s < 1 for s in sample_sizes):
        raise ValueError(f"Sample sizes must be >= 1, got {sample_sizes}")
    if len(set(sample_sizes)) != len(sample_sizes):
        raise ValueError(f"Sample sizes must be unique, got {sample_sizes}")
    if n_replications < 1:
        raise ValueError(f"Number of replications must be >= 1, got {n_replications}")

    return tuple(GridUnit(ss, rep) for ss in sample_sizes for rep in range(1, n_replications + 1))


def unit_seed_sequence(base_seed: int, unit: GridUnit) -> np.random.SeedSequence:
    """Independent seed for one unit, keyed by the base seed and grid coordinates."""
    return np.random.SeedSequence(entropy=base_seed, spawn_key=(unit.sample_size, unit.replication))


def unit_rng(base_seed: int, unit: GridUnit) -> np.random.Generator:
    return np.random.default_rng(unit_seed_sequence(base_seed, unit))
