"""
Shared test configuration constants.

All test files should import from this module to ensure consistency
across the test suite.
"""

SEED = 2137
"""Base seed for reproducible runs."""

# Replication ladder
N_REPS_CHECK = 10
"""Smoke tests: just verify no crash, structure, API contract."""

N_REPS_ORDERING = 50
"""Ordering tests: power rises with sample size / effect."""

N_REPS_STANDARD = 200
"""Calibration tests: Type I error close to alpha."""

# Reference design: 2 groups x 2 time points, 5-point drop in treatment/post
GROUPS = ["control", "treatment"]
TIMES = 2
MEANS_EFFECT = [50, 50, 50, 45]
MEANS_NULL = [50, 50, 50, 50]
SD = 10

MC_Z = 3.5
"""Z-score for Monte Carlo margin of error calculations."""

ALLOWED_BIAS = 1
"""Maximum allowed bias (in percentage points) for MC power estimates."""
