"""Statistical building blocks: outcome distributions, data generation, mixed models."""

from .data_generation import assemble_dataset, generate_cell, summarize_cells
from .distributions import (
    WEIGHT_FAMILIES,
    SkewNormalWeights,
    make_support,
    normal_weights,
    sample_discrete,
    uniform_weights,
)
from .mixed_models import FitResult, fit_interaction_model, interaction_terms

__all__ = [
    "assemble_dataset",
    "generate_cell",
    "summarize_cells",
    "WEIGHT_FAMILIES",
    "SkewNormalWeights",
    "make_support",
    "normal_weights",
    "sample_discrete",
    "uniform_weights",
    "FitResult",
    "fit_interaction_model",
    "interaction_terms",
]
