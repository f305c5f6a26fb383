"""Differentiable cost functions.

Every cost implements ``evaluate(alpha, x)`` and
``compute_cost_and_gradient(alpha, x, gx=None, clear=True)``; the weighted
convolution data term lives in :mod:`convlib.conv`.
"""

from .base import DifferentiableCost
from .weighted_data import WeightedData
from .total_variation import HyperbolicTotalVariation
from .composite import CompositeCost
from .gradient_check import GradientChecker

__all__ = [
    "DifferentiableCost",
    "WeightedData",
    "HyperbolicTotalVariation",
    "CompositeCost",
    "GradientChecker",
]
