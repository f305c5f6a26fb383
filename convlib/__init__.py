"""convlib - FFT-based weighted convolution operators for inverse problems.

A library for modeling blurred data as the convolution of an object by a
point spread function (PSF), with exact adjoints and a weighted
least-squares cost suitable for iterative restoration.

The library is organized into five modules:

- **core**: shapes, data regions, the linear operator interface and errors
- **utils**: frequency transform adapter, PSF centering and padding helpers
- **conv**: MTF builder, convolution operator and weighted convolution cost
- **cost**: weighted data, total variation prior and cost combination
- **deconvolution**: bound-constrained regularized deconvolution (L-BFGS-B)

Example:
    >>> import numpy as np
    >>> from convlib import Convolution, WeightedConvolutionCost
    >>>
    >>> # Object space 256x256, data window 200x200 in its center
    >>> cost = WeightedConvolutionCost((256, 256), (200, 200))
    >>> cost.set_psf(psf)                     # PSF centered at (128, 128)
    >>> cost.set_weights_and_data(weights, data)
    >>> fx, gx = cost.compute_cost_and_gradient(1.0, x)
"""

__version__ = "0.1.0"

# =============================================================================
# Core - shapes, operators and errors
# =============================================================================
from .core import (
    Shape,
    Region,
    Job,
    LinearOperator,
    ConvolutionError,
    ShapeMismatchError,
    InvalidWeightError,
    NotInitializedError,
    RegionError,
    UnsupportedJobError,
)

# =============================================================================
# Utilities
# =============================================================================
from .utils import (
    FrequencyTransform,
    geometric_center,
    best_fft_shape,
    roll_to_origin,
    crop,
    zero_pad,
    pad_psf,
)

# =============================================================================
# Convolution operators and costs
# =============================================================================
from .conv import (
    center_psf,
    build_mtf,
    Convolution,
    WeightedConvolutionCost,
)
from .cost import (
    DifferentiableCost,
    WeightedData,
    HyperbolicTotalVariation,
    CompositeCost,
    GradientChecker,
)

# =============================================================================
# Deconvolution
# =============================================================================
from .deconvolution import (
    DeconvolutionConfig,
    DeconvolutionResult,
    solve_deconvolution,
)

__all__ = [
    "__version__",
    # Core
    "Shape",
    "Region",
    "Job",
    "LinearOperator",
    "ConvolutionError",
    "ShapeMismatchError",
    "InvalidWeightError",
    "NotInitializedError",
    "RegionError",
    "UnsupportedJobError",
    # Utilities
    "FrequencyTransform",
    "geometric_center",
    "best_fft_shape",
    "roll_to_origin",
    "crop",
    "zero_pad",
    "pad_psf",
    # Convolution
    "center_psf",
    "build_mtf",
    "Convolution",
    "WeightedConvolutionCost",
    # Costs
    "DifferentiableCost",
    "WeightedData",
    "HyperbolicTotalVariation",
    "CompositeCost",
    "GradientChecker",
    # Deconvolution
    "DeconvolutionConfig",
    "DeconvolutionResult",
    "solve_deconvolution",
]
