"""FFT-based convolution operators.

This module provides the convolution operator with its exact adjoint, the
MTF builder and the weighted least-squares convolution cost:

    y = H.x + noise

where H is the convolution by a PSF followed by the selection of the data
region in the object space.

Example:
    >>> import numpy as np
    >>> from convlib.conv import Convolution
    >>>
    >>> conv = Convolution((64, 64))
    >>> conv.set_psf(psf)            # PSF centered at (32, 32)
    >>> C, C_adj = conv.as_functions()
    >>> blurred = C(image)
"""

from .mtf import center_psf, build_mtf
from .convolution import Convolution
from .weighted import WeightedConvolutionCost

__all__ = [
    # MTF
    "center_psf",
    "build_mtf",
    # Operators
    "Convolution",
    # Costs
    "WeightedConvolutionCost",
]
