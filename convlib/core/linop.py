"""Linear operator interface.

A linear operator maps arrays of its input shape to arrays of its output
shape and knows how to apply its adjoint. Operators implemented as
forward/adjoint pairs must satisfy <Lx, y> = <x, L*y>.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import numpy as np

from .errors import ShapeMismatchError, UnsupportedJobError
from .shape import Shape

__all__ = ["Job", "LinearOperator"]


class Job(Enum):
    """Which operator to apply.

    Only the direct operator and its adjoint exist. Inverting a convolution
    whose MTF may contain (near) zeros is numerically unsound and is not
    offered.
    """

    DIRECT = "direct"
    ADJOINT = "adjoint"

    @classmethod
    def parse(cls, job) -> "Job":
        """Convert a job name or boolean ``adjoint`` flag to a Job."""
        if isinstance(job, Job):
            return job
        if isinstance(job, bool):
            return cls.ADJOINT if job else cls.DIRECT
        if isinstance(job, str):
            try:
                return cls(job.lower())
            except ValueError:
                pass
        raise UnsupportedJobError(
            f"Unsupported operator job {job!r}: only direct and adjoint "
            f"applications are implemented (no inverse convolution)"
        )


class LinearOperator(ABC):
    """Abstract linear operator between two shaped spaces.

    Subclasses implement ``_apply`` for both jobs; ``apply`` checks the
    arguments and allocates the destination when needed.
    """

    @property
    @abstractmethod
    def input_shape(self) -> Shape:
        """Shape of the arrays the direct operator accepts."""

    @property
    @abstractmethod
    def output_shape(self) -> Shape:
        """Shape of the arrays the direct operator produces."""

    @property
    @abstractmethod
    def dtype(self) -> np.dtype:
        """Floating-point type of the operator."""

    @abstractmethod
    def _apply(self, dst: np.ndarray, src: np.ndarray, job: Job) -> None:
        """Store the result of applying the operator to ``src`` into ``dst``."""

    def apply(
        self,
        src: np.ndarray,
        job: Job = Job.DIRECT,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Apply the direct operator or its adjoint.

        Args:
            src: Source array, of the input shape for the direct operator and
                of the output shape for the adjoint.
            job: ``Job.DIRECT`` or ``Job.ADJOINT`` (``"direct"``, ``"adjoint"``
                and booleans are accepted too).
            out: Optional destination array.

        Returns:
            The destination array.

        Raises:
            UnsupportedJobError: For any other job.
            ShapeMismatchError: If ``src`` or ``out`` has the wrong shape.
        """
        job = Job.parse(job)
        if job is Job.DIRECT:
            src_shape, dst_shape = self.input_shape, self.output_shape
        else:
            src_shape, dst_shape = self.output_shape, self.input_shape
        src = np.asarray(src)
        if src.shape != src_shape.dims:
            raise ShapeMismatchError(
                f"Source has shape {src.shape}, expected {src_shape.dims}"
            )
        if out is None:
            out = np.empty(dst_shape.dims, dtype=self.dtype)
        elif out.shape != dst_shape.dims:
            raise ShapeMismatchError(
                f"Destination has shape {out.shape}, expected {dst_shape.dims}"
            )
        self._apply(out, src, job)
        return out

    def __call__(self, src: np.ndarray) -> np.ndarray:
        return self.apply(src, Job.DIRECT)

    def adjoint(self, src: np.ndarray) -> np.ndarray:
        """Apply the adjoint operator."""
        return self.apply(src, Job.ADJOINT)
