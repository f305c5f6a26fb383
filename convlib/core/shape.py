"""Shape and region data structures."""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import RegionError, ShapeMismatchError

__all__ = ["Shape", "Region", "ShapeLike"]


@dataclass(frozen=True)
class Shape:
    """Immutable list of dimensions.

    Attributes:
        dims: Length of each axis (all strictly positive).

    Example:
        ```python
        shape = Shape.of(64, 32)
        shape.rank    # 2
        shape.number  # 2048
        ```
    """

    dims: Tuple[int, ...]

    def __post_init__(self) -> None:
        """Validate and normalize dimensions."""
        dims = tuple(int(d) for d in self.dims)
        if len(dims) == 0:
            raise ValueError("Shape must have at least one dimension")
        for k, d in enumerate(dims):
            if d <= 0:
                raise ValueError(f"Dimension {k} must be positive, got {d}")
        object.__setattr__(self, "dims", dims)

    @classmethod
    def of(cls, *args: Union[int, Sequence[int], "Shape"]) -> "Shape":
        """Build a shape from ints, a sequence of ints or another Shape."""
        if len(args) == 1:
            arg = args[0]
            if isinstance(arg, Shape):
                return arg
            if isinstance(arg, (int, np.integer)):
                return cls((int(arg),))
            return cls(tuple(arg))
        return cls(tuple(args))

    @property
    def rank(self) -> int:
        """Number of dimensions."""
        return len(self.dims)

    @property
    def number(self) -> int:
        """Number of elements (product of dimensions)."""
        return int(np.prod(self.dims, dtype=np.int64))

    def dimension(self, axis: int) -> int:
        return self.dims[axis]

    def __len__(self) -> int:
        return len(self.dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self.dims)

    def __getitem__(self, axis: int) -> int:
        return self.dims[axis]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self.dims == other.dims
        if isinstance(other, tuple):
            return self.dims == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.dims)

    def __str__(self) -> str:
        return "x".join(str(d) for d in self.dims)


ShapeLike = Union[Shape, Sequence[int], int]


@dataclass(frozen=True)
class Region:
    """Axis-aligned sub-region of an outer shape.

    Attributes:
        shape: Dimensions of the region.
        offset: Position of the first element of the region in the outer
            array, one index per axis.
    """

    shape: Shape
    offset: Tuple[int, ...]

    @classmethod
    def inside(
        cls,
        outer: ShapeLike,
        shape: Optional[ShapeLike] = None,
        offset: Optional[Sequence[int]] = None,
    ) -> "Region":
        """Build and validate a region lying inside ``outer``.

        Args:
            outer: Dimensions of the enclosing array.
            shape: Dimensions of the region. If None, the region is the
                whole outer array.
            offset: Position of the region. If None, the region is centered:
                ``outer//2 - shape//2`` along each axis.

        Raises:
            ShapeMismatchError: If ranks differ.
            RegionError: If the region does not fit inside ``outer``.
        """
        outer = Shape.of(outer)
        shape = outer if shape is None else Shape.of(shape)
        if shape.rank != outer.rank:
            raise ShapeMismatchError(
                f"Region rank ({shape.rank}) must match outer rank ({outer.rank})"
            )
        if offset is None:
            offset = tuple(n // 2 - m // 2 for n, m in zip(outer, shape))
        else:
            offset = tuple(int(o) for o in offset)
            if len(offset) != outer.rank:
                raise ShapeMismatchError(
                    f"Expected {outer.rank} offset(s), got {len(offset)}"
                )
        for k, (n, m, o) in enumerate(zip(outer, shape, offset)):
            if m > n:
                raise RegionError(
                    f"Region dimension {m} exceeds outer dimension {n} along axis {k}"
                )
            if o < 0 or o + m > n:
                raise RegionError(
                    f"Region [{o}, {o + m}) out of bounds [0, {n}) along axis {k}"
                )
        return cls(shape=shape, offset=offset)

    @property
    def slices(self) -> Tuple[slice, ...]:
        """Index expression selecting the region in the outer array."""
        return tuple(slice(o, o + m) for o, m in zip(self.offset, self.shape))

    def is_full(self, outer: ShapeLike) -> bool:
        """Whether the region covers the whole outer array."""
        return Shape.of(outer) == self.shape and not any(self.offset)
