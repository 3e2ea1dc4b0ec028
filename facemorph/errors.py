# Author: RD7
# Purpose: Error types raised while morphing a frame
# Created: 2025-11-02

from __future__ import annotations

from typing import Sequence

__all__ = [
    "MorphError",
    "OutOfBoundsError",
    "DegenerateInputError",
    "LengthMismatchError",
    "SingularTriangleError",
    "DimensionMismatchError",
]


class MorphError(Exception):
    """Base class for failures that abort (or skip part of) a morph frame."""

    def __init__(self, message: str, *, frame_index: int | None = None):
        super().__init__(message)
        self.message = message
        self.frame_index = frame_index

    def __str__(self) -> str:
        if self.frame_index is None:
            return self.message
        return f"frame {self.frame_index}: {self.message}"


class OutOfBoundsError(MorphError):
    """A point lies outside the frame after clipping."""

    def __init__(
        self,
        point_index: int,
        point: Sequence[float],
        width: int,
        height: int,
        *,
        frame_index: int | None = None,
    ):
        x, y = float(point[0]), float(point[1])
        super().__init__(
            f"point {point_index} at ({x:g}, {y:g}) is outside {width}x{height}",
            frame_index=frame_index,
        )
        self.point_index = point_index
        self.point = (x, y)


class DegenerateInputError(MorphError):
    """Too few usable points or triangles to build a mesh."""


class LengthMismatchError(MorphError):
    """Two correspondence sets differ in length."""

    def __init__(self, expected: int, actual: int, *, frame_index: int | None = None):
        super().__init__(
            f"correspondence length mismatch: {expected} != {actual}",
            frame_index=frame_index,
        )
        self.expected = expected
        self.actual = actual


class SingularTriangleError(MorphError):
    """A triangle's homography (or its homogeneous matrix) cannot be inverted."""

    def __init__(
        self,
        triangle_index: int | None,
        reason: str = "degenerate triangle",
        *,
        frame_index: int | None = None,
    ):
        where = "triangle" if triangle_index is None else f"triangle {triangle_index}"
        super().__init__(f"{where}: {reason}", frame_index=frame_index)
        self.triangle_index = triangle_index
        self.reason = reason


class DimensionMismatchError(MorphError):
    """Images, guidance or mask do not share the same dimensions."""
