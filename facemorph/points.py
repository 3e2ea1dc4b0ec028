# Author: RD7
# Purpose: Landmark point sanitizing and correspondence interpolation
# Created: 2025-11-02

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from facemorph.errors import DegenerateInputError, LengthMismatchError, OutOfBoundsError

__all__ = [
    "as_point_set",
    "clip_points",
    "check_points",
    "make_unique",
    "sanitize",
    "interpolate",
]

logger = logging.getLogger(__name__)


def as_point_set(points: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Return *points* as a fresh (N, 2) float32 array."""

    pts = np.array(points, dtype=np.float32, copy=True)
    if pts.size == 0:
        return pts.reshape(0, 2)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError("points must be an (N, 2) array of coordinates")
    return pts


def _check_size(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError("frame size must be (width, height) with positive values")


def clip_points(points, width: int, height: int) -> np.ndarray:
    """Clamp every point into [0, width-1] x [0, height-1]. Points are never dropped."""

    _check_size(width, height)
    pts = as_point_set(points)
    np.clip(pts[:, 0], 0.0, float(width - 1), out=pts[:, 0])
    np.clip(pts[:, 1], 0.0, float(height - 1), out=pts[:, 1])
    return pts


def check_points(points, width: int, height: int) -> None:
    """Raise OutOfBoundsError for the first point outside the frame."""

    pts = as_point_set(points)
    inside = (
        (pts[:, 0] >= 0.0)
        & (pts[:, 0] <= width - 1)
        & (pts[:, 1] >= 0.0)
        & (pts[:, 1] <= height - 1)
    )
    if not np.all(inside):
        idx = int(np.flatnonzero(~inside)[0])
        raise OutOfBoundsError(idx, pts[idx], width, height)


def make_unique(points) -> np.ndarray:
    """Drop exact duplicate coordinates, keeping first-occurrence order."""

    pts = as_point_set(points)
    if len(pts) == 0:
        return pts
    _, first = np.unique(pts, axis=0, return_index=True)
    return pts[np.sort(first)]


def sanitize(points, width: int, height: int) -> np.ndarray:
    """Clip, validate and deduplicate *points* for triangulation.

    Parameters
    ----------
    points : (N, 2) array-like
        Pixel coordinates (x, y).
    width, height : int
        Frame size in pixels.

    Returns
    -------
    np.ndarray
        Unique in-bounds points, shape (M, 2), M >= 3.

    Raises
    ------
    DegenerateInputError
        If fewer than three unique points remain.
    """

    clipped = clip_points(points, width, height)
    check_points(clipped, width, height)
    unique = make_unique(clipped)
    if len(unique) < 3:
        raise DegenerateInputError(
            f"need at least 3 unique points to triangulate, got {len(unique)}"
        )
    if len(unique) != len(clipped):
        logger.debug("dropped %d duplicate points", len(clipped) - len(unique))
    return unique


def interpolate(a, b, ratio: float) -> np.ndarray:
    """Blend two corresponding point sets: ``(1 - ratio) * a + ratio * b``.

    The arithmetic runs in float64 and is rounded back to float32, so equal
    inputs and the 0/1 ratios reproduce their source points exactly.
    """

    pts_a = as_point_set(a)
    pts_b = as_point_set(b)
    if len(pts_a) != len(pts_b):
        raise LengthMismatchError(len(pts_a), len(pts_b))

    r = float(ratio)
    mixed = (1.0 - r) * pts_a.astype(np.float64) + r * pts_b.astype(np.float64)
    return mixed.astype(np.float32)
