# Author: RD7
# Purpose: Per-triangle homography solving and ratio blending
# Created: 2025-11-03

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from facemorph.errors import LengthMismatchError, SingularTriangleError

__all__ = [
    "SINGULAR_EPS",
    "to_homogeneous",
    "solve_triangle",
    "solve_all",
    "blend_homography",
    "blend_all",
]

logger = logging.getLogger(__name__)

# |det| below this is treated as a flat (non-invertible) triangle
SINGULAR_EPS = 1e-9

_IDENTITY = np.eye(3, dtype=np.float64)


def to_homogeneous(points: Sequence[Sequence[float]]) -> np.ndarray:
    """Stack (x, y) points as homogeneous columns, shape (3, n)."""

    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError("points must be an (n, 2) array of coordinates")
    return np.vstack([pts.T, np.ones(len(pts), dtype=np.float64)])


def _inverse(mat: np.ndarray, reason: str) -> np.ndarray:
    if abs(np.linalg.det(mat)) < SINGULAR_EPS:
        raise SingularTriangleError(None, reason)
    try:
        return np.linalg.inv(mat)
    except np.linalg.LinAlgError as exc:
        raise SingularTriangleError(None, reason) from exc


def solve_triangle(src_tri, dst_tri) -> np.ndarray:
    """Homography taking the *src_tri* corners onto the *dst_tri* corners.

    ``H = Hom(dst) @ inv(Hom(src))`` where ``Hom`` stacks the three corners
    as homogeneous columns.
    """

    src_h = to_homogeneous(src_tri)
    dst_h = to_homogeneous(dst_tri)
    if src_h.shape != (3, 3) or dst_h.shape != (3, 3):
        raise ValueError("triangles must have exactly three (x, y) corners")
    return dst_h @ _inverse(src_h, "source corners are collinear")


def solve_all(
    src_tris: Sequence,
    dst_tris: Sequence,
    lenient: bool = False,
) -> list[Optional[np.ndarray]]:
    """Solve one homography per triangle pair, preserving order.

    In lenient mode a degenerate triangle yields ``None`` instead of raising.
    """

    if len(src_tris) != len(dst_tris):
        raise LengthMismatchError(len(src_tris), len(dst_tris))

    homographies: list[Optional[np.ndarray]] = []
    for idx, (src, dst) in enumerate(zip(src_tris, dst_tris)):
        try:
            homographies.append(solve_triangle(src, dst))
        except SingularTriangleError as exc:
            if not lenient:
                raise SingularTriangleError(idx, exc.reason) from exc
            logger.warning("skipping triangle %d: %s", idx, exc.reason)
            homographies.append(None)
    return homographies


def blend_homography(hom: np.ndarray, ratio: float) -> tuple[np.ndarray, np.ndarray]:
    """Interpolate *hom* and its inverse toward identity.

    Returns ``(H1, H2)`` with ``H1 = I*(1-r) + H*r`` (image A toward the
    intermediate mesh) and ``H2 = I*r + inv(H)*(1-r)`` (image B toward it).
    """

    h = np.asarray(hom, dtype=np.float64)
    if h.shape != (3, 3):
        raise ValueError("homography must be a 3x3 matrix")
    inv_h = _inverse(h, "homography is not invertible")
    r = float(ratio)
    morph1 = _IDENTITY * (1.0 - r) + h * r
    morph2 = _IDENTITY * r + inv_h * (1.0 - r)
    return morph1, morph2


def blend_all(
    homographies: Sequence[Optional[np.ndarray]],
    ratio: float,
    lenient: bool = False,
) -> tuple[list[Optional[np.ndarray]], list[Optional[np.ndarray]]]:
    """Blend every homography by *ratio*; ``None`` entries stay ``None``."""

    morph1: list[Optional[np.ndarray]] = []
    morph2: list[Optional[np.ndarray]] = []
    for idx, hom in enumerate(homographies):
        if hom is None:
            morph1.append(None)
            morph2.append(None)
            continue
        try:
            h1, h2 = blend_homography(hom, ratio)
        except SingularTriangleError as exc:
            if not lenient:
                raise SingularTriangleError(idx, exc.reason) from exc
            logger.warning("skipping triangle %d: %s", idx, exc.reason)
            h1 = h2 = None
        morph1.append(h1)
        morph2.append(h2)
    return morph1, morph2
