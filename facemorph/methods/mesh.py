# Author: RD7
# Purpose: Delaunay mesh construction and triangle index resolution
# Created: 2025-10-10

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from scipy.spatial import Delaunay, QhullError  # type: ignore


__all__ = [
    "TriangleMesh",
    "triangulate",
    "index_triangles",
    "triangle_points",
    "mesh_edges",
]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TriangleMesh:
    """Delaunay topology over the exact coordinates it was built from."""

    triangles: np.ndarray  # shape (M, 3), dtype=int
    points: np.ndarray     # shape (N, 2), dtype=float32

    def __post_init__(self) -> None:
        if self.triangles.ndim != 2 or self.triangles.shape[1] != 3:
            raise ValueError("triangles must be an (M, 3) integer array")
        if self.points.ndim != 2 or self.points.shape[1] != 2:
            raise ValueError("points must be an (N, 2) array of coordinates")

    def __len__(self) -> int:
        return int(self.triangles.shape[0])

    def vertices(self) -> np.ndarray:
        """Triangle corner coordinates, shape (M, 3, 2)."""
        return self.points[self.triangles]


def _empty_mesh(points: np.ndarray) -> TriangleMesh:
    return TriangleMesh(triangles=np.zeros((0, 3), dtype=np.int32), points=points)


def triangulate(
    unique_points: Sequence[Sequence[float]],
    bounds: tuple[int, int],
) -> TriangleMesh:
    """Construct a 2D Delaunay triangulation over *unique_points*.

    Parameters
    ----------
    unique_points:
        Deduplicated (x, y) pixel coordinates.
    bounds:
        Frame (width, height); triangles with a corner outside it are dropped.

    A flat (collinear) point set cannot be triangulated; it yields an empty
    mesh rather than an error so callers decide how to handle it.
    """

    pts = np.asarray(unique_points, dtype=np.float32)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError("points must be an (N, 2) array of coordinates")
    width, height = bounds
    if width <= 0 or height <= 0:
        raise ValueError("bounds must be (width, height) with positive values")
    if len(pts) < 3:
        logger.warning("cannot triangulate %d points", len(pts))
        return _empty_mesh(pts)

    try:
        tri = Delaunay(pts)
    except QhullError as exc:
        logger.warning("Delaunay triangulation failed for %d points (flat input?)", len(pts))
        logger.debug("qhull: %s", exc)
        return _empty_mesh(pts)

    triangles = np.asarray(tri.simplices, dtype=np.int32)
    corners = pts[triangles]
    inside = (
        (corners[..., 0] >= 0)
        & (corners[..., 0] < width)
        & (corners[..., 1] >= 0)
        & (corners[..., 1] < height)
    ).all(axis=1)
    if not inside.all():
        logger.debug("dropped %d triangles outside %dx%d", int((~inside).sum()), width, height)
    return TriangleMesh(triangles=triangles[inside], points=pts)


def index_triangles(mesh: TriangleMesh, original_points: Sequence[Sequence[float]]) -> np.ndarray:
    """Resolve mesh triangles to indices into *original_points*.

    Coordinates are matched exactly; for duplicated coordinates the first
    occurrence wins. A triangle is discarded if a corner has no match or if
    two corners resolve to the same index.

    Returns
    -------
    np.ndarray
        (K, 3) int32 indices, in mesh order.
    """

    original = np.asarray(original_points, dtype=np.float32)
    lookup: dict[tuple[float, float], int] = {}
    for idx, (x, y) in enumerate(original.tolist()):
        lookup.setdefault((x, y), idx)

    resolved: list[tuple[int, int, int]] = []
    for corners in mesh.vertices().tolist():
        found = [lookup.get((x, y)) for x, y in corners]
        if None in found or len(set(found)) != 3:
            continue
        resolved.append((found[0], found[1], found[2]))

    dropped = len(mesh) - len(resolved)
    if dropped:
        logger.debug("discarded %d triangles with unmatched corners", dropped)
    if not resolved:
        return np.zeros((0, 3), dtype=np.int32)
    return np.asarray(resolved, dtype=np.int32)


def triangle_points(indices: np.ndarray, points: Sequence[Sequence[float]]) -> np.ndarray:
    """Corner coordinates for each index triple, shape (K, 3, 2)."""

    pts = np.asarray(points, dtype=np.float32)
    idx = np.asarray(indices, dtype=np.int32).reshape(-1, 3)
    return pts[idx]


def mesh_edges(mesh: TriangleMesh) -> np.ndarray:
    """Unique undirected edges of *mesh* as coordinate pairs, shape (E, 2, 2)."""

    if len(mesh) == 0:
        return np.zeros((0, 2, 2), dtype=np.float32)
    tris = mesh.triangles
    pairs = np.concatenate([tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]])
    pairs = np.unique(np.sort(pairs, axis=1), axis=0)
    return mesh.points[pairs]
