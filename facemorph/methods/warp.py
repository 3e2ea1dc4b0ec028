# Author: RD7
# Purpose: Triangle-ID rasterization and dense inverse warp maps
# Created: 2025-10-10

from __future__ import annotations

import logging
from typing import Optional, Sequence

import cv2
import numpy as np

from facemorph.errors import SingularTriangleError

__all__ = [
    "WARP_EPS",
    "BORDER_MODES",
    "rasterize_triangles",
    "build_warp_map",
    "remap_image",
]

logger = logging.getLogger(__name__)

# substituted for a zero homogeneous denominator
WARP_EPS = 1e-5

BORDER_MODES = {
    "constant": cv2.BORDER_CONSTANT,
    "replicate": cv2.BORDER_REPLICATE,
    "reflect": cv2.BORDER_REFLECT,
    "reflect101": cv2.BORDER_REFLECT_101,
}


def rasterize_triangles(triangles: np.ndarray, size: tuple[int, int]) -> np.ndarray:
    """Paint a triangle-ID map of *size* (width, height).

    Each triangle ``k`` (corners rounded to whole pixels) is filled with
    ``k + 1`` in input order, so later triangles win on shared edges.
    Uncovered pixels stay 0.
    """

    width, height = size
    if width <= 0 or height <= 0:
        raise ValueError("size must be (width, height) with positive values")

    tris = np.asarray(triangles, dtype=np.float32).reshape(-1, 3, 2)
    id_map = np.zeros((height, width), dtype=np.int32)
    for idx, tri in enumerate(tris):
        poly = np.rint(tri).astype(np.int32)
        cv2.fillConvexPoly(id_map, poly, int(idx + 1))
    return id_map


def _inverse_table(
    homographies: Sequence[Optional[np.ndarray]],
    lenient: bool,
) -> np.ndarray:
    """Row 0 is identity (uncovered pixels); row k + 1 is inv(H_k), flattened."""

    table = np.tile(np.eye(3, dtype=np.float64).reshape(1, 9), (len(homographies) + 1, 1))
    for idx, hom in enumerate(homographies):
        if hom is None:
            continue
        try:
            table[idx + 1] = np.linalg.inv(np.asarray(hom, dtype=np.float64)).reshape(9)
        except np.linalg.LinAlgError as exc:
            if not lenient:
                raise SingularTriangleError(idx, "warp homography is not invertible") from exc
            logger.warning("triangle %d maps to identity: homography is not invertible", idx)
    return table


def build_warp_map(
    id_map: np.ndarray,
    homographies: Sequence[Optional[np.ndarray]],
    lenient: bool = False,
) -> tuple[np.ndarray, np.ndarray]:
    """Build the per-pixel source coordinates for an inverse warp.

    Parameters
    ----------
    id_map : np.ndarray
        (H, W) triangle-ID map from :func:`rasterize_triangles`.
    homographies : Sequence[np.ndarray | None]
        Forward transform per triangle (source -> intermediate). ``None``
        marks a skipped triangle whose pixels pass through unchanged.
    lenient : bool
        Map non-invertible transforms to identity instead of raising.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(map_x, map_y)`` float32 arrays for :func:`cv2.remap`.
    """

    ids = np.asarray(id_map)
    if ids.ndim != 2:
        raise ValueError("id_map must be a 2D integer array")
    if ids.size and (ids.min() < 0 or ids.max() > len(homographies)):
        raise ValueError(
            f"id_map references triangle {int(ids.max())} but only "
            f"{len(homographies)} homographies were given"
        )

    table = _inverse_table(homographies, lenient)
    height, width = ids.shape
    ys, xs = np.indices((height, width), dtype=np.float64)

    # one (H, W) plane per matrix entry
    def plane(k: int) -> np.ndarray:
        return table[:, k][ids]

    z = plane(6) * xs + plane(7) * ys + plane(8)
    z[z == 0] = WARP_EPS
    map_x = (plane(0) * xs + plane(1) * ys + plane(2)) / z
    map_y = (plane(3) * xs + plane(4) * ys + plane(5)) / z
    return map_x.astype(np.float32), map_y.astype(np.float32)


def remap_image(
    image: np.ndarray,
    warp_map: tuple[np.ndarray, np.ndarray],
    border_mode: str = "reflect101",
) -> np.ndarray:
    """Sample *image* at the warp-map coordinates with bilinear interpolation."""

    try:
        border = BORDER_MODES[border_mode]
    except KeyError:
        raise ValueError(f"Unknown border mode: {border_mode}") from None

    map_x, map_y = warp_map
    if map_x.shape != image.shape[:2] or map_y.shape != image.shape[:2]:
        raise ValueError("warp map must match the image size")
    return cv2.remap(image, map_x, map_y, interpolation=cv2.INTER_LINEAR, borderMode=border)
