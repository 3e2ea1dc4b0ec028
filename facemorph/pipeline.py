# Author: RD7
# Purpose: Per-frame morph pipeline
# Created: 2025-10-03

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from facemorph.config import Config
from facemorph.errors import DegenerateInputError, DimensionMismatchError, LengthMismatchError, MorphError
from facemorph.methods.blend import blend_images, derive_mask, sharpen_strength, to_uint8, unsharp_mask
from facemorph.methods.homography import blend_all, solve_all
from facemorph.methods.mesh import TriangleMesh, index_triangles, triangle_points, triangulate
from facemorph.methods.warp import build_warp_map, rasterize_triangles, remap_image
from facemorph.overlay import draw_morph_analysis
from facemorph.points import clip_points, interpolate, sanitize

__all__ = ["FrameResult", "MorphPipeline", "morph_frame"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FrameResult:
    """Output of one morph frame."""

    image: np.ndarray               # uint8, same shape as the inputs
    points: np.ndarray              # intermediate points (clipped), shape (N, 2)
    triangles: np.ndarray           # (K, 3) indices used for the warp
    analysis: Optional[np.ndarray] = None


def _check_ratio(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")
    return value


def _sanitize_set(label: str, points: np.ndarray, width: int, height: int) -> np.ndarray:
    try:
        return sanitize(points, width, height)
    except DegenerateInputError as exc:
        raise DegenerateInputError(f"{label}: {exc.message}") from exc


class MorphPipeline:
    """Orchestrates sanitizing, meshing, warping and blending for one frame at a time."""

    def __init__(self, cfg: Config | None = None):
        self.cfg = cfg or Config()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def morph(
        self,
        image1: np.ndarray,
        image2: np.ndarray,
        guidance: np.ndarray,
        points1: Sequence[Sequence[float]],
        points2: Sequence[Sequence[float]],
        shape_ratio: float,
        mask_ratio: float,
        previous: Optional[np.ndarray] = None,
        frame_index: Optional[int] = None,
    ) -> FrameResult:
        """Morph *image1* toward *image2*.

        Parameters
        ----------
        image1, image2 : np.ndarray
            Source frames (H, W) or (H, W, C) of identical shape.
        guidance : np.ndarray
            Structure image (H, W[, C]) shaping the blend mask.
        points1, points2 : Sequence[(x, y)]
            Matched landmarks in pixel coordinates.
        shape_ratio, mask_ratio : float
            Geometric and photometric blend factors in [0, 1].
        previous : np.ndarray | None
            Previous output frame, only used for the analysis overlay.
        frame_index : int | None
            Tagged onto any MorphError raised for this frame.
        """

        try:
            return self._morph(
                image1, image2, guidance, points1, points2,
                _check_ratio("shape_ratio", shape_ratio),
                _check_ratio("mask_ratio", mask_ratio),
                previous,
            )
        except MorphError as exc:
            if exc.frame_index is None:
                exc.frame_index = frame_index
            raise

    # ------------------------------------------------------------------ #
    # Stages
    # ------------------------------------------------------------------ #
    def _morph(self, image1, image2, guidance, points1, points2, shape_ratio, mask_ratio, previous) -> FrameResult:
        self._check_inputs(image1, image2, guidance)
        height, width = image1.shape[:2]
        bounds = (width, height)

        src1 = clip_points(points1, width, height)
        src2 = clip_points(points2, width, height)
        if len(src1) != len(src2):
            raise LengthMismatchError(len(src1), len(src2))

        mesh1 = triangulate(_sanitize_set("points1", src1, width, height), bounds)
        mesh2 = triangulate(_sanitize_set("points2", src2, width, height), bounds)

        morphed = clip_points(interpolate(src1, src2, shape_ratio), width, height)
        mesh_morph = triangulate(_sanitize_set("intermediate points", morphed, width, height), bounds)

        indices = index_triangles(mesh_morph, morphed)
        if len(indices) == 0:
            raise DegenerateInputError("no usable triangles in the intermediate mesh")
        logger.debug("morphing %d points over %d triangles", len(morphed), len(indices))

        tri1 = triangle_points(indices, src1)
        tri2 = triangle_points(indices, src2)
        tri_morph = triangle_points(indices, morphed)

        id_map = rasterize_triangles(tri_morph, bounds)

        lenient = self.cfg.morph.lenient
        homographies = solve_all(tri1, tri2, lenient=lenient)
        morph_hom1, morph_hom2 = blend_all(homographies, shape_ratio, lenient=lenient)

        warped1, warped2 = self._warp_pair(image1, image2, id_map, morph_hom1, morph_hom2)

        mask = derive_mask(guidance, mask_ratio)
        blended = blend_images(warped1, warped2, mask, self.cfg.morph.pyramid_levels)

        amount = sharpen_strength(mask_ratio)
        sharpened = unsharp_mask(blended, self.cfg.sharpen.sigma, amount, self.cfg.sharpen.threshold)
        output = to_uint8(sharpened)

        analysis = None
        if self.cfg.debug.enabled("mesh") or self.cfg.debug.enabled("points"):
            analysis = draw_morph_analysis(self.cfg, output, previous, mesh1, mesh2, mesh_morph)

        return FrameResult(image=output, points=morphed, triangles=indices, analysis=analysis)

    def _warp_pair(self, image1, image2, id_map, morph_hom1, morph_hom2) -> tuple[np.ndarray, np.ndarray]:
        lenient = self.cfg.morph.lenient
        border = self.cfg.morph.border_mode

        def _warp(image, homographies):
            warp_map = build_warp_map(id_map, homographies, lenient=lenient)
            return remap_image(image, warp_map, border)

        if self.cfg.morph.workers > 1:
            with ThreadPoolExecutor(max_workers=2) as executor:
                first = executor.submit(_warp, image1, morph_hom1)
                second = executor.submit(_warp, image2, morph_hom2)
                return first.result(), second.result()
        return _warp(image1, morph_hom1), _warp(image2, morph_hom2)

    @staticmethod
    def _check_inputs(image1: np.ndarray, image2: np.ndarray, guidance: np.ndarray) -> None:
        if image1 is None or image2 is None or guidance is None:
            raise ValueError("image1, image2 and guidance are required")
        if image1.ndim not in (2, 3) or image1.shape[0] == 0 or image1.shape[1] == 0:
            raise ValueError("images must be non-empty (H, W) or (H, W, C) arrays")
        if image1.shape != image2.shape:
            raise DimensionMismatchError(f"image sizes differ: {image1.shape} != {image2.shape}")
        if guidance.shape[:2] != image1.shape[:2]:
            raise DimensionMismatchError(
                f"guidance size {guidance.shape[:2]} does not match image size {image1.shape[:2]}"
            )


def morph_frame(
    image1: np.ndarray,
    image2: np.ndarray,
    guidance: np.ndarray,
    points1: Sequence[Sequence[float]],
    points2: Sequence[Sequence[float]],
    shape_ratio: float,
    mask_ratio: float,
    cfg: Config | None = None,
    previous: Optional[np.ndarray] = None,
    frame_index: Optional[int] = None,
) -> FrameResult:
    """Morph a single frame with a one-off :class:`MorphPipeline`."""
    return MorphPipeline(cfg).morph(
        image1, image2, guidance, points1, points2,
        shape_ratio, mask_ratio,
        previous=previous,
        frame_index=frame_index,
    )
