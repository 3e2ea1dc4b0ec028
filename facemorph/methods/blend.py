# Author: RD7
# Purpose: Multi-band (Laplacian pyramid) blending of warped frames
# Created: 2025-10-10

from __future__ import annotations

import logging
import math

import cv2
import numpy as np

from facemorph.errors import DimensionMismatchError

__all__ = [
    "LaplacianBlender",
    "blend_images",
    "derive_mask",
    "sharpen_strength",
    "to_float_image",
    "to_uint8",
    "unsharp_mask",
]

logger = logging.getLogger(__name__)


def to_float_image(image: np.ndarray) -> np.ndarray:
    """Return *image* as float32 in [0, 1] (uint8 is divided by 255)."""

    if image.dtype == np.uint8:
        return image.astype(np.float32) / 255.0
    return image.astype(np.float32, copy=True)


def to_uint8(image: np.ndarray) -> np.ndarray:
    return np.rint(np.clip(image, 0.0, 1.0) * 255.0).astype(np.uint8)


def derive_mask(guidance: np.ndarray, mask_ratio: float) -> np.ndarray:
    """Blend mask from a structure image and the global mask ratio.

    ``mask = clip((1 - r) - (1 - gray(guidance)) * r, 0, 1)``; the mask
    weights the first image, so ``r = 0`` keeps it entirely and ``r = 1``
    hands every pixel to the second one.
    """

    gray = to_float_image(guidance)
    if gray.ndim == 3:
        if gray.shape[2] == 1:
            gray = gray[..., 0]
        else:
            gray = cv2.cvtColor(np.ascontiguousarray(gray[..., :3]), cv2.COLOR_BGR2GRAY)
    elif gray.ndim != 2:
        raise ValueError("guidance must be a grayscale or BGR image")

    r = float(mask_ratio)
    inverted = 1.0 - gray
    mask = (1.0 - r) - inverted * r
    return np.clip(mask, 0.0, 1.0).astype(np.float32)


class LaplacianBlender:
    """Blend two images band by band through Laplacian pyramids.

    Parameters
    ----------
    left, right : np.ndarray
        Float32 images of identical shape (H, W) or (H, W, C).
    mask : np.ndarray
        (H, W) weights in [0, 1] for *left*; *right* gets ``1 - mask``.
    levels : int
        Requested pyramid depth; clamped so the coarsest level keeps at
        least one pixel on its short side.
    """

    def __init__(self, left: np.ndarray, right: np.ndarray, mask: np.ndarray, levels: int):
        if left.shape != right.shape:
            raise DimensionMismatchError(
                f"images differ in shape: {left.shape} != {right.shape}"
            )
        if mask.shape[:2] != left.shape[:2]:
            raise DimensionMismatchError(
                f"mask shape {mask.shape[:2]} does not match image shape {left.shape[:2]}"
            )
        if levels < 0:
            raise ValueError("levels must be non-negative")

        self.left = left.astype(np.float32, copy=False)
        self.right = right.astype(np.float32, copy=False)
        self.mask = self._expand_mask(mask.astype(np.float32, copy=False), left)
        self.levels = min(int(levels), self.max_levels(left.shape[:2]))
        if self.levels != levels:
            logger.debug("pyramid levels clamped from %d to %d", levels, self.levels)

    @staticmethod
    def max_levels(shape: tuple[int, int]) -> int:
        short = min(shape)
        return int(math.floor(math.log2(short))) if short > 0 else 0

    @staticmethod
    def _expand_mask(mask: np.ndarray, like: np.ndarray) -> np.ndarray:
        if mask.ndim == 3:
            mask = mask[..., 0]
        if like.ndim == 3:
            return np.repeat(mask[..., None], like.shape[2], axis=2)
        return mask

    def _laplacian_pyramid(self, image: np.ndarray) -> list[np.ndarray]:
        pyramid = []
        current = image
        for _ in range(self.levels):
            down = cv2.pyrDown(current)
            up = cv2.pyrUp(down, dstsize=(current.shape[1], current.shape[0]))
            pyramid.append(current - up.reshape(current.shape))
            current = down
        pyramid.append(current)
        return pyramid

    def _gaussian_pyramid(self, image: np.ndarray) -> list[np.ndarray]:
        pyramid = [image]
        for _ in range(self.levels):
            down = cv2.pyrDown(pyramid[-1])
            pyramid.append(down.reshape(down.shape[:2] + image.shape[2:]))
        return pyramid

    def blend(self) -> np.ndarray:
        left_pyr = self._laplacian_pyramid(self.left)
        right_pyr = self._laplacian_pyramid(self.right)
        mask_pyr = self._gaussian_pyramid(self.mask)

        bands = [
            lap_l * m + lap_r * (1.0 - m)
            for lap_l, lap_r, m in zip(left_pyr, right_pyr, mask_pyr)
        ]

        result = bands[-1]
        for band in reversed(bands[:-1]):
            up = cv2.pyrUp(result, dstsize=(band.shape[1], band.shape[0]))
            result = up.reshape(band.shape) + band
        return result.astype(np.float32)


def blend_images(
    warped_a: np.ndarray,
    warped_b: np.ndarray,
    mask: np.ndarray,
    levels: int,
) -> np.ndarray:
    """Multi-band blend of two warped frames, returned as float32 in [0, 1] range."""

    if warped_a.shape != warped_b.shape:
        raise DimensionMismatchError(
            f"warped images differ in shape: {warped_a.shape} != {warped_b.shape}"
        )
    left = to_float_image(warped_a)
    right = to_float_image(warped_b)
    return LaplacianBlender(left, right, mask, levels).blend()


def sharpen_strength(mask_ratio: float) -> float:
    """Unsharp amount ``sin(r * pi)``: zero at both ends, peak at 0.5."""

    r = float(mask_ratio)
    if r <= 0.0 or r >= 1.0:
        return 0.0
    return math.sin(r * math.pi)


def unsharp_mask(
    image: np.ndarray,
    sigma: float = 1.0,
    amount: float = 1.0,
    threshold: float = 0.3,
) -> np.ndarray:
    """Sharpen *image*, leaving low-contrast pixels (below *threshold*) untouched."""

    img = image.astype(np.float32, copy=True)
    if amount == 0.0:
        return img

    blurred = cv2.GaussianBlur(img, (0, 0), sigma).reshape(img.shape)
    sharpened = img * (1.0 + amount) - blurred * amount
    low_contrast = np.abs(img - blurred) < threshold
    np.copyto(sharpened, img, where=low_contrast)
    return sharpened
