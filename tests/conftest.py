import numpy as np
import pytest


@pytest.fixture
def gradient_image():
    """Smooth 16x16 BGR image with small neighbour differences."""
    ys, xs = np.mgrid[0:16, 0:16]
    img = np.zeros((16, 16, 3), dtype=np.uint8)
    img[..., 0] = 100 + xs
    img[..., 1] = 110 + ys
    img[..., 2] = 120 + (xs + ys) // 2
    return img


@pytest.fixture
def square_points():
    return np.array([(0, 0), (15, 0), (0, 15), (15, 15)], dtype=np.float32)
