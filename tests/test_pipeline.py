import numpy as np
import pytest

from facemorph.config import Config, DebugCfg, MorphCfg
from facemorph.errors import (
    DegenerateInputError,
    DimensionMismatchError,
    LengthMismatchError,
    SingularTriangleError,
)
from facemorph.methods.warp import BORDER_MODES
from facemorph.pipeline import MorphPipeline, morph_frame

CORNERS = [(0, 0), (31, 0), (0, 31), (31, 31)]


@pytest.fixture
def pair():
    rng = np.random.default_rng(42)
    img1 = rng.integers(0, 256, size=(32, 32, 3), dtype=np.uint8)
    img2 = rng.integers(0, 256, size=(32, 32, 3), dtype=np.uint8)
    pts1 = np.array(CORNERS + [(15, 17), (8, 24)], dtype=np.float32)
    pts2 = np.array(CORNERS + [(20, 12), (10, 20)], dtype=np.float32)
    return img1, img2, pts1, pts2


def test_identical_inputs_are_a_no_op():
    ys, xs = np.mgrid[0:4, 0:4]
    img = np.dstack([100 + xs, 104 + ys, 110 + xs + ys]).astype(np.uint8)
    pts = [(0, 0), (3, 0), (0, 3), (3, 3)]
    result = morph_frame(img, img.copy(), img, pts, pts, 0.5, 0.5)
    np.testing.assert_array_equal(result.image, img)
    np.testing.assert_array_equal(result.points, np.asarray(pts, dtype=np.float32))
    assert len(result.triangles) == 2


def test_collinear_points_raise_degenerate_input():
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    pts = [(0, 0), (2, 2), (4, 4)]
    with pytest.raises(DegenerateInputError) as info:
        morph_frame(img, img, img, pts, pts, 0.5, 0.5, frame_index=3)
    assert info.value.frame_index == 3
    assert str(info.value).startswith("frame 3:")


def test_too_few_points_raise_degenerate_input():
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    pts = [(1, 1), (1, 1), (5, 5)]
    with pytest.raises(DegenerateInputError):
        morph_frame(img, img, img, pts, pts, 0.5, 0.5)


@pytest.mark.parametrize(
    "pts1, pts2, label",
    [
        ([(1, 1), (1, 1), (5, 5)], [(0, 0), (6, 0), (0, 6)], "points1"),
        ([(0, 0), (6, 0), (0, 6)], [(1, 1), (1, 1), (5, 5)], "points2"),
        # both sets are valid but every landmark meets at (2, 2) halfway
        ([(0, 0), (4, 0), (0, 4), (4, 4)], [(4, 4), (0, 4), (4, 0), (0, 0)], "intermediate points"),
    ],
)
def test_degenerate_input_names_the_failing_point_set(pts1, pts2, label):
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    with pytest.raises(DegenerateInputError) as info:
        morph_frame(img, img, img, pts1, pts2, 0.5, 0.5)
    assert info.value.message.startswith(f"{label}: ")


@pytest.mark.parametrize("mask_ratio, expected", [(0.0, 0), (1.0, 1)])
def test_mask_ratio_extremes_select_one_image_unsharpened(pair, mask_ratio, expected):
    img1, img2, pts1, _ = pair
    result = morph_frame(img1, img2, img2, pts1, pts1, 0.5, mask_ratio)
    np.testing.assert_array_equal(result.image, (img1, img2)[expected])


def test_shape_and_mask_ratio_zero_reproduces_first_image(pair):
    img1, img2, pts1, pts2 = pair
    result = morph_frame(img1, img2, img2, pts1, pts2, 0.0, 0.0)
    np.testing.assert_array_equal(result.image, img1)
    np.testing.assert_array_equal(result.points, pts1)


def test_shape_and_mask_ratio_one_reproduces_second_image(pair):
    img1, img2, pts1, pts2 = pair
    result = morph_frame(img1, img2, img2, pts1, pts2, 1.0, 1.0)
    np.testing.assert_array_equal(result.image, img2)
    np.testing.assert_array_equal(result.points, pts2)


def test_intermediate_points_and_triangles(pair):
    img1, img2, pts1, pts2 = pair
    result = morph_frame(img1, img2, img2, pts1, pts2, 0.5, 0.5)
    assert result.image.shape == img1.shape
    assert result.image.dtype == np.uint8
    np.testing.assert_allclose(result.points[4], (17.5, 14.5))
    np.testing.assert_allclose(result.points[5], (9, 22))
    tris = result.triangles
    assert tris.min() >= 0 and tris.max() < len(pts1)
    assert all(len(set(t)) == 3 for t in tris.tolist())
    assert result.analysis is None


def test_points_outside_frame_are_clipped(pair):
    img1, img2, pts1, pts2 = pair
    pts1 = pts1.copy()
    pts1[4] = (-5, 40)
    original = pts1.copy()
    result = morph_frame(img1, img2, img2, pts1, pts1, 0.5, 0.5)
    np.testing.assert_array_equal(result.points[4], (0, 31))
    np.testing.assert_array_equal(pts1, original)


def test_inputs_are_not_mutated(pair):
    img1, img2, pts1, pts2 = pair
    copies = [a.copy() for a in (img1, img2, pts1, pts2)]
    morph_frame(img1, img2, img2, pts1, pts2, 0.3, 0.6)
    for before, after in zip(copies, (img1, img2, pts1, pts2)):
        np.testing.assert_array_equal(before, after)


def test_lenient_mode_skips_collinear_source_triangle():
    img1 = np.full((16, 16, 3), 40, dtype=np.uint8)
    img2 = np.full((16, 16, 3), 200, dtype=np.uint8)
    pts1 = [(0, 0), (4, 0), (8, 0)]
    pts2 = [(0, 0), (8, 0), (0, 8)]
    cfg = Config(morph=MorphCfg(lenient=True))

    result = morph_frame(img1, img2, img2, pts1, pts2, 0.5, 0.0, cfg=cfg)
    assert result.triangles.shape == (1, 3)
    np.testing.assert_array_equal(result.image, img1)
    np.testing.assert_allclose(result.points, [(0, 0), (6, 0), (4, 4)])


def test_strict_mode_aborts_on_collinear_source_triangle():
    img = np.zeros((16, 16, 3), dtype=np.uint8)
    pts1 = [(0, 0), (4, 0), (8, 0)]
    pts2 = [(0, 0), (8, 0), (0, 8)]
    with pytest.raises(SingularTriangleError) as info:
        morph_frame(img, img, img, pts1, pts2, 0.5, 0.5, frame_index=7)
    assert info.value.triangle_index == 0
    assert info.value.frame_index == 7


def test_length_mismatch(pair):
    img1, img2, pts1, pts2 = pair
    with pytest.raises(LengthMismatchError):
        morph_frame(img1, img2, img2, pts1, pts2[:-1], 0.5, 0.5)


def test_dimension_mismatch(pair):
    img1, img2, pts1, pts2 = pair
    with pytest.raises(DimensionMismatchError):
        morph_frame(img1, img2[:20], img2, pts1, pts2, 0.5, 0.5)
    with pytest.raises(DimensionMismatchError):
        morph_frame(img1, img2, img2[:, :20], pts1, pts2, 0.5, 0.5)


@pytest.mark.parametrize("shape_ratio, mask_ratio", [(-0.1, 0.5), (0.5, 1.5)])
def test_ratios_out_of_range(pair, shape_ratio, mask_ratio):
    img1, img2, pts1, pts2 = pair
    with pytest.raises(ValueError):
        morph_frame(img1, img2, img2, pts1, pts2, shape_ratio, mask_ratio)


def test_threaded_warp_matches_sequential(pair):
    img1, img2, pts1, pts2 = pair
    sequential = MorphPipeline(Config()).morph(img1, img2, img2, pts1, pts2, 0.4, 0.6)
    threaded = MorphPipeline(Config(morph=MorphCfg(workers=2))).morph(img1, img2, img2, pts1, pts2, 0.4, 0.6)
    np.testing.assert_array_equal(sequential.image, threaded.image)


def test_grayscale_frames(pair):
    img1, img2, pts1, pts2 = pair
    g1, g2 = img1[..., 0].copy(), img2[..., 0].copy()
    result = morph_frame(g1, g2, g2, pts1, pts2, 0.5, 0.5)
    assert result.image.shape == g1.shape


def test_analysis_overlay_when_mesh_debug_enabled(pair):
    img1, img2, pts1, pts2 = pair
    cfg = Config(debug=DebugCfg(mesh=True))
    previous = np.zeros_like(img1)
    result = MorphPipeline(cfg).morph(img1, img2, img2, pts1, pts2, 0.5, 0.5, previous=previous)
    assert result.analysis is not None
    assert result.analysis.shape == img1.shape
    assert not np.array_equal(result.analysis, result.image)


def test_config_validation():
    with pytest.raises(ValueError):
        MorphCfg(pyramid_levels=0)
    with pytest.raises(ValueError):
        MorphCfg(border_mode="wrap")
    with pytest.raises(ValueError):
        MorphCfg(workers=0)


@pytest.mark.parametrize("mode", sorted(BORDER_MODES))
def test_config_accepts_every_remap_border_mode(mode):
    assert MorphCfg(border_mode=mode).border_mode == mode
