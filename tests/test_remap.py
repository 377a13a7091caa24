import numpy as np
import pytest

from trackball.camera import create_fisheye
from trackball.cmpoint import CmPoint
from trackball.remap import INVALID_MAP_VAL, CameraRemap


def _model():
    return create_fisheye(20, 20, 0.1, 2.0)


class _Identity:
    def inverse_transform(self, v):
        return v


class _HalfTurn:
    def inverse_transform(self, v):
        return CmPoint(-v.x, -v.y, v.z)


def _grid():
    ys, xs = np.mgrid[0:20, 0:20]
    return xs, ys


def test_identity_map_points_to_same_pixel():
    remap = CameraRemap(_model(), _model())
    valid = remap.valid_mask
    xs, ys = _grid()
    assert valid[10, 10]
    np.testing.assert_allclose(remap.map_x[valid], xs[valid], atol=1e-9)
    np.testing.assert_allclose(remap.map_y[valid], ys[valid], atol=1e-9)


def test_outside_circle_is_invalid():
    remap = CameraRemap(_model(), _model())
    assert remap.map_x[0, 0] == INVALID_MAP_VAL
    assert remap.map_y[0, 0] == INVALID_MAP_VAL
    assert not remap.valid_mask[0, 0]


def test_apply_identity_copies_valid_pixels():
    remap = CameraRemap(_model(), _model())
    image = (np.arange(400) % 251).astype(np.uint8).reshape(20, 20)
    out = remap.apply(image, fill=7)
    valid = remap.valid_mask
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(out[valid], image[valid])
    assert np.all(out[~valid] == 7)


def test_apply_colour_image():
    remap = CameraRemap(_model(), _model())
    rng = np.random.default_rng(1)
    image = rng.integers(0, 256, size=(20, 20, 3), dtype=np.uint8)
    out = remap.apply(image)
    valid = remap.valid_mask
    assert out.shape == image.shape
    np.testing.assert_array_equal(out[valid], image[valid])
    assert np.all(out[~valid] == 0)


def test_identity_transform_matches_none():
    plain = CameraRemap(_model(), _model())
    with_transform = CameraRemap(_model(), _model(), _Identity())
    np.testing.assert_allclose(plain.map_x, with_transform.map_x)
    np.testing.assert_allclose(plain.map_y, with_transform.map_y)


def test_set_transform_half_turn_mirrors_map():
    remap = CameraRemap(_model(), _model())
    remap.set_transform(_HalfTurn())
    valid = remap.valid_mask
    xs, ys = _grid()
    np.testing.assert_allclose(remap.map_x[valid], 19 - xs[valid], atol=1e-9)
    np.testing.assert_allclose(remap.map_y[valid], 19 - ys[valid], atol=1e-9)


def test_apply_rejects_wrong_size():
    remap = CameraRemap(_model(), _model())
    with pytest.raises(ValueError):
        remap.apply(np.zeros((10, 20), dtype=np.uint8))


def test_map_values_clamped_to_source():
    remap = CameraRemap(_model(), create_fisheye(20, 20, 0.2, 4.0))
    valid = remap.valid_mask
    assert remap.map_x[10, 10] == pytest.approx(10.0)
    assert remap.map_y[10, 10] == pytest.approx(10.0)
    assert float(remap.map_x[valid].min()) >= 0.0
    assert float(remap.map_y[valid].min()) >= 0.0
    assert float(remap.map_x[valid].max()) <= remap.src_width - 1
    assert float(remap.map_y[valid].max()) <= remap.src_height - 1