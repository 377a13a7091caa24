import math

import pytest

from trackball.camera import (
    CameraModel,
    EquiAreaCameraModel,
    FisheyeCameraModel,
    create_equiarea,
    create_fisheye,
)


def _fisheye():
    return create_fisheye(40, 30, 0.05, 2.0)


def _equiarea():
    return create_equiarea(64, 32, -math.pi / 2, math.pi, -math.pi, 2 * math.pi)


def test_base_model_is_abstract():
    with pytest.raises(TypeError):
        CameraModel(10, 10)


def test_create_fisheye_builds_model():
    model = _fisheye()
    assert isinstance(model, FisheyeCameraModel)
    assert (model.width, model.height) == (40, 30)


def test_fisheye_centre_looks_forward():
    ray = _fisheye().pixel_to_vector(20, 15)
    assert tuple(ray.direction) == pytest.approx((0.0, 0.0, 1.0))
    assert ray.valid


@pytest.mark.parametrize("x, y", [(20, 15), (25, 10), (10, 20), (30, 18)])
def test_fisheye_round_trip(x, y):
    model = _fisheye()
    ray = model.pixel_to_vector(x, y)
    assert ray.direction.length() == pytest.approx(1.0)
    px = model.vector_to_pixel(ray.direction)
    assert (px.x, px.y) == pytest.approx((x, y))
    assert px.valid


def test_fisheye_outside_circle_invalid():
    model = _fisheye()
    assert not model.valid_pixel(0, 0)
    assert not model.pixel_to_vector(0, 0).valid


def test_fisheye_outside_image_invalid():
    model = create_fisheye(40, 30, 0.05, 10.0)
    assert model.valid_pixel(0, 0)
    assert not model.valid_pixel(-1, 15)
    assert not model.valid_pixel(20, 30)


def test_fisheye_custom_centre():
    model = create_fisheye(40, 30, 0.05, 2.0, centre_x=5, centre_y=6)
    ray = model.pixel_to_vector(5, 6)
    assert tuple(ray.direction) == pytest.approx((0.0, 0.0, 1.0))


def test_fisheye_fov():
    assert _fisheye().fov() == 2.0


def test_vector_to_pixel_ignores_scale():
    model = _fisheye()
    a = model.vector_to_pixel((0.2, 0.1, 1.0))
    b = model.vector_to_pixel((2.0, 1.0, 10.0))
    assert (a.x, a.y) == pytest.approx((b.x, b.y))


def test_fisheye_pixel_index_round_trip():
    model = create_fisheye(40, 30, 0.05, 2.0)
    ray = model.pixel_index_to_vector(12, 9)
    px = model.vector_to_pixel_index(ray.direction)
    assert (px.x, px.y) == pytest.approx((12, 9))


def test_equiarea_pixel_index_round_trip():
    model = create_equiarea(64, 32, -math.pi / 2, math.pi, -math.pi, 2 * math.pi)
    ray = model.pixel_index_to_vector(12, 9)
    px = model.vector_to_pixel_index(ray.direction)
    assert (px.x, px.y) == pytest.approx((12, 9))


def test_pixel_index_is_pixel_centre():
    model = _fisheye()
    a = model.pixel_index_to_vector(7, 4).direction
    b = model.pixel_to_vector(7.5, 4.5).direction
    assert tuple(a) == pytest.approx(tuple(b))


def test_create_equiarea_builds_model():
    model = _equiarea()
    assert isinstance(model, EquiAreaCameraModel)
    assert model.fov() == pytest.approx(math.pi)


def test_equiarea_forward():
    ray = _equiarea().pixel_to_vector(32, 16)
    assert tuple(ray.direction) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)


@pytest.mark.parametrize("x, y", [(1, 1), (10.5, 8), (32, 16), (50, 25), (63, 31)])
def test_equiarea_round_trip(x, y):
    model = _equiarea()
    ray = model.pixel_to_vector(x, y)
    assert ray.direction.length() == pytest.approx(1.0)
    px = model.vector_to_pixel(ray.direction)
    assert (px.x, px.y) == pytest.approx((x, y))


@pytest.mark.parametrize("vec", [(1, 0, 0), (-1, 0, -0.1), (0, 0, -1), (0.3, -0.4, 0.2)])
def test_equiarea_projection_stays_in_image(vec):
    model = _equiarea()
    px = model.vector_to_pixel(vec)
    assert 0 <= px.x < model.width
    assert 0 <= px.y < model.height
    assert px.valid


def test_equiarea_valid_pixel_bounds():
    model = _equiarea()
    assert model.valid_pixel(63.9, 31.9)
    assert not model.valid_pixel(64, 0)
    assert not model.valid_pixel(0, -0.1)