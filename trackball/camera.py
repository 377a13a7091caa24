"""Camera models mapping between image pixels and 3D view directions."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Iterable, NamedTuple

from trackball.cmpoint import CmPoint


class Ray(NamedTuple):
    """A view direction and whether the pixel it came from lies in the image."""

    direction: CmPoint
    valid: bool


class PixelPoint(NamedTuple):
    """Image coordinates and whether they lie in the image."""

    x: float
    y: float
    valid: bool


def _unit(point: Iterable[float]) -> tuple[float, float, float]:
    x, y, z = (float(v) for v in point)
    mag = math.sqrt(x * x + y * y + z * z)
    if mag != 0:
        return x / mag, y / mag, z / mag
    return x, y, z


class CameraModel(ABC):
    """Base class for converting between pixel coordinates and view vectors."""

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    @abstractmethod
    def pixel_to_vector(self, x: float, y: float) -> Ray:
        """View direction through the image point (x, y)."""

    @abstractmethod
    def vector_to_pixel(self, point: Iterable[float]) -> PixelPoint:
        """Image point that a 3D direction projects to."""

    @abstractmethod
    def fov(self) -> float:
        """Field of view in radians."""

    def _valid_xy(self, x: float, y: float) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def valid_pixel(self, x: float, y: float) -> bool:
        """Whether the image point lies within the image."""
        return self._valid_xy(x, y)

    def pixel_index_to_vector(self, x: float, y: float) -> Ray:
        """View direction through the centre of pixel index (x, y)."""
        return self.pixel_to_vector(x + 0.5, y + 0.5)

    def vector_to_pixel_index(self, point: Iterable[float]) -> PixelPoint:
        """Pixel index coordinates that a 3D direction projects to."""
        px = self.vector_to_pixel(point)
        return PixelPoint(px.x - 0.5, px.y - 0.5, px.valid)


class FisheyeCameraModel(CameraModel):
    """Equidistant fisheye camera with a circular image region."""

    def __init__(
        self,
        width: int,
        height: int,
        rad_per_pixel: float,
        image_circle_fov: float,
        centre_x: float | None = None,
        centre_y: float | None = None,
    ) -> None:
        super().__init__(width, height)
        self.rad_per_pixel = float(rad_per_pixel)
        self.image_circle_fov = float(image_circle_fov)
        self.centre_x = width * 0.5 if centre_x is None or centre_x == -1 else float(centre_x)
        self.centre_y = height * 0.5 if centre_y is None or centre_y == -1 else float(centre_y)
        radius = (self.image_circle_fov * 0.5) / self.rad_per_pixel
        self._circle_r2 = radius * radius

    def _valid(self, x: float, y: float, r2: float) -> bool:
        return r2 <= self._circle_r2 and self._valid_xy(x, y)

    def pixel_to_vector(self, x: float, y: float) -> Ray:
        dx = x - self.centre_x
        dy = y - self.centre_y
        r2 = dx * dx + dy * dy
        r = math.sqrt(r2)
        alpha = r * self.rad_per_pixel
        sin_alpha = math.sin(alpha)
        xy_scale = sin_alpha / r if r > 1e-7 else sin_alpha
        direction = CmPoint(dx * xy_scale, dy * xy_scale, math.cos(alpha))
        return Ray(direction, self._valid(x, y, r2))

    def vector_to_pixel(self, point: Iterable[float]) -> PixelPoint:
        rx, ry, rz = _unit(point)
        alpha = math.acos(max(-1.0, min(1.0, rz)))
        r = alpha / self.rad_per_pixel
        sin_alpha2 = rx * rx + ry * ry
        xy_scale = r / math.sqrt(sin_alpha2) if sin_alpha2 > 1e-14 else 0.0
        x = rx * xy_scale + self.centre_x
        y = ry * xy_scale + self.centre_y
        return PixelPoint(x, y, self._valid(x, y, r * r))

    def valid_pixel(self, x: float, y: float) -> bool:
        dx = x - self.centre_x
        dy = y - self.centre_y
        return self._valid(x, y, dx * dx + dy * dy)

    def fov(self) -> float:
        return self.image_circle_fov


class EquiAreaCameraModel(CameraModel):
    """Equal-area (Gall-Peters style) projection; (lat=0, lon=0) looks forward."""

    def __init__(
        self,
        width: int,
        height: int,
        lat_top: float,
        lat_extent: float,
        lon_left: float,
        lon_extent: float,
    ) -> None:
        super().__init__(width, height)
        self.lat_top = float(lat_top)
        self.lat_extent = float(lat_extent)
        self.lon_left = float(lon_left)
        self.lon_extent = float(lon_extent)
        self._lat_per_pixel = self.lat_extent / self.height
        self._lat_pixels_per_wrap = abs(math.pi / self._lat_per_pixel)
        self._lon_per_pixel = self.lon_extent / self.width
        self._lon_pixels_per_wrap = abs(2.0 * math.pi / self._lon_per_pixel)

    def pixel_to_vector(self, x: float, y: float) -> Ray:
        lat = y * self._lat_per_pixel + self.lat_top
        lon = x * self._lon_per_pixel + self.lon_left
        dy = -lat / (math.pi / 2)
        lon_mag = math.sqrt(max(0.0, 1.0 - dy * dy))
        direction = CmPoint(lon_mag * math.sin(lon), dy, lon_mag * math.cos(lon))
        return Ray(direction, self._valid_xy(x, y))

    def vector_to_pixel(self, point: Iterable[float]) -> PixelPoint:
        rx, ry, rz = _unit(point)
        lat = -ry * (math.pi / 2)
        lon = math.atan2(rx, rz)
        plat = (lat - self.lat_top) / self._lat_per_pixel
        plon = (lon - self.lon_left) / self._lon_per_pixel

        plon = math.fmod(plon, self._lon_pixels_per_wrap)
        x = plon if plon >= 0 else plon + self._lon_pixels_per_wrap
        plat = math.fmod(plat, self._lat_pixels_per_wrap)
        y = plat if plat >= 0 else plat + self._lat_pixels_per_wrap
        return PixelPoint(x, y, self._valid_xy(x, y))

    def fov(self) -> float:
        """The latitude extent."""
        return self.lat_extent


def create_fisheye(
    width: int,
    height: int,
    rad_per_pixel: float,
    image_circle_fov: float,
    centre_x: float | None = None,
    centre_y: float | None = None,
) -> FisheyeCameraModel:
    """Build a fisheye camera model."""
    return FisheyeCameraModel(width, height, rad_per_pixel, image_circle_fov, centre_x, centre_y)


def create_equiarea(
    width: int,
    height: int,
    lat_top: float,
    lat_extent: float,
    lon_left: float,
    lon_extent: float,
) -> EquiAreaCameraModel:
    """Build an equal-area camera model."""
    return EquiAreaCameraModel(width, height, lat_top, lat_extent, lon_left, lon_extent)