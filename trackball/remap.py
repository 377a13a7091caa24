"""Resampling an image seen by one camera model into another."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from trackball.camera import CameraModel
from trackball.cmpoint import CmPoint

INVALID_MAP_VAL = -1.0


class RemapTransform(Protocol):
    """A rotation or other change between the destination and source frames."""

    def inverse_transform(self, v: CmPoint) -> CmPoint: ...


class CameraRemap:
    """Pixel lookup tables from a destination camera model into a source model."""

    def __init__(
        self,
        src: CameraModel,
        dst: CameraModel,
        transform: RemapTransform | None = None,
    ) -> None:
        self.src = src
        self.dst = dst
        self.src_width = src.width
        self.src_height = src.height
        self.dst_width = dst.width
        self.dst_height = dst.height
        self.map_x = np.full((self.dst_height, self.dst_width), INVALID_MAP_VAL)
        self.map_y = np.full((self.dst_height, self.dst_width), INVALID_MAP_VAL)
        self.transform = transform
        self.set_transform(transform)

    def set_transform(self, transform: RemapTransform | None) -> None:
        """Recompute the lookup tables with a different transformation."""
        self.transform = transform
        max_x = self.src_width - 1
        max_y = self.src_height - 1
        for y in range(self.dst_height):
            for x in range(self.dst_width):
                ray = self.dst.pixel_index_to_vector(x, y)
                sx = sy = INVALID_MAP_VAL
                if ray.valid:
                    v = ray.direction
                    if transform is not None:
                        v = transform.inverse_transform(v)
                    px = self.src.vector_to_pixel_index(v)
                    if px.valid:
                        sx = min(max(px.x, 0.0), max_x)
                        sy = min(max(px.y, 0.0), max_y)
                self.map_x[y, x] = sx
                self.map_y[y, x] = sy

    @property
    def valid_mask(self) -> np.ndarray:
        """Boolean array marking destination pixels that have a source pixel."""
        return self.map_x != INVALID_MAP_VAL

    def apply(self, image: np.ndarray, fill: float = 0) -> np.ndarray:
        """Bilinearly resample a source image into the destination geometry.

        Destination pixels without a source pixel are set to ``fill``.
        """
        image = np.asarray(image)
        if image.shape[:2] != (self.src_height, self.src_width):
            raise ValueError(
                f"image shape {image.shape[:2]} does not match source size "
                f"({self.src_height}, {self.src_width})"
            )
        out = np.full((self.dst_height, self.dst_width) + image.shape[2:], fill, dtype=image.dtype)
        valid = self.valid_mask
        xs = self.map_x[valid]
        ys = self.map_y[valid]
        x0 = np.floor(xs).astype(int)
        y0 = np.floor(ys).astype(int)
        x1 = np.minimum(x0 + 1, self.src_width - 1)
        y1 = np.minimum(y0 + 1, self.src_height - 1)
        fx = xs - x0
        fy = ys - y0
        if image.ndim > 2:
            shape = (-1,) + (1,) * (image.ndim - 2)
            fx = fx.reshape(shape)
            fy = fy.reshape(shape)

        img = image.astype(float)
        values = (
            img[y0, x0] * (1 - fx) * (1 - fy)
            + img[y0, x1] * fx * (1 - fy)
            + img[y1, x0] * (1 - fx) * fy
            + img[y1, x1] * fx * fy
        )
        if np.issubdtype(image.dtype, np.integer):
            info = np.iinfo(image.dtype)
            values = np.clip(np.rint(values), info.min, info.max)
        out[valid] = values.astype(image.dtype)
        return out