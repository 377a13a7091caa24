"""Locating the current view of the sphere within the accumulated surface map."""

from __future__ import annotations

import sys

import numpy as np
from scipy.optimize import differential_evolution, minimize

from trackball.camera import CameraModel
from trackball.cmpoint import CmPoint

_UNSEEN = 128


class Localiser:
    """Searches for the rotation that best aligns an ROI image with the sphere map."""

    def __init__(
        self,
        bound: float,
        tol: float,
        max_evals: int,
        sphere_model: CameraModel,
        sphere_map: np.ndarray,
        roi_mask: np.ndarray,
        p1s_lut,
        method: str = "Nelder-Mead",
    ) -> None:
        self.bound = float(bound)
        self.tol = float(tol)
        self.max_evals = int(max_evals)
        self.method = method
        self.sphere_model = sphere_model
        self.sphere_map = np.asarray(sphere_map)
        self.roi_mask = np.asarray(roi_mask)
        self.roi_h, self.roi_w = self.roi_mask.shape[:2]
        lut = np.asarray(p1s_lut, dtype=float)
        if lut.size != self.roi_h * self.roi_w * 3:
            raise ValueError(
                f"view vector table has {lut.size} values, expected {self.roi_h * self.roi_w * 3}"
            )
        self._lut = lut.reshape(self.roi_h, self.roi_w, 3)
        self._roi_frame: np.ndarray | None = None
        self._r_roi: np.ndarray | None = None

    def search(self, roi_frame: np.ndarray, r_roi, guess: CmPoint) -> tuple[CmPoint, float]:
        """Find the rotation near guess minimising the error; return it and the error."""
        frame = np.asarray(roi_frame)
        if frame.shape[:2] != (self.roi_h, self.roi_w):
            raise ValueError(f"ROI frame shape {frame.shape[:2]} does not match mask {(self.roi_h, self.roi_w)}")
        self._roi_frame = frame
        self._r_roi = np.asarray(r_roi, dtype=float).reshape(3, 3)

        x0 = np.array([guess.x, guess.y, guess.z], dtype=float)
        bounds = [(v - self.bound, v + self.bound) for v in x0]
        result = self._optimise(x0, bounds)
        best = CmPoint(*(float(v) for v in result.x))
        return best, float(result.fun)

    def _optimise(self, x0: np.ndarray, bounds: list[tuple[float, float]]):
        if self.method == "differential_evolution":
            return differential_evolution(
                self.test_rotation,
                bounds,
                x0=x0,
                tol=self.tol,
                maxiter=self.max_evals,
                polish=False,
                seed=0,
            )
        if self.method == "Nelder-Mead":
            options = {"xatol": self.tol, "maxfev": self.max_evals}
            return minimize(self.test_rotation, x0, method=self.method, bounds=bounds, options=options)
        if self.method == "Powell":
            options = {"xtol": self.tol, "maxfev": self.max_evals}
            return minimize(self.test_rotation, x0, method=self.method, bounds=bounds, options=options)
        return minimize(
            self.test_rotation,
            x0,
            method=self.method,
            bounds=bounds,
            tol=self.tol,
            options={"maxiter": self.max_evals},
        )

    def test_rotation(self, x) -> float:
        """Mean squared difference between the ROI and the map under rotation x."""
        if self._roi_frame is None or self._r_roi is None:
            raise RuntimeError("no ROI frame set; call search first")
        lmat = CmPoint(*(float(v) for v in x)).omega_to_matrix()
        m = lmat @ self._r_roi

        selected = self.roi_mask >= 255
        cnt = int(np.count_nonzero(selected))
        vectors = self._lut[selected] @ m
        roi_values = self._roi_frame[selected].astype(np.int64)

        map_h, map_w = self.sphere_map.shape[:2]
        err = 0.0
        good = 0
        for v, r in zip(vectors, roi_values):
            px = self.sphere_model.vector_to_pixel_index(v)
            col = min(max(int(px.x), 0), map_w - 1)
            row = min(max(int(px.y), 0), map_h - 1)
            s = int(self.sphere_map[row, col])
            if s == _UNSEEN:
                continue
            err += float((int(r) - s) ** 2)
            good += 1

        if cnt > 0 and good > 0.25 * cnt:
            return err / good
        return sys.float_info.max