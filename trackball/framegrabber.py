"""Grabbing frames from a source, thresholding the sphere ROI and queueing the results."""

from __future__ import annotations

import enum
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from scipy import ndimage

logger = logging.getLogger(__name__)

_UNSEEN = 128
_MASK_ON = 255


class FrameSource(Protocol):
    """Anything that yields frames with timestamps."""

    timestamp: float
    ms_since_midnight: float

    def grab(self) -> np.ndarray | None: ...

    def rewind(self) -> bool: ...


class Remapper(Protocol):
    """Resamples a source-sized image into the ROI geometry."""

    src_width: int
    src_height: int
    dst_width: int
    dst_height: int

    def apply(self, image: np.ndarray, fill: float = 0) -> np.ndarray: ...


class ThresholdChannel(enum.Enum):
    """Which colour information the grey image used for thresholding comes from."""

    GREY = "grey"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


_CHANNEL_NAMES = {
    "red": ThresholdChannel.RED,
    "r": ThresholdChannel.RED,
    "green": ThresholdChannel.GREEN,
    "g": ThresholdChannel.GREEN,
    "blue": ThresholdChannel.BLUE,
    "b": ThresholdChannel.BLUE,
}

# Index of each colour in a BGR frame.
_BGR_INDEX = {
    ThresholdChannel.BLUE: 0,
    ThresholdChannel.GREEN: 1,
    ThresholdChannel.RED: 2,
}


@dataclass(frozen=True)
class FrameSet:
    """A captured frame, its thresholded ROI remap and its timestamps."""

    frame: np.ndarray
    remap: np.ndarray
    timestamp: float
    ms_since_midnight: float


def threshold_channel(name: str) -> ThresholdChannel:
    """Map a colour transform name to a channel; unknown names mean GREY."""
    return _CHANNEL_NAMES.get(name, ThresholdChannel.GREY)


def extract_grey(frame: np.ndarray, channel: ThresholdChannel) -> np.ndarray:
    """Single-channel 8-bit image from a BGR frame."""
    frame = np.asarray(frame)
    if frame.ndim == 2:
        return frame.astype(np.uint8, copy=True)
    if channel in _BGR_INDEX:
        return np.ascontiguousarray(frame[..., _BGR_INDEX[channel]], dtype=np.uint8)
    f = frame.astype(np.uint32)
    grey = (f[..., 0] * 1868 + f[..., 1] * 9617 + f[..., 2] * 4899 + 8192) >> 14
    return grey.astype(np.uint8)


def median_blur3(image: np.ndarray) -> np.ndarray:
    """3x3 median filter with replicated borders."""
    return ndimage.median_filter(np.asarray(image), size=3, mode="nearest")


def window_min_max(blurred: np.ndarray, mask: np.ndarray, win: int) -> tuple[np.ndarray, np.ndarray]:
    """Local minimum and maximum over a square window of side win.

    Only pixels where the mask is 255 count; saturated (255) pixels are ignored
    for the maximum. Where no pixel counts, the minimum is 255 and the maximum 0.
    """
    if win < 1 or win % 2 == 0:
        raise ValueError(f"window size must be a positive odd number, got {win}")
    blurred = np.asarray(blurred, dtype=np.uint8)
    mask = np.asarray(mask)
    if blurred.shape != mask.shape:
        raise ValueError(f"image shape {blurred.shape} does not match mask shape {mask.shape}")
    valid = mask == _MASK_ON
    max_src = np.where(valid & (blurred < 255), blurred, 0).astype(np.uint8)
    min_src = np.where(valid, blurred, 255).astype(np.uint8)
    thresh_max = ndimage.maximum_filter(max_src, size=win, mode="constant", cval=0)
    thresh_min = ndimage.minimum_filter(min_src, size=win, mode="constant", cval=255)
    return thresh_min, thresh_max


def adaptive_threshold(
    remap_grey: np.ndarray,
    blurred: np.ndarray,
    mask: np.ndarray,
    win: int,
    ratio: float,
) -> np.ndarray:
    """Binarise the ROI against local min/max: 0 dark, 255 bright, 128 outside the mask."""
    grey = np.asarray(remap_grey)
    if grey.shape != np.asarray(mask).shape:
        raise ValueError(f"image shape {grey.shape} does not match mask shape {np.asarray(mask).shape}")
    thresh_min, thresh_max = window_min_max(blurred, mask, win)
    g = grey.astype(np.int32)
    dark = ratio * (g - thresh_min.astype(np.int32)) <= (thresh_max.astype(np.int32) - g)
    out = np.where(dark, 0, 255).astype(np.uint8)
    out[np.asarray(mask) != _MASK_ON] = _UNSEEN
    return out


class FrameGrabber:
    """Background worker that grabs, thresholds and queues frames from a source."""

    def __init__(
        self,
        source: FrameSource,
        remapper: Remapper,
        remap_mask: np.ndarray,
        thresh_ratio: float = 1.0,
        thresh_win_pc: float = 0.2,
        thresh_rgb_transform: str = "grey",
        max_buf_len: int = 1,
        max_frame_cnt: int = 0,
    ) -> None:
        self.source = source
        self.remapper = remapper
        self.width = remapper.src_width
        self.height = remapper.src_height
        self.roi_width = remapper.dst_width
        self.roi_height = remapper.dst_height

        mask = np.asarray(remap_mask)
        if mask.shape != (self.roi_height, self.roi_width):
            raise ValueError(
                f"remap mask shape {mask.shape} does not match ROI size "
                f"({self.roi_height}, {self.roi_width})"
            )
        self.remap_mask = mask

        if thresh_ratio <= 0:
            logger.warning("Invalid thresh_ratio parameter (%f)! Defaulting to 1.0", thresh_ratio)
            thresh_ratio = 1.0
        self.thresh_ratio = float(thresh_ratio)
        self.channel = threshold_channel(thresh_rgb_transform)

        if thresh_win_pc < 0 or thresh_win_pc > 1.0:
            logger.warning("Invalid thresh_win parameter (%f)! Defaulting to 0.2", thresh_win_pc)
            thresh_win_pc = 0.2
        self.thresh_win = int(math.floor(thresh_win_pc * self.roi_width + 0.5)) | 0x01
        self.thresh_rad = (self.thresh_win - 1) // 2
        logger.debug(
            "Thresholding window size: %d (ROI: %d x %d)",
            self.thresh_win,
            self.roi_width,
            self.roi_height,
        )

        self.max_buf_len = int(max_buf_len)
        self.max_frame_cnt = int(max_frame_cnt)

        self._queue: deque[FrameSet] = deque()
        self._cond = threading.Condition()
        self._active = True
        self._thread = threading.Thread(target=self._process, name="frame-grabber", daemon=True)
        self._thread.start()

    @property
    def active(self) -> bool:
        """Whether the worker is still grabbing frames."""
        with self._cond:
            return self._active

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """Thresholded ROI remap of one BGR frame."""
        grey = extract_grey(frame, self.channel)
        remap_grey = np.asarray(self.remapper.apply(grey, fill=_UNSEEN), dtype=np.uint8)
        blurred = median_blur3(remap_grey)
        return adaptive_threshold(remap_grey, blurred, self.remap_mask, self.thresh_win, self.thresh_ratio)

    def get_frame_set(self, latest: bool = False) -> FrameSet | None:
        """Next processed frame set, or the newest one dropping the rest.

        Blocks until a frame is available; returns None once the worker has
        stopped and the queue is empty.
        """
        with self._cond:
            while self._active and not self._queue:
                self._cond.wait()
            if not self._queue:
                logger.debug("No more processed frames in queue!")
                self._cond.notify_all()
                return None
            if latest:
                frame_set = self._queue[-1]
                dropped = len(self._queue) - 1
                if dropped > 0:
                    logger.warning("Warning! Dropping %d frame/s from input processed frame queues!", dropped)
                self._queue.clear()
            else:
                frame_set = self._queue.popleft()
                if self._queue:
                    logger.debug("%d frames remaining in processed frame queue.", len(self._queue))
            self._cond.notify_all()
            return frame_set

    def terminate(self) -> None:
        """Ask the worker to stop; queued frames stay available."""
        with self._cond:
            self._active = False
            self._cond.notify_all()

    def close(self) -> None:
        """Stop the worker and wait for it to finish."""
        logger.info("Closing input stream")
        self.terminate()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()

    def __enter__(self) -> "FrameGrabber":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _stop(self) -> None:
        with self._cond:
            self._active = False
            self._cond.notify_all()

    def _process(self) -> None:
        try:
            self.source.rewind()
            logger.debug("Starting frame grabbing loop!")
            count = 0
            while True:
                with self._cond:
                    while (
                        self._active
                        and self.max_buf_len > 0
                        and len(self._queue) >= self.max_buf_len
                    ):
                        self._cond.wait()
                    if not self._active:
                        break

                frame = self.source.grab()
                if frame is None:
                    logger.error("Error grabbing new frame!")
                    break
                count += 1
                if self.max_frame_cnt > 0 and count > self.max_frame_cnt:
                    logger.info("Max frame count (%d) reached!", self.max_frame_cnt)
                    break

                frame = np.asarray(frame)
                timestamp = float(self.source.timestamp)
                ms_since_midnight = float(self.source.ms_since_midnight)
                remap = self.process_frame(frame)

                with self._cond:
                    self._queue.append(FrameSet(frame, remap, timestamp, ms_since_midnight))
                    size = len(self._queue)
                    self._cond.notify_all()
                logger.debug("Processed frame added to input queue (l = %d).", size)
        except Exception:
            logger.exception("Frame grabbing failed")
        finally:
            self._stop()
            logger.debug("Stopping frame grabbing loop!")