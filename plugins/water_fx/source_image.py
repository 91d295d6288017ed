"""
Source Image Suppliers

The engine reads the image to ripple from a supplier every frame (or only
once, when the supplier says its images never change).

Pixel buffers are (height, width, 4) uint8 RGBA arrays. as_rgba() accepts
RGB input (adds an opaque alpha) and float input in [0, 1].

Suppliers:
    StaticImageSupplier   - one fixed image (may_change_over_time = False)
    LatestFrameSupplier   - a host pushes frames (video, screen capture);
                            fetch() returns the newest one
    CallableImageSupplier - wraps any zero-argument callable
"""

import threading
from abc import ABC, abstractmethod

import numpy as np
from scipy.ndimage import zoom

from .errors import InvalidArgumentError


def as_rgba(image):
    """Normalize an image to a C-contiguous (H, W, 4) uint8 RGBA array."""
    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4) or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidArgumentError(
            f"expected an (H, W, 3) or (H, W, 4) image, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        if not np.issubdtype(arr.dtype, np.floating):
            raise InvalidArgumentError(f"unsupported pixel dtype {arr.dtype}")
        arr = (np.clip(arr, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return np.ascontiguousarray(arr)


def resize_nearest(image, width, height):
    """Nearest-neighbour resample of an (H, W, C) image to (height, width, C)."""
    h, w = image.shape[:2]
    if (w, h) == (width, height):
        return image
    return zoom(image, (height / h, width / w, 1), order=0,
                mode="nearest", grid_mode=True)


def checkerboard(width, height, cell=16):
    """Two-tone RGBA test pattern, used when no source image is given."""
    Y, X = np.ogrid[:height, :width]
    light = ((X // cell) + (Y // cell)) % 2 == 0
    img = np.empty((height, width, 4), dtype=np.uint8)
    img[...] = (18, 60, 110, 255)
    img[light] = (200, 220, 235, 255)
    return img


class SourceImageSupplier(ABC):
    """Yields the current image to be rippled."""

    @abstractmethod
    def fetch(self):
        """Return the current pixel buffer, or None if none is available."""

    @property
    @abstractmethod
    def may_change_over_time(self):
        """False if every fetch returns the same image."""


class StaticImageSupplier(SourceImageSupplier):

    def __init__(self, image):
        self._image = as_rgba(image).copy() if image is not None else None

    def fetch(self):
        return self._image

    @property
    def may_change_over_time(self):
        return False


class LatestFrameSupplier(SourceImageSupplier):
    """Holds the most recently pushed frame. Safe to push from another thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._frame = None

    def push(self, frame):
        frame = as_rgba(frame)
        with self._lock:
            self._frame = frame

    def clear(self):
        with self._lock:
            self._frame = None

    def fetch(self):
        with self._lock:
            return self._frame

    @property
    def may_change_over_time(self):
        return True


class CallableImageSupplier(SourceImageSupplier):

    def __init__(self, fn, may_change_over_time=True):
        self._fn = fn
        self._may_change = may_change_over_time

    def fetch(self):
        image = self._fn()
        return None if image is None else as_rgba(image)

    @property
    def may_change_over_time(self):
        return self._may_change
