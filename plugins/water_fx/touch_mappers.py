"""
Touch Mappers - turn one origin point into a Touch shape

All mappers implement touch_for_point(x, y, image_width, image_height).
The image bounds are used for clipping: shapes never produce points
outside [0, width) x [0, height); a point off the image maps to an
empty Touch.

Mappers:
    SinglePixelTouchMapper - one point
    SolidCircleTouchMapper - filled circle of a given diameter
    SolidRectTouchMapper   - filled axis-aligned box
    RainTouchMapper        - circle with random strength, heavier drops
                             are larger
    CompoundTouchMapper    - union of several mappers for one point
"""

from abc import ABC, abstractmethod

import numpy as np

from .errors import InvalidArgumentError
from .touch import CompoundTouch, Touch, TouchPoint, check_strength

# Diameter of the heaviest raindrop (strength 1.0)
RAIN_MAX_DIAMETER = 5


def _check_extent(value, name):
    if isinstance(value, bool) or int(value) != value or value < 0:
        raise InvalidArgumentError(f"{name} must be a non-negative integer, got {value!r}")
    return int(value)


class TouchMapper(ABC):
    """Maps a point over the image to a Touch."""

    @abstractmethod
    def touch_for_point(self, x, y, image_width, image_height):
        """Return the Touch for a touch centred on (x, y)."""


class SinglePixelTouchMapper(TouchMapper):

    def __init__(self, strength=1.0):
        self.strength = check_strength(strength)

    def touch_for_point(self, x, y, image_width, image_height):
        x, y = int(x), int(y)
        if not (0 <= x < image_width and 0 <= y < image_height):
            return Touch()
        return Touch([TouchPoint(x, y, self.strength)])


class SolidCircleTouchMapper(TouchMapper):

    def __init__(self, diameter, strength=1.0):
        """
        Args:
            diameter: Circle diameter in pixels (radius is diameter // 2)
            strength: Strength of every point in the circle, 0.0 - 1.0
        """
        self.diameter = _check_extent(diameter, "diameter")
        self.strength = check_strength(strength)

    def touch_for_point(self, x, y, image_width, image_height):
        r = self.diameter // 2
        x, y = int(x), int(y)
        # Bounding box clipped to the image, then the circle test
        x0, x1 = max(x - r, 0), min(x + r, image_width - 1)
        y0, y1 = max(y - r, 0), min(y + r, image_height - 1)
        if x0 > x1 or y0 > y1:
            return Touch()
        Y, X = np.ogrid[y0:y1 + 1, x0:x1 + 1]
        inside = (X - x) ** 2 + (Y - y) ** 2 <= r * r
        ys, xs = np.nonzero(inside)
        return Touch([TouchPoint(int(px) + x0, int(py) + y0, self.strength)
                      for px, py in zip(xs, ys)])


class SolidRectTouchMapper(TouchMapper):

    def __init__(self, width, height, strength=1.0):
        self.width = _check_extent(width, "width")
        self.height = _check_extent(height, "height")
        self.strength = check_strength(strength)

    def touch_for_point(self, x, y, image_width, image_height):
        x, y = int(x), int(y)
        half_w = self.width // 2
        half_h = self.height // 2
        x0, x1 = max(x - half_w, 0), min(x + half_w, image_width)
        y0, y1 = max(y - half_h, 0), min(y + half_h, image_height)
        return Touch([TouchPoint(px, py, self.strength)
                      for py in range(y0, y1) for px in range(x0, x1)])


class RainTouchMapper(TouchMapper):
    """Raindrop: random strength per call, diameter grows with strength."""

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def touch_for_point(self, x, y, image_width, image_height):
        strength = float(self.rng.random())
        drop = SolidCircleTouchMapper(
            diameter=int(strength * RAIN_MAX_DIAMETER), strength=strength)
        return drop.touch_for_point(x, y, image_width, image_height)


class CompoundTouchMapper(TouchMapper):

    def __init__(self, mappers):
        self.mappers = list(mappers)
        if not self.mappers:
            raise InvalidArgumentError("CompoundTouchMapper needs at least one mapper")

    def touch_for_point(self, x, y, image_width, image_height):
        return CompoundTouch([m.touch_for_point(x, y, image_width, image_height)
                              for m in self.mappers])
