"""
Touch Model

A Touch is one or more TouchPoints disturbing the water at the same time.
Each TouchPoint is a single pixel with a strength in [0.0, 1.0], where 1.0
makes the largest ripple and 0.0 makes none.

CompoundTouch groups several touches (e.g. a ring of touches around one
point) and unions their points lazily, on access.
"""

import math
import numbers
from dataclasses import dataclass

from .errors import InvalidArgumentError


def check_strength(strength, name="strength"):
    """Raise InvalidArgumentError unless strength is in [0.0, 1.0]."""
    if isinstance(strength, bool) or not isinstance(strength, numbers.Real):
        raise InvalidArgumentError(f"{name} must be a number, got {strength!r}")
    if math.isnan(strength) or strength < 0.0 or strength > 1.0:
        raise InvalidArgumentError(
            f"{name} must be in the range 0.0 - 1.0, got {strength!r}")
    return float(strength)


@dataclass(frozen=True)
class TouchPoint:
    """A single touched pixel at (x, y) in image coordinates."""
    x: int
    y: int
    strength: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "strength", check_strength(self.strength))


class Touch:
    """A set of TouchPoints applied to the water together."""

    def __init__(self, points=()):
        self._points = tuple(points)

    @property
    def points(self):
        return self._points

    def __iter__(self):
        return iter(self.points)

    def __len__(self):
        return len(self.points)

    def __repr__(self):
        return f"{type(self).__name__}({len(self)} points)"


class CompoundTouch(Touch):
    """A Touch made of other touches. Points are collected on access."""

    def __init__(self, touches):
        super().__init__()
        self._touches = tuple(touches)

    @property
    def touches(self):
        return self._touches

    @property
    def points(self):
        return tuple(p for touch in self._touches for p in touch.points)
