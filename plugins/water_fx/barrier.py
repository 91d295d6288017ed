"""
Barriers - regions where the water is held still or cannot be touched

A barrier has a type:
    RIPPLE           - ripples never cross it; the true image always shows
                       through it. Touches inside still disturb the water,
                       but the ripples only appear outside the shape.
    TOUCH            - touches inside it are ignored. Ripples that started
                       elsewhere still travel across it.
    RIPPLE_AND_TOUCH - both (full occlusion).

Every barrier can be switched off with is_active. Inactive barriers
contain no points at all.

contains_point() is the scalar test. mask() is the vectorized test used by
the engine once per frame; the shape part is cached per image size and
shape geometry, the active flag is checked on every call.
"""

import enum
from abc import ABC, abstractmethod

import numpy as np

from .errors import InvalidArgumentError


class BarrierType(str, enum.Enum):
    RIPPLE = "ripple"
    TOUCH = "touch"
    RIPPLE_AND_TOUCH = "ripple_and_touch"

    @property
    def blocks_ripples(self):
        return self in (BarrierType.RIPPLE, BarrierType.RIPPLE_AND_TOUCH)

    @property
    def blocks_touches(self):
        return self in (BarrierType.TOUCH, BarrierType.RIPPLE_AND_TOUCH)


def _check_non_negative(value, name):
    if value < 0:
        raise InvalidArgumentError(f"{name} must not be negative, got {value!r}")
    return value


class Barrier(ABC):
    """Base class for barriers. Subclasses implement the shape tests."""

    def __init__(self, type=BarrierType.RIPPLE_AND_TOUCH, is_active=True):
        self.type = BarrierType(type)
        self.is_active = is_active
        self._mask_cache = {}

    def contains_point(self, x, y, image_width, image_height):
        if not self.is_active:
            return False
        return bool(self._shape_contains(x, y, image_width, image_height))

    def mask(self, image_width, image_height):
        """Boolean (height, width) array, True where the barrier applies."""
        if not self.is_active:
            return np.zeros((image_height, image_width), dtype=bool)
        # Keyed on geometry too, so a moved or resized shape gets a fresh mask
        key = (image_width, image_height) + self._geometry()
        shape = self._mask_cache.get(key)
        if shape is None:
            Y, X = np.ogrid[:image_height, :image_width]
            shape = np.broadcast_to(
                self._shape_contains(X, Y, image_width, image_height),
                (image_height, image_width)).copy()
            shape.setflags(write=False)
            self._mask_cache.clear()
            self._mask_cache[key] = shape
        return shape

    @abstractmethod
    def _geometry(self):
        """Tuple of the fields the shape test reads."""

    @abstractmethod
    def _shape_contains(self, x, y, image_width, image_height):
        """Shape test; x and y may be ints or broadcastable numpy arrays."""


class SolidRectBarrier(Barrier):

    def __init__(self, left_x, top_y, width, height, **kwargs):
        super().__init__(**kwargs)
        self.left_x = left_x
        self.top_y = top_y
        self.width = _check_non_negative(width, "width")
        self.height = _check_non_negative(height, "height")

    @classmethod
    def from_ltwh(cls, left_x, top_y, width, height, **kwargs):
        return cls(left_x, top_y, width, height, **kwargs)

    def _geometry(self):
        return (self.left_x, self.top_y, self.width, self.height)

    def _shape_contains(self, x, y, image_width, image_height):
        return ((x >= self.left_x) & (x < self.left_x + self.width) &
                (y >= self.top_y) & (y < self.top_y + self.height))


class SolidCircleBarrier(Barrier):

    def __init__(self, center_x, center_y, radius, **kwargs):
        super().__init__(**kwargs)
        self.center_x = center_x
        self.center_y = center_y
        self.radius = _check_non_negative(radius, "radius")

    def _geometry(self):
        return (self.center_x, self.center_y, self.radius)

    def _shape_contains(self, x, y, image_width, image_height):
        dx = x - self.center_x
        dy = y - self.center_y
        return dx * dx + dy * dy <= self.radius * self.radius


class SolidEllipseBarrier(Barrier):
    """Axis-aligned ellipse with full width and height (not semi-axes)."""

    def __init__(self, center_x, center_y, width, height, **kwargs):
        super().__init__(**kwargs)
        if width <= 0 or height <= 0:
            raise InvalidArgumentError(
                f"ellipse width and height must be positive, got {width}x{height}")
        self.center_x = center_x
        self.center_y = center_y
        self.width = width
        self.height = height

    @classmethod
    def from_ltwh(cls, left_x, top_y, width, height, **kwargs):
        return cls(left_x + width // 2, top_y + height // 2, width, height, **kwargs)

    def _geometry(self):
        return (self.center_x, self.center_y, self.width, self.height)

    def _shape_contains(self, x, y, image_width, image_height):
        nx = (x - self.center_x) / self.width * 2
        ny = (y - self.center_y) / self.height * 2
        return nx * nx + ny * ny <= 1.0


class PaddingBarrier(Barrier):
    """Band along the image edges, `left` pixels wide on the left, etc."""

    def __init__(self, left=0, top=0, right=0, bottom=0, **kwargs):
        super().__init__(**kwargs)
        self.left = _check_non_negative(left, "left")
        self.top = _check_non_negative(top, "top")
        self.right = _check_non_negative(right, "right")
        self.bottom = _check_non_negative(bottom, "bottom")

    @classmethod
    def all(cls, inset, **kwargs):
        return cls(inset, inset, inset, inset, **kwargs)

    def _geometry(self):
        return (self.left, self.top, self.right, self.bottom)

    def _shape_contains(self, x, y, image_width, image_height):
        return ((x < self.left) | (x >= image_width - self.right) |
                (y < self.top) | (y >= image_height - self.bottom))


class CompoundBarrier(Barrier):
    """Any-of group. Its own type decides what the group blocks."""

    def __init__(self, barriers, **kwargs):
        super().__init__(**kwargs)
        self.barriers = list(barriers)

    def contains_point(self, x, y, image_width, image_height):
        if not self.is_active:
            return False
        return any(b.contains_point(x, y, image_width, image_height)
                   for b in self.barriers)

    def mask(self, image_width, image_height):
        # Sub-barriers can be toggled independently, so no caching here
        out = np.zeros((image_height, image_width), dtype=bool)
        if self.is_active:
            for b in self.barriers:
                out |= b.mask(image_width, image_height)
        return out

    def _geometry(self):
        return ()   # mask() is not cached

    def _shape_contains(self, x, y, image_width, image_height):
        return any(b.contains_point(x, y, image_width, image_height)
                   for b in self.barriers)


def combined_mask(barriers, image_width, image_height, ripple=True):
    """OR of the masks of active barriers that block ripples (or touches).

    Returns None when no barrier applies, so callers can skip the masking.
    """
    out = None
    for b in barriers or ():
        if not b.is_active:
            continue
        if not (b.type.blocks_ripples if ripple else b.type.blocks_touches):
            continue
        m = b.mask(image_width, image_height)
        out = m.copy() if out is None else (out | m)
    return out


def contains_point(barriers, x, y, image_width, image_height, ripple=True):
    """Scalar version of combined_mask for a single point."""
    for b in barriers or ():
        if not (b.type.blocks_ripples if ripple else b.type.blocks_touches):
            continue
        if b.contains_point(x, y, image_width, image_height):
            return True
    return False
