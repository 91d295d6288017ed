#!/usr/bin/env python3
"""
Tests for the touch model and touch mappers.

Verifies:
1. TouchPoint strength validation
2. Touch / CompoundTouch point collection
3. Mapper shapes and clipping at the image edges
4. Raindrop size and strength
"""

import numpy as np
import pytest

from water_fx.errors import InvalidArgumentError
from water_fx.touch import CompoundTouch, Touch, TouchPoint, check_strength
from water_fx.touch_mappers import (
    RAIN_MAX_DIAMETER, CompoundTouchMapper, RainTouchMapper, SinglePixelTouchMapper,
    SolidCircleTouchMapper, SolidRectTouchMapper,
)


def _coords(touch):
    return {(p.x, p.y) for p in touch.points}


def test_strength_bounds():
    print("Testing strength bounds...")
    assert TouchPoint(1, 2).strength == 1.0, "Default strength is full"
    assert TouchPoint(1, 2, 0).strength == 0.0, "Zero strength is allowed"
    for bad in (-0.01, 1.01, float("nan"), "1", True):
        with pytest.raises(InvalidArgumentError):
            TouchPoint(0, 0, bad)
    assert check_strength(0.25) == 0.25
    print("  ✓ Strength bounds working correctly")


def test_touch_and_compound_touch():
    a = Touch([TouchPoint(0, 0), TouchPoint(1, 0)])
    b = Touch([TouchPoint(5, 5, 0.5)])
    assert len(a) == 2 and list(a) == list(a.points)
    both = CompoundTouch([a, b])
    assert len(both) == 3, f"Compound touch should union points, got {len(both)}"
    assert both.touches == (a, b)
    assert _coords(both) == {(0, 0), (1, 0), (5, 5)}


def test_single_pixel_mapper():
    touch = SinglePixelTouchMapper(strength=0.4).touch_for_point(3, 4, 10, 10)
    assert [(p.x, p.y, p.strength) for p in touch] == [(3, 4, 0.4)]

    mapper = SinglePixelTouchMapper()
    for x, y in ((10, 4), (3, 10), (-1, 0), (0, -1)):
        assert len(mapper.touch_for_point(x, y, 10, 10)) == 0, \
            f"Point ({x}, {y}) off a 10x10 image should map to an empty touch"
    assert len(mapper.touch_for_point(9, 9, 10, 10)) == 1, "Last pixel is inside"


def test_circle_mapper():
    print("Testing circle mapper...")
    touch = SolidCircleTouchMapper(diameter=3).touch_for_point(5, 5, 20, 20)
    assert _coords(touch) == {(5, 5), (4, 5), (6, 5), (5, 4), (5, 6)}, \
        f"Radius 1 circle should be a plus shape, got {_coords(touch)}"

    # Clipped at the top-left corner, radius 2
    corner = SolidCircleTouchMapper(diameter=5).touch_for_point(0, 0, 20, 20)
    assert _coords(corner) == {(0, 0), (1, 0), (2, 0), (0, 1), (1, 1), (0, 2)}

    # Clipped at the bottom-right corner
    far = SolidCircleTouchMapper(diameter=12).touch_for_point(19, 19, 20, 20)
    assert all(0 <= p.x < 20 and 0 <= p.y < 20 for p in far), "Points must stay in bounds"
    assert (19, 19) in _coords(far)

    # Diameter 1 has radius 0: just the centre pixel
    assert _coords(SolidCircleTouchMapper(1).touch_for_point(2, 2, 5, 5)) == {(2, 2)}

    with pytest.raises(InvalidArgumentError):
        SolidCircleTouchMapper(diameter=-1)
    print("  ✓ Circle mapper working correctly")


def test_rect_mapper():
    touch = SolidRectTouchMapper(4, 2, strength=0.5).touch_for_point(5, 5, 20, 20)
    assert _coords(touch) == {(x, y) for x in range(3, 7) for y in range(4, 6)}
    assert all(p.strength == 0.5 for p in touch)

    clipped = SolidRectTouchMapper(4, 4).touch_for_point(0, 0, 20, 20)
    assert _coords(clipped) == {(0, 0), (1, 0), (0, 1), (1, 1)}


def test_rain_mapper():
    print("Testing rain mapper...")
    mapper = RainTouchMapper(rng=np.random.default_rng(7))
    for _ in range(50):
        touch = mapper.touch_for_point(50, 50, 100, 100)
        strengths = {p.strength for p in touch}
        assert len(strengths) == 1, "A raindrop has one strength"
        s = strengths.pop()
        assert 0.0 <= s < 1.0
        r = int(s * RAIN_MAX_DIAMETER) // 2
        expected = SolidCircleTouchMapper(2 * r + 1).touch_for_point(50, 50, 100, 100)
        assert _coords(touch) == _coords(expected), "Drop size should follow strength"
    print("  ✓ Rain mapper working correctly")


def test_compound_mapper():
    mapper = CompoundTouchMapper([
        SinglePixelTouchMapper(),
        SolidRectTouchMapper(2, 2, strength=0.5),
    ])
    touch = mapper.touch_for_point(4, 4, 10, 10)
    assert isinstance(touch, CompoundTouch)
    assert len(touch) == 5, f"1 + 4 points expected, got {len(touch)}"

    with pytest.raises(InvalidArgumentError):
        CompoundTouchMapper([])


if __name__ == "__main__":
    print("\n=== Testing Touch Model ===\n")

    test_strength_bounds()
    test_touch_and_compound_touch()
    test_single_pixel_mapper()
    test_circle_mapper()
    test_rect_mapper()
    test_rain_mapper()
    test_compound_mapper()

    print("\n✓ All tests passed!\n")
