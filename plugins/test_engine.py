#!/usr/bin/env python3
"""
Tests for the ripple engine.

Verifies:
1. Undisturbed water shows the source image unchanged
2. Exact heights after a single touch
3. Touch and ripple barriers
4. Step/refraction against a plain-Python reference
5. Damping, resampling, transient supplier misses, lifecycle errors
"""

import math

import numpy as np
import pytest

from water_fx.barrier import BarrierType, SolidRectBarrier
from water_fx.engine import MAX_RIPPLE_HEIGHT, RippleEngine, touch_height
from water_fx.errors import IllegalStateError, InvalidArgumentError, SupplierUnavailableError
from water_fx.source_image import (
    CallableImageSupplier, LatestFrameSupplier, StaticImageSupplier,
)
from water_fx.touch import Touch, TouchPoint


def _image(w, h, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)


def _engine(w, h, barriers=None, seed=0):
    img = _image(w, h, seed)
    eng = RippleEngine(StaticImageSupplier(img), barriers=barriers)
    eng.establish_size(w, h)
    return eng, img


def _touch(*points, strength=1.0):
    return Touch([TouchPoint(x, y, strength) for x, y in points])


# ---------------------------------------------------------------------------
# Plain-Python reference of one frame
# ---------------------------------------------------------------------------

def _reference_step(source, sink, w, h):
    new = [[0] * w for _ in range(h)]
    for y in range(h):
        for x in range(w):
            n = 0
            if x > 0:
                n += source[y][x - 1]
            if x < w - 1:
                n += source[y][x + 1]
            if y > 0:
                n += source[y - 1][x]
            if y < h - 1:
                n += source[y + 1][x]
            base = (n >> 1) - sink[y][x]
            new[y][x] = base - (base >> 5)
    return new


def _reference_refract(heights, image, w, h):
    out = np.empty_like(image)
    for y in range(h):
        for x in range(w):
            p = MAX_RIPPLE_HEIGHT - heights[y][x]
            sx = math.floor(w / 2 + (x - w / 2) * p / MAX_RIPPLE_HEIGHT + 0.5)
            sy = math.floor(h / 2 + (y - h / 2) * p / MAX_RIPPLE_HEIGHT + 0.5)
            sx = min(max(sx, 0), w - 1)
            sy = min(max(sy, 0), h - 1)
            out[y, x] = image[sy, sx]
    return out


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

def test_undisturbed_water_is_transparent():
    """No touches: every frame equals the source image."""
    print("Testing undisturbed water...")
    eng, img = _engine(16, 12)
    for _ in range(5):
        frame = eng.step()
        assert frame.shape == (12, 16, 4), f"Unexpected frame shape {frame.shape}"
        assert np.array_equal(frame, img), "Flat water must show the source unchanged"
        assert not eng.source_heights.any(), "Flat water must stay at height 0"
    print("  ✓ Undisturbed water working correctly")


def test_single_touch_exact_heights():
    """4x4 grid, full-strength touch at (1, 1)."""
    print("Testing single touch heights...")
    eng, _ = _engine(4, 4)
    applied = eng.apply_touch(_touch((1, 1)))
    assert applied == 1, f"One point should be applied, got {applied}"
    assert eng.source_heights[1, 1] == 512, "Touch adds strength * 1024 // 2"

    eng.step()
    written = eng.source_heights   # grid written by the step, read by the next
    expected = np.zeros((4, 4), dtype=np.int16)
    expected[0, 1] = expected[2, 1] = expected[1, 0] = expected[1, 2] = 248
    assert np.array_equal(written, expected), f"Unexpected heights:\n{written}"

    # The other grid still holds the touch itself
    other = eng.sink_heights
    assert other[1, 1] > 0, "Touched pixel should be positive"
    other[1, 1] = 0
    assert not other.any(), "All other pixels should still be zero"
    print("  ✓ Single touch heights working correctly")


def test_touch_height():
    assert touch_height(1.0) == 512
    assert touch_height(0.5) == 256
    assert touch_height(0.0) == 0


def test_touch_barrier_blocks_touches():
    print("Testing touch barrier...")
    barrier = SolidRectBarrier(0, 0, 3, 3, type=BarrierType.TOUCH)
    eng, _ = _engine(8, 8, barriers=[barrier])
    applied = eng.apply_touch(_touch((1, 1), (5, 5)))
    heights = eng.source_heights
    assert applied == 1, f"Only the point outside the barrier applies, got {applied}"
    assert heights[1, 1] == 0, "Point inside touch barrier must be ignored"
    assert heights[5, 5] == 512, "Point outside the barrier must be applied"

    barrier.is_active = False
    eng.apply_touch(_touch((1, 1)))
    assert eng.source_heights[1, 1] == 512, "Inactive barrier blocks nothing"
    print("  ✓ Touch barrier working correctly")


def test_ripple_barrier_holds_water_still():
    print("Testing ripple barrier...")
    # Column x = 2 is a ripple barrier
    barrier = SolidRectBarrier(2, 0, 1, 4, type=BarrierType.RIPPLE)
    eng, img = _engine(4, 4, barriers=[barrier])
    assert eng.apply_touch(_touch((2, 1))) == 1, "Ripple barriers do not block touches"
    eng.apply_touch(_touch((1, 1)))

    for _ in range(4):
        frame = eng.step()
        heights = eng.source_heights
        assert not heights[:, 2].any(), f"Barrier column must stay at 0:\n{heights}"
        assert np.array_equal(frame[:, 2], img[:, 2]), "Barrier shows the true image"
    print("  ✓ Ripple barrier working correctly")


def test_corner_touches():
    print("Testing corner touches...")
    eng, _ = _engine(6, 6)
    eng.apply_touch(_touch((0, 0), (5, 0), (0, 5), (5, 5)))
    eng.step()
    heights = eng.source_heights
    expected = np.zeros((6, 6), dtype=np.int16)
    for y, x in ((0, 1), (1, 0), (0, 4), (1, 5), (4, 0), (5, 1), (4, 5), (5, 4)):
        expected[y, x] = 248
    assert np.array_equal(heights, expected), f"Missing neighbours count as 0:\n{heights}"
    print("  ✓ Corner touches working correctly")


def test_matches_reference_implementation():
    """Several frames of touches and steps, compared bit for bit."""
    print("Testing against reference...")
    w, h = 9, 7
    eng, img = _engine(w, h, seed=3)
    source = [[0] * w for _ in range(h)]
    sink = [[0] * w for _ in range(h)]
    schedule = {0: [(2, 3, 1.0)], 3: [(6, 1, 0.5), (0, 6, 0.8)], 7: [(4, 4, 0.3)]}

    for frame_no in range(12):
        for x, y, s in schedule.get(frame_no, []):
            eng.apply_touch(_touch((x, y), strength=s))
            source[y][x] += touch_height(s)
        frame = eng.step()
        new = _reference_step(source, sink, w, h)
        sink = source
        source = new
        assert np.array_equal(eng.source_heights, np.array(new)), \
            f"Heights differ from reference at frame {frame_no}"
        assert np.array_equal(frame, _reference_refract(new, img, w, h)), \
            f"Refraction differs from reference at frame {frame_no}"
    print("  ✓ Reference comparison working correctly")


def test_damping():
    print("Testing damping...")
    eng, _ = _engine(32, 32)
    eng.apply_touch(_touch((16, 16), (15, 16), (16, 15)))
    for _ in range(5):
        eng.step()
    early = int(np.abs(eng.source_heights.astype(np.int32)).max())
    for _ in range(300):
        eng.step()
    late = int(np.abs(eng.source_heights.astype(np.int32)).max())
    assert early > 0, "Ripples should exist after the touch"
    assert late < early, f"Ripples should die down: early={early}, late={late}"
    print("  ✓ Damping working correctly")


def test_source_image_resampled_to_engine_size():
    small = _image(8, 6)
    eng = RippleEngine(CallableImageSupplier(lambda: small))
    eng.establish_size(16, 12)
    frame = eng.step()
    assert frame.shape == (12, 16, 4), f"Frame should match engine size, got {frame.shape}"


def test_transient_fetch_miss_reuses_previous_image():
    print("Testing transient fetch miss...")
    img = _image(10, 10)
    supplier = LatestFrameSupplier()
    supplier.push(img)
    eng = RippleEngine(supplier)
    assert eng.establish_size_from_supplier() == (10, 10)
    first = eng.step()
    supplier.clear()
    second = eng.step()
    assert eng.fetch_misses == 1, f"One miss expected, got {eng.fetch_misses}"
    assert np.array_equal(first, second), "Previous source image should be reused"
    print("  ✓ Transient fetch miss working correctly")


def test_static_supplier_fetched_once():
    calls = []

    def fetch():
        calls.append(1)
        return _image(5, 5)

    eng = RippleEngine(CallableImageSupplier(fetch, may_change_over_time=False))
    eng.establish_size(5, 5)
    for _ in range(4):
        eng.step()
    assert len(calls) == 1, f"Unchanging supplier should be fetched once, got {len(calls)}"


def test_inactive_engine_ignores_touches():
    eng, _ = _engine(6, 6)
    eng.set_active(False)
    assert eng.apply_touch(_touch((2, 2))) == 0
    assert not eng.source_heights.any(), "Inactive engine must not change heights"
    eng.set_active(True)
    assert eng.apply_touch(_touch((2, 2))) == 1


def test_lifecycle_errors():
    print("Testing lifecycle errors...")
    eng = RippleEngine(StaticImageSupplier(_image(4, 4)))
    assert eng.size is None
    assert eng.apply_touch(_touch((0, 0))) == 0, "Touch before sizing is a no-op"
    with pytest.raises(IllegalStateError):
        eng.step()
    with pytest.raises(IllegalStateError):
        eng.dispose()
    with pytest.raises(InvalidArgumentError):
        eng.establish_size(0, 4)
    eng.establish_size(4, 4)
    with pytest.raises(IllegalStateError):
        eng.establish_size(4, 4)
    with pytest.raises(InvalidArgumentError):
        eng.apply_touch(_touch((4, 0)))

    eng.dispose()
    assert eng.is_disposed
    assert eng.apply_touch(_touch((0, 0))) == 0, "Touch after dispose is a no-op"
    with pytest.raises(IllegalStateError):
        eng.step()

    with pytest.raises(SupplierUnavailableError):
        RippleEngine(LatestFrameSupplier()).establish_size_from_supplier()
    print("  ✓ Lifecycle errors working correctly")


if __name__ == "__main__":
    print("\n=== Testing Ripple Engine ===\n")

    test_undisturbed_water_is_transparent()
    test_single_touch_exact_heights()
    test_touch_height()
    test_touch_barrier_blocks_touches()
    test_ripple_barrier_holds_water_still()
    test_corner_touches()
    test_matches_reference_implementation()
    test_damping()
    test_source_image_resampled_to_engine_size()
    test_transient_fetch_miss_reuses_previous_image()
    test_static_supplier_fetched_once()
    test_inactive_engine_ignores_touches()
    test_lifecycle_errors()

    print("\n✓ All tests passed!\n")
