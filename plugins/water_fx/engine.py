"""
Ripple Engine - integer height-field water with refraction

Based on Neil Wallis' classic ripple algorithm. Two int16 height maps take
turns: each frame reads the "source" map and writes the "sink" map, then
the roles swap (no copies, no per-frame allocation of the maps).

Per pixel, with N = sum of the 4 neighbours in the source map (neighbours
outside the image count as 0, so the edges act as a fixed shoreline):
  base = (N >> 1) - sink
  sink = base - (base >> 5)              # ~3% damping per frame

Refraction: the output pixel samples the source image at a position pulled
towards / pushed away from the image centre by the local height:
  perspective = MAX_RIPPLE_HEIGHT - h
  sx = clamp(round(half_w + (x - half_w) * perspective / MAX_RIPPLE_HEIGHT))

Shifts are arithmetic (floor towards -inf, not truncation).

Pixels inside an active ripple barrier get height 0 and show the true
source pixel.
"""

import threading

import numpy as np

from .barrier import combined_mask, contains_point
from .errors import IllegalStateError, InvalidArgumentError, SupplierUnavailableError
from .source_image import as_rgba, resize_nearest

MAX_RIPPLE_HEIGHT = 1024

_INT16_MIN = -32768
_INT16_SPAN = 65536


def _wrap_int16(value):
    """Wrap a Python int into int16 range, like a store into an Int16 buffer."""
    return (value - _INT16_MIN) % _INT16_SPAN + _INT16_MIN


def touch_height(strength):
    """Height added to the water by one touch point of the given strength."""
    return int(strength * MAX_RIPPLE_HEIGHT) // 2


class RippleEngine:
    """Headless ripple simulation over a source image supplier.

    Lifecycle: unsized -> sized (once, via establish_size or
    establish_size_from_supplier) -> disposed.

    Args:
        supplier: SourceImageSupplier providing the image to ripple
        barriers: Optional list of Barrier instances
        active: When False, apply_touch() does nothing (existing ripples
            keep animating)
    """

    def __init__(self, supplier, barriers=None, active=True):
        self.supplier = supplier
        self.barriers = list(barriers) if barriers else []
        self.is_active = active

        self.width = None
        self.height = None
        self.frame_count = 0
        # Frames where the supplier had nothing and the previous image was reused
        self.fetch_misses = 0

        self._sized = False
        self._disposed = False
        self._source_fetched = False
        self._lock = threading.RLock()

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    @property
    def is_sized(self):
        return self._sized

    @property
    def is_disposed(self):
        return self._disposed

    @property
    def size(self):
        """(width, height), or None before sizing."""
        return (self.width, self.height) if self._sized else None

    def establish_size(self, width, height):
        """Allocate height maps and color buffers. Allowed exactly once."""
        with self._lock:
            if self._sized:
                raise IllegalStateError(
                    f"size already established as {self.width}x{self.height}")
            if int(width) != width or int(height) != height or width <= 0 or height <= 0:
                raise InvalidArgumentError(f"invalid image size {width}x{height}")
            w, h = int(width), int(height)
            self.width, self.height = w, h

            # Height maps: index 0/1, self._src says which one is the source
            self._heights = (np.zeros((h, w), dtype=np.int16),
                             np.zeros((h, w), dtype=np.int16))
            self._src = 0

            # RGBA byte buffers with packed uint32 views (one value per pixel)
            self._source_rgba = np.zeros((h, w, 4), dtype=np.uint8)
            self._frame_rgba = np.zeros((h, w, 4), dtype=np.uint8)
            self._source_colors = self._source_rgba.reshape(-1).view(np.uint32)
            self._frame_colors = self._frame_rgba.reshape(-1).view(np.uint32)

            # Work buffers. The padded border stays 0 forever (shoreline).
            self._padded = np.zeros((h + 2, w + 2), dtype=np.int32)
            self._neighbors = np.empty((h, w), dtype=np.int32)
            self._new = np.empty((h, w), dtype=np.int32)
            self._shift = np.empty((h, w), dtype=np.int32)

            # Refraction geometry: offsets from the image centre
            self._half_w = w / 2
            self._half_h = h / 2
            self._dx = (np.arange(w, dtype=np.float64) - self._half_w)[np.newaxis, :]
            self._dy = (np.arange(h, dtype=np.float64) - self._half_h)[:, np.newaxis]
            self._identity = np.arange(h * w, dtype=np.intp).reshape(h, w)

            self._sized = True

    def establish_size_from_supplier(self):
        """Size the engine from the supplier's first image.

        Returns:
            (width, height)

        Raises:
            SupplierUnavailableError: the supplier has no image to give
        """
        image = self.supplier.fetch()
        if image is None:
            raise SupplierUnavailableError(
                "could not establish source image size: supplier returned no image")
        image = as_rgba(image)
        h, w = image.shape[:2]
        self.establish_size(w, h)
        return w, h

    def set_active(self, active):
        with self._lock:
            self.is_active = bool(active)

    def dispose(self):
        """Release all buffers. Waits for an in-flight step to finish."""
        with self._lock:
            if not self._sized:
                raise IllegalStateError("dispose() called before the image size was established")
            if self._disposed:
                return
            self._disposed = True
            self._heights = None
            self._source_rgba = self._frame_rgba = None
            self._source_colors = self._frame_colors = None
            self._padded = self._neighbors = self._new = self._shift = None

    # -----------------------------------------------------------------------
    # Touches
    # -----------------------------------------------------------------------

    def apply_touch(self, touch):
        """Add a touch to the source height map.

        Points inside an active touch barrier are skipped. Nothing happens
        while inactive, before sizing, or after dispose.

        Returns:
            Number of points applied
        """
        with self._lock:
            if not self.is_active or not self._sized or self._disposed:
                return 0
            w, h = self.width, self.height
            points = touch.points
            for p in points:
                if not (0 <= p.x < w and 0 <= p.y < h):
                    raise InvalidArgumentError(
                        f"touch point ({p.x}, {p.y}) is outside the {w}x{h} image")

            source = self._heights[self._src]
            applied = 0
            for p in points:
                if contains_point(self.barriers, p.x, p.y, w, h, ripple=False):
                    continue
                source[p.y, p.x] = _wrap_int16(int(source[p.y, p.x]) + touch_height(p.strength))
                applied += 1
            return applied

    # -----------------------------------------------------------------------
    # Frame step
    # -----------------------------------------------------------------------

    def _refresh_source_image(self):
        """Copy the supplier's image into the source color buffer if needed."""
        if self._source_fetched and not self.supplier.may_change_over_time:
            return
        image = self.supplier.fetch()
        if image is None:
            # Transient miss: keep showing the previous source image
            self.fetch_misses += 1
            return
        image = resize_nearest(as_rgba(image), self.width, self.height)
        self._source_rgba[...] = image
        self._source_fetched = True

    def step(self):
        """Advance the water by one frame.

        Returns:
            (H, W, 4) uint8 RGBA frame (a fresh copy)
        """
        with self._lock:
            if not self._sized:
                raise IllegalStateError("step() called before the image size was established")
            if self._disposed:
                raise IllegalStateError("step() called after dispose()")

            self._refresh_source_image()

            source = self._heights[self._src]
            sink = self._heights[1 - self._src]

            # Neighbour sum from pre-step values only
            p = self._padded
            p[1:-1, 1:-1] = source
            n = self._neighbors
            np.add(p[:-2, 1:-1], p[2:, 1:-1], out=n)
            n += p[1:-1, :-2]
            n += p[1:-1, 2:]

            # base = (N >> 1) - sink;  new = base - (base >> 5)
            new = self._new
            np.right_shift(n, 1, out=new)
            new -= sink
            np.right_shift(new, 5, out=self._shift)
            new -= self._shift

            barrier = combined_mask(self.barriers, self.width, self.height, ripple=True)
            if barrier is not None:
                new[barrier] = 0

            np.copyto(sink, new, casting="unsafe")  # int16 wrap, as the stored maps do

            # Refraction sampling from the stored sink heights
            perspective = MAX_RIPPLE_HEIGHT - sink.astype(np.float64)
            sx = np.floor(self._half_w + self._dx * perspective / MAX_RIPPLE_HEIGHT + 0.5)
            sy = np.floor(self._half_h + self._dy * perspective / MAX_RIPPLE_HEIGHT + 0.5)
            np.clip(sx, 0, self.width - 1, out=sx)
            np.clip(sy, 0, self.height - 1, out=sy)
            index = sy.astype(np.intp) * self.width + sx.astype(np.intp)
            if barrier is not None:
                index[barrier] = self._identity[barrier]
            np.take(self._source_colors, index.reshape(-1), out=self._frame_colors)

            # Sink becomes the source of the next frame
            self._src = 1 - self._src
            self.frame_count += 1
            return self._frame_rgba.copy()

    # -----------------------------------------------------------------------
    # Inspection
    # -----------------------------------------------------------------------

    @property
    def source_heights(self):
        """Copy of the map the next step reads (and touches are added to)."""
        with self._lock:
            self._check_live()
            return self._heights[self._src].copy()

    @property
    def sink_heights(self):
        """Copy of the map the next step writes."""
        with self._lock:
            self._check_live()
            return self._heights[1 - self._src].copy()

    @property
    def stats(self):
        with self._lock:
            self._check_live()
            heights = self._heights[self._src]
            return {
                "frame": self.frame_count,
                "max_height": int(np.abs(heights.astype(np.int32)).max()),
                "disturbed_pct": float(np.count_nonzero(heights)) / heights.size * 100,
                "fetch_misses": self.fetch_misses,
            }

    def _check_live(self):
        if not self._sized:
            raise IllegalStateError("image size not established yet")
        if self._disposed:
            raise IllegalStateError("engine has been disposed")
