"""
Touch Sources - where touches come from

A touch source emits Touch objects on its `touches` stream. The processor
listens to that stream and queues every touch for the next frame.

Lifecycle:
    created --start()--> active <--pause()/start()--> paused
    any     --dispose()-> disposed (terminal, closes the stream)

Sources:
    PointerTouchSource  - mouse / finger over the displayed image
    RainTouchSource     - random raindrops from a background timer thread
    CompoundTouchSource - several sources acting as one
"""

import threading

import numpy as np

from .errors import IllegalStateError, InvalidArgumentError
from .touch_mappers import RainTouchMapper, SolidCircleTouchMapper

DEFAULT_POINTER_DIAMETER = 12
DEFAULT_DROPS_PER_SECOND = 40

CREATED = "created"
ACTIVE = "active"
PAUSED = "paused"
DISPOSED = "disposed"


class _Subscription:

    def __init__(self, stream, on_touch, on_done):
        self._stream = stream
        self.on_touch = on_touch
        self.on_done = on_done

    def cancel(self):
        self._stream._remove(self)


class TouchStream:
    """Broadcast channel of touches.

    Listeners are called synchronously on the emitting thread. A listener
    that raises propagates to whoever emitted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subs = []
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def listen(self, on_touch, on_done=None):
        """Subscribe. Returns a subscription with cancel()."""
        sub = _Subscription(self, on_touch, on_done)
        with self._lock:
            already_closed = self._closed
            if not already_closed:
                self._subs.append(sub)
        if already_closed and on_done is not None:
            on_done()
        return sub

    def add(self, touch):
        with self._lock:
            if self._closed:
                return
            subs = list(self._subs)
        for sub in subs:
            sub.on_touch(touch)

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subs, self._subs = self._subs, []
        for sub in subs:
            if sub.on_done is not None:
                sub.on_done()

    def _remove(self, sub):
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)


class TouchSource:
    """Base class. Subclasses call self._emit(touch) to produce touches."""

    def __init__(self, auto_run=True):
        self.touches = TouchStream()
        self.state = CREATED
        if auto_run:
            self.start()

    @property
    def is_active(self):
        return self.state == ACTIVE

    @property
    def is_disposed(self):
        return self.state == DISPOSED

    def _check_not_disposed(self, what):
        if self.state == DISPOSED:
            raise IllegalStateError(f"{what} called on a disposed {type(self).__name__}")

    def start(self):
        self._check_not_disposed("start()")
        self.state = ACTIVE

    def pause(self):
        self._check_not_disposed("pause()")
        self.state = PAUSED

    def dispose(self):
        self._check_not_disposed("dispose()")
        self.state = DISPOSED
        self.touches.close()

    def _emit(self, touch):
        if self.state == ACTIVE:
            self.touches.add(touch)

    # Hooks; the base versions only check the lifecycle

    def on_source_image_size_established(self, width, height):
        self._check_not_disposed("on_source_image_size_established()")

    def on_pointer_over_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_over_image()")

    def on_pointer_entered_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_entered_image()")

    def on_pointer_exited_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_exited_image()")


class PointerTouchSource(TouchSource):
    """Emits a touch for every pointer event over the image.

    Args:
        mapper: TouchMapper shaping each touch (default: 12px solid circle)
        auto_run: Start immediately
    """

    def __init__(self, mapper=None, auto_run=True):
        self.mapper = mapper if mapper is not None else SolidCircleTouchMapper(
            DEFAULT_POINTER_DIAMETER)
        super().__init__(auto_run=auto_run)

    def _pointer(self, what, x, y, image_width, image_height):
        self._check_not_disposed(what)
        if self.state == ACTIVE:
            self._emit(self.mapper.touch_for_point(x, y, image_width, image_height))

    def on_pointer_over_image(self, x, y, image_width, image_height, pointer_is_down):
        self._pointer("on_pointer_over_image()", x, y, image_width, image_height)

    def on_pointer_entered_image(self, x, y, image_width, image_height, pointer_is_down):
        self._pointer("on_pointer_entered_image()", x, y, image_width, image_height)

    def on_pointer_exited_image(self, x, y, image_width, image_height, pointer_is_down):
        self._pointer("on_pointer_exited_image()", x, y, image_width, image_height)


class RainTouchSource(TouchSource):
    """Random raindrops at a fixed rate, independent of the frame rate.

    Args:
        drops_per_second: Timer rate (default 40)
        auto_run: Start the timer immediately
        rng: numpy Generator for drop positions and strengths
    """

    def __init__(self, drops_per_second=DEFAULT_DROPS_PER_SECOND, auto_run=True, rng=None):
        if not drops_per_second > 0:
            raise InvalidArgumentError(
                f"drops_per_second must be positive, got {drops_per_second!r}")
        self.drops_per_second = drops_per_second
        self.interval = 1.0 / drops_per_second
        self.rng = rng if rng is not None else np.random.default_rng()
        self.mapper = RainTouchMapper(rng=self.rng)
        # Unknown until the processor reports the image size
        self.image_width = 0
        self.image_height = 0

        self._stop = threading.Event()
        self._thread = None
        super().__init__(auto_run=auto_run)

    def on_source_image_size_established(self, width, height):
        super().on_source_image_size_established(width, height)
        self.image_width = width
        self.image_height = height

    def start(self):
        super().start()
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, daemon=True,
                                            name="water-fx-rain")
            self._thread.start()
            print(f"[WaterFX] Rain started: {self.drops_per_second} drops/s")

    def dispose(self):
        super().dispose()
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
            print("[WaterFX] Rain stopped")

    def _run(self):
        while not self._stop.wait(self.interval):
            self._on_tick()

    def _on_tick(self):
        """One timer firing: drop a random raindrop while active."""
        if self.state != ACTIVE:
            return
        w, h = self.image_width, self.image_height
        x = int(w * self.rng.random())
        y = int(h * self.rng.random())
        self._emit(self.mapper.touch_for_point(x, y, w, h))


class CompoundTouchSource(TouchSource):
    """Several sources merged into one stream.

    Active only when every sub-source is active. The merged stream closes
    once every sub-stream has closed.
    """

    def __init__(self, sources):
        self.sources = list(sources)
        if not self.sources:
            raise InvalidArgumentError("CompoundTouchSource needs at least one source")
        super().__init__(auto_run=False)
        self._open_children = len(self.sources)
        self._done_lock = threading.Lock()
        self._subs = [s.touches.listen(self.touches.add, self._child_done)
                      for s in self.sources]

    def _child_done(self):
        with self._done_lock:
            self._open_children -= 1
            last = self._open_children == 0
        if last:
            self.touches.close()

    @property
    def is_active(self):
        return all(s.is_active for s in self.sources)

    @property
    def is_disposed(self):
        return all(s.is_disposed for s in self.sources)

    def _check_not_disposed(self, what):
        if self.is_disposed:
            raise IllegalStateError(f"{what} called on a disposed CompoundTouchSource")

    def start(self):
        self._check_not_disposed("start()")
        for s in self.sources:
            if not s.is_disposed:
                s.start()

    def pause(self):
        self._check_not_disposed("pause()")
        for s in self.sources:
            if not s.is_disposed:
                s.pause()

    def dispose(self):
        self._check_not_disposed("dispose()")
        for s in self.sources:
            if not s.is_disposed:
                s.dispose()

    def on_source_image_size_established(self, width, height):
        self._check_not_disposed("on_source_image_size_established()")
        for s in self.sources:
            if not s.is_disposed:
                s.on_source_image_size_established(width, height)

    def on_pointer_over_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_over_image()")
        for s in self.sources:
            if not s.is_disposed:
                s.on_pointer_over_image(x, y, image_width, image_height, pointer_is_down)

    def on_pointer_entered_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_entered_image()")
        for s in self.sources:
            if not s.is_disposed:
                s.on_pointer_entered_image(x, y, image_width, image_height, pointer_is_down)

    def on_pointer_exited_image(self, x, y, image_width, image_height, pointer_is_down):
        self._check_not_disposed("on_pointer_exited_image()")
        for s in self.sources:
            if not s.is_disposed:
                s.on_pointer_exited_image(x, y, image_width, image_height, pointer_is_down)
