"""
RippleProcessor - frame driver tying supplier, touch source and engine together

Host-agnostic: call tick() once per display frame (vsync callback, pygame
loop, video pipeline call). Each tick runs exactly one engine step.

Touches arrive asynchronously (pointer callbacks, the rain timer thread) and
are queued; tick() drains the queue into the engine before stepping, so a
touch is never applied in the middle of a step.

Usage:
    from water_fx.processor import RippleProcessor
    from water_fx.source_image import StaticImageSupplier
    from water_fx.touch_sources import PointerTouchSource

    proc = RippleProcessor(StaticImageSupplier(img), PointerTouchSource())
    proc.start()
    proc.on_pointer_over_image(40, 30, pointer_is_down=True)
    frame = proc.tick()  # (H, W, 4) uint8 RGBA
"""

import queue

from .engine import RippleEngine
from .errors import IllegalStateError


class RippleProcessor:
    """Drives a RippleEngine from a touch source, one step per tick.

    Args:
        supplier: SourceImageSupplier
        touch_source: TouchSource feeding touches
        barriers: Optional list of Barrier instances
        active: Initial engine active flag
    """

    def __init__(self, supplier, touch_source, barriers=None, active=True):
        self.supplier = supplier
        self.touch_source = touch_source
        self.engine = RippleEngine(supplier, barriers=barriers, active=active)

        self._touches = queue.Queue()
        self._frame_listeners = []
        self._subscription = None
        self._started = False
        self._disposed = False

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start(self):
        """Size the engine from the supplier and start listening for touches."""
        if self._started:
            raise IllegalStateError("RippleProcessor.start() called twice")
        if self._disposed:
            raise IllegalStateError("RippleProcessor has been disposed")
        w, h = self.engine.establish_size_from_supplier()
        self._started = True
        self.touch_source.on_source_image_size_established(w, h)
        self._subscription = self.touch_source.touches.listen(self._touches.put)
        print(f"[WaterFX] Source image size established: {w}x{h}")

    def dispose(self):
        if not self._started:
            raise IllegalStateError("dispose() called before start()")
        if self._disposed:
            return
        self._disposed = True
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if not self.touch_source.is_disposed:
            self.touch_source.dispose()
        self.engine.dispose()
        self._frame_listeners.clear()
        print(f"[WaterFX] Processor disposed after {self.engine.frame_count} frames")

    @property
    def is_started(self):
        return self._started

    @property
    def is_disposed(self):
        return self._disposed

    # -----------------------------------------------------------------------
    # Frames
    # -----------------------------------------------------------------------

    def add_frame_listener(self, callback):
        """callback(frame) is called with every new (H, W, 4) uint8 frame."""
        self._frame_listeners.append(callback)

    def remove_frame_listener(self, callback):
        if callback in self._frame_listeners:
            self._frame_listeners.remove(callback)

    @property
    def pending_touches(self):
        return self._touches.qsize()

    def _drain_touches(self):
        while True:
            try:
                touch = self._touches.get_nowait()
            except queue.Empty:
                return
            self.engine.apply_touch(touch)

    def tick(self):
        """Apply queued touches, step once, notify listeners.

        Returns:
            (H, W, 4) uint8 RGBA frame
        """
        if not self._started:
            raise IllegalStateError("tick() called before start()")
        if self._disposed:
            raise IllegalStateError("tick() called after dispose()")
        self._drain_touches()
        frame = self.engine.step()
        for callback in list(self._frame_listeners):
            callback(frame)
        return frame

    # -----------------------------------------------------------------------
    # Pointer input (image coordinates)
    # -----------------------------------------------------------------------

    def on_pointer_over_image(self, x, y, pointer_is_down=False):
        size = self.image_size
        if size is not None:
            self.touch_source.on_pointer_over_image(x, y, size[0], size[1], pointer_is_down)

    def on_pointer_entered_image(self, x, y, pointer_is_down=False):
        size = self.image_size
        if size is not None:
            self.touch_source.on_pointer_entered_image(x, y, size[0], size[1], pointer_is_down)

    def on_pointer_exited_image(self, x, y, pointer_is_down=False):
        size = self.image_size
        if size is not None:
            self.touch_source.on_pointer_exited_image(x, y, size[0], size[1], pointer_is_down)

    # -----------------------------------------------------------------------
    # State
    # -----------------------------------------------------------------------

    def set_active(self, active):
        self.engine.set_active(active)

    @property
    def is_active(self):
        return self.engine.is_active

    @property
    def image_size(self):
        """(width, height), or None before start()."""
        return self.engine.size

    @property
    def barriers(self):
        return self.engine.barriers
