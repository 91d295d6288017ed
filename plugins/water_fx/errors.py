"""
Error types for the WaterFX ripple engine.

InvalidArgumentError - bad construction parameters (touch strength, shapes,
                       pixel buffers). Never clamped silently.
IllegalStateError    - calls made in the wrong lifecycle state (double
                       sizing, stepping before sizing, disposed sources).
SupplierUnavailableError - no initial source image, so no size can ever be
                       established.

A supplier returning nothing for one frame after sizing is not an error:
the engine reuses the previous source image (see RippleEngine.fetch_misses).
"""


class WaterFXError(Exception):
    """Base class for all WaterFX errors."""


class InvalidArgumentError(WaterFXError, ValueError):
    pass


class IllegalStateError(WaterFXError, RuntimeError):
    pass


class SupplierUnavailableError(WaterFXError, RuntimeError):
    pass
