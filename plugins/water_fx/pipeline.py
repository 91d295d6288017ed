"""
Water Ripple Pipeline for video hosts

Video-to-video pipeline: every incoming frame is the source image for the
ripple engine, and every call returns the rippled frame.

The host calls the pipeline once per frame with the video frames it has
and the runtime params from its UI. The processor is created lazily on the
first frame, because the barriers of a preset depend on the frame size.

Runtime params (read from kwargs on every call):
    active (bool): Whether touches disturb the water
    touch_x, touch_y (int): Pointer position in frame pixels
    pointer_down (bool): Whether the pointer is pressed
"""

import enum

import numpy as np
import torch
from pydantic import BaseModel, Field

from .presets import build_barriers, build_touch_source, get_preset
from .processor import RippleProcessor
from .source_image import LatestFrameSupplier


class PresetEnum(str, enum.Enum):
    """Water presets. Hosts render enum fields as dropdowns."""
    pointer = "pointer"
    rain = "rain"
    drizzle = "drizzle"
    storm = "storm"
    framed = "framed"
    island = "island"
    jetty = "jetty"


class RipplePipelineConfig(BaseModel):
    """Load-time settings for RipplePipeline."""

    preset: PresetEnum = Field(
        default=PresetEnum.pointer,
        description="Water preset (touch sources and barriers)",
    )
    drops_per_second: float = Field(
        default=40.0, gt=0.0, le=1000.0,
        description="Raindrops per second, for presets with rain",
    )
    pointer_diameter: int = Field(
        default=12, ge=1, le=256,
        description="Diameter of a pointer touch in pixels",
    )
    touch_strength: float = Field(
        default=1.0, ge=0.0, le=1.0,
        description="Strength of pointer touches",
    )
    active: bool = Field(
        default=True,
        description="Whether touches disturb the water",
    )
    fallback_size: int = Field(
        default=512, ge=1, le=4096,
        description="Size of the black frame returned before any video arrives",
    )


def _frame_to_numpy(frame):
    """(1, H, W, C) or (H, W, C) tensor -> (H, W, C) numpy array."""
    if isinstance(frame, torch.Tensor):
        frame = frame.detach().cpu()
        if frame.dim() == 4:
            frame = frame[0]
        if frame.is_floating_point():
            frame = frame.float()
        return frame.numpy()
    arr = np.asarray(frame)
    return arr[0] if arr.ndim == 4 else arr


class RipplePipeline:
    """Ripples the incoming video frames.

    Args:
        **config: RipplePipelineConfig fields
    """

    def __init__(self, **config):
        self.config = RipplePipelineConfig(**config)
        self.supplier = LatestFrameSupplier()
        self.processor = None
        print(f"[WaterFX] Pipeline created: preset={self.config.preset.value}")

    def _start_processor(self, width, height):
        preset = get_preset(self.config.preset.value)
        touch_source = build_touch_source(
            preset,
            drops_per_second=self.config.drops_per_second,
            pointer_diameter=self.config.pointer_diameter,
            touch_strength=self.config.touch_strength,
        )
        self.processor = RippleProcessor(
            self.supplier, touch_source,
            barriers=build_barriers(preset, width, height),
            active=self.config.active,
        )
        self.processor.start()

    def __call__(self, video=None, **kwargs) -> dict:
        """Ripple the latest video frame.

        Returns:
            {"video": tensor} where tensor is (1, H, W, 3) float32 [0,1]
        """
        if video is not None:
            frames = video if isinstance(video, (list, tuple)) else [video]
            if frames:
                self.supplier.push(_frame_to_numpy(frames[-1]))

        if self.processor is None:
            latest = self.supplier.fetch()
            if latest is None:
                # No video yet: black frame
                s = self.config.fallback_size
                return {"video": torch.zeros((1, s, s, 3), dtype=torch.float32)}
            h, w = latest.shape[:2]
            self._start_processor(w, h)

        proc = self.processor
        proc.set_active(kwargs.get("active", self.config.active))

        touch_x = kwargs.get("touch_x")
        touch_y = kwargs.get("touch_y")
        if touch_x is not None and touch_y is not None:
            w, h = proc.image_size
            x = min(max(int(touch_x), 0), w - 1)
            y = min(max(int(touch_y), 0), h - 1)
            proc.on_pointer_over_image(x, y, bool(kwargs.get("pointer_down", False)))

        frame = proc.tick()
        rgb = frame[..., :3].astype(np.float32) / 255.0
        return {"video": torch.from_numpy(rgb).unsqueeze(0)}

    def dispose(self):
        if self.processor is not None:
            self.processor.dispose()
            self.processor = None
        self.supplier.clear()
