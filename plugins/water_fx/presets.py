"""
Water Effect Presets

Each preset names the touch sources and barriers of a ready-made effect.
Barrier geometry is given as fractions of the image so a preset works at
any resolution; build_barriers() turns it into pixel shapes.

Barrier "extent" keys (radius, inset) are fractions of min(width, height).
"""

from .barrier import (
    BarrierType, PaddingBarrier, SolidCircleBarrier, SolidEllipseBarrier,
    SolidRectBarrier,
)
from .processor import RippleProcessor
from .touch_mappers import SolidCircleTouchMapper
from .touch_sources import CompoundTouchSource, PointerTouchSource, RainTouchSource

PRESETS = {
    "pointer": {
        "name": "Pointer",
        "description": "Ripples follow the mouse",
        "pointer": {"diameter": 12, "strength": 1.0},
        "rain": None,
        "barriers": [],
    },
    "rain": {
        "name": "Rain",
        "description": "Steady rain, 40 drops per second",
        "pointer": None,
        "rain": {"drops_per_second": 40},
        "barriers": [],
    },
    "drizzle": {
        "name": "Drizzle",
        "description": "Light, sparse rain you can stir by hand",
        "pointer": {"diameter": 8, "strength": 0.6},
        "rain": {"drops_per_second": 6},
        "barriers": [],
    },
    "storm": {
        "name": "Storm",
        "description": "Heavy rain plus pointer ripples",
        "pointer": {"diameter": 16, "strength": 1.0},
        "rain": {"drops_per_second": 240},
        "barriers": [],
    },
    "framed": {
        "name": "Framed",
        "description": "Pointer ripples inside a still picture frame",
        "pointer": {"diameter": 12, "strength": 1.0},
        "rain": None,
        "barriers": [
            {"shape": "padding", "inset": 0.06, "type": "ripple_and_touch"},
        ],
    },
    "island": {
        "name": "Island",
        "description": "A still island in a pond; its shore cannot be touched",
        "pointer": {"diameter": 12, "strength": 1.0},
        "rain": {"drops_per_second": 10},
        "barriers": [
            {"shape": "circle", "cx": 0.5, "cy": 0.5, "radius": 0.15, "type": "ripple"},
            {"shape": "ellipse", "cx": 0.5, "cy": 0.5, "w": 0.5, "h": 0.4, "type": "touch"},
        ],
    },
    "jetty": {
        "name": "Jetty",
        "description": "A pier across the lower water that ripples cannot pass",
        "pointer": {"diameter": 12, "strength": 1.0},
        "rain": {"drops_per_second": 20},
        "barriers": [
            {"shape": "rect", "x": 0.45, "y": 0.55, "w": 0.1, "h": 0.45, "type": "ripple"},
        ],
    },
}

PRESET_ORDER = ["pointer", "rain", "drizzle", "storm", "framed", "island", "jetty"]


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets():
    """Return list of (key, name, description) for all presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER if k in PRESETS]


def build_touch_source(preset, auto_run=True, rng=None, drops_per_second=None,
                       pointer_diameter=None, touch_strength=None):
    """Create the touch source(s) a preset asks for.

    Keyword overrides replace the preset's values when given. Returns a
    single source, or a CompoundTouchSource when the preset has both
    pointer and rain.
    """
    sources = []
    pointer = preset.get("pointer")
    if pointer is not None:
        mapper = SolidCircleTouchMapper(
            diameter=pointer_diameter if pointer_diameter is not None else pointer["diameter"],
            strength=touch_strength if touch_strength is not None else pointer["strength"])
        sources.append(PointerTouchSource(mapper=mapper, auto_run=auto_run))
    rain = preset.get("rain")
    if rain is not None:
        rate = drops_per_second if drops_per_second is not None else rain["drops_per_second"]
        sources.append(RainTouchSource(drops_per_second=rate, auto_run=auto_run, rng=rng))
    if not sources:
        # Every preset disturbs the water somehow; fall back to the pointer
        sources.append(PointerTouchSource(auto_run=auto_run))
    if len(sources) == 1:
        return sources[0]
    return CompoundTouchSource(sources)


def create_processor(preset_key, supplier, width, height, rng=None, **overrides):
    """RippleProcessor wired up for a preset (not started yet).

    Raises:
        ValueError: unknown preset key
    """
    preset = get_preset(preset_key)
    if preset is None:
        raise ValueError(f"Unknown preset {preset_key!r}")
    touch_source = build_touch_source(preset, rng=rng, **overrides)
    return RippleProcessor(supplier, touch_source,
                           barriers=build_barriers(preset, width, height))


def build_barriers(preset, width, height):
    """Pixel-space barriers for a preset at the given image size."""
    extent = min(width, height)
    barriers = []
    for item in preset.get("barriers", []):
        kind = BarrierType(item.get("type", BarrierType.RIPPLE_AND_TOUCH))
        shape = item["shape"]
        if shape == "padding":
            barriers.append(PaddingBarrier.all(int(item["inset"] * extent), type=kind))
        elif shape == "circle":
            barriers.append(SolidCircleBarrier(
                int(item["cx"] * width), int(item["cy"] * height),
                int(item["radius"] * extent), type=kind))
        elif shape == "ellipse":
            barriers.append(SolidEllipseBarrier(
                int(item["cx"] * width), int(item["cy"] * height),
                max(1, int(item["w"] * width)), max(1, int(item["h"] * height)), type=kind))
        elif shape == "rect":
            barriers.append(SolidRectBarrier.from_ltwh(
                int(item["x"] * width), int(item["y"] * height),
                int(item["w"] * width), int(item["h"] * height), type=kind))
        else:
            raise ValueError(f"Unknown barrier shape {shape!r}")
    return barriers
