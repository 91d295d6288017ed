"""
Water FX Viewer - Entry Point

Usage:
    python -m water_fx [preset] [--image PATH] [--size WxH] [--window WxH]

Examples:
    python -m water_fx
    python -m water_fx rain
    python -m water_fx island --image pond.jpg
    python -m water_fx storm --size 320x240 --window 960x720
    python -m water_fx framed --snap 120

Without --image a checkerboard is rippled. --size resamples the source
image (or sizes the checkerboard). --snap N runs headless for N frames
with a few scripted pointer drops and saves a PNG instead of opening a
window; use "all" as the preset to snap every preset.

Use --list to see all available presets.
"""

import os
import sys

import numpy as np
from PIL import Image

from .presets import PRESET_ORDER, create_processor, list_presets
from .source_image import StaticImageSupplier, as_rgba, checkerboard, resize_nearest


def _parse_wxh(text):
    parts = text.lower().split("x")
    return int(parts[0]), int(parts[1])


def load_image(path, size=None):
    """RGBA array from an image file (or a checkerboard when path is None)."""
    if path is None:
        w, h = size or (512, 512)
        return checkerboard(w, h)
    img = as_rgba(np.asarray(Image.open(path).convert("RGBA")))
    if size is not None:
        img = resize_nearest(img, size[0], size[1])
    return img


def snap(preset, image, steps):
    """Headless mode: run N frames, save screenshot, exit."""
    screenshots_dir = os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        "screenshots"
    )
    os.makedirs(screenshots_dir, exist_ok=True)

    h, w = image.shape[:2]
    presets_to_snap = [preset] if preset != "all" else PRESET_ORDER
    # Scripted pointer drops: (frame, x fraction, y fraction)
    drops = [(0, 0.3, 0.3), (steps // 4, 0.7, 0.4), (steps // 2, 0.45, 0.7)]

    for pkey in presets_to_snap:
        proc = create_processor(pkey, StaticImageSupplier(image), w, h)
        proc.start()
        print(f"  {pkey}: running {steps} frames...", end="", flush=True)
        frame = None
        for i in range(steps):
            for at, fx, fy in drops:
                if at == i:
                    proc.on_pointer_over_image(int(fx * (w - 1)), int(fy * (h - 1)), True)
            frame = proc.tick()
        proc.dispose()

        img = Image.fromarray(frame[..., :3])
        path = os.path.join(screenshots_dir, f"water_{pkey}.png")
        img.save(path)
        img.save(os.path.join(screenshots_dir, "latest.png"))
        print(f" saved: {path}")


def main():
    preset = "pointer"
    image_path = None
    size = None
    win_w, win_h = 900, 900
    snap_steps = 0

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--image" and i + 1 < len(args):
            image_path = args[i + 1]
            i += 2
        elif arg == "--size" and i + 1 < len(args):
            size = _parse_wxh(args[i + 1])
            i += 2
        elif arg == "--window" and i + 1 < len(args):
            win_w, win_h = _parse_wxh(args[i + 1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--list":
            print("\nAvailable presets:")
            for key, name, desc in list_presets():
                print(f"    {key:12s} {name:12s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER or arg == "all":
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return

    image = load_image(image_path, size)
    h, w = image.shape[:2]

    if snap_steps > 0:
        print(f"Headless snap mode: {preset} @ {w}x{h}, {snap_steps} frames")
        snap(preset, image, snap_steps)
        return

    if preset == "all":
        preset = "pointer"

    print("Starting Water FX Viewer")
    print(f"  Preset: {preset}")
    print(f"  Image: {image_path or 'checkerboard'} ({w}x{h})")
    print(f"  Window: {win_w}x{win_h}")
    print()

    from .viewer import Viewer
    viewer = Viewer(image, preset_key=preset, width=win_w, height=win_h)
    viewer.run()


if __name__ == "__main__":
    main()
