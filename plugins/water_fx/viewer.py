"""
Interactive Pygame Viewer for water ripples

Shows a source image under a water surface. Moving the mouse over the
window makes ripples (with pointer presets); rain presets drop on their own.

Controls:
  SPACE       Pause / Resume the touch source
  A           Toggle engine active (touches ignored while off)
  B           Toggle barriers
  S           Save screenshot
  H           Toggle HUD overlay
  Q / ESC     Quit
  Mouse       Ripples follow the pointer
"""

import os
import time

import numpy as np
import pygame

from .presets import create_processor, get_preset
from .source_image import StaticImageSupplier, as_rgba


class Viewer:

    def __init__(self, image, preset_key="pointer", width=900, height=900):
        self.image = as_rgba(image)
        self.preset_key = preset_key
        self.canvas_w = width
        self.canvas_h = height
        self.img_h, self.img_w = self.image.shape[:2]

        self.processor = create_processor(
            preset_key, StaticImageSupplier(self.image), self.img_w, self.img_h)
        self.processor.start()

        self.running = True
        self.show_hud = True
        self.barriers_on = True
        self.frame = None
        self.fps_history = []
        self.hud_font = None

    def _to_image(self, pos):
        """Window pixel -> image pixel, clamped to the image."""
        mx, my = pos
        x = int(mx * self.img_w / self.canvas_w)
        y = int(my * self.img_h / self.canvas_h)
        return min(max(x, 0), self.img_w - 1), min(max(y, 0), self.img_h - 1)

    def _handle_mouse(self, event):
        if event.type == pygame.MOUSEMOTION:
            x, y = self._to_image(event.pos)
            self.processor.on_pointer_over_image(x, y, any(event.buttons))
        elif event.type == pygame.MOUSEBUTTONDOWN:
            x, y = self._to_image(event.pos)
            self.processor.on_pointer_over_image(x, y, True)

    def _handle_window(self, event):
        x, y = self._to_image(pygame.mouse.get_pos())
        down = any(pygame.mouse.get_pressed())
        if event.type == pygame.WINDOWENTER:
            self.processor.on_pointer_entered_image(x, y, down)
        elif event.type == pygame.WINDOWLEAVE:
            self.processor.on_pointer_exited_image(x, y, down)

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return

        stats = self.processor.engine.stats
        preset = get_preset(self.preset_key)
        line = (f"{preset['name']}  |  Frame: {stats['frame']:,}  |  "
                f"Disturbed: {stats['disturbed_pct']:.1f}%  |  "
                f"{self.img_w}x{self.img_h}  |  FPS: {fps:.0f}")
        if not self.processor.touch_source.is_active:
            line = "[PAUSED]  " + line
        if not self.processor.is_active:
            line = "[INACTIVE]  " + line
        if not self.barriers_on:
            line += "  |  barriers off"

        padding = 6
        bg_surface = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        text_surface = self.hud_font.render(line, True, (210, 215, 225))
        screen.blit(text_surface, (padding + 4, padding))

    def _save_screenshot(self):
        if self.frame is None:
            return
        screenshots_dir = os.path.join(
            os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
            "screenshots"
        )
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"water_{self.preset_key}_{timestamp}.png")
        surface = pygame.surfarray.make_surface(self.frame[..., :3].swapaxes(0, 1).copy())
        pygame.image.save(surface, path)
        print(f"[WaterFX] Screenshot saved: {path}")

    def run(self):
        """Main viewer loop. One processor tick per displayed frame."""
        pygame.init()

        screen = pygame.display.set_mode((self.canvas_w, self.canvas_h), pygame.RESIZABLE)
        pygame.display.set_caption(f"Water FX - {self.preset_key}")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        try:
            while self.running:
                frame_start = time.time()

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self._handle_keydown(event)
                    elif event.type == pygame.VIDEORESIZE:
                        self.canvas_w, self.canvas_h = event.w, event.h
                    elif event.type in (pygame.WINDOWENTER, pygame.WINDOWLEAVE):
                        self._handle_window(event)
                    elif event.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
                        self._handle_mouse(event)

                self.frame = self.processor.tick()
                surface = pygame.surfarray.make_surface(
                    self.frame[..., :3].swapaxes(0, 1).copy())
                scaled = pygame.transform.scale(surface, (self.canvas_w, self.canvas_h))
                screen.blit(scaled, (0, 0))

                self.fps_history.append(time.time() - frame_start)
                if len(self.fps_history) > 30:
                    self.fps_history.pop(0)
                avg_fps = 1.0 / max(np.mean(self.fps_history), 0.001)
                self._draw_hud(screen, avg_fps)

                pygame.display.flip()
                clock.tick(60)
        finally:
            self.processor.dispose()
            pygame.quit()

    def _handle_keydown(self, event):
        key = event.key

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key == pygame.K_SPACE:
            source = self.processor.touch_source
            if source.is_active:
                source.pause()
            else:
                source.start()

        elif key == pygame.K_a:
            self.processor.set_active(not self.processor.is_active)

        elif key == pygame.K_b:
            self.barriers_on = not self.barriers_on
            for barrier in self.processor.barriers:
                barrier.is_active = self.barriers_on

        elif key == pygame.K_s:
            self._save_screenshot()

        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
