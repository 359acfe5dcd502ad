"""Pixel-art rendering of a local image.

The file is decoded with Pillow on a refresh worker thread into an RGB
numpy array capped at ``MAX_PIXEL_SIZE`` on its long side. Changing the
pixel size only resamples that array on the loop thread, so it needs no
new refresh.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from ..errors import ConfigError, RefreshError
from ..render.panel import DIM, rgb_to_ansi
from .base import Widget, WidgetKind, option

MIN_PIXEL_SIZE = 8
MAX_PIXEL_SIZE = 128
BLOCK = "█"


@dataclass
class PixelImage:
    pixels: np.ndarray  # (height, width, 3) uint8
    original_size: tuple[int, int]


def fit_size(width: int, height: int, target: int) -> tuple[int, int]:
    """Aspect-preserving size whose long side is ``target``."""
    if width >= height:
        return target, max(1, int(target * height / width))
    return max(1, int(target * width / height)), target


def load_image(path: Path, target: int = MAX_PIXEL_SIZE) -> PixelImage:
    """Decode ``path`` to RGB, shrunk with nearest-neighbour sampling."""
    with Image.open(path) as img:
        original = img.size
        img = img.convert("RGB").resize(fit_size(*original, target), Image.Resampling.NEAREST)
        return PixelImage(pixels=np.asarray(img, dtype=np.uint8), original_size=original)


def resample(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Nearest-neighbour resample of an (h, w, 3) array."""
    src_h, src_w = pixels.shape[:2]
    ys = (np.arange(height) * src_h // max(1, height)).clip(0, src_h - 1)
    xs = (np.arange(width) * src_w // max(1, width)).clip(0, src_w - 1)
    return pixels[ys][:, xs]


class PixelArtWidget(Widget):
    kind = WidgetKind.PIXELART

    def __init__(self, spec, path: Path, pixel_size: int = 32):
        super().__init__(spec)
        self.path = path
        self.pixel_size = pixel_size

    @classmethod
    def from_spec(cls, spec):
        path = Path(option(spec, "path", str)).expanduser()
        pixel_size = option(spec, "pixel_size", int, 32)
        if not MIN_PIXEL_SIZE <= pixel_size <= MAX_PIXEL_SIZE:
            raise ConfigError(
                f"pixelart {spec.title!r}: pixel_size must be between {MIN_PIXEL_SIZE} and {MAX_PIXEL_SIZE}"
            )
        return cls(spec, path, pixel_size)

    def refresh(self, ctx):
        try:
            return load_image(self.path)
        except OSError as e:
            # UnidentifiedImageError is an OSError too
            raise RefreshError(f"cannot read {self.path.name}: {e.strerror or e}") from e

    def handle_input(self, key: str) -> bool:
        if key in ("+", "=") and self.pixel_size < MAX_PIXEL_SIZE:
            self.pixel_size *= 2
            return True
        if key in ("-", "_") and self.pixel_size > MIN_PIXEL_SIZE:
            self.pixel_size //= 2
            return True
        return False

    @property
    def hints(self) -> str:
        return f"+/- pixel size ({self.pixel_size})"

    def draw(self, panel):
        image: PixelImage = self.payload
        src_h, src_w = image.pixels.shape[:2]
        width, height = fit_size(src_w, src_h, self.pixel_size)
        # Two cells per pixel keeps square pixels on a typical terminal font
        scale = min(1.0, (panel.width // 2) / width, (panel.height - 1) / height)
        width, height = max(1, int(width * scale)), max(1, int(height * scale))
        cells = resample(image.pixels, width, height)

        x0 = max(0, (panel.width - width * 2) // 2)
        for y in range(height):
            for x in range(width):
                r, g, b = (int(v) for v in cells[y, x])
                color = rgb_to_ansi(r, g, b)
                panel.put(x0 + x * 2, y, BLOCK, color)
                panel.put(x0 + x * 2 + 1, y, BLOCK, color)
        w, h = image.original_size
        panel.put_text(0, panel.height - 1, f"{self.path.name} {w}x{h} @ {self.pixel_size}px", DIM)
