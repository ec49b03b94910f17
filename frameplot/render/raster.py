from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from frameplot.transform import Point


LOGGER = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]

_MAX_CUBIC_STEPS = 64


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 255)) -> np.ndarray:
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[:, :, 0] = color[0]
    canvas[:, :, 1] = color[1]
    canvas[:, :, 2] = color[2]
    canvas[:, :, 3] = color[3]
    return canvas


def parse_color(value: str | Sequence[int] | None, default: RGBA = (0, 0, 0, 255)) -> RGBA:
    if value is None:
        return default
    if not isinstance(value, str):
        parts = [int(v) for v in value]
        if len(parts) == 3:
            parts.append(255)
        if len(parts) != 4 or any(p < 0 or p > 255 for p in parts):
            raise ValueError(f"color must have 3 or 4 channels in 0..255, got {value!r}")
        return (parts[0], parts[1], parts[2], parts[3])
    text = value.strip()
    if not text.startswith("#") or len(text) not in {4, 5, 7, 9}:
        raise ValueError(f"unsupported color: {value!r}")
    hex_value = text[1:]
    if len(hex_value) in {3, 4}:
        hex_value = "".join(ch * 2 for ch in hex_value)
    channels = [int(hex_value[i : i + 2], 16) for i in range(0, len(hex_value), 2)]
    if len(channels) == 3:
        channels.append(255)
    return (channels[0], channels[1], channels[2], channels[3])


def draw_pixel(dst: np.ndarray, x: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0] or x < 0 or x >= dst.shape[1]:
        return
    a = color[3] / 255.0
    inv = 1.0 - a
    current = dst[y, x, :3].astype(np.float32)
    dst[y, x, 0:3] = (np.asarray(color[0:3], dtype=np.float32) * a + current * inv).astype(np.uint8)
    dst[y, x, 3] = 255


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size < 2:
        return
    h, w = dst.shape[0], dst.shape[1]
    margin = float(max(1, width))
    for i in range(xs.size - 1):
        clipped = clip_segment(
            (float(xs[i]), float(ys[i])),
            (float(xs[i + 1]), float(ys[i + 1])),
            (-margin, -margin, w - 1 + margin, h - 1 + margin),
        )
        if clipped is None:
            continue
        (x0, y0), (x1, y1) = clipped
        _draw_line_segment(dst, int(round(x0)), int(round(y0)), int(round(x1)), int(round(y1)), color=color, width=width)


def clip_segment(a: Point, b: Point, box: tuple[float, float, float, float]) -> tuple[Point, Point] | None:
    """Liang-Barsky clip of segment ``a-b`` to ``(x_min, y_min, x_max, y_max)``."""
    if not all(math.isfinite(v) for v in (*a, *b)):
        return None
    x_min, y_min, x_max, y_max = box
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, a[0] - x_min), (dx, x_max - a[0]), (-dy, a[1] - y_min), (dy, y_max - a[1])):
        if p == 0.0:
            if q < 0.0:
                return None
            continue
        r = q / p
        if p < 0.0:
            if r > t1:
                return None
            t0 = max(t0, r)
        else:
            if r < t0:
                return None
            t1 = min(t1, r)
    return (a[0] + t0 * dx, a[1] + t0 * dy), (a[0] + t1 * dx, a[1] + t1 * dy)


def flatten_cubic(p0: Point, c1: Point, c2: Point, p3: Point, step_px: float = 4.0) -> list[Point]:
    """Sample a cubic Bezier into points after ``p0`` (``p3`` included)."""
    hull = math.dist(p0, c1) + math.dist(c1, c2) + math.dist(c2, p3)
    if not math.isfinite(hull):
        return [p3]
    steps = max(1, min(_MAX_CUBIC_STEPS, int(math.ceil(hull / step_px))))
    out: list[Point] = []
    for k in range(1, steps + 1):
        t = k / steps
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3.0 * mt * mt * t
        c = 3.0 * mt * t * t
        d = t * t * t
        out.append(
            (
                a * p0[0] + b * c1[0] + c * c2[0] + d * p3[0],
                a * p0[1] + b * c1[1] + c * c2[1] + d * p3[1],
            )
        )
    return out


def _draw_line_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, width: int) -> None:
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        _draw_square_brush(dst, x0, y0, color=color, width=width)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _draw_square_brush(dst: np.ndarray, x: int, y: int, color: RGBA, width: int) -> None:
    radius = max(0, width // 2)
    for yy in range(y - radius, y + radius + 1):
        for xx in range(x - radius, x + radius + 1):
            draw_pixel(dst, xx, yy, color)


class RasterCanvas:
    """RGBA pixel surface that strokes path commands as they arrive.

    Each ``move_to`` finishes the previous subpath. Call :meth:`stroke` (or any
    export method) to flush the last one.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        background: str | Sequence[int] = (255, 255, 255, 255),
        color: str | Sequence[int] = (31, 119, 180, 255),
        line_width: int = 1,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.pixels = new_canvas(self.width, self.height, parse_color(background))
        self.color = parse_color(color)
        self.line_width = max(1, int(line_width))
        self._current: list[Point] = []
        self.subpaths_drawn = 0

    def set_style(self, *, color: str | Sequence[int] | None = None, line_width: int | None = None) -> None:
        self.stroke()
        if color is not None:
            self.color = parse_color(color)
        if line_width is not None:
            self.line_width = max(1, int(line_width))

    def move_to(self, x: float, y: float) -> None:
        self.stroke()
        self._current = [(x, y)]

    def line_to(self, x: float, y: float) -> None:
        if not self._current:
            self._current = [(x, y)]
            return
        self._current.append((x, y))

    def curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None:
        if not self._current:
            self._current = [(x, y)]
            return
        self._current.extend(flatten_cubic(self._current[-1], (c1x, c1y), (c2x, c2y), (x, y)))

    def stroke(self) -> None:
        points = self._current
        self._current = []
        if not points:
            return
        xs = np.asarray([p[0] for p in points], dtype=np.float64)
        ys = np.asarray([p[1] for p in points], dtype=np.float64)
        if xs.size == 1:
            if math.isfinite(xs[0]) and math.isfinite(ys[0]):
                _draw_square_brush(self.pixels, int(round(xs[0])), int(round(ys[0])), self.color, self.line_width)
        else:
            draw_polyline(self.pixels, xs, ys, self.color, width=self.line_width)
        self.subpaths_drawn += 1

    def to_image(self) -> Image.Image:
        self.stroke()
        return Image.fromarray(self.pixels)

    def save_png(self, path: str | Path) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(out, format="PNG")
        LOGGER.debug("wrote %dx%d PNG to %s", self.width, self.height, out)
        return out
