from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Protocol

from frameplot.errors import PlotInputError


Point = tuple[float, float]


class ScreenTransform(Protocol):
    def to_screen(self, point: Point) -> Point:
        ...


def pixels_per_unit(transform: ScreenTransform) -> float:
    """Average on-screen length of one world unit along x and y."""
    ox, oy = transform.to_screen((0.0, 0.0))
    ex, ey = transform.to_screen((1.0, 0.0))
    fx, fy = transform.to_screen((0.0, 1.0))
    value = (math.hypot(ex - ox, ey - oy) + math.hypot(fx - ox, fy - oy)) / 2.0
    if not math.isfinite(value) or value <= 0:
        raise PlotInputError(f"transform yields invalid pixels-per-unit: {value}")
    return value


@dataclass(frozen=True)
class Viewport:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise PlotInputError("viewport center must be finite")
        if not math.isfinite(self.zoom) or self.zoom <= 0:
            raise PlotInputError(f"viewport zoom must be finite and > 0, got {self.zoom}")


class ViewportTransform:
    """World to screen mapping for a pannable, zoomable canvas with y pointing up."""

    def __init__(self, viewport: Viewport, canvas_width: int, canvas_height: int) -> None:
        if canvas_width <= 0 or canvas_height <= 0:
            raise PlotInputError("canvas width/height must be > 0")
        self.viewport = viewport
        self.canvas_width = int(canvas_width)
        self.canvas_height = int(canvas_height)

    def to_screen(self, point: Point) -> Point:
        vp = self.viewport
        return (
            self.canvas_width / 2.0 + (point[0] - vp.x) * vp.zoom,
            self.canvas_height / 2.0 - (point[1] - vp.y) * vp.zoom,
        )

    def to_world(self, point: Point) -> Point:
        vp = self.viewport
        return (
            vp.x + (point[0] - self.canvas_width / 2.0) / vp.zoom,
            vp.y - (point[1] - self.canvas_height / 2.0) / vp.zoom,
        )

    def visible_bounds(self) -> tuple[float, float, float, float]:
        """Return ``(x_min, x_max, y_min, y_max)`` of the world area on screen."""
        x0, y0 = self.to_world((0.0, 0.0))
        x1, y1 = self.to_world((float(self.canvas_width), float(self.canvas_height)))
        return (min(x0, x1), max(x0, x1), min(y0, y1), max(y0, y1))


@dataclass(frozen=True)
class CoordinateFrame:
    name: str
    origin: Point
    basis_x: Point
    basis_y: Point
    pan: Point = (0.0, 0.0)
    zoom: float = 1.0

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise PlotInputError("frame name must be a non-empty string")
        if abs(self.determinant()) < 1e-9:
            raise PlotInputError(f"frame `{self.name}` basis vectors are singular")
        if not math.isfinite(self.zoom) or self.zoom <= 0:
            raise PlotInputError(f"frame `{self.name}` zoom must be finite and > 0")

    def determinant(self) -> float:
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        return (exx * eyy) - (exy * eyx)

    def to_parent(self, point: Point) -> Point:
        u = (point[0] - self.pan[0]) * self.zoom
        v = (point[1] - self.pan[1]) * self.zoom
        return (
            self.origin[0] + u * self.basis_x[0] + v * self.basis_y[0],
            self.origin[1] + u * self.basis_x[1] + v * self.basis_y[1],
        )

    def from_parent(self, point: Point) -> Point:
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        dx = point[0] - self.origin[0]
        dy = point[1] - self.origin[1]
        det = self.determinant()
        u = (dx * eyy - dy * eyx) / det
        v = (exx * dy - exy * dx) / det
        return (u / self.zoom + self.pan[0], v / self.zoom + self.pan[1])


class FrameTransform:
    """Maps points of a nested frame through its parent transform to the screen."""

    def __init__(self, frame: CoordinateFrame, parent: ScreenTransform) -> None:
        self.frame = frame
        self.parent = parent

    def to_screen(self, point: Point) -> Point:
        return self.parent.to_screen(self.frame.to_parent(point))

    def to_world(self, point: Point) -> Point:
        to_world = getattr(self.parent, "to_world", None)
        if to_world is None:
            raise TypeError(f"parent transform {type(self.parent).__name__} has no inverse")
        return self.frame.from_parent(to_world(point))


class FunctionTransform:
    def __init__(self, fn: Callable[[Point], Point]) -> None:
        if not callable(fn):
            raise PlotInputError("transform function must be callable")
        self._fn = fn

    def to_screen(self, point: Point) -> Point:
        sx, sy = self._fn(point)
        return (float(sx), float(sy))
