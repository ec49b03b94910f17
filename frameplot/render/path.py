from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence, Union

from frameplot.series import RenderPath
from frameplot.transform import Point, ScreenTransform


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class CurveTo:
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float


PathCommand = Union[MoveTo, LineTo, CurveTo]


class PathSink(Protocol):
    def move_to(self, x: float, y: float) -> None:
        ...

    def line_to(self, x: float, y: float) -> None:
        ...

    def curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None:
        ...


def spline_commands(points: Sequence[Point]) -> list[PathCommand]:
    """Convert screen points into a Catmull-Rom spline expressed as cubic Beziers.

    The curve passes through every input point. End neighbours are clamped, so
    the first and last pieces use the endpoint itself as the missing neighbour.
    """
    n = len(points)
    if n == 0:
        return []
    first = points[0]
    if n == 1:
        return [MoveTo(first[0], first[1])]
    if n == 2:
        return [MoveTo(first[0], first[1]), LineTo(points[1][0], points[1][1])]

    commands: list[PathCommand] = [MoveTo(first[0], first[1])]
    for i in range(n - 1):
        p0 = points[i - 1] if i > 0 else points[i]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[i + 2] if i + 2 < n else p2
        commands.append(
            CurveTo(
                p1[0] + (p2[0] - p0[0]) / 6.0,
                p1[1] + (p2[1] - p0[1]) / 6.0,
                p2[0] - (p3[0] - p1[0]) / 6.0,
                p2[1] - (p3[1] - p1[1]) / 6.0,
                p2[0],
                p2[1],
            )
        )
    return commands


def replay(sink: PathSink, commands: Iterable[PathCommand]) -> None:
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            sink.move_to(cmd.x, cmd.y)
        elif isinstance(cmd, LineTo):
            sink.line_to(cmd.x, cmd.y)
        elif isinstance(cmd, CurveTo):
            sink.curve_to(cmd.c1x, cmd.c1y, cmd.c2x, cmd.c2y, cmd.x, cmd.y)
        else:
            raise TypeError(f"unsupported path command: {cmd!r}")


def draw_smooth_curve(sink: PathSink, points: Sequence[Point]) -> None:
    replay(sink, spline_commands(points))


class PathRecorder:
    """Sink that keeps every command it receives."""

    def __init__(self) -> None:
        self.commands: list[PathCommand] = []

    def move_to(self, x: float, y: float) -> None:
        self.commands.append(MoveTo(x, y))

    def line_to(self, x: float, y: float) -> None:
        self.commands.append(LineTo(x, y))

    def curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None:
        self.commands.append(CurveTo(c1x, c1y, c2x, c2y, x, y))

    def subpath_count(self) -> int:
        return sum(isinstance(cmd, MoveTo) for cmd in self.commands)


def draw_render_path(sink: PathSink, render_path: RenderPath, transform: ScreenTransform) -> int:
    """Draw each segment as its own subpath; returns the number of subpaths."""
    drawn = 0
    for segment in render_path.segments:
        screen = [transform.to_screen(p.world) for p in segment.points]
        draw_smooth_curve(sink, screen)
        drawn += 1
    return drawn
