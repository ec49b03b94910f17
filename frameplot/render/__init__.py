from .path import (
    CurveTo,
    LineTo,
    MoveTo,
    PathCommand,
    PathRecorder,
    PathSink,
    draw_render_path,
    draw_smooth_curve,
    spline_commands,
)
from .raster import RasterCanvas
from .svg import SvgPathBuilder

__all__ = [
    "CurveTo",
    "LineTo",
    "MoveTo",
    "PathCommand",
    "PathRecorder",
    "PathSink",
    "RasterCanvas",
    "SvgPathBuilder",
    "draw_render_path",
    "draw_smooth_curve",
    "spline_commands",
]
