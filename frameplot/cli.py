from __future__ import annotations

import argparse
from dataclasses import dataclass
import logging
import math
from pathlib import Path
from typing import Callable

from frameplot.config import SamplingConfig, load_sampling_config
from frameplot.errors import FrameplotError
from frameplot.pipeline import PlotPipeline
from frameplot.render.raster import RasterCanvas
from frameplot.render.svg import SvgPathBuilder
from frameplot.series import ImplicitPlotSpec, InteractionMode, ParametricPlotSpec, PlotSpec, RenderPath
from frameplot.transform import Viewport, ViewportTransform


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Demo:
    kind: str
    description: str
    build: Callable[[float, float, float, float], PlotSpec | ParametricPlotSpec | ImplicitPlotSpec]


def _reciprocal(x: float) -> float:
    return 1.0 / x


def _lemniscate(x: float, y: float) -> float:
    r2 = x * x + y * y
    return r2 * r2 - 2.0 * (x * x - y * y)


DEMOS: dict[str, Demo] = {
    "sin": Demo("function", "y = sin(x)", lambda x0, x1, y0, y1: PlotSpec(math.sin, x0, x1, label="sin")),
    "sin50": Demo(
        "function",
        "y = sin(50x)",
        lambda x0, x1, y0, y1: PlotSpec(lambda x: math.sin(50.0 * x), x0, x1, label="sin50"),
    ),
    "reciprocal": Demo("function", "y = 1/x", lambda x0, x1, y0, y1: PlotSpec(_reciprocal, x0, x1, label="reciprocal")),
    "tan": Demo("function", "y = tan(x)", lambda x0, x1, y0, y1: PlotSpec(math.tan, x0, x1, label="tan")),
    "sqrt": Demo("function", "y = sqrt(x)", lambda x0, x1, y0, y1: PlotSpec(math.sqrt, x0, x1, label="sqrt")),
    "circle": Demo(
        "parametric",
        "(cos t, sin t), t in [0, 2pi]",
        lambda x0, x1, y0, y1: ParametricPlotSpec(math.cos, math.sin, 0.0, 2.0 * math.pi, label="circle"),
    ),
    "lemniscate": Demo(
        "implicit",
        "(x^2 + y^2)^2 = 2(x^2 - y^2)",
        lambda x0, x1, y0, y1: ImplicitPlotSpec(_lemniscate, x0, x1, y0, y1, label="lemniscate"),
    ),
    "unit_circle": Demo(
        "implicit",
        "x^2 + y^2 = 1",
        lambda x0, x1, y0, y1: ImplicitPlotSpec(lambda x, y: x * x + y * y - 1.0, x0, x1, y0, y1, label="unit_circle"),
    ),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="frameplot")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a built-in demo curve to PNG or SVG.")
    render.add_argument("demo", choices=sorted(DEMOS))
    render.add_argument("--out", type=Path, required=True, help="Output file; .png or .svg.")
    render.add_argument("--xmin", type=float, default=None, help="Domain start. Default: left edge of the view.")
    render.add_argument("--xmax", type=float, default=None, help="Domain end. Default: right edge of the view.")
    render.add_argument("--center-x", type=float, default=0.0)
    render.add_argument("--center-y", type=float, default=0.0)
    render.add_argument("--zoom", type=float, default=80.0, help="Pixels per world unit.")
    render.add_argument("--width", type=int, default=800)
    render.add_argument("--height", type=int, default=600)
    render.add_argument("--live", action="store_true", help="Use the low-latency sampling mode.")
    render.add_argument("--color", default="#1f77b4")
    render.add_argument("--line-width", type=int, default=2)
    render.add_argument("--config", type=Path, default=None, help="Sampling config TOML file.")
    render.add_argument("-v", "--verbose", action="count", default=0)

    sub.add_parser("demos", help="List the built-in demo curves.")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "demos":
        for name in sorted(DEMOS):
            demo = DEMOS[name]
            print(f"{name:<12} {demo.kind:<10} {demo.description}")
        return

    if args.command == "render":
        _configure_logging(args.verbose)
        suffix = args.out.suffix.lower()
        if suffix not in {".png", ".svg"}:
            parser.error(f"--out must end in .png or .svg, got `{args.out.name}`")
        config = load_sampling_config(args.config) if args.config is not None else SamplingConfig.from_env()
        transform = ViewportTransform(Viewport(args.center_x, args.center_y, args.zoom), args.width, args.height)
        x_view_min, x_view_max, y_view_min, y_view_max = transform.visible_bounds()
        x_min = args.xmin if args.xmin is not None else x_view_min
        x_max = args.xmax if args.xmax is not None else x_view_max

        demo = DEMOS[args.demo]
        spec = demo.build(x_min, x_max, y_view_min, y_view_max)
        mode = InteractionMode.LIVE if args.live else InteractionMode.FULL
        LOGGER.info("rendering %s over [%g, %g] in %s mode", args.demo, x_min, x_max, mode.value)
        pipeline = PlotPipeline(config)
        canvas_size = (args.width, args.height)
        try:
            if isinstance(spec, ImplicitPlotSpec):
                render_path = pipeline.plot_implicit(spec, transform, canvas_size=canvas_size, mode=mode)
            else:
                render_path = pipeline.plot(spec, transform, canvas_size=canvas_size, mode=mode)
        except FrameplotError as exc:
            parser.exit(2, f"{parser.prog}: {exc}\n")

        out = _write(pipeline, render_path, transform, args, suffix)
        print(
            f"render complete: demo={args.demo} mode={mode.value} segments={len(render_path)} "
            f"points={render_path.point_count} out={out}"
        )
        return

    raise RuntimeError(f"unsupported command: {args.command}")


def _write(
    pipeline: PlotPipeline,
    render_path: RenderPath,
    transform: ViewportTransform,
    args: argparse.Namespace,
    suffix: str,
) -> Path:
    if suffix == ".svg":
        builder = SvgPathBuilder(args.width, args.height)
        builder.begin_path(stroke=args.color, stroke_width=args.line_width)
        pipeline.render(builder, render_path, transform)
        return builder.save(args.out)
    canvas = RasterCanvas(args.width, args.height, color=args.color, line_width=args.line_width)
    pipeline.render(canvas, render_path, transform)
    return canvas.save_png(args.out)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
