from __future__ import annotations

import math
import unittest
from unittest import mock

from frameplot import (
    CoordinateFrame,
    FrameTransform,
    ImplicitPlotSpec,
    InteractionMode,
    PlotInputError,
    PlotPipeline,
    PlotSpec,
    Viewport,
    ViewportTransform,
    plot_function,
    plot_implicit,
    plot_parametric,
)
from frameplot.render.path import MoveTo, PathRecorder


SIZE = (800, 600)


def _view(zoom: float = 80.0) -> ViewportTransform:
    return ViewportTransform(Viewport(0.0, 0.0, zoom), *SIZE)


class PlotPipelineTests(unittest.TestCase):
    def test_smooth_function_is_one_segment(self) -> None:
        path = plot_function(math.sin, -3.0, 3.0, _view(), canvas_size=SIZE, label="sin", color_hint="#ff0000")
        self.assertEqual(len(path), 1)
        self.assertEqual(path.label, "sin")
        self.assertEqual(path.color_hint, "#ff0000")
        self.assertGreater(path.point_count, 1000)

    def test_tangent_breaks_at_asymptotes(self) -> None:
        path = plot_function(math.tan, -3.0, 3.0, _view(), canvas_size=SIZE)
        self.assertGreaterEqual(len(path), 3)
        for seg in path.segments:
            domains = [p.domain for p in seg.points]
            self.assertFalse(any(a < math.pi / 2 < b for a, b in zip(domains, domains[1:])))
            self.assertFalse(any(a < -math.pi / 2 < b for a, b in zip(domains, domains[1:])))

    def test_parametric_circle(self) -> None:
        path = plot_parametric(lambda t: (math.cos(t), math.sin(t)), 0.0, 2.0 * math.pi, _view(), canvas_size=SIZE)
        self.assertEqual(len(path), 1)
        first, last = path.segments[0].points[0], path.segments[0].points[-1]
        self.assertAlmostEqual(first.x, last.x)
        self.assertAlmostEqual(first.y, last.y)

    def test_implicit_circle(self) -> None:
        path = plot_implicit(lambda x, y: x * x + y * y - 4.0, (-3.0, 3.0, -3.0, 3.0), _view(), canvas_size=SIZE)
        self.assertEqual(len(path), 1)
        for p in path.segments[0].points:
            self.assertAlmostEqual(math.hypot(p.x, p.y), 2.0, delta=1e-3)

    def test_render_draws_one_subpath_per_segment(self) -> None:
        pipeline = PlotPipeline()
        transform = _view(300.0)
        path = pipeline.plot(PlotSpec(lambda x: 1.0 / x, -1.0, 1.0), transform, canvas_size=SIZE)
        sink = PathRecorder()
        drawn = pipeline.render(sink, path, transform)
        self.assertEqual(drawn, len(path))
        self.assertEqual(sum(isinstance(c, MoveTo) for c in sink.commands), len(path))
        first = path.segments[0].points[0]
        self.assertEqual(sink.commands[0], MoveTo(*transform.to_screen(first.world)))

    def test_invalid_input_rejected_before_sampling(self) -> None:
        fn = mock.Mock(return_value=1.0)
        with self.assertRaises(PlotInputError):
            PlotPipeline().plot(PlotSpec(fn, 1.0, 1.0), _view(), canvas_size=SIZE)
        with self.assertRaises(PlotInputError):
            PlotPipeline().plot(PlotSpec(fn, 0.0, math.inf), _view(), canvas_size=SIZE)
        with self.assertRaises(PlotInputError):
            PlotPipeline().plot(PlotSpec(fn, 0.0, 1.0), _view(), canvas_size=(0, 600))
        with self.assertRaises(PlotInputError):
            PlotPipeline().plot(PlotSpec("sin", 0.0, 1.0), _view(), canvas_size=SIZE)  # type: ignore[arg-type]
        fn.assert_not_called()

    def test_unsupported_spec_rejected(self) -> None:
        spec = ImplicitPlotSpec(lambda x, y: x, -1.0, 1.0, -1.0, 1.0)
        with self.assertRaises(PlotInputError):
            PlotPipeline().plot(spec, _view(), canvas_size=SIZE)  # type: ignore[arg-type]

    def test_live_mode_through_pipeline(self) -> None:
        calls = []

        def fn(x: float) -> float:
            calls.append(x)
            return x * x

        path = PlotPipeline().plot(PlotSpec(fn, -100.0, 100.0), _view(), canvas_size=SIZE, mode=InteractionMode.LIVE)
        self.assertLessEqual(len(calls), 150)
        self.assertEqual(path.point_count, 150)

    def test_live_parametric_pair_stays_within_cap(self) -> None:
        calls = []

        def circle(t: float) -> tuple[float, float]:
            calls.append(t)
            return (math.cos(t), math.sin(t))

        plot_parametric(circle, 0.0, 2.0 * math.pi, _view(1000.0), canvas_size=SIZE, mode=InteractionMode.LIVE)
        self.assertLessEqual(len(calls), 150)
        self.assertEqual(len(calls), len(set(calls)))

    def test_nested_frame_raises_density(self) -> None:
        pipeline = PlotPipeline()
        parent = _view(40.0)
        nested = FrameTransform(CoordinateFrame("zoomed", (0.0, 0.0), (4.0, 0.0), (0.0, 4.0)), parent)
        spec = PlotSpec(math.sin, -1.0, 1.0)
        flat = pipeline.sample(spec, parent, canvas_size=SIZE)
        framed = pipeline.sample(spec, nested, canvas_size=SIZE)
        self.assertEqual(flat.uniform_count, 1000)
        self.assertEqual(framed.uniform_count, 3000)

    def test_passes_share_no_state(self) -> None:
        calls = []

        def fn(x: float) -> float:
            calls.append(x)
            return math.cos(x)

        pipeline = PlotPipeline()
        pipeline.plot(PlotSpec(fn, 0.0, 1.0), _view(), canvas_size=SIZE, mode="live")
        first = len(calls)
        pipeline.plot(PlotSpec(fn, 0.0, 1.0), _view(), canvas_size=SIZE, mode="live")
        self.assertEqual(len(calls), 2 * first)


if __name__ == "__main__":
    unittest.main()
