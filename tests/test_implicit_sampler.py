from __future__ import annotations

import math
import unittest

from frameplot.errors import SamplingFailedError
from frameplot.sampling.implicit import ImplicitSampler, PlaneCache
from frameplot.series import DensityContext, ImplicitPlotSpec, InteractionMode


def _density(ppu: float) -> DensityContext:
    return DensityContext(pixels_per_unit=ppu, canvas_width=800, canvas_height=600)


def _unit_circle(x: float, y: float) -> float:
    return x * x + y * y - 1.0


class ImplicitSamplerTests(unittest.TestCase):
    def test_unit_circle_is_one_closed_loop(self) -> None:
        spec = ImplicitPlotSpec(_unit_circle, -2.0, 2.0, -2.0, 2.0)
        segments = ImplicitSampler().sample(spec, _density(100.0))
        self.assertEqual(len(segments), 1)
        loop = segments[0]
        self.assertGreater(len(loop), 100)
        self.assertEqual(loop.points[0].world, loop.points[-1].world)
        for p in loop.points:
            self.assertAlmostEqual(math.hypot(p.x, p.y), 1.0, delta=1e-3)

    def test_segment_domain_is_arc_index(self) -> None:
        spec = ImplicitPlotSpec(_unit_circle, -2.0, 2.0, -2.0, 2.0)
        segment = ImplicitSampler().sample(spec, _density(50.0), InteractionMode.LIVE)[0]
        self.assertEqual([p.domain for p in segment.points], [float(i) for i in range(len(segment))])

    def test_disjoint_components_become_separate_segments(self) -> None:
        def two_circles(x: float, y: float) -> float:
            return min((x - 1.0) ** 2 + y * y - 0.25, (x + 1.0) ** 2 + y * y - 0.25)

        spec = ImplicitPlotSpec(two_circles, -2.0, 2.0, -1.0, 1.0)
        segments = ImplicitSampler().sample(spec, _density(100.0))
        self.assertEqual(len(segments), 2)
        centres = sorted(round(sum(p.x for p in s.points) / len(s)) for s in segments)
        self.assertEqual(centres, [-1, 1])

    def test_open_curve_runs_edge_to_edge(self) -> None:
        spec = ImplicitPlotSpec(lambda x, y: y - x, -1.0, 1.0, -1.0, 1.0)
        segments = ImplicitSampler().sample(spec, _density(100.0))
        self.assertEqual(len(segments), 1)
        for p in segments[0].points:
            self.assertAlmostEqual(p.x, p.y, places=9)

    def test_resolution_depends_on_mode(self) -> None:
        spec = ImplicitPlotSpec(_unit_circle, -2.0, 2.0, -2.0, 2.0)
        sampler = ImplicitSampler()
        self.assertEqual(sampler.resolution(spec, _density(100.0), InteractionMode.FULL), 100)
        self.assertEqual(sampler.resolution(spec, _density(100.0), InteractionMode.LIVE), 33)
        self.assertEqual(sampler.resolution(spec, _density(1.0), InteractionMode.FULL), 50)
        self.assertEqual(sampler.resolution(spec, _density(10000.0), InteractionMode.LIVE), 120)

    def test_no_zero_crossing_gives_no_segments(self) -> None:
        spec = ImplicitPlotSpec(lambda x, y: x * x + y * y + 1.0, -1.0, 1.0, -1.0, 1.0)
        self.assertEqual(ImplicitSampler().sample(spec, _density(50.0)), ())

    def test_invalid_cells_are_skipped(self) -> None:
        spec = ImplicitPlotSpec(lambda x, y: math.sqrt(x) - 0.5 + y, -1.0, 1.0, -1.0, 1.0)
        segments = ImplicitSampler().sample(spec, _density(50.0))
        self.assertGreaterEqual(len(segments), 1)
        for seg in segments:
            self.assertTrue(all(p.x >= 0.0 for p in seg.points))

    def test_all_invalid_grid_raises(self) -> None:
        spec = ImplicitPlotSpec(lambda x, y: math.nan, -1.0, 1.0, -1.0, 1.0)
        with self.assertRaises(SamplingFailedError):
            ImplicitSampler().sample(spec, _density(50.0), InteractionMode.LIVE)


class PlaneCacheTests(unittest.TestCase):
    def test_memoizes_and_stores_invalid_as_nan(self) -> None:
        calls: list[tuple[float, float]] = []

        def fn(x: float, y: float) -> float:
            calls.append((x, y))
            return math.log(x) + y

        cache = PlaneCache(fn)
        self.assertEqual(cache.evaluate(1.0, 2.0), 2.0)
        self.assertEqual(cache.evaluate(1.0, 2.0), 2.0)
        self.assertTrue(math.isnan(cache.evaluate(-1.0, 0.0)))
        self.assertTrue(math.isnan(cache.evaluate(-1.0, 0.0)))
        self.assertEqual(len(calls), 2)
        self.assertEqual(cache.hits, 2)
        self.assertIn("ValueError", cache.last_error or "")


if __name__ == "__main__":
    unittest.main()
