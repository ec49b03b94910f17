from __future__ import annotations

import math
import unittest

from frameplot.config import DEFAULT_SAMPLING_CONFIG
from frameplot.discontinuity import BreakDecision, ClassifierContext, classify, split_segments
from frameplot.pipeline import PlotPipeline
from frameplot.sampling.adaptive import AdaptiveSampler
from frameplot.series import DensityContext, PlotSpec, SamplePoint
from frameplot.transform import FunctionTransform, Viewport, ViewportTransform


CTX = ClassifierContext(pixels_per_unit=100.0, domain_min=-1.0, domain_max=1.0, sample_count=1000)


def _identity() -> FunctionTransform:
    return FunctionTransform(lambda p: (p[0], p[1]))


class ClassifierRuleTests(unittest.TestCase):
    def test_non_finite_point_breaks(self) -> None:
        decision = classify((0.0, 0.0, math.nan), (0.0, math.nan), None, None, CTX)
        self.assertEqual(decision, BreakDecision(True, "non_finite"))
        self.assertTrue(decision)

    def test_first_point_never_breaks(self) -> None:
        decision = classify(SamplePoint.scalar(0.0, 1.0), (400.0, 200.0), None, None, CTX)
        self.assertFalse(decision)
        self.assertIsNone(decision.reason)

    def test_vertical_jump_breaks(self) -> None:
        decision = classify((0.001, 0.001, -20.0), (0.0, 2100.0), (0.0, 0.0, -5.0), (0.0, 600.0), CTX)
        self.assertEqual(decision.reason, "vertical_jump")

    def test_jump_threshold_grows_with_zoom(self) -> None:
        ctx = ClassifierContext(pixels_per_unit=200.0, domain_min=-1.0, domain_max=1.0, sample_count=1000)
        self.assertEqual(ctx.jump_threshold(DEFAULT_SAMPLING_CONFIG.classifier), 2000.0)
        decision = classify((0.001, 0.001, 2.0), (0.0, 1500.0), (0.0, 0.0, 1.0), (0.0, 0.0), ctx)
        self.assertFalse(decision)

    def test_domain_gap_breaks(self) -> None:
        decision = classify((0.05, 0.05, 1.0), (5.0, 10.0), (0.0, 0.0, 1.0), (0.0, 10.0), CTX)
        self.assertEqual(decision.reason, "domain_gap")
        decision = classify((0.03, 0.03, 1.0), (3.0, 10.0), (0.0, 0.0, 1.0), (0.0, 10.0), CTX)
        self.assertFalse(decision)

    def test_sign_change_at_zero_needs_large_jump(self) -> None:
        prev = (-0.001, -0.001, -4.5)
        point = (0.001, 0.001, 4.5)
        decision = classify(point, (0.1, -450.0), prev, (-0.1, 450.0), CTX)
        self.assertEqual(decision.reason, "sign_change_at_zero")
        decision = classify(point, (0.1, -350.0), prev, (-0.1, 350.0), CTX)
        self.assertFalse(decision)

    def test_sign_change_requires_x_crossing_zero(self) -> None:
        decision = classify((0.5, 0.5, 4.5), (0.1, -450.0), (0.499, 0.499, -4.5), (-0.1, 450.0), CTX)
        self.assertFalse(decision)


class SplitSegmentsTests(unittest.TestCase):
    def test_non_finite_points_end_the_segment_and_are_dropped(self) -> None:
        ctx = ClassifierContext(pixels_per_unit=1.0, domain_min=0.0, domain_max=1.0, sample_count=100)
        points = [
            (0.00, 0.00, 0.00),
            (0.01, 0.01, 0.01),
            (0.02, 0.02, math.nan),
            (0.03, 0.03, 0.03),
            (0.04, 0.04, 0.04),
        ]
        segments = split_segments(points, _identity(), ctx)
        self.assertEqual([len(s) for s in segments], [2, 2])
        self.assertEqual(segments[1].points[0].domain, 0.03)

    def test_isolated_points_are_kept_as_one_point_segments(self) -> None:
        points = [
            (0.0, 0.0, 1.0),
            (0.001, 0.001, math.nan),
            (0.002, 0.002, 2.0),
            (0.003, 0.003, math.inf),
            (0.004, 0.004, 3.0),
        ]
        segments = split_segments(points, _identity(), CTX)
        self.assertEqual([len(s) for s in segments], [1, 1, 1])
        self.assertEqual([s.points[0].y for s in segments], [1.0, 2.0, 3.0])

    def test_empty_input_gives_no_segments(self) -> None:
        self.assertEqual(split_segments([], _identity(), CTX), ())

    def test_reciprocal_never_joins_across_zero(self) -> None:
        transform = ViewportTransform(Viewport(0.0, 0.0, 300.0), 800, 600)
        render_path = PlotPipeline().plot(PlotSpec(lambda x: 1.0 / x, -1.0, 1.0), transform, canvas_size=(800, 600))
        segments = render_path.segments
        self.assertGreaterEqual(len(segments), 2)
        for seg in segments:
            domains = [p.domain for p in seg.points]
            self.assertTrue(all(d < 0 for d in domains) or all(d > 0 for d in domains))
        self.assertEqual(segments[0].points[0].domain, -1.0)
        self.assertEqual(segments[-1].points[-1].domain, 1.0)

    def test_fast_oscillation_stays_one_segment(self) -> None:
        transform = ViewportTransform(Viewport(0.5, 0.0, 300.0), 800, 600)
        density = DensityContext.from_transform(transform, 800, 600)
        curve = AdaptiveSampler().sample(PlotSpec(lambda x: math.sin(50.0 * x), 0.0, 1.0), density)
        self.assertEqual(curve.uniform_count, 5000)
        ctx = ClassifierContext(density.pixels_per_unit, curve.domain_min, curve.domain_max, curve.uniform_count)
        segments = split_segments(curve.points, transform, ctx)
        self.assertEqual(len(segments), 1)
        self.assertEqual(len(segments[0]), len(curve))


if __name__ == "__main__":
    unittest.main()
