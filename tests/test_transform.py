from __future__ import annotations

import math
import unittest

from frameplot.errors import PlotInputError
from frameplot.series import DensityContext
from frameplot.transform import (
    CoordinateFrame,
    FrameTransform,
    FunctionTransform,
    Viewport,
    ViewportTransform,
    pixels_per_unit,
)


class ViewportTransformTests(unittest.TestCase):
    def test_world_to_screen_inverts_y(self) -> None:
        transform = ViewportTransform(Viewport(0.0, 0.0, 100.0), 800, 600)
        self.assertEqual(transform.to_screen((0.0, 0.0)), (400.0, 300.0))
        self.assertEqual(transform.to_screen((1.0, 1.0)), (500.0, 200.0))

    def test_round_trip_with_pan(self) -> None:
        transform = ViewportTransform(Viewport(2.5, -1.0, 40.0), 640, 480)
        sx, sy = transform.to_screen((3.0, 4.0))
        x, y = transform.to_world((sx, sy))
        self.assertAlmostEqual(x, 3.0)
        self.assertAlmostEqual(y, 4.0)

    def test_visible_bounds(self) -> None:
        transform = ViewportTransform(Viewport(0.0, 0.0, 100.0), 800, 600)
        self.assertEqual(transform.visible_bounds(), (-4.0, 4.0, -3.0, 3.0))

    def test_pixels_per_unit_matches_zoom(self) -> None:
        self.assertEqual(pixels_per_unit(ViewportTransform(Viewport(1.0, 1.0, 37.5), 100, 100)), 37.5)

    def test_rejects_invalid_viewport(self) -> None:
        with self.assertRaises(PlotInputError):
            Viewport(0.0, 0.0, 0.0)
        with self.assertRaises(PlotInputError):
            Viewport(math.inf, 0.0, 1.0)
        with self.assertRaises(PlotInputError):
            ViewportTransform(Viewport(), 0, 10)


class CoordinateFrameTests(unittest.TestCase):
    def test_frame_maps_through_basis(self) -> None:
        frame = CoordinateFrame("my_frame", origin=(10.0, 20.0), basis_x=(2.0, 0.0), basis_y=(0.0, 2.0))
        self.assertEqual(frame.to_parent((3.0, 4.0)), (16.0, 28.0))
        self.assertEqual(frame.from_parent((16.0, 28.0)), (3.0, 4.0))

    def test_pan_and_zoom_apply_before_basis(self) -> None:
        frame = CoordinateFrame("zoomed", origin=(0.0, 0.0), basis_x=(1.0, 0.0), basis_y=(0.0, 1.0), pan=(1.0, 1.0), zoom=2.0)
        self.assertEqual(frame.to_parent((3.0, 4.0)), (4.0, 6.0))
        self.assertEqual(frame.from_parent((4.0, 6.0)), (3.0, 4.0))

    def test_singular_frame_rejected(self) -> None:
        with self.assertRaises(PlotInputError):
            CoordinateFrame("bad", origin=(0.0, 0.0), basis_x=(1.0, 0.0), basis_y=(2.0, 0.0))
        with self.assertRaises(PlotInputError):
            CoordinateFrame("bad", origin=(0.0, 0.0), basis_x=(1.0, 0.0), basis_y=(0.0, 1.0), zoom=-1.0)

    def test_nested_frame_scales_pixels_per_unit(self) -> None:
        parent = ViewportTransform(Viewport(0.0, 0.0, 100.0), 800, 600)
        frame = CoordinateFrame("double", origin=(1.0, 1.0), basis_x=(2.0, 0.0), basis_y=(0.0, 2.0))
        nested = FrameTransform(frame, parent)
        self.assertEqual(pixels_per_unit(nested), 200.0)
        self.assertEqual(nested.to_screen((0.0, 0.0)), parent.to_screen((1.0, 1.0)))
        x, y = nested.to_world(nested.to_screen((0.25, -0.5)))
        self.assertAlmostEqual(x, 0.25)
        self.assertAlmostEqual(y, -0.5)

    def test_rotated_frame_keeps_scale(self) -> None:
        parent = ViewportTransform(Viewport(0.0, 0.0, 100.0), 800, 600)
        frame = CoordinateFrame("rotated", origin=(0.0, 0.0), basis_x=(0.0, 1.0), basis_y=(-1.0, 0.0))
        self.assertAlmostEqual(pixels_per_unit(FrameTransform(frame, parent)), 100.0)

    def test_frames_nest_more_than_once(self) -> None:
        parent = ViewportTransform(Viewport(0.0, 0.0, 10.0), 100, 100)
        outer = FrameTransform(CoordinateFrame("outer", (0.0, 0.0), (2.0, 0.0), (0.0, 2.0)), parent)
        inner = FrameTransform(CoordinateFrame("inner", (1.0, 0.0), (3.0, 0.0), (0.0, 3.0)), outer)
        self.assertEqual(pixels_per_unit(inner), 60.0)
        self.assertEqual(inner.to_screen((0.0, 0.0)), (70.0, 50.0))


class FunctionTransformTests(unittest.TestCase):
    def test_wraps_callable(self) -> None:
        transform = FunctionTransform(lambda p: (p[0] * 3.0, -p[1] * 3.0))
        self.assertEqual(transform.to_screen((1.0, 2.0)), (3.0, -6.0))
        self.assertEqual(pixels_per_unit(transform), 3.0)

    def test_rejects_non_callable(self) -> None:
        with self.assertRaises(PlotInputError):
            FunctionTransform("nope")  # type: ignore[arg-type]

    def test_degenerate_transform_is_rejected_by_density(self) -> None:
        flat = FunctionTransform(lambda p: (0.0, 0.0))
        with self.assertRaises(PlotInputError):
            DensityContext.from_transform(flat, 100, 100)

    def test_density_context_from_transform(self) -> None:
        density = DensityContext.from_transform(ViewportTransform(Viewport(0.0, 0.0, 50.0), 400, 300), 400, 300)
        self.assertEqual(density.pixels_per_unit, 50.0)
        self.assertEqual(density.pixel_domain_width, 0.02)


if __name__ == "__main__":
    unittest.main()
