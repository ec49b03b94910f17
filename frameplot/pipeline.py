from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from frameplot.config import DEFAULT_SAMPLING_CONFIG, SamplingConfig
from frameplot.discontinuity import ClassifierContext, split_segments
from frameplot.errors import PlotInputError
from frameplot.render.path import PathSink, draw_render_path
from frameplot.sampling.adaptive import AdaptiveSampler
from frameplot.sampling.implicit import ImplicitSampler
from frameplot.series import (
    DensityContext,
    ImplicitPlotSpec,
    InteractionMode,
    ParametricPlotSpec,
    PlotSpec,
    RenderPath,
    SampledCurve,
)
from frameplot.transform import ScreenTransform


LOGGER = logging.getLogger(__name__)


class PlotPipeline:
    """Sample, split and draw one plot per call; no state survives between calls."""

    def __init__(self, config: SamplingConfig = DEFAULT_SAMPLING_CONFIG) -> None:
        self.config = config
        self.sampler = AdaptiveSampler(config)
        self.implicit_sampler = ImplicitSampler(config)

    def sample(
        self,
        spec: PlotSpec | ParametricPlotSpec,
        transform: ScreenTransform,
        *,
        canvas_size: tuple[int, int],
        mode: InteractionMode = InteractionMode.FULL,
    ) -> SampledCurve:
        return self._sample(spec, _density(transform, canvas_size), mode)

    def _sample(
        self,
        spec: PlotSpec | ParametricPlotSpec,
        density: DensityContext,
        mode: InteractionMode,
    ) -> SampledCurve:
        if isinstance(spec, ParametricPlotSpec):
            return self.sampler.sample_parametric(spec, density, mode)
        if isinstance(spec, PlotSpec):
            return self.sampler.sample(spec, density, mode)
        raise PlotInputError(f"unsupported plot spec: {type(spec).__name__}")

    def plot(
        self,
        spec: PlotSpec | ParametricPlotSpec,
        transform: ScreenTransform,
        *,
        canvas_size: tuple[int, int],
        mode: InteractionMode = InteractionMode.FULL,
    ) -> RenderPath:
        density = _density(transform, canvas_size)
        curve = self._sample(spec, density, mode)
        context = ClassifierContext(
            pixels_per_unit=density.pixels_per_unit,
            domain_min=curve.domain_min,
            domain_max=curve.domain_max,
            sample_count=curve.uniform_count,
        )
        segments = split_segments(curve.points, transform, context, self.config.classifier)
        LOGGER.debug(
            "plot %s: %d points, %d segments, %d evaluations",
            spec.label or "<unnamed>",
            len(curve),
            len(segments),
            curve.evaluations,
        )
        return RenderPath(segments=segments, color_hint=spec.color_hint, label=spec.label)

    def plot_implicit(
        self,
        spec: ImplicitPlotSpec,
        transform: ScreenTransform,
        *,
        canvas_size: tuple[int, int],
        mode: InteractionMode = InteractionMode.FULL,
    ) -> RenderPath:
        density = _density(transform, canvas_size)
        segments = self.implicit_sampler.sample(spec, density, mode)
        return RenderPath(segments=segments, color_hint=spec.color_hint, label=spec.label)

    def render(self, sink: PathSink, render_path: RenderPath, transform: ScreenTransform) -> int:
        return draw_render_path(sink, render_path, transform)


def _density(transform: ScreenTransform, canvas_size: Sequence[int]) -> DensityContext:
    if len(canvas_size) != 2:
        raise PlotInputError("canvas_size must be (width, height)")
    return DensityContext.from_transform(transform, canvas_size[0], canvas_size[1])


_DEFAULT_PIPELINE = PlotPipeline()


def plot_function(
    evaluate: Callable[[float], Any],
    x_min: float,
    x_max: float,
    transform: ScreenTransform,
    *,
    canvas_size: tuple[int, int],
    mode: InteractionMode = InteractionMode.FULL,
    color_hint: str | tuple[int, ...] | None = None,
    label: str | None = None,
) -> RenderPath:
    spec = PlotSpec(evaluate, x_min, x_max, color_hint=color_hint, label=label)
    return _DEFAULT_PIPELINE.plot(spec, transform, canvas_size=canvas_size, mode=mode)


def plot_parametric(
    evaluate: Callable[[float], Sequence[Any]],
    t_min: float,
    t_max: float,
    transform: ScreenTransform,
    *,
    canvas_size: tuple[int, int],
    mode: InteractionMode = InteractionMode.FULL,
    color_hint: str | tuple[int, ...] | None = None,
    label: str | None = None,
) -> RenderPath:
    spec = ParametricPlotSpec.from_pair(evaluate, t_min, t_max, color_hint=color_hint, label=label)
    return _DEFAULT_PIPELINE.plot(spec, transform, canvas_size=canvas_size, mode=mode)


def plot_implicit(
    evaluate: Callable[[float, float], Any],
    bounds: tuple[float, float, float, float],
    transform: ScreenTransform,
    *,
    canvas_size: tuple[int, int],
    mode: InteractionMode = InteractionMode.FULL,
    color_hint: str | tuple[int, ...] | None = None,
    label: str | None = None,
) -> RenderPath:
    """Plot the zero set of ``evaluate`` over ``(x_min, x_max, y_min, y_max)``."""
    x_min, x_max, y_min, y_max = bounds
    spec = ImplicitPlotSpec(evaluate, x_min, x_max, y_min, y_max, color_hint=color_hint, label=label)
    return _DEFAULT_PIPELINE.plot_implicit(spec, transform, canvas_size=canvas_size, mode=mode)
