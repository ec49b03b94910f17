from frameplot.config import DEFAULT_SAMPLING_CONFIG, SamplingConfig, load_sampling_config
from frameplot.errors import FrameplotError, PlotInputError, SamplingFailedError
from frameplot.pipeline import PlotPipeline, plot_function, plot_implicit, plot_parametric
from frameplot.series import (
    DensityContext,
    ImplicitPlotSpec,
    InteractionMode,
    ParametricPlotSpec,
    PlotSpec,
    RenderPath,
    SampledCurve,
    SamplePoint,
    Segment,
)
from frameplot.transform import CoordinateFrame, FrameTransform, FunctionTransform, Viewport, ViewportTransform

__all__ = [
    "CoordinateFrame",
    "DEFAULT_SAMPLING_CONFIG",
    "DensityContext",
    "FrameTransform",
    "FrameplotError",
    "FunctionTransform",
    "ImplicitPlotSpec",
    "InteractionMode",
    "ParametricPlotSpec",
    "PlotInputError",
    "PlotPipeline",
    "PlotSpec",
    "RenderPath",
    "SampledCurve",
    "SamplePoint",
    "SamplingConfig",
    "SamplingFailedError",
    "Segment",
    "Viewport",
    "ViewportTransform",
    "load_sampling_config",
    "plot_function",
    "plot_implicit",
    "plot_parametric",
]
