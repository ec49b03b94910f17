from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Callable, Iterator, Sequence

from frameplot.adapters.normalize import coerce_pair
from frameplot.errors import PlotInputError
from frameplot.transform import ScreenTransform, pixels_per_unit


ScalarFunction = Callable[[float], Any]
ImplicitFunction = Callable[[float, float], Any]


class InteractionMode(str, Enum):
    FULL = "full"
    LIVE = "live"


def _check_domain(lo: float, hi: float, *, label: str) -> tuple[float, float]:
    try:
        lo_f = float(lo)
        hi_f = float(hi)
    except (TypeError, ValueError) as exc:
        raise PlotInputError(f"{label} bounds must be real numbers") from exc
    if not (math.isfinite(lo_f) and math.isfinite(hi_f)):
        raise PlotInputError(f"{label} bounds must be finite, got [{lo}, {hi}]")
    if lo_f >= hi_f:
        raise PlotInputError(f"{label} min must be < max, got [{lo}, {hi}]")
    return lo_f, hi_f


def _check_callable(fn: Any, *, label: str) -> None:
    if not callable(fn):
        raise PlotInputError(f"{label} must be callable, got {type(fn)!r}")


@dataclass(frozen=True)
class PlotSpec:
    evaluate: ScalarFunction
    domain_min: float
    domain_max: float
    color_hint: str | tuple[int, ...] | None = None
    label: str | None = None

    def validate(self) -> None:
        _check_callable(self.evaluate, label="evaluate")
        _check_domain(self.domain_min, self.domain_max, label="domain")

    @property
    def domain_range(self) -> float:
        return float(self.domain_max) - float(self.domain_min)


@dataclass(frozen=True)
class ParametricPlotSpec:
    x_evaluate: ScalarFunction
    y_evaluate: ScalarFunction
    t_min: float
    t_max: float
    color_hint: str | tuple[int, ...] | None = None
    label: str | None = None

    @classmethod
    def from_pair(
        cls,
        evaluate: Callable[[float], Sequence[Any]],
        t_min: float,
        t_max: float,
        *,
        color_hint: str | tuple[int, ...] | None = None,
        label: str | None = None,
    ) -> "ParametricPlotSpec":
        """Split a callable returning ``(x, y)`` into two component evaluators.

        The components share the latest ``(x, y)`` result, so the callable
        runs once per parameter value.
        """
        _check_callable(evaluate, label="evaluate")
        latest: dict[float, tuple[float, float]] = {}

        def pair_at(t: float) -> tuple[float, float]:
            if t not in latest:
                latest.clear()
                latest[t] = coerce_pair(evaluate(t))
            return latest[t]

        def component(index: int) -> ScalarFunction:
            def _fn(t: float) -> float:
                return pair_at(t)[index]

            return _fn

        return cls(
            x_evaluate=component(0),
            y_evaluate=component(1),
            t_min=t_min,
            t_max=t_max,
            color_hint=color_hint,
            label=label,
        )

    def validate(self) -> None:
        _check_callable(self.x_evaluate, label="x_evaluate")
        _check_callable(self.y_evaluate, label="y_evaluate")
        _check_domain(self.t_min, self.t_max, label="parameter")

    @property
    def domain_min(self) -> float:
        return float(self.t_min)

    @property
    def domain_max(self) -> float:
        return float(self.t_max)

    @property
    def domain_range(self) -> float:
        return float(self.t_max) - float(self.t_min)


@dataclass(frozen=True)
class ImplicitPlotSpec:
    evaluate: ImplicitFunction
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    color_hint: str | tuple[int, ...] | None = None
    label: str | None = None

    def validate(self) -> None:
        _check_callable(self.evaluate, label="evaluate")
        _check_domain(self.x_min, self.x_max, label="x")
        _check_domain(self.y_min, self.y_max, label="y")


@dataclass(frozen=True)
class DensityContext:
    pixels_per_unit: float
    canvas_width: int
    canvas_height: int

    def __post_init__(self) -> None:
        if not math.isfinite(self.pixels_per_unit) or self.pixels_per_unit <= 0:
            raise PlotInputError(f"pixels_per_unit must be finite and > 0, got {self.pixels_per_unit}")
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise PlotInputError("canvas width/height must be > 0")

    @classmethod
    def from_transform(cls, transform: ScreenTransform, canvas_width: int, canvas_height: int) -> "DensityContext":
        return cls(
            pixels_per_unit=pixels_per_unit(transform),
            canvas_width=int(canvas_width),
            canvas_height=int(canvas_height),
        )

    @property
    def pixel_domain_width(self) -> float:
        return 1.0 / self.pixels_per_unit


@dataclass(frozen=True)
class SamplePoint:
    domain: float
    x: float
    y: float

    @classmethod
    def create(cls, domain: float, x: float, y: float) -> "SamplePoint":
        values = (float(domain), float(x), float(y))
        if not all(math.isfinite(v) for v in values):
            raise PlotInputError(f"sample point must be finite, got {values}")
        return cls(*values)

    @classmethod
    def scalar(cls, x: float, y: float) -> "SamplePoint":
        return cls.create(x, x, y)

    @property
    def world(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class SampledCurve:
    points: tuple[SamplePoint, ...]
    domain_min: float
    domain_max: float
    mode: InteractionMode
    uniform_count: int
    evaluations: int
    cache_hits: int
    attempted_counts: tuple[int, ...]
    refined: bool

    def __len__(self) -> int:
        return len(self.points)

    def domains(self) -> list[float]:
        return [p.domain for p in self.points]


@dataclass(frozen=True)
class Segment:
    points: tuple[SamplePoint, ...]

    def __post_init__(self) -> None:
        if not self.points:
            raise PlotInputError("segment must contain at least one point")
        for prev, cur in zip(self.points, self.points[1:]):
            if not cur.domain > prev.domain:
                raise PlotInputError(
                    f"segment domain values must be strictly increasing: {prev.domain} then {cur.domain}"
                )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[SamplePoint]:
        return iter(self.points)

    def world_points(self) -> list[tuple[float, float]]:
        return [p.world for p in self.points]


@dataclass(frozen=True)
class RenderPath:
    segments: tuple[Segment, ...]
    color_hint: str | tuple[int, ...] | None = None
    label: str | None = None

    @property
    def point_count(self) -> int:
        return sum(len(seg) for seg in self.segments)

    def __len__(self) -> int:
        return len(self.segments)
