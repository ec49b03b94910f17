from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Iterable, Literal, Union

from frameplot.config import DEFAULT_SAMPLING_CONFIG, ClassifierConfig
from frameplot.series import SamplePoint, Segment
from frameplot.transform import Point, ScreenTransform


LOGGER = logging.getLogger(__name__)

BreakReason = Literal["non_finite", "vertical_jump", "domain_gap", "sign_change_at_zero"]
RawPoint = Union[SamplePoint, tuple[float, float, float]]


@dataclass(frozen=True)
class ClassifierContext:
    pixels_per_unit: float
    domain_min: float
    domain_max: float
    sample_count: int

    def jump_threshold(self, config: ClassifierConfig) -> float:
        return max(config.min_vertical_jump_px, config.vertical_jump_per_unit * self.pixels_per_unit)

    def gap_threshold(self, config: ClassifierConfig) -> float:
        return config.domain_gap_multiple * (self.domain_max - self.domain_min) / max(1, self.sample_count)


@dataclass(frozen=True)
class BreakDecision:
    is_break: bool
    reason: BreakReason | None = None

    def __bool__(self) -> bool:
        return self.is_break


CONTINUE = BreakDecision(False)


def _triple(point: RawPoint) -> tuple[float, float, float]:
    if isinstance(point, SamplePoint):
        return (point.domain, point.x, point.y)
    domain, x, y = point
    return (float(domain), float(x), float(y))


def classify(
    point: RawPoint,
    screen: Point,
    previous: RawPoint | None,
    previous_screen: Point | None,
    context: ClassifierContext,
    config: ClassifierConfig = DEFAULT_SAMPLING_CONFIG.classifier,
) -> BreakDecision:
    """Decide whether the curve must be lifted between ``previous`` and ``point``."""
    domain, x, y = _triple(point)
    if not all(math.isfinite(v) for v in (domain, x, y, screen[0], screen[1])):
        return BreakDecision(True, "non_finite")
    if previous is None or previous_screen is None:
        return CONTINUE

    prev_domain, prev_x, prev_y = _triple(previous)
    vertical_jump = abs(screen[1] - previous_screen[1])
    jump_threshold = context.jump_threshold(config)
    if vertical_jump > jump_threshold:
        return BreakDecision(True, "vertical_jump")
    if abs(domain - prev_domain) > context.gap_threshold(config):
        return BreakDecision(True, "domain_gap")
    if (
        _strict_sign_change(prev_y, y)
        and _strict_sign_change(prev_x, x)
        and vertical_jump > config.sign_change_jump_ratio * jump_threshold
    ):
        return BreakDecision(True, "sign_change_at_zero")
    return CONTINUE


def _strict_sign_change(a: float, b: float) -> bool:
    return (a < 0.0 < b) or (b < 0.0 < a)


def split_segments(
    points: Iterable[RawPoint],
    transform: ScreenTransform,
    context: ClassifierContext,
    config: ClassifierConfig = DEFAULT_SAMPLING_CONFIG.classifier,
) -> tuple[Segment, ...]:
    segments: list[Segment] = []
    current: list[SamplePoint] = []
    previous: RawPoint | None = None
    previous_screen: Point | None = None
    breaks: dict[str, int] = {}

    def flush() -> None:
        if current:
            segments.append(Segment(tuple(current)))
            current.clear()

    for raw in points:
        domain, x, y = _triple(raw)
        if math.isfinite(x) and math.isfinite(y):
            screen = transform.to_screen((x, y))
        else:
            screen = (math.nan, math.nan)
        decision = classify(raw, screen, previous, previous_screen, context, config)
        if decision.is_break:
            breaks[decision.reason or ""] = breaks.get(decision.reason or "", 0) + 1
            flush()
        if decision.reason == "non_finite":
            previous, previous_screen = None, None
            continue
        current.append(raw if isinstance(raw, SamplePoint) else SamplePoint.create(domain, x, y))
        previous, previous_screen = raw, screen
    flush()

    LOGGER.debug("split into %d segments (breaks: %s)", len(segments), breaks)
    return tuple(segments)
