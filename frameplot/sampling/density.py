from __future__ import annotations

from dataclasses import dataclass
import logging

from frameplot.config import DEFAULT_SAMPLING_CONFIG, SamplingConfig
from frameplot.errors import PlotInputError
from frameplot.series import DensityContext, InteractionMode


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DensityPlan:
    initial_count: int
    max_depth: int
    min_step: float
    refine_gap_px: float
    error_threshold: float
    slope_threshold: float
    refine: bool
    max_refine_evaluations: int


def select_density(
    domain_range: float,
    density: DensityContext,
    mode: InteractionMode,
    config: SamplingConfig = DEFAULT_SAMPLING_CONFIG,
    scale: float = 1.0,
) -> DensityPlan:
    if not domain_range > 0:
        raise PlotInputError(f"domain range must be > 0, got {domain_range}")
    if not scale > 0:
        raise PlotInputError(f"density scale must be > 0, got {scale}")
    pixels_covered = domain_range * density.pixels_per_unit * float(scale)
    tier = config.tier_for(density.pixels_per_unit)

    if InteractionMode(mode) is InteractionMode.LIVE:
        live = config.live
        count = _clamp(int(pixels_covered * live.points_per_pixel), live.min_samples, live.max_samples)
        return DensityPlan(
            initial_count=count,
            max_depth=0,
            min_step=domain_range,
            refine_gap_px=tier.refine_gap_px,
            error_threshold=tier.error_threshold,
            slope_threshold=tier.slope_threshold,
            refine=False,
            max_refine_evaluations=0,
        )

    count = _clamp(int(pixels_covered * tier.points_per_pixel), tier.min_samples, tier.max_samples)
    plan = DensityPlan(
        initial_count=count,
        max_depth=tier.max_depth,
        min_step=domain_range / tier.min_step_divisions,
        refine_gap_px=tier.refine_gap_px,
        error_threshold=tier.error_threshold,
        slope_threshold=tier.slope_threshold,
        refine=True,
        max_refine_evaluations=tier.max_refine_evaluations,
    )
    LOGGER.debug(
        "density plan: ppu=%.3f pixels=%.1f count=%d depth=%d",
        density.pixels_per_unit,
        pixels_covered,
        plan.initial_count,
        plan.max_depth,
    )
    return plan


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
