from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import logging
import os
from pathlib import Path
import tomllib
from typing import Any, Mapping

from frameplot.errors import PlotInputError


LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FRAMEPLOT_SAMPLING_CONFIG"


@dataclass(frozen=True)
class DensityTier:
    # Tier applies when pixels_per_unit > min_pixels_per_unit.
    min_pixels_per_unit: float
    points_per_pixel: float
    min_samples: int
    max_samples: int
    max_depth: int
    min_step_divisions: float
    refine_gap_px: float
    error_threshold: float
    slope_threshold: float
    max_refine_evaluations: int


DEFAULT_TIERS: tuple[DensityTier, ...] = (
    DensityTier(
        min_pixels_per_unit=200.0,
        points_per_pixel=8.0,
        min_samples=5000,
        max_samples=30000,
        max_depth=30,
        min_step_divisions=1e8,
        refine_gap_px=0.0,
        error_threshold=1e-4,
        slope_threshold=20.0,
        max_refine_evaluations=90000,
    ),
    DensityTier(
        min_pixels_per_unit=100.0,
        points_per_pixel=6.0,
        min_samples=3000,
        max_samples=25000,
        max_depth=30,
        min_step_divisions=1e8,
        refine_gap_px=0.05,
        error_threshold=1e-4,
        slope_threshold=20.0,
        max_refine_evaluations=75000,
    ),
    DensityTier(
        min_pixels_per_unit=50.0,
        points_per_pixel=5.0,
        min_samples=2000,
        max_samples=15000,
        max_depth=25,
        min_step_divisions=5e7,
        refine_gap_px=0.2,
        error_threshold=2e-4,
        slope_threshold=30.0,
        max_refine_evaluations=45000,
    ),
    DensityTier(
        min_pixels_per_unit=0.0,
        points_per_pixel=4.0,
        min_samples=1000,
        max_samples=6000,
        max_depth=22,
        min_step_divisions=1e7,
        refine_gap_px=1.0,
        error_threshold=5e-4,
        slope_threshold=50.0,
        max_refine_evaluations=24000,
    ),
)


@dataclass(frozen=True)
class LiveDensity:
    points_per_pixel: float = 0.15
    min_samples: int = 50
    max_samples: int = 150


@dataclass(frozen=True)
class RefinementConfig:
    curvature_weight: float = 0.3
    fallback_counts: tuple[int, ...] = (500, 5000, 20000)
    max_fallback_samples: int = 100_000
    cache_significant_digits: int = 12
    parametric_probe_count: int = 20
    parametric_scale_floor: float = 10.0
    parametric_scale_span: float = 30.0
    parametric_scale_cap: float = 10.0


@dataclass(frozen=True)
class ClassifierConfig:
    min_vertical_jump_px: float = 1000.0
    vertical_jump_per_unit: float = 10.0
    domain_gap_multiple: float = 20.0
    sign_change_jump_ratio: float = 0.8


@dataclass(frozen=True)
class ImplicitConfig:
    full_cell_px: float = 4.0
    full_min_resolution: int = 50
    full_max_resolution: int = 400
    live_cell_px: float = 12.0
    live_min_resolution: int = 20
    live_max_resolution: int = 120
    edge_bisection_steps: int = 4


@dataclass(frozen=True)
class SamplingConfig:
    tiers: tuple[DensityTier, ...] = DEFAULT_TIERS
    live: LiveDensity = field(default_factory=LiveDensity)
    refinement: RefinementConfig = field(default_factory=RefinementConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    implicit: ImplicitConfig = field(default_factory=ImplicitConfig)

    def __post_init__(self) -> None:
        if not self.tiers:
            raise PlotInputError("at least one density tier is required")
        thresholds = [t.min_pixels_per_unit for t in self.tiers]
        if thresholds != sorted(thresholds, reverse=True) or len(set(thresholds)) != len(thresholds):
            raise PlotInputError("density tiers must be ordered by strictly decreasing min_pixels_per_unit")
        if thresholds[-1] > 0.0:
            raise PlotInputError("the last density tier must cover every zoom level (min_pixels_per_unit <= 0)")
        for tier in self.tiers:
            if tier.min_samples < 2 or tier.max_samples < tier.min_samples:
                raise PlotInputError("tier sample bounds must satisfy 2 <= min_samples <= max_samples")
        if self.live.min_samples < 2 or self.live.max_samples < self.live.min_samples:
            raise PlotInputError("live sample bounds must satisfy 2 <= min_samples <= max_samples")
        if self.refinement.cache_significant_digits < 1:
            raise PlotInputError("cache_significant_digits must be >= 1")

    def tier_for(self, pixels_per_unit: float) -> DensityTier:
        for tier in self.tiers:
            if pixels_per_unit > tier.min_pixels_per_unit:
                return tier
        return self.tiers[-1]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SamplingConfig":
        unknown = set(raw) - {"tiers", "live", "refinement", "classifier", "implicit"}
        if unknown:
            raise PlotInputError(f"unknown sampling config sections: {sorted(unknown)}")
        base = cls()
        tiers = base.tiers
        if "tiers" in raw:
            tiers = tuple(_build_tier(row) for row in _coerce_rows(raw["tiers"]))
        return cls(
            tiers=tiers,
            live=_override(base.live, raw.get("live"), "live"),
            refinement=_override(base.refinement, raw.get("refinement"), "refinement"),
            classifier=_override(base.classifier, raw.get("classifier"), "classifier"),
            implicit=_override(base.implicit, raw.get("implicit"), "implicit"),
        )

    @classmethod
    def from_env(cls, env_var: str = CONFIG_ENV_VAR) -> "SamplingConfig":
        raw = os.getenv(env_var, "").strip()
        if raw == "":
            return cls()
        return load_sampling_config(raw)


DEFAULT_SAMPLING_CONFIG = SamplingConfig()


def load_sampling_config(path: str | Path) -> SamplingConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"sampling config not found: {config_path}")
    with config_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise PlotInputError(f"invalid sampling config {config_path}: {exc}") from exc
    config = SamplingConfig.from_mapping(raw)
    LOGGER.debug("loaded sampling config from %s (%d tiers)", config_path, len(config.tiers))
    return config


def _coerce_rows(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list) or not all(isinstance(row, Mapping) for row in value):
        raise PlotInputError("tiers must be a list of tables")
    return value


def _build_tier(row: Mapping[str, Any]) -> DensityTier:
    names = {f.name for f in fields(DensityTier)}
    missing = names - set(row)
    unknown = set(row) - names
    if missing or unknown:
        raise PlotInputError(f"invalid density tier: missing={sorted(missing)} unknown={sorted(unknown)}")
    defaults = DEFAULT_TIERS[-1]
    return DensityTier(**{name: _coerce_like(getattr(defaults, name), row[name], name) for name in names})


def _override(current: Any, raw: Mapping[str, Any] | None, section: str) -> Any:
    if raw is None:
        return current
    if not isinstance(raw, Mapping):
        raise PlotInputError(f"config section `{section}` must be a table")
    names = {f.name for f in fields(current)}
    unknown = set(raw) - names
    if unknown:
        raise PlotInputError(f"unknown keys in `{section}`: {sorted(unknown)}")
    updates = {key: _coerce_like(getattr(current, key), value, f"{section}.{key}") for key, value in raw.items()}
    return replace(current, **updates)


def _coerce_like(default: Any, value: Any, name: str) -> Any:
    try:
        if isinstance(default, tuple):
            return tuple(int(v) for v in value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as exc:
        raise PlotInputError(f"invalid value for `{name}`: {value!r}") from exc
    return value
