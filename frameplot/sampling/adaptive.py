from __future__ import annotations

from collections import deque
import logging
import math
from typing import Callable, Iterable

import numpy as np

from frameplot.config import DEFAULT_SAMPLING_CONFIG, SamplingConfig
from frameplot.errors import SamplingFailedError
from frameplot.sampling.cache import EvaluationCache
from frameplot.sampling.density import DensityPlan, select_density
from frameplot.series import (
    DensityContext,
    InteractionMode,
    ParametricPlotSpec,
    PlotSpec,
    SampledCurve,
    SamplePoint,
)


LOGGER = logging.getLogger(__name__)

Vector = tuple[float, ...]
# (t_a, value_a, t_b, value_b, depth)
_Interval = tuple[float, Vector | None, float, Vector | None, int]


class _Evaluator:
    """Evaluates a curve at one domain value through pass-scoped caches."""

    def __init__(
        self,
        caches: tuple[EvaluationCache, ...],
        make_point: Callable[[float, Vector], SamplePoint],
    ) -> None:
        self.caches = caches
        self.make_point = make_point

    def value(self, t: float) -> Vector | None:
        out: list[float] = []
        for cache in self.caches:
            v = cache.evaluate(t)
            if v is None:
                return None
            out.append(v)
        return tuple(out)

    def key(self, t: float) -> float:
        return self.caches[0].key(t)

    @property
    def misses(self) -> int:
        return sum(c.misses for c in self.caches)

    @property
    def hits(self) -> int:
        return sum(c.hits for c in self.caches)

    @property
    def last_error(self) -> str | None:
        for cache in self.caches:
            if cache.last_error is not None:
                return cache.last_error
        return None


class _Refinement:
    """Bisection over one sampling pass, spent level by level.

    Every uniform interval gets its first bisection. Deeper levels are queued
    breadth-first and draw on the evaluation budget, so each feature of the
    curve is resolved one level further before any of them goes deeper.
    """

    def __init__(self, evaluator: _Evaluator, plan: DensityPlan, curvature_weight: float, emit: Callable[[float, Vector], None]) -> None:
        self.evaluator = evaluator
        self.plan = plan
        self.curvature_weight = curvature_weight
        self.emit = emit
        self.pending: deque[_Interval] = deque()
        self.visits = 0
        self.subdivisions = 0
        self._first_miss = evaluator.misses
        self._budget_miss = evaluator.misses
        self._budget_visit = 0

    def evaluations(self) -> int:
        return self.evaluator.misses - self._first_miss

    def spent(self) -> int:
        return self.evaluator.misses - self._budget_miss

    def run(self, intervals: Iterable[_Interval]) -> None:
        for interval in intervals:
            self._visit(*interval)
        self._budget_miss = self.evaluator.misses
        self._budget_visit = self.visits
        while self.pending and self._check_budget():
            self._visit(*self.pending.popleft())

    def _check_budget(self) -> bool:
        budget = self.plan.max_refine_evaluations
        if self.spent() >= budget or self.visits - self._budget_visit >= 4 * budget:
            LOGGER.warning(
                "refinement budget exhausted after %d evaluations with %d intervals pending",
                self.spent(),
                len(self.pending),
            )
            return False
        return True

    def _visit(self, ta: float, va: Vector | None, tb: float, vb: Vector | None, depth: int) -> None:
        self.visits += 1
        plan = self.plan
        tm = (ta + tb) / 2.0

        if depth > plan.max_depth or (tb - ta) < plan.min_step:
            vm = self.evaluator.value(tm)
            if vm is not None:
                self.emit(tm, vm)
            return

        vm = self.evaluator.value(tm)
        tq1 = (ta + tm) / 2.0
        tq3 = (tm + tb) / 2.0
        vq1 = self.evaluator.value(tq1)
        vq3 = self.evaluator.value(tq3)

        if va is None or vb is None or vm is None:
            self._subdivide(ta, va, tm, vm, tb, vb, tq1, vq1, tq3, vq3, depth)
            return

        dx = tb - ta
        slope1 = _scale(_sub(vm, va), 1.0 / (tm - ta))
        slope2 = _scale(_sub(vb, vm), 1.0 / (tb - tm))
        if vq1 is not None and vq3 is not None:
            slope_q1 = _scale(_sub(vm, vq1), 1.0 / (tm - tq1))
            slope_q3 = _scale(_sub(vq3, vm), 1.0 / (tq3 - tm))
            curvature = _norm(_sub(slope_q3, slope_q1)) / (tq3 - tq1)
        else:
            curvature = _norm(_sub(slope2, slope1)) / dx

        max_y = max(_norm(va), _norm(vb), _norm(vm), 1.0)
        linear_error = _norm(_sub(vm, _scale(_add(va, vb), 0.5))) / max_y
        error = linear_error + self.curvature_weight * curvature * dx * dx / (max_y + 1.0)
        slope_change = _norm(_sub(slope2, slope1))

        if error > plan.error_threshold or slope_change > plan.slope_threshold:
            self._subdivide(ta, va, tm, vm, tb, vb, tq1, vq1, tq3, vq3, depth)
        else:
            self.emit(tm, vm)

    def _subdivide(
        self,
        ta: float,
        va: Vector | None,
        tm: float,
        vm: Vector | None,
        tb: float,
        vb: Vector | None,
        tq1: float,
        vq1: Vector | None,
        tq3: float,
        vq3: Vector | None,
        depth: int,
    ) -> None:
        self.subdivisions += 1
        if vm is not None:
            self.emit(tm, vm)
        if vq1 is not None:
            self.emit(tq1, vq1)
        if vq3 is not None:
            self.emit(tq3, vq3)
        self.pending.append((ta, va, tm, vm, depth + 1))
        self.pending.append((tm, vm, tb, vb, depth + 1))


class AdaptiveSampler:
    """Zoom-aware adaptive sampler for scalar and parametric plots.

    A uniform pass sized from the on-screen pixel coverage is followed, in Full
    mode, by level-by-level bisection wherever the curve bends or breaks faster than
    the pass resolves. Live mode runs the uniform pass only.
    """

    def __init__(self, config: SamplingConfig = DEFAULT_SAMPLING_CONFIG) -> None:
        self.config = config

    def sample(
        self,
        spec: PlotSpec,
        density: DensityContext,
        mode: InteractionMode = InteractionMode.FULL,
    ) -> SampledCurve:
        spec.validate()
        mode = InteractionMode(mode)
        cache = EvaluationCache(spec.evaluate, self.config.refinement.cache_significant_digits)
        evaluator = _Evaluator((cache,), lambda t, v: SamplePoint.create(t, t, v[0]))
        plan = select_density(spec.domain_range, density, mode, self.config)
        return self._run(evaluator, float(spec.domain_min), float(spec.domain_max), plan, density, mode)

    def sample_parametric(
        self,
        spec: ParametricPlotSpec,
        density: DensityContext,
        mode: InteractionMode = InteractionMode.FULL,
    ) -> SampledCurve:
        spec.validate()
        mode = InteractionMode(mode)
        digits = self.config.refinement.cache_significant_digits
        evaluator = _Evaluator(
            (EvaluationCache(spec.x_evaluate, digits), EvaluationCache(spec.y_evaluate, digits)),
            lambda t, v: SamplePoint.create(t, v[0], v[1]),
        )
        scale = 1.0
        if mode is InteractionMode.FULL:
            scale = self._parametric_scale(evaluator, spec.domain_min, spec.domain_max)
        plan = select_density(spec.domain_range, density, mode, self.config, scale=scale)
        return self._run(evaluator, spec.domain_min, spec.domain_max, plan, density, mode)

    def _parametric_scale(self, evaluator: _Evaluator, t_min: float, t_max: float) -> float:
        refinement = self.config.refinement
        magnitude = 0.0
        for t in np.linspace(t_min, t_max, refinement.parametric_probe_count).tolist():
            value = evaluator.value(t)
            if value is not None:
                magnitude = max(magnitude, max(abs(c) for c in value))
        if magnitude <= refinement.parametric_scale_floor:
            return 1.0
        scale = 1.0 + (magnitude - refinement.parametric_scale_floor) / refinement.parametric_scale_span
        return min(scale, refinement.parametric_scale_cap)

    def _ladder(self, initial_count: int) -> list[int]:
        refinement = self.config.refinement
        counts: list[int] = []
        last = initial_count
        for i, fixed in enumerate(refinement.fallback_counts):
            count = min(refinement.max_fallback_samples, max(fixed, initial_count * 2 ** (i + 1)))
            if count > last:
                counts.append(count)
                last = count
        return counts

    def _run(
        self,
        evaluator: _Evaluator,
        lo: float,
        hi: float,
        plan: DensityPlan,
        density: DensityContext,
        mode: InteractionMode,
    ) -> SampledCurve:
        collected: dict[float, SamplePoint] = {}

        def emit(t: float, value: Vector) -> None:
            key = evaluator.key(t)
            if key not in collected:
                collected[key] = evaluator.make_point(t, value)

        def uniform_pass(count: int) -> tuple[list[float], list[Vector | None]]:
            domains = np.linspace(lo, hi, count).tolist()
            values = [evaluator.value(t) for t in domains]
            for t, v in zip(domains, values):
                if v is not None:
                    emit(t, v)
            return domains, values

        uniform_count = plan.initial_count
        attempted = [uniform_count]
        domains, values = uniform_pass(uniform_count)
        valid = sum(v is not None for v in values)
        LOGGER.debug("uniform pass: %d samples, %d valid (%s mode)", uniform_count, valid, mode.value)

        if valid < 2 and mode is InteractionMode.FULL:
            LOGGER.info("only %d valid samples over [%g, %g]; engaging fallback ladder", valid, lo, hi)
            for count in self._ladder(uniform_count):
                attempted.append(count)
                uniform_count = count
                domains, values = uniform_pass(count)
                valid = sum(v is not None for v in values)
                if valid >= 2:
                    LOGGER.info("fallback ladder recovered %d valid samples at %d samples", valid, count)
                    break

        if not collected:
            LOGGER.warning("no valid samples over [%g, %g] after %s", lo, hi, attempted)
            raise SamplingFailedError((lo, hi), tuple(attempted), last_error=evaluator.last_error)

        refined = False
        if plan.refine and valid >= 2:
            refined = True
            self._refine_pass(evaluator, domains, values, plan, density, emit)

        points = tuple(sorted(collected.values(), key=lambda p: p.domain))
        LOGGER.debug(
            "sampled %d points with %d evaluations (cache hit rate %.2f)",
            len(points),
            evaluator.misses,
            evaluator.hits / max(1, evaluator.hits + evaluator.misses),
        )
        return SampledCurve(
            points=points,
            domain_min=lo,
            domain_max=hi,
            mode=mode,
            uniform_count=uniform_count,
            evaluations=evaluator.misses,
            cache_hits=evaluator.hits,
            attempted_counts=tuple(attempted),
            refined=refined,
        )

    def _refine_pass(
        self,
        evaluator: _Evaluator,
        domains: list[float],
        values: list[Vector | None],
        plan: DensityPlan,
        density: DensityContext,
        emit: Callable[[float, Vector], None],
    ) -> None:
        refinement = _Refinement(evaluator, plan, self.config.refinement.curvature_weight, emit)
        min_gap = plan.refine_gap_px * density.pixel_domain_width
        pairs = [i for i in range(len(domains) - 1) if domains[i + 1] - domains[i] > min_gap]
        # Intervals touching the curve queue ahead of fully invalid stretches.
        touching = [i for i in pairs if values[i] is not None or values[i + 1] is not None]
        invalid = [i for i in pairs if values[i] is None and values[i + 1] is None]
        refinement.run((domains[i], values[i], domains[i + 1], values[i + 1], 0) for i in touching + invalid)
        LOGGER.debug(
            "refinement: %d intervals, %d subdivisions, %d evaluations",
            refinement.visits,
            refinement.subdivisions,
            refinement.evaluations(),
        )


def _sub(a: Vector, b: Vector) -> Vector:
    return tuple(x - y for x, y in zip(a, b))


def _add(a: Vector, b: Vector) -> Vector:
    return tuple(x + y for x, y in zip(a, b))


def _scale(a: Vector, k: float) -> Vector:
    return tuple(x * k for x in a)


def _norm(a: Vector) -> float:
    return math.hypot(*a)
