from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from frameplot.adapters.normalize import coerce_scalar
from frameplot.config import DEFAULT_SAMPLING_CONFIG, SamplingConfig
from frameplot.errors import SamplingFailedError
from frameplot.series import DensityContext, ImplicitPlotSpec, InteractionMode, SamplePoint, Segment


LOGGER = logging.getLogger(__name__)

# ("h", i, j) joins grid nodes (i, j)-(i+1, j); ("v", i, j) joins (i, j)-(i, j+1).
EdgeKey = tuple[str, int, int]


class PlaneCache:
    """Pass-scoped memo for ``f(x, y)``; invalid evaluations are stored as NaN."""

    def __init__(self, evaluate: Callable[[float, float], object], significant_digits: int = 12) -> None:
        self._evaluate = evaluate
        self._format = f".{int(significant_digits)}g"
        self._entries: dict[tuple[float, float], float] = {}
        self.hits = 0
        self.misses = 0
        self.last_error: str | None = None

    def key(self, x: float, y: float) -> tuple[float, float]:
        return (float(format(x, self._format)), float(format(y, self._format)))

    def evaluate(self, x: float, y: float) -> float:
        k = self.key(x, y)
        cached = self._entries.get(k)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        try:
            value = coerce_scalar(self._evaluate(float(x), float(y)))
        except Exception as exc:
            self.last_error = repr(exc)
            value = math.nan
        if not math.isfinite(value):
            value = math.nan
        self._entries[k] = value
        return value

    def __len__(self) -> int:
        return len(self._entries)


class ImplicitSampler:
    """Traces the zero set of ``f(x, y)`` with marching squares."""

    def __init__(self, config: SamplingConfig = DEFAULT_SAMPLING_CONFIG) -> None:
        self.config = config

    def resolution(self, spec: ImplicitPlotSpec, density: DensityContext, mode: InteractionMode) -> int:
        cfg = self.config.implicit
        if InteractionMode(mode) is InteractionMode.LIVE:
            cell_px, lo, hi = cfg.live_cell_px, cfg.live_min_resolution, cfg.live_max_resolution
        else:
            cell_px, lo, hi = cfg.full_cell_px, cfg.full_min_resolution, cfg.full_max_resolution
        max_range = max(float(spec.x_max) - float(spec.x_min), float(spec.y_max) - float(spec.y_min))
        return max(lo, min(hi, int(max_range * density.pixels_per_unit / cell_px)))

    def sample(
        self,
        spec: ImplicitPlotSpec,
        density: DensityContext,
        mode: InteractionMode = InteractionMode.FULL,
    ) -> tuple[Segment, ...]:
        spec.validate()
        mode = InteractionMode(mode)
        res = self.resolution(spec, density, mode)
        cache = PlaneCache(spec.evaluate, self.config.refinement.cache_significant_digits)
        xs = np.linspace(float(spec.x_min), float(spec.x_max), res + 1)
        ys = np.linspace(float(spec.y_min), float(spec.y_max), res + 1)
        grid = np.array([[cache.evaluate(x, y) for y in ys.tolist()] for x in xs.tolist()], dtype=np.float64)

        valid = np.isfinite(grid)
        if not np.any(valid):
            LOGGER.warning("implicit function is invalid over the whole %dx%d grid", res + 1, res + 1)
            raise SamplingFailedError(
                (float(spec.x_min), float(spec.x_max)),
                (int(grid.size),),
                last_error=cache.last_error,
            )

        positive = np.where(valid, grid > 0.0, False)
        cell_valid = valid[:-1, :-1] & valid[1:, :-1] & valid[:-1, 1:] & valid[1:, 1:]
        corner_count = (
            positive[:-1, :-1].astype(np.int8)
            + positive[1:, :-1]
            + positive[:-1, 1:]
            + positive[1:, 1:]
        )
        mixed = cell_valid & (corner_count > 0) & (corner_count < 4)

        bisection_steps = self.config.implicit.edge_bisection_steps if mode is InteractionMode.FULL else 0
        crossings: dict[EdgeKey, tuple[float, float]] = {}
        links: dict[EdgeKey, list[EdgeKey]] = {}

        def crossing(edge: EdgeKey) -> tuple[float, float]:
            if edge not in crossings:
                crossings[edge] = _edge_crossing(edge, xs, ys, grid, cache, bisection_steps)
            return crossings[edge]

        def link(a: EdgeKey, b: EdgeKey) -> None:
            crossing(a)
            crossing(b)
            links.setdefault(a, []).append(b)
            links.setdefault(b, []).append(a)

        for i, j in np.argwhere(mixed).tolist():
            p00, p10 = bool(positive[i, j]), bool(positive[i + 1, j])
            p01, p11 = bool(positive[i, j + 1]), bool(positive[i + 1, j + 1])
            bottom: EdgeKey = ("h", i, j)
            top: EdgeKey = ("h", i, j + 1)
            left: EdgeKey = ("v", i, j)
            right: EdgeKey = ("v", i + 1, j)
            cut = [e for e, flip in ((bottom, p00 != p10), (right, p10 != p11), (top, p01 != p11), (left, p00 != p01)) if flip]
            if len(cut) == 2:
                link(cut[0], cut[1])
                continue
            centre = cache.evaluate((xs[i] + xs[i + 1]) / 2.0, (ys[j] + ys[j + 1]) / 2.0)
            if not math.isfinite(centre):
                centre = float(grid[i, j] + grid[i + 1, j] + grid[i, j + 1] + grid[i + 1, j + 1]) / 4.0
            if (centre > 0.0) == p00:
                link(bottom, right)
                link(top, left)
            else:
                link(bottom, left)
                link(right, top)

        polylines = _chain(links, crossings)
        segments = tuple(
            Segment(tuple(SamplePoint.create(index, x, y) for index, (x, y) in enumerate(line)))
            for line in polylines
        )
        LOGGER.debug(
            "implicit grid %dx%d: %d crossings, %d polylines, %d evaluations",
            res + 1,
            res + 1,
            len(crossings),
            len(segments),
            cache.misses,
        )
        return segments


def _edge_crossing(
    edge: EdgeKey,
    xs: np.ndarray,
    ys: np.ndarray,
    grid: np.ndarray,
    cache: PlaneCache,
    bisection_steps: int,
) -> tuple[float, float]:
    kind, i, j = edge
    x0, y0, v0 = float(xs[i]), float(ys[j]), float(grid[i, j])
    if kind == "h":
        x1, y1, v1 = float(xs[i + 1]), y0, float(grid[i + 1, j])
    else:
        x1, y1, v1 = x0, float(ys[j + 1]), float(grid[i, j + 1])

    lo, hi = 0.0, 1.0
    v_lo, v_hi = v0, v1
    for _ in range(bisection_steps):
        mid = (lo + hi) / 2.0
        vm = cache.evaluate(x0 + (x1 - x0) * mid, y0 + (y1 - y0) * mid)
        if not math.isfinite(vm):
            break
        if (vm > 0.0) == (v_lo > 0.0):
            lo, v_lo = mid, vm
        else:
            hi, v_hi = mid, vm

    s = lo + (hi - lo) * (v_lo / (v_lo - v_hi)) if v_lo != v_hi else (lo + hi) / 2.0
    return (x0 + (x1 - x0) * s, y0 + (y1 - y0) * s)


def _chain(links: dict[EdgeKey, list[EdgeKey]], crossings: dict[EdgeKey, tuple[float, float]]) -> list[list[tuple[float, float]]]:
    visited: set[EdgeKey] = set()
    lines: list[list[tuple[float, float]]] = []

    def walk(start: EdgeKey) -> list[EdgeKey]:
        path = [start]
        visited.add(start)
        current = start
        while True:
            nxt = next((n for n in links[current] if n not in visited), None)
            if nxt is None:
                return path
            visited.add(nxt)
            path.append(nxt)
            current = nxt

    # Open chains first, starting from their ends.
    for edge, neighbours in links.items():
        if edge not in visited and len(neighbours) == 1:
            lines.append([crossings[e] for e in walk(edge)])
    for edge in links:
        if edge not in visited:
            path = walk(edge)
            points = [crossings[e] for e in path]
            if len(path) > 2 and edge in links[path[-1]]:
                points.append(points[0])
            lines.append(points)
    return lines
