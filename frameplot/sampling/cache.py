from __future__ import annotations

import math
from typing import Any, Callable, Final

from frameplot.adapters.normalize import coerce_scalar


class _Marker:
    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


MISS: Final = _Marker("MISS")
INVALID: Final = _Marker("INVALID")


class EvaluationCache:
    """Memoizes one evaluator for a single sampling pass.

    Keys are domain values rounded to ``significant_digits`` so that points
    reached by different subdivision paths share an entry. Failed and
    non-finite evaluations are remembered as ``INVALID`` and never retried.
    """

    def __init__(self, evaluate: Callable[[float], Any], significant_digits: int = 12) -> None:
        if significant_digits < 1:
            raise ValueError("significant_digits must be >= 1")
        self._evaluate = evaluate
        self._format = f".{int(significant_digits)}g"
        self._entries: dict[float, float | _Marker] = {}
        self.hits = 0
        self.misses = 0
        self.last_error: str | None = None

    def key(self, x: float) -> float:
        return float(format(float(x), self._format))

    def get(self, x: float) -> float | _Marker:
        return self._entries.get(self.key(x), MISS)

    def put(self, x: float, value: float | _Marker) -> None:
        k = self.key(x)
        if k in self._entries:
            return
        if value is INVALID or value is MISS:
            self._entries[k] = INVALID
            return
        value_f = float(value)
        self._entries[k] = value_f if math.isfinite(value_f) else INVALID

    def evaluate(self, x: float) -> float | None:
        k = self.key(x)
        cached = self._entries.get(k, MISS)
        if cached is not MISS:
            self.hits += 1
            return None if cached is INVALID else cached
        self.misses += 1
        try:
            value = coerce_scalar(self._evaluate(float(x)))
        except Exception as exc:
            self.last_error = repr(exc)
            self._entries[k] = INVALID
            return None
        if not math.isfinite(value):
            self._entries[k] = INVALID
            return None
        self._entries[k] = value
        return value

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, x: float) -> bool:
        return self.key(x) in self._entries
