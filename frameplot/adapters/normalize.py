from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import Any

import numpy as np


try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def coerce_scalar(value: Any) -> float:
    """Convert one evaluator result to a Python float.

    Accepts Python numbers, numpy scalars, 0-d or single-element numpy arrays and
    single-element torch tensors. Non-finite results are returned unchanged; the
    caller decides whether they count as invalid samples.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a numeric sample")
    if isinstance(value, float):
        return value
    if isinstance(value, (int, Decimal, Fraction)):
        return float(value)
    if isinstance(value, complex):
        if value.imag != 0.0:
            raise ValueError(f"complex sample with non-zero imaginary part: {value!r}")
        return float(value.real)

    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.numel() != 1:
            raise ValueError(f"tensor sample must hold one element, got shape {tuple(tensor.shape)}")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return float(tensor.to(torch.float64).item())

    if isinstance(value, np.generic):
        if value.dtype.kind == "c":
            return coerce_scalar(complex(value))
        if value.dtype.kind not in {"i", "u", "f"}:
            raise TypeError(f"unsupported numpy sample dtype: {value.dtype}")
        return float(value)

    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise ValueError(f"array sample must hold one element, got shape {value.shape}")
        return coerce_scalar(value.reshape(()).item() if value.dtype.kind != "c" else complex(value.reshape(())))

    if value is None:
        raise TypeError("evaluator returned None")
    return float(value)


def coerce_pair(value: Any) -> tuple[float, float]:
    if torch is not None and isinstance(value, torch.Tensor):
        value = value.detach().cpu().reshape(-1).tolist()
    elif isinstance(value, np.ndarray):
        value = value.reshape(-1).tolist()
    try:
        items = list(value)
    except TypeError as exc:
        raise TypeError(f"expected an (x, y) pair, got {type(value)!r}") from exc
    if len(items) != 2:
        raise ValueError(f"expected an (x, y) pair, got {len(items)} values")
    return coerce_scalar(items[0]), coerce_scalar(items[1])

