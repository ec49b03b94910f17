from .normalize import coerce_pair, coerce_scalar

__all__ = ["coerce_pair", "coerce_scalar"]
