from __future__ import annotations


class FrameplotError(Exception):
    pass


class PlotInputError(FrameplotError, ValueError):
    """Malformed plot input, rejected before any sampling starts."""


class SamplingFailedError(FrameplotError, RuntimeError):
    """No usable sample was found anywhere in the requested domain."""

    def __init__(
        self,
        domain: tuple[float, float],
        attempted_counts: tuple[int, ...],
        *,
        last_error: str | None = None,
    ) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.attempted_counts = tuple(int(n) for n in attempted_counts)
        self.last_error = last_error
        tried = ", ".join(str(n) for n in self.attempted_counts)
        message = f"could not evaluate function over [{self.domain[0]}, {self.domain[1]}] (tried {tried} samples)"
        if last_error:
            message += f"; last error: {last_error}"
        super().__init__(message)
