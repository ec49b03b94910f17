from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from pathlib import Path
import xml.etree.ElementTree as ET


LOGGER = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"


@dataclass
class SvgPath:
    stroke: str
    stroke_width: float
    parts: list[str] = field(default_factory=list)

    @property
    def d(self) -> str:
        return " ".join(self.parts)


class SvgPathBuilder:
    """Path sink that writes SVG path data, one ``<path>`` per style."""

    def __init__(self, width: int, height: int, *, background: str | None = "#ffffff") -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.background = background
        self.paths: list[SvgPath] = []

    def begin_path(self, stroke: str = "#1f77b4", stroke_width: float = 1.5) -> SvgPath:
        path = SvgPath(stroke=stroke, stroke_width=float(stroke_width))
        self.paths.append(path)
        return path

    def _active(self) -> SvgPath:
        if not self.paths:
            return self.begin_path()
        return self.paths[-1]

    def move_to(self, x: float, y: float) -> None:
        self._active().parts.append(f"M{_fmt(x)} {_fmt(y)}")

    def line_to(self, x: float, y: float) -> None:
        self._active().parts.append(f"L{_fmt(x)} {_fmt(y)}")

    def curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None:
        self._active().parts.append(
            f"C{_fmt(c1x)} {_fmt(c1y)} {_fmt(c2x)} {_fmt(c2y)} {_fmt(x)} {_fmt(y)}"
        )

    def path_data(self) -> str:
        return " ".join(p.d for p in self.paths if p.parts)

    def to_element(self) -> ET.Element:
        root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NS,
                "width": str(self.width),
                "height": str(self.height),
                "viewBox": f"0 0 {self.width} {self.height}",
            },
        )
        if self.background:
            ET.SubElement(root, "rect", {"x": "0", "y": "0", "width": "100%", "height": "100%", "fill": self.background})
        for path in self.paths:
            if not path.parts:
                continue
            ET.SubElement(
                root,
                "path",
                {
                    "d": path.d,
                    "fill": "none",
                    "stroke": path.stroke,
                    "stroke-width": _fmt(path.stroke_width),
                    "stroke-linejoin": "round",
                    "stroke-linecap": "round",
                },
            )
        return root

    def to_markup(self) -> str:
        return ET.tostring(self.to_element(), encoding="unicode")

    def save(self, path: str | Path) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.to_markup(), encoding="utf-8")
        LOGGER.debug("wrote SVG with %d paths to %s", len(self.paths), out)
        return out


def _fmt(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"cannot write non-finite coordinate {value!r} to SVG")
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text
