"""Best-effort repair of loosely shaped generated designs.

Model output drifts from the schema in predictable ways: numbers as strings,
CSS-ish aliases (``fontWeight``, ``textAlign``, ``color``), hex colours,
unsupported node kinds, image nodes with no source.  ``normalize_spec``
rewrites such a document into one the strict validator is likely to accept.
It never raises and never replaces validation; it only improves the odds.

Per node, depth-first:
  1. drop nodes whose ``type`` is not one of the five kinds
  2. coerce numeric fields; drop nodes whose x/y/width/height don't resolve
  3. map aliases onto canonical keys; unknown keys are dropped
  4. reclassify image nodes without any source as a placeholder rect
  5. recurse into frame children
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

from screencanvas.pipeline.config import RENDER_RULES
from screencanvas.pipeline.spec.models import (
    NODE_TYPES, LAYOUT_MODES, TEXT_ALIGNMENTS, SCALE_MODES,
)
from screencanvas.pipeline.spec.validation import DATA_URL_RE


log = logging.getLogger(__name__)


_BASE_KEYS = frozenset({"type", "name", "x", "y", "width", "height", "opacity"})
_PAINT_KEYS = frozenset({"fill", "stroke", "strokeWidth"})

# Keys (canonical and alias) each kind consumes; anything else is dropped.
_KNOWN_KEYS = {
    "rect": _BASE_KEYS | _PAINT_KEYS | {"cornerRadius"},
    "ellipse": _BASE_KEYS | _PAINT_KEYS,
    "text": _BASE_KEYS | {
        "text", "fontFamily", "fontStyle", "fontWeight", "fontSize",
        "fill", "color", "alignHorizontal", "textAlign", "align",
    },
    "image": _BASE_KEYS | {
        "imageUrl", "imageDataUrl", "scaleMode", "cornerRadius", "stroke", "strokeWidth",
    },
    "frame": _BASE_KEYS | _PAINT_KEYS | {
        "cornerRadius", "layoutMode", "padding", "itemSpacing", "gap", "children",
    },
}

_ALIGN_KEYWORDS = {
    "left": "LEFT", "start": "LEFT",
    "center": "CENTER", "centre": "CENTER", "middle": "CENTER",
    "right": "RIGHT", "end": "RIGHT",
    "justify": "JUSTIFIED", "justified": "JUSTIFIED",
}

_NAMED_WEIGHTS = {
    "bold": "Bold",
    "semibold": "Semibold", "semi-bold": "Semibold", "demibold": "Semibold",
    "medium": "Medium",
    "normal": "Regular", "regular": "Regular",
    "light": "Light",
}

_LAYOUT_ALIASES = {"ROW": "HORIZONTAL", "COLUMN": "VERTICAL"}

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_UNIT_SUFFIX_RE = re.compile(r"(px|pt)$", re.IGNORECASE)


@dataclass
class RepairReport:
    """Telemetry from one normalization pass.  Not an error list."""
    fields_coerced: int = 0
    nodes_reclassified: int = 0
    nodes_dropped: int = 0
    keys_dropped: int = 0

    def __str__(self) -> str:
        return (
            f"coerced {self.fields_coerced} field(s), "
            f"reclassified {self.nodes_reclassified} node(s), "
            f"dropped {self.nodes_dropped} node(s) and {self.keys_dropped} key(s)"
        )


# ── Scalar coercion ────────────────────────────────────────────────


def to_number(value: Any) -> tuple[float | None, bool]:
    """Return ``(number, was_coerced)``; number is None when unusable."""
    if isinstance(value, bool):
        return None, False
    if isinstance(value, (int, float)):
        try:
            finite = math.isfinite(value)
        except OverflowError:
            # int beyond float range
            return None, False
        return (value, False) if finite else (None, False)
    if isinstance(value, str):
        text = _UNIT_SUFFIX_RE.sub("", value.strip()).strip()
        if not text:
            return None, False
        try:
            number = float(text)
        except ValueError:
            return None, False
        if math.isfinite(number):
            return number, True
    return None, False


def _color(value: Any) -> tuple[dict | None, bool]:
    """Normalize a colour to ``{r, g, b, a?}`` in [0, 1]."""
    if isinstance(value, str):
        m = _HEX_RE.match(value.strip())
        if not m:
            return None, False
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        channels = [int(digits[i:i + 2], 16) / 255 for i in range(0, len(digits), 2)]
        out = {"r": channels[0], "g": channels[1], "b": channels[2]}
        if len(channels) == 4:
            out["a"] = channels[3]
        return out, True

    if not isinstance(value, Mapping):
        return None, False

    coerced = False
    rgb = []
    for key in ("r", "g", "b"):
        number, was = to_number(value.get(key))
        if number is None or number < 0:
            return None, False
        coerced = coerced or was
        rgb.append(number)
    # 0–255 channels
    if any(c > 1 for c in rgb):
        if any(c > 255 for c in rgb):
            return None, False
        rgb = [c / 255 for c in rgb]
        coerced = True
    out = {"r": rgb[0], "g": rgb[1], "b": rgb[2]}

    alpha, was = to_number(value.get("a"))
    if alpha is not None:
        if alpha > 1:
            alpha = min(alpha / 255, 1.0)
            was = True
        if alpha >= 0:
            out["a"] = alpha
            coerced = coerced or was
    return out, coerced


def _font_style_from_weight(weight: Any) -> str | None:
    if isinstance(weight, str) and weight.strip().lower() in _NAMED_WEIGHTS:
        return _NAMED_WEIGHTS[weight.strip().lower()]
    number, _ = to_number(weight)
    if number is None:
        return None
    # nearest hundred, halves rounding up (450 → 500)
    bucket = math.floor(number / 100 + 0.5) * 100
    if bucket >= 700:
        return "Bold"
    if bucket >= 600:
        return "Semibold"
    if bucket >= 500:
        return "Medium"
    return "Regular"


def _enum(value: Any, choices: tuple[str, ...], aliases: Mapping[str, str] | None = None) -> str | None:
    if not isinstance(value, str):
        return None
    key = value.strip().upper()
    if aliases and key in aliases:
        key = aliases[key]
    return key if key in choices else None


# ── Node normalization ─────────────────────────────────────────────


class _Normalizer:
    """One pass over a document, accumulating a RepairReport."""

    def __init__(self) -> None:
        self.report = RepairReport()

    # -- field helpers (write into `out` only when usable) --

    def _copy_number(self, src: Mapping, key: str, out: dict, *,
                     minimum: float | None = None,
                     positive: bool = False,
                     clamp: tuple[float, float] | None = None,
                     out_key: str | None = None) -> None:
        if src.get(key) is None:
            return
        number, coerced = to_number(src[key])
        if number is not None and clamp is not None:
            clamped = min(max(number, clamp[0]), clamp[1])
            coerced = coerced or clamped != number
            number = clamped
        if number is None or (minimum is not None and number < minimum) or (positive and number <= 0):
            self.report.keys_dropped += 1
            return
        if coerced:
            self.report.fields_coerced += 1
        out[out_key or key] = number

    def _copy_color(self, src: Mapping, key: str, out: dict, out_key: str | None = None) -> None:
        if src.get(key) is None:
            return
        color, coerced = _color(src[key])
        if color is None:
            self.report.keys_dropped += 1
            return
        if coerced:
            self.report.fields_coerced += 1
        out[out_key or key] = color

    def _copy_paint(self, src: Mapping, out: dict, *, fill: bool = True) -> None:
        if fill:
            self._copy_color(src, "fill", out)
        self._copy_color(src, "stroke", out)
        self._copy_number(src, "strokeWidth", out, minimum=0)

    def _copy_enum(self, src: Mapping, key: str, out: dict, choices: tuple[str, ...],
                   aliases: Mapping[str, str] | None = None) -> None:
        if src.get(key) is None:
            return
        value = _enum(src[key], choices, aliases)
        if value is None:
            self.report.keys_dropped += 1
            return
        if value != src[key]:
            self.report.fields_coerced += 1
        out[key] = value

    # -- per node --

    def node(self, raw: Any) -> dict | None:
        if not isinstance(raw, Mapping):
            self.report.nodes_dropped += 1
            return None
        kind = raw.get("type")
        if kind not in NODE_TYPES:
            log.debug("Dropping node with unsupported type %r", kind)
            self.report.nodes_dropped += 1
            return None

        base: dict = {"type": kind}
        for key in ("x", "y", "width", "height"):
            number, coerced = to_number(raw.get(key))
            if number is None or (key in ("width", "height") and number <= 0):
                log.debug("Dropping %s node: unusable %s=%r", kind, key, raw.get(key))
                self.report.nodes_dropped += 1
                return None
            if coerced:
                self.report.fields_coerced += 1
            base[key] = number
        if isinstance(raw.get("name"), str):
            base["name"] = raw["name"]
        self._copy_number(raw, "opacity", base, clamp=(0.0, 1.0))

        self.report.keys_dropped += sum(1 for k in raw if k not in _KNOWN_KEYS[kind])

        if kind == "text":
            return self._text(raw, base)
        if kind == "image":
            return self._image(raw, base)
        if kind == "frame":
            return self._frame(raw, base)
        if kind == "rect":
            self._copy_paint(raw, base)
            self._copy_number(raw, "cornerRadius", base, minimum=0)
            return base
        self._copy_paint(raw, base)
        return base

    def _text(self, raw: Mapping, out: dict) -> dict:
        text = raw.get("text")
        if isinstance(text, (int, float)) and not isinstance(text, bool):
            text = str(text)
            self.report.fields_coerced += 1
        out["text"] = text if isinstance(text, str) else ""

        if isinstance(raw.get("fontFamily"), str):
            out["fontFamily"] = raw["fontFamily"]
        if isinstance(raw.get("fontStyle"), str):
            out["fontStyle"] = raw["fontStyle"]
        elif raw.get("fontWeight") is not None:
            style = _font_style_from_weight(raw["fontWeight"])
            if style is not None:
                out["fontStyle"] = style
                self.report.fields_coerced += 1
        self._copy_number(raw, "fontSize", out, positive=True)

        if raw.get("fill") is not None:
            self._copy_color(raw, "fill", out)
        elif raw.get("color") is not None:
            self._copy_color(raw, "color", out, out_key="fill")
            if "fill" in out:
                self.report.fields_coerced += 1

        align = _enum(raw.get("alignHorizontal"), TEXT_ALIGNMENTS)
        if align is None:
            for key in ("textAlign", "align"):
                keyword = raw.get(key)
                if isinstance(keyword, str) and keyword.strip().lower() in _ALIGN_KEYWORDS:
                    align = _ALIGN_KEYWORDS[keyword.strip().lower()]
                    break
        if align is not None:
            if align != raw.get("alignHorizontal"):
                self.report.fields_coerced += 1
            out["alignHorizontal"] = align
        return out

    def _image(self, raw: Mapping, out: dict) -> dict:
        url = raw.get("imageUrl")
        data_url = raw.get("imageDataUrl")
        has_url = isinstance(url, str) and bool(url.strip())
        has_data = isinstance(data_url, str) and DATA_URL_RE.match(data_url) is not None
        if not has_url and not has_data:
            self.report.nodes_reclassified += 1
            return placeholder_rect(raw, out)
        if has_url:
            out["imageUrl"] = url.strip()
        if has_data:
            out["imageDataUrl"] = data_url
        self._copy_enum(raw, "scaleMode", out, SCALE_MODES)
        self._copy_number(raw, "cornerRadius", out, minimum=0)
        self._copy_paint(raw, out, fill=False)
        return out

    def _frame(self, raw: Mapping, out: dict) -> dict:
        self._copy_enum(raw, "layoutMode", out, LAYOUT_MODES, _LAYOUT_ALIASES)

        padding = raw.get("padding")
        if isinstance(padding, Mapping):
            sides: dict = {}
            for side in ("top", "right", "bottom", "left"):
                self._copy_number(padding, side, sides, minimum=0)
            out["padding"] = sides
        elif padding is not None:
            uniform, _ = to_number(padding)
            if uniform is not None and uniform >= 0:
                out["padding"] = {side: uniform for side in ("top", "right", "bottom", "left")}
                self.report.fields_coerced += 1
            else:
                self.report.keys_dropped += 1

        if raw.get("itemSpacing") is not None:
            self._copy_number(raw, "itemSpacing", out, minimum=0)
        elif raw.get("gap") is not None:
            self._copy_number(raw, "gap", out, minimum=0, out_key="itemSpacing")
            if "itemSpacing" in out:
                self.report.fields_coerced += 1

        self._copy_paint(raw, out)
        self._copy_number(raw, "cornerRadius", out, minimum=0)

        children = raw.get("children")
        if isinstance(children, list):
            out["children"] = self.nodes(children)
        elif children is not None:
            self.report.keys_dropped += 1
        return out

    def nodes(self, items: list) -> list[dict]:
        out = []
        for item in items:
            node = self.node(item)
            if node is not None:
                out.append(node)
        return out


def placeholder_rect(raw: Mapping, base: Mapping) -> dict:
    """Neutral rectangle with the bounds of an image that cannot be drawn."""
    name = raw.get("name")
    radius, _ = to_number(raw.get("cornerRadius"))
    if radius is None or radius < 0:
        radius = RENDER_RULES.placeholder_corner_radius
    r, g, b, a = RENDER_RULES.placeholder_fill
    return {
        "type": "rect",
        "name": f"{name} Placeholder" if isinstance(name, str) else "Image Placeholder",
        "x": base["x"],
        "y": base["y"],
        "width": base["width"],
        "height": base["height"],
        "cornerRadius": radius,
        "fill": {"r": r, "g": g, "b": b, "a": a},
    }


# ── Public API ─────────────────────────────────────────────────────


def normalize_node(raw: Any) -> tuple[dict | None, RepairReport]:
    """Normalize a single node; returns ``(node_or_None, report)``."""
    n = _Normalizer()
    return n.node(raw), n.report


def normalize_spec(
    data: Any,
    width: float | None = None,
    height: float | None = None,
) -> tuple[dict, RepairReport]:
    """Repair a generated document.

    *width*/*height* are the target screenshot dimensions, used when the
    document's own canvas size is missing or unusable.  Never raises.
    """
    n = _Normalizer()
    src = data if isinstance(data, Mapping) else {}
    canvas_raw = src.get("canvas") if isinstance(src.get("canvas"), Mapping) else {}

    canvas: dict = {
        "name": canvas_raw["name"] if isinstance(canvas_raw.get("name"), str)
        else RENDER_RULES.default_canvas_name,
    }
    for key, fallback in (("width", width), ("height", height)):
        number, coerced = to_number(canvas_raw.get(key))
        if number is None or number <= 0:
            number, coerced = fallback, False
        if coerced:
            n.report.fields_coerced += 1
        if number is not None:
            canvas[key] = number

    raw_nodes = src.get("nodes")
    nodes = n.nodes(raw_nodes) if isinstance(raw_nodes, list) else []

    log.info("Normalized %d top-level node(s): %s", len(nodes), n.report)
    return {"canvas": canvas, "nodes": nodes}, n.report
