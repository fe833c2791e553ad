"""Strict validation — turn a parsed JSON document into a typed DesignSpec.

Validation is all-or-nothing: the first structural mismatch raises
``SchemaViolation`` naming the offending path, so the renderer never sees a
partially valid node.  Defaults are applied on the way (``layoutMode`` →
``"NONE"``, ``children`` → ``[]``, canvas name, ``nodes`` → ``[]``).
Unknown keys are ignored; the input is never mutated.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from screencanvas.pipeline.config import RENDER_RULES

from .models import (
    Canvas, Color, Padding, DesignSpec, DesignNode,
    RectNode, TextNode, FrameNode, EllipseNode, ImageNode,
    NODE_TYPES, LAYOUT_MODES, TEXT_ALIGNMENTS, SCALE_MODES,
)


DATA_URL_PREFIX = "data:image/"
DATA_URL_RE = re.compile(r"^data:(image/[^;]+);base64,(.*)$", re.DOTALL)


class SchemaViolation(ValueError):
    """Raised when a document does not match the design schema."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


# ── Field helpers ──────────────────────────────────────────────────


def _require_mapping(data: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SchemaViolation(path, f"expected an object, got {type(data).__name__}")
    return data


def _number(
    data: Mapping[str, Any], key: str, path: str, *,
    required: bool = False,
    minimum: float | None = None,
    maximum: float | None = None,
    positive: bool = False,
) -> float | None:
    """Read a finite number, enforcing optional bounds."""
    value = data.get(key)
    where = f"{path}.{key}"
    if value is None:
        if required:
            raise SchemaViolation(where, "required number is missing")
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaViolation(where, f"expected a number, got {type(value).__name__}")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise SchemaViolation(where, "must be finite")
    if positive and value <= 0:
        raise SchemaViolation(where, "must be > 0")
    if minimum is not None and value < minimum:
        raise SchemaViolation(where, f"must be >= {minimum:g}")
    if maximum is not None and value > maximum:
        raise SchemaViolation(where, f"must be <= {maximum:g}")
    return value


def _string(
    data: Mapping[str, Any], key: str, path: str, *,
    required: bool = False,
    choices: tuple[str, ...] | None = None,
) -> str | None:
    value = data.get(key)
    where = f"{path}.{key}"
    if value is None:
        if required:
            raise SchemaViolation(where, "required string is missing")
        return None
    if not isinstance(value, str):
        raise SchemaViolation(where, f"expected a string, got {type(value).__name__}")
    if choices is not None and value not in choices:
        raise SchemaViolation(where, f"'{value}' is not one of {', '.join(choices)}")
    return value


def validate_color(data: Any, path: str) -> Color:
    """Validate an ``{r, g, b, a?}`` object with channels in [0, 1]."""
    m = _require_mapping(data, path)
    return Color(
        r=_number(m, "r", path, required=True, minimum=0, maximum=1),
        g=_number(m, "g", path, required=True, minimum=0, maximum=1),
        b=_number(m, "b", path, required=True, minimum=0, maximum=1),
        a=_number(m, "a", path, minimum=0, maximum=1),
    )


def _optional_color(data: Mapping[str, Any], key: str, path: str) -> Color | None:
    if data.get(key) is None:
        return None
    return validate_color(data[key], f"{path}.{key}")


def _padding(data: Mapping[str, Any], path: str) -> Padding | None:
    raw = data.get("padding")
    if raw is None:
        return None
    where = f"{path}.padding"
    m = _require_mapping(raw, where)
    return Padding(
        top=_number(m, "top", where, minimum=0),
        right=_number(m, "right", where, minimum=0),
        bottom=_number(m, "bottom", where, minimum=0),
        left=_number(m, "left", where, minimum=0),
    )


def _base_fields(m: Mapping[str, Any], path: str) -> dict[str, Any]:
    """Geometry shared by every node kind."""
    return {
        "name": _string(m, "name", path),
        "x": _number(m, "x", path, required=True),
        "y": _number(m, "y", path, required=True),
        "width": _number(m, "width", path, required=True, positive=True),
        "height": _number(m, "height", path, required=True, positive=True),
        "opacity": _number(m, "opacity", path, minimum=0, maximum=1),
    }


def _stroke_fields(m: Mapping[str, Any], path: str) -> dict[str, Any]:
    return {
        "stroke": _optional_color(m, "stroke", path),
        "stroke_width": _number(m, "strokeWidth", path, minimum=0),
    }


# ── Per-kind validators ────────────────────────────────────────────


def _validate_rect(m: Mapping[str, Any], path: str) -> RectNode:
    return RectNode(
        **_base_fields(m, path),
        **_stroke_fields(m, path),
        fill=_optional_color(m, "fill", path),
        corner_radius=_number(m, "cornerRadius", path, minimum=0),
    )


def _validate_text(m: Mapping[str, Any], path: str) -> TextNode:
    return TextNode(
        **_base_fields(m, path),
        text=_string(m, "text", path, required=True),
        font_family=_string(m, "fontFamily", path),
        font_style=_string(m, "fontStyle", path),
        font_size=_number(m, "fontSize", path, positive=True),
        fill=_optional_color(m, "fill", path),
        align_horizontal=_string(m, "alignHorizontal", path, choices=TEXT_ALIGNMENTS),
    )


def _validate_ellipse(m: Mapping[str, Any], path: str) -> EllipseNode:
    return EllipseNode(
        **_base_fields(m, path),
        **_stroke_fields(m, path),
        fill=_optional_color(m, "fill", path),
    )


def _validate_image(m: Mapping[str, Any], path: str) -> ImageNode:
    base = _base_fields(m, path)
    image_url = _string(m, "imageUrl", path)
    if image_url is not None and not image_url:
        raise SchemaViolation(f"{path}.imageUrl", "must not be empty")
    image_data_url = _string(m, "imageDataUrl", path)
    if image_data_url is not None:
        if not image_data_url.startswith(DATA_URL_PREFIX):
            raise SchemaViolation(f"{path}.imageDataUrl", f"must start with '{DATA_URL_PREFIX}'")
        if not DATA_URL_RE.match(image_data_url):
            raise SchemaViolation(f"{path}.imageDataUrl", "expected 'data:image/<type>;base64,<payload>'")
    if not image_url and not image_data_url:
        raise SchemaViolation(path, "imageUrl or imageDataUrl is required")
    return ImageNode(
        **base,
        **_stroke_fields(m, path),
        image_url=image_url,
        image_data_url=image_data_url,
        scale_mode=_string(m, "scaleMode", path, choices=SCALE_MODES),
        corner_radius=_number(m, "cornerRadius", path, minimum=0),
    )


def _validate_frame(m: Mapping[str, Any], path: str) -> FrameNode:
    base = _base_fields(m, path)
    raw_children = m.get("children")
    if raw_children is None:
        raw_children = []
    elif not isinstance(raw_children, list):
        raise SchemaViolation(f"{path}.children", "expected an array")
    layout_mode = _string(m, "layoutMode", path, choices=LAYOUT_MODES)
    return FrameNode(
        **base,
        **_stroke_fields(m, path),
        layout_mode=layout_mode or "NONE",
        padding=_padding(m, path),
        item_spacing=_number(m, "itemSpacing", path, minimum=0),
        fill=_optional_color(m, "fill", path),
        corner_radius=_number(m, "cornerRadius", path, minimum=0),
        children=[
            validate_node(child, f"{path}.children[{i}]")
            for i, child in enumerate(raw_children)
        ],
    )


_VALIDATORS = {
    "rect": _validate_rect,
    "text": _validate_text,
    "frame": _validate_frame,
    "ellipse": _validate_ellipse,
    "image": _validate_image,
}


# ── Public API ─────────────────────────────────────────────────────


def validate_node(data: Any, path: str = "node") -> DesignNode:
    """Validate one node (recursively for frames)."""
    m = _require_mapping(data, path)
    tag = m.get("type")
    if tag not in NODE_TYPES:
        raise SchemaViolation(
            f"{path}.type",
            f"{tag!r} is not one of {', '.join(NODE_TYPES)}",
        )
    return _VALIDATORS[tag](m, path)


def validate_spec(data: Any) -> DesignSpec:
    """Validate a whole document.  Raises SchemaViolation on the first error."""
    m = _require_mapping(data, "spec")
    canvas_raw = _require_mapping(m.get("canvas"), "canvas")
    name = _string(canvas_raw, "name", "canvas")
    canvas = Canvas(
        name=RENDER_RULES.default_canvas_name if name is None else name,
        width=_number(canvas_raw, "width", "canvas", required=True, positive=True),
        height=_number(canvas_raw, "height", "canvas", required=True, positive=True),
    )

    raw_nodes = m.get("nodes")
    if raw_nodes is None:
        raw_nodes = []
    elif not isinstance(raw_nodes, list):
        raise SchemaViolation("nodes", "expected an array")

    nodes = [validate_node(n, f"nodes[{i}]") for i, n in enumerate(raw_nodes)]
    return DesignSpec(canvas=canvas, nodes=nodes)
