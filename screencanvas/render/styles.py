"""Paint helpers and shape heuristics shared by the renderer."""

from __future__ import annotations

import math

from screencanvas.canvas.host import SolidPaint
from screencanvas.pipeline.config import RENDER_RULES, RenderRules
from screencanvas.pipeline.spec.models import Color


# Default fill for shapes without one: keeps them selectable but invisible.
TRANSPARENT_WHITE = SolidPaint(1.0, 1.0, 1.0, opacity=0.0)


def solid(color: Color) -> SolidPaint:
    return SolidPaint(color.r, color.g, color.b, opacity=color.a)


def gray(level: float) -> SolidPaint:
    return SolidPaint(level, level, level, opacity=1.0)


def infer_pill_radius(
    width: float,
    height: float,
    has_fill: bool,
    explicit: float | None = None,
    rules: RenderRules = RENDER_RULES,
) -> float | None:
    """Corner radius to apply, or None to leave the host default.

    An explicit radius always wins.  Otherwise a short, wide, filled box is
    assumed to be a badge/tag whose rounding the generator omitted.
    """
    if explicit is not None:
        return explicit
    if not has_fill:
        return None
    if rules.is_pill(width, height):
        return math.floor(height / 2)
    return None
