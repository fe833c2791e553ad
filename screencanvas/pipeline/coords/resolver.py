"""Coordinate system resolution — relative vs. absolute child placement.

Generators mix two conventions, sometimes within one document: a child's
``(x, y)`` is either relative to its frame or absolute on the canvas.  Each
interpretation is scored by how well it keeps the child inside the parent
(``fit_score``, 0–4) and the better one wins.  Ties fall back to the frame's
aggregate mode, then to the parent's offset.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from screencanvas.pipeline.config import RENDER_RULES
from screencanvas.pipeline.spec.models import DesignNode


class CoordinateMode(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


def fit_score(
    x: float, y: float, width: float, height: float,
    parent_width: float, parent_height: float,
    tolerance: float | None = None,
) -> int:
    """Count the parent edges (left, top, right, bottom) the box stays within.

    *tolerance* defaults to ``RENDER_RULES.fit_tolerance``.
    """
    if tolerance is None:
        tolerance = RENDER_RULES.fit_tolerance
    score = 0
    if x >= -tolerance:
        score += 1
    if y >= -tolerance:
        score += 1
    if x + width <= parent_width + tolerance:
        score += 1
    if y + height <= parent_height + tolerance:
        score += 1
    return score


def _scores(
    node: DesignNode,
    parent_abs_x: float, parent_abs_y: float,
    parent_width: float, parent_height: float,
    tolerance: float | None = None,
) -> tuple[int, int]:
    """Return ``(relative_score, absolute_score)`` for one node."""
    rel = fit_score(node.x, node.y, node.width, node.height, parent_width, parent_height, tolerance)
    abs_ = fit_score(
        node.x - parent_abs_x, node.y - parent_abs_y,
        node.width, node.height, parent_width, parent_height, tolerance,
    )
    return rel, abs_


def detect_coordinate_mode(
    children: Iterable[DesignNode],
    parent_abs_x: float, parent_abs_y: float,
    parent_width: float, parent_height: float,
    tolerance: float | None = None,
) -> CoordinateMode | None:
    """Aggregate mode for a frame's direct children, or None on a tie."""
    relative_total = 0
    absolute_total = 0
    for child in children:
        rel, abs_ = _scores(child, parent_abs_x, parent_abs_y, parent_width, parent_height, tolerance)
        relative_total += rel
        absolute_total += abs_
    if absolute_total > relative_total:
        return CoordinateMode.ABSOLUTE
    if relative_total > absolute_total:
        return CoordinateMode.RELATIVE
    return None


def choose_mode(
    node: DesignNode,
    parent_abs_x: float, parent_abs_y: float,
    parent_width: float, parent_height: float,
    preferred: CoordinateMode | None = None,
    tolerance: float | None = None,
) -> CoordinateMode:
    """Decide which convention *node*'s own coordinates use."""
    rel, abs_ = _scores(node, parent_abs_x, parent_abs_y, parent_width, parent_height, tolerance)
    if abs_ > rel:
        return CoordinateMode.ABSOLUTE
    if rel > abs_:
        return CoordinateMode.RELATIVE
    if preferred is not None:
        return preferred
    # offset parent: read as absolute
    if parent_abs_x != 0 or parent_abs_y != 0:
        return CoordinateMode.ABSOLUTE
    return CoordinateMode.RELATIVE


def choose_local_position(
    node: DesignNode,
    parent_abs_x: float, parent_abs_y: float,
    parent_width: float, parent_height: float,
    preferred: CoordinateMode | None = None,
    tolerance: float | None = None,
) -> tuple[float, float]:
    """Resolve *node*'s position local to its immediate parent."""
    mode = choose_mode(
        node, parent_abs_x, parent_abs_y, parent_width, parent_height, preferred, tolerance,
    )
    if mode is CoordinateMode.ABSOLUTE:
        return node.x - parent_abs_x, node.y - parent_abs_y
    return node.x, node.y
