"""Shared heuristics for repairing and rendering generated designs.

The normalizer (which builds image placeholders), the coordinate resolver
(which scores candidate placements) and the renderer (which infers pill
radii and fallback paints) all read their constants from this single
source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RenderRules:
    """Tunable heuristics.  All distances are in canvas units (px)."""

    fit_tolerance: float = 1.0
    """Slack allowed when checking whether a node fits inside its parent."""

    pill_max_height: float = 28.0
    """Tallest filled shape that still gets an inferred pill radius."""

    pill_min_aspect: float = 1.6
    """Minimum width/height ratio for an inferred pill radius."""

    default_font_family: str = "Inter"
    default_font_style: str = "Regular"

    default_canvas_name: str = "Generated from Image"
    overlay_name: str = "AI layers"

    image_fallback_gray: float = 0.9
    """Channel value of the solid fill used when an image cannot be resolved."""

    placeholder_fill: tuple[float, float, float, float] = (0.9, 0.92, 0.95, 1.0)
    """RGBA fill of the rectangle that replaces an unresolvable image node."""

    placeholder_corner_radius: float = 8.0

    # ── Derived helpers ────────────────────────────────────────────

    def is_pill(self, width: float, height: float) -> bool:
        """True when a filled box of this size reads as a badge or tag."""
        return height <= self.pill_max_height and width >= height * self.pill_min_aspect


# Module-level singleton, importable everywhere.
RENDER_RULES = RenderRules()
