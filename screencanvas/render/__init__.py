"""Render — instantiate validated specs onto a canvas host."""

from .screenshot import Screenshot, ScreenshotError, normalize_screenshot
from .images import ImageResolver
from .styles import infer_pill_radius, solid
from .renderer import Renderer, RenderResult

__all__ = [
    "Screenshot", "ScreenshotError", "normalize_screenshot",
    "ImageResolver",
    "infer_pill_radius", "solid",
    "Renderer", "RenderResult",
]
