"""Renderer — instantiate a validated DesignSpec onto a canvas host.

Layers created per render:

  root frame     sized to the design canvas, screenshot as background fill
  └ overlay      "AI layers", same size, transparent
    └ nodes      one host object per design node, in document order

The walk is a single async task.  It suspends only on font loads and remote
image fetches, and every node (including its resource wait) is finished and
attached before its children or later siblings start, so host paint order
always equals document order.  Resource failures degrade node by node
(fallback font, gray image fill); nothing below the top level aborts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from screencanvas.canvas.host import (
    CanvasHost, CanvasObject, FontName, FrameObject, HostOperationError, ImagePaint,
)
from screencanvas.pipeline.config import RENDER_RULES, RenderRules
from screencanvas.pipeline.coords import CoordinateMode, choose_local_position, detect_coordinate_mode
from screencanvas.pipeline.spec.models import (
    DesignNode, DesignSpec, EllipseNode, FrameNode, ImageNode, RectNode, TextNode,
)

from .images import ImageResolver
from .screenshot import Screenshot, ScreenshotError, normalize_screenshot
from .styles import TRANSPARENT_WHITE, gray, infer_pill_radius, solid


log = logging.getLogger(__name__)


@dataclass
class RenderResult:
    root: FrameObject
    overlay: FrameObject
    objects_created: int = 0        # one per design node
    image_fallbacks: int = 0
    font_fallbacks: int = 0


@dataclass
class _RenderState:
    """State scoped to one ``render`` call."""
    result: RenderResult
    fonts: dict[FontName, asyncio.Task] = field(default_factory=dict)


class Renderer:
    """Drive a ``CanvasHost`` from a validated design spec."""

    def __init__(
        self,
        host: CanvasHost,
        resolver: ImageResolver | None = None,
        rules: RenderRules = RENDER_RULES,
    ):
        self.host = host
        self.resolver = resolver or ImageResolver(host)
        self.rules = rules

    # ── Entry points ───────────────────────────────────────────────

    async def render(self, spec: DesignSpec, screenshot: Screenshot | None = None) -> RenderResult:
        """Instantiate *spec*, optionally over its source screenshot."""
        screenshot = normalize_screenshot(screenshot)
        width, height = spec.canvas.width, spec.canvas.height
        log.info("Rendering %r (%gx%g, %d top-level node(s))",
                 spec.canvas.name, width, height, len(spec.nodes))

        root = self.host.create_frame()
        root.name = spec.canvas.name or "Generated"
        root.resize(width, height)
        root.x = 0
        root.y = 0
        root.clips_content = True
        root.fills = []
        if screenshot is not None:
            try:
                handle = self.host.create_image(screenshot.to_bytes())
            except (HostOperationError, ScreenshotError) as exc:
                log.warning("Screenshot background skipped: %s", exc)
            else:
                root.fills = [ImagePaint(image_hash=handle.hash, scale_mode="FILL")]

        overlay = self.host.create_frame()
        overlay.name = self.rules.overlay_name
        overlay.resize(width, height)
        overlay.x = 0
        overlay.y = 0
        overlay.fills = []
        overlay.strokes = []
        root.append_child(overlay)

        state = _RenderState(result=RenderResult(root=root, overlay=overlay))
        preferred = detect_coordinate_mode(
            spec.nodes, 0, 0, width, height, self.rules.fit_tolerance,
        )
        for node in spec.nodes:
            await self._render_node(node, overlay, state, 0, 0, width, height, preferred)

        self.host.append_to_page(root)
        self.host.select([root])

        result = state.result
        log.info("Rendered %d object(s) (%d image fallback(s), %d font fallback(s))",
                 result.objects_created, result.image_fallbacks, result.font_fallbacks)
        return result

    async def render_screenshot_only(self, screenshot: Screenshot) -> FrameObject:
        """Place just the screenshot, in a frame sized to the image."""
        screenshot = normalize_screenshot(screenshot)
        if screenshot is None:
            raise ScreenshotError("Missing screenshot.")

        handle = self.host.create_image(screenshot.to_bytes())
        root = self.host.create_frame()
        root.name = "Screenshot"
        root.resize(handle.width, handle.height)
        root.x = 0
        root.y = 0
        root.clips_content = True
        root.fills = [ImagePaint(image_hash=handle.hash, scale_mode="FILL")]

        self.host.append_to_page(root)
        self.host.select([root])
        return root

    # ── Node walk ──────────────────────────────────────────────────

    async def _render_node(
        self,
        node: DesignNode,
        parent: FrameObject,
        state: _RenderState,
        parent_abs_x: float,
        parent_abs_y: float,
        parent_width: float,
        parent_height: float,
        preferred: CoordinateMode | None,
    ) -> None:
        local_x, local_y = choose_local_position(
            node, parent_abs_x, parent_abs_y, parent_width, parent_height, preferred,
            self.rules.fit_tolerance,
        )

        if isinstance(node, FrameNode):
            frame = self._frame(node, local_x, local_y)
            parent.append_child(frame)
            state.result.objects_created += 1

            abs_x = parent_abs_x + local_x
            abs_y = parent_abs_y + local_y
            child_mode = detect_coordinate_mode(
                node.children, abs_x, abs_y, node.width, node.height, self.rules.fit_tolerance,
            )
            for child in node.children:
                await self._render_node(
                    child, frame, state, abs_x, abs_y, node.width, node.height, child_mode,
                )
            return

        if isinstance(node, TextNode):
            obj = await self._text(node, local_x, local_y, state)
        elif isinstance(node, ImageNode):
            obj = await self._image(node, local_x, local_y, state)
        elif isinstance(node, EllipseNode):
            obj = self._ellipse(node, local_x, local_y)
        else:
            obj = self._rect(node, local_x, local_y)
        parent.append_child(obj)
        state.result.objects_created += 1

    # ── Per kind ───────────────────────────────────────────────────

    def _place(self, obj: CanvasObject, node: DesignNode, x: float, y: float, default_name: str) -> None:
        obj.name = node.name or default_name
        obj.x = x
        obj.y = y
        obj.resize(node.width, node.height)

    def _apply_stroke(self, obj: CanvasObject, node) -> None:
        if node.stroke is not None and node.stroke_width is not None:
            obj.strokes = [solid(node.stroke)]
            obj.stroke_weight = node.stroke_width
        else:
            obj.strokes = []

    def _rect(self, node: RectNode, x: float, y: float) -> CanvasObject:
        r = self.host.create_rectangle()
        self._place(r, node, x, y, "Rect")
        radius = infer_pill_radius(
            node.width, node.height, node.fill is not None, node.corner_radius, self.rules,
        )
        if radius is not None:
            r.corner_radius = radius
        r.fills = [solid(node.fill)] if node.fill is not None else [TRANSPARENT_WHITE]
        self._apply_stroke(r, node)
        if node.opacity is not None:
            r.opacity = node.opacity
        return r

    def _ellipse(self, node: EllipseNode, x: float, y: float) -> CanvasObject:
        e = self.host.create_ellipse()
        self._place(e, node, x, y, "Ellipse")
        e.fills = [solid(node.fill)] if node.fill is not None else [TRANSPARENT_WHITE]
        self._apply_stroke(e, node)
        if node.opacity is not None:
            e.opacity = node.opacity
        return e

    async def _text(self, node: TextNode, x: float, y: float, state: _RenderState) -> CanvasObject:
        t = self.host.create_text()
        t.name = node.name or "Text"
        t.x = x
        t.y = y

        requested = FontName(
            node.font_family or self.rules.default_font_family,
            node.font_style or self.rules.default_font_style,
        )
        font = await self._ensure_font(requested, state)
        if font is not None:
            t.font_name = font
            t.characters = node.text
        if node.font_size:
            t.font_size = node.font_size
        if node.fill is not None:
            t.fills = [solid(node.fill)]
        if node.align_horizontal:
            t.text_align_horizontal = node.align_horizontal
        if node.opacity is not None:
            t.opacity = node.opacity

        try:
            t.resize(node.width, node.height)
        except HostOperationError as exc:
            log.debug("Text %r keeps its auto size: %s", t.name, exc)
        return t

    async def _image(self, node: ImageNode, x: float, y: float, state: _RenderState) -> CanvasObject:
        r = self.host.create_rectangle()
        self._place(r, node, x, y, "Image")
        if node.corner_radius is not None:
            r.corner_radius = node.corner_radius

        paint = await self.resolver.resolve(node)
        if paint is not None:
            r.fills = [paint]
        else:
            state.result.image_fallbacks += 1
            r.fills = [gray(self.rules.image_fallback_gray)]

        self._apply_stroke(r, node)
        if node.opacity is not None:
            r.opacity = node.opacity
        return r

    def _frame(self, node: FrameNode, x: float, y: float) -> FrameObject:
        f = self.host.create_frame()
        self._place(f, node, x, y, "Frame")
        f.fills = [solid(node.fill)] if node.fill is not None else []
        self._apply_stroke(f, node)

        radius = infer_pill_radius(
            node.width, node.height, node.fill is not None, node.corner_radius, self.rules,
        )
        if radius is not None:
            f.corner_radius = radius
        if node.opacity is not None:
            f.opacity = node.opacity

        if node.layout_mode != "NONE":
            f.layout_mode = node.layout_mode
            if node.padding is not None:
                f.padding_top = node.padding.top or 0
                f.padding_right = node.padding.right or 0
                f.padding_bottom = node.padding.bottom or 0
                f.padding_left = node.padding.left or 0
            if node.item_spacing is not None:
                f.item_spacing = node.item_spacing
            f.primary_axis_sizing_mode = "AUTO"
            f.counter_axis_sizing_mode = "AUTO"
        else:
            f.layout_mode = "NONE"
        return f

    # ── Fonts ──────────────────────────────────────────────────────

    async def _load_font(self, font: FontName, state: _RenderState) -> None:
        """Load *font* once per render; concurrent callers share the task."""
        task = state.fonts.get(font)
        if task is None:
            task = asyncio.ensure_future(self.host.load_font(font))
            state.fonts[font] = task
        await task

    async def _ensure_font(self, requested: FontName, state: _RenderState) -> FontName | None:
        """Return a loaded font: *requested*, else the default, else None."""
        try:
            await self._load_font(requested, state)
            return requested
        except HostOperationError as exc:
            log.warning("Font %s unavailable (%s); using default", requested.key, exc)

        state.result.font_fallbacks += 1
        default = FontName(self.rules.default_font_family, self.rules.default_font_style)
        if default == requested:
            return None
        try:
            await self._load_font(default, state)
            return default
        except HostOperationError as exc:
            log.warning("Default font %s unavailable (%s); text left empty", default.key, exc)
            return None
