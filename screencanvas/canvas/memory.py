"""In-memory canvas host.

Records every object the renderer creates, every font load and the final
selection, so a render can be inspected, dumped to JSON, or rasterized with
``screencanvas.canvas.raster``.  A few switches simulate host failures:

  available_fonts     fonts outside this set fail to load (None = all load)
  reject_text_resize  text objects refuse ``resize`` (auto-sized text)
"""

from __future__ import annotations

import asyncio
import hashlib
import io
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from .host import FontName, HostOperationError, ImageHandle, ImagePaint, Paint, SolidPaint


class MemoryObject:
    kind = "object"

    def __init__(self, host: MemoryCanvas) -> None:
        self._host = host
        self.name = ""
        self.x = 0.0
        self.y = 0.0
        self.width = 100.0
        self.height = 100.0
        self.fills: list[Paint] = []
        self.strokes: list[Paint] = []
        self.stroke_weight = 1.0
        self.opacity = 1.0
        self.corner_radius = 0.0
        self.parent: MemoryFrame | None = None

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise HostOperationError("resize", f"invalid size {width}x{height}")
        self.width = width
        self.height = height

    def to_dict(self) -> dict:
        out = {
            "kind": self.kind,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "fills": [_paint_to_dict(p) for p in self.fills],
        }
        if self.strokes:
            out["strokes"] = [_paint_to_dict(p) for p in self.strokes]
            out["strokeWeight"] = self.stroke_weight
        if self.opacity != 1.0:
            out["opacity"] = self.opacity
        if self.corner_radius:
            out["cornerRadius"] = self.corner_radius
        return out

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} @({self.x}, {self.y}) {self.width}x{self.height}>"


class MemoryRectangle(MemoryObject):
    kind = "rectangle"


class MemoryEllipse(MemoryObject):
    kind = "ellipse"


class MemoryText(MemoryObject):
    kind = "text"

    def __init__(self, host: MemoryCanvas) -> None:
        super().__init__(host)
        self.font_name = FontName("Inter", "Regular")
        self._characters = ""
        self.font_size = 12.0
        self.text_align_horizontal = "LEFT"

    @property
    def characters(self) -> str:
        return self._characters

    @characters.setter
    def characters(self, value: str) -> None:
        # Editing text requires the current font to be loaded first.
        if self.font_name not in self._host.loaded_fonts:
            raise HostOperationError("characters", f"font {self.font_name.key} is not loaded")
        self._characters = value

    def resize(self, width: float, height: float) -> None:
        if self._host.reject_text_resize:
            raise HostOperationError("resize", "text is auto-sized")
        super().resize(width, height)

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update(
            characters=self.characters,
            fontName={"family": self.font_name.family, "style": self.font_name.style},
            fontSize=self.font_size,
            textAlignHorizontal=self.text_align_horizontal,
        )
        return out


class MemoryFrame(MemoryObject):
    """Frame with optional auto layout along one axis.

    With ``layout_mode`` HORIZONTAL/VERTICAL, children are stacked along the
    primary axis after padding, separated by ``item_spacing``; AUTO sizing
    grows the frame to hug its content.
    """
    kind = "frame"

    def __init__(self, host: MemoryCanvas) -> None:
        super().__init__(host)
        self.children: list[MemoryObject] = []
        self.clips_content = False
        self.layout_mode = "NONE"
        self.padding_top = 0.0
        self.padding_right = 0.0
        self.padding_bottom = 0.0
        self.padding_left = 0.0
        self.item_spacing = 0.0
        self.primary_axis_sizing_mode = "FIXED"
        self.counter_axis_sizing_mode = "FIXED"

    def append_child(self, child: MemoryObject) -> None:
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        if self.layout_mode != "NONE":
            self._reflow()

    def _reflow(self) -> None:
        horizontal = self.layout_mode == "HORIZONTAL"
        cursor = self.padding_left if horizontal else self.padding_top
        cross = 0.0
        for i, child in enumerate(self.children):
            if i:
                cursor += self.item_spacing
            if horizontal:
                child.x, child.y = cursor, self.padding_top
                cursor += child.width
                cross = max(cross, child.height)
            else:
                child.x, child.y = self.padding_left, cursor
                cursor += child.height
                cross = max(cross, child.width)

        if horizontal:
            primary = cursor + self.padding_right
            counter = cross + self.padding_top + self.padding_bottom
        else:
            primary = cursor + self.padding_bottom
            counter = cross + self.padding_left + self.padding_right

        if self.primary_axis_sizing_mode == "AUTO" and primary > 0:
            if horizontal:
                self.width = primary
            else:
                self.height = primary
        if self.counter_axis_sizing_mode == "AUTO" and counter > 0:
            if horizontal:
                self.height = counter
            else:
                self.width = counter

    def walk(self):
        """Yield every descendant depth-first in paint order."""
        for child in self.children:
            yield child
            if isinstance(child, MemoryFrame):
                yield from child.walk()

    def to_dict(self) -> dict:
        out = super().to_dict()
        if self.layout_mode != "NONE":
            out.update(
                layoutMode=self.layout_mode,
                padding=[self.padding_top, self.padding_right, self.padding_bottom, self.padding_left],
                itemSpacing=self.item_spacing,
            )
        out["children"] = [c.to_dict() for c in self.children]
        return out


def _paint_to_dict(paint: Paint) -> dict:
    if isinstance(paint, ImagePaint):
        return {"type": "IMAGE", "imageHash": paint.image_hash, "scaleMode": paint.scale_mode}
    out = {"type": "SOLID", "color": {"r": paint.r, "g": paint.g, "b": paint.b}}
    if paint.opacity is not None:
        out["opacity"] = paint.opacity
    return out


class MemoryCanvas:
    """A ``CanvasHost`` that keeps everything in process memory."""

    def __init__(
        self,
        *,
        available_fonts: set[FontName] | None = None,
        reject_text_resize: bool = False,
    ) -> None:
        self.available_fonts = available_fonts
        self.reject_text_resize = reject_text_resize
        self.page: list[MemoryObject] = []
        self.selection: list[MemoryObject] = []
        self.created: list[MemoryObject] = []
        self.images: dict[str, bytes] = {}
        self.loaded_fonts: set[FontName] = set()
        self.font_requests: list[FontName] = []

    def _make(self, cls):
        obj = cls(self)
        self.created.append(obj)
        return obj

    def create_frame(self) -> MemoryFrame:
        frame = self._make(MemoryFrame)
        # new frames start white, like most editors
        frame.fills = [SolidPaint(1.0, 1.0, 1.0)]
        return frame

    def create_rectangle(self) -> MemoryRectangle:
        return self._make(MemoryRectangle)

    def create_ellipse(self) -> MemoryEllipse:
        return self._make(MemoryEllipse)

    def create_text(self) -> MemoryText:
        return self._make(MemoryText)

    def create_image(self, data: bytes) -> ImageHandle:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                width, height = img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise HostOperationError("create_image", str(exc)) from exc
        digest = hashlib.sha1(data).hexdigest()
        self.images[digest] = bytes(data)
        return ImageHandle(hash=digest, width=width, height=height)

    async def load_font(self, font: FontName) -> None:
        self.font_requests.append(font)
        await asyncio.sleep(0)
        if self.available_fonts is not None and font not in self.available_fonts:
            raise HostOperationError("load_font", f"font {font.key} is not available")
        self.loaded_fonts.add(font)

    def append_to_page(self, obj: MemoryObject) -> None:
        self.page.append(obj)

    def select(self, objects: Sequence[MemoryObject]) -> None:
        self.selection = list(objects)

    def image_bytes(self, image_hash: str) -> bytes | None:
        return self.images.get(image_hash)

    def to_dict(self) -> dict:
        """The page as a JSON-safe object tree."""
        return {"page": [obj.to_dict() for obj in self.page]}
