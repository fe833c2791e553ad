"""Host canvas capability — what the renderer needs from a drawing surface.

The renderer never talks to a concrete editor.  It drives any object that
satisfies ``CanvasHost``: create shapes, frames and text, decode image bytes,
load fonts asynchronously, append to the page and select.
``screencanvas.canvas.memory.MemoryCanvas`` is the in-process implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Union


class HostOperationError(RuntimeError):
    """A single host call was rejected (bad image bytes, font unavailable,
    resize refused by auto-sizing, ...)."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


# ── Paints ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SolidPaint:
    r: float
    g: float
    b: float
    opacity: float | None = None     # None = fully opaque


@dataclass(frozen=True)
class ImagePaint:
    image_hash: str
    scale_mode: str = "FILL"


Paint = Union[SolidPaint, ImagePaint]


@dataclass(frozen=True)
class FontName:
    family: str
    style: str

    @property
    def key(self) -> str:
        return f"{self.family}::{self.style}"


@dataclass(frozen=True)
class ImageHandle:
    """A decoded image registered with the host."""
    hash: str
    width: int
    height: int


# ── Objects ────────────────────────────────────────────────────────


class CanvasObject(Protocol):
    name: str
    x: float
    y: float
    width: float
    height: float
    fills: list[Paint]
    strokes: list[Paint]
    stroke_weight: float
    opacity: float
    corner_radius: float

    def resize(self, width: float, height: float) -> None: ...


class FrameObject(CanvasObject, Protocol):
    children: list[CanvasObject]
    clips_content: bool
    layout_mode: str
    padding_top: float
    padding_right: float
    padding_bottom: float
    padding_left: float
    item_spacing: float
    primary_axis_sizing_mode: str
    counter_axis_sizing_mode: str

    def append_child(self, child: CanvasObject) -> None: ...


class TextObject(CanvasObject, Protocol):
    font_name: FontName
    characters: str
    font_size: float
    text_align_horizontal: str


class CanvasHost(Protocol):
    def create_frame(self) -> FrameObject: ...

    def create_rectangle(self) -> CanvasObject: ...

    def create_ellipse(self) -> CanvasObject: ...

    def create_text(self) -> TextObject: ...

    def create_image(self, data: bytes) -> ImageHandle: ...

    async def load_font(self, font: FontName) -> None: ...

    def append_to_page(self, obj: CanvasObject) -> None: ...

    def select(self, objects: Sequence[CanvasObject]) -> None: ...
