"""Canvas — host capability interface, in-memory host, raster preview."""

from .host import (
    CanvasHost, CanvasObject, FrameObject, TextObject,
    SolidPaint, ImagePaint, Paint, FontName, ImageHandle, HostOperationError,
)
from .memory import MemoryCanvas, MemoryFrame, MemoryRectangle, MemoryEllipse, MemoryText
from .raster import CanvasRasterizer, save_preview

__all__ = [
    # Capability
    "CanvasHost", "CanvasObject", "FrameObject", "TextObject",
    "SolidPaint", "ImagePaint", "Paint", "FontName", "ImageHandle", "HostOperationError",
    # In-memory host
    "MemoryCanvas", "MemoryFrame", "MemoryRectangle", "MemoryEllipse", "MemoryText",
    # Preview
    "CanvasRasterizer", "save_preview",
]
