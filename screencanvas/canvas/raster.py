"""Raster preview of a MemoryCanvas render.

Draws a frame tree into a Pillow image: solid and image fills, strokes,
rounded corners, ellipses and text boxes.  Intended for eyeballing a render
next to its source screenshot, not for pixel-exact output (frame clipping
and font metrics are approximate).
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, ImageChops, ImageDraw, ImageFont, ImageOps

from .host import ImagePaint, Paint, SolidPaint
from .memory import MemoryCanvas, MemoryEllipse, MemoryFrame, MemoryObject, MemoryText


class CanvasRasterizer:
    """Render MemoryCanvas objects to RGB images."""

    BACKGROUND = (255, 255, 255)

    def __init__(self, host: MemoryCanvas, scale: float = 1.0):
        self.host = host
        self.scale = scale
        self._font = ImageFont.load_default()

    def rasterize(self, root: MemoryObject) -> Image.Image:
        """Draw *root* and its descendants; the image is sized to *root*."""
        size = (max(1, round(root.width * self.scale)), max(1, round(root.height * self.scale)))
        img = Image.new("RGB", size, self.BACKGROUND)
        # root's own position on the page is irrelevant for the preview
        self._draw(img, root, -root.x, -root.y, 1.0)
        return img

    def save(self, root: MemoryObject, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.rasterize(root).save(path, format="PNG")
        return path

    # ── Internals ──────────────────────────────────────────────────

    def _box(self, obj: MemoryObject, ox: float, oy: float) -> tuple[int, int, int, int]:
        s = self.scale
        x0 = round((ox + obj.x) * s)
        y0 = round((oy + obj.y) * s)
        return x0, y0, x0 + max(1, round(obj.width * s)), y0 + max(1, round(obj.height * s))

    def _rgba(self, paint: SolidPaint, opacity: float) -> tuple[int, int, int, int]:
        alpha = (1.0 if paint.opacity is None else paint.opacity) * opacity
        return (
            round(paint.r * 255), round(paint.g * 255), round(paint.b * 255),
            max(0, min(255, round(alpha * 255))),
        )

    def _draw(self, img: Image.Image, obj: MemoryObject, ox: float, oy: float, opacity: float) -> None:
        opacity *= obj.opacity
        box = self._box(obj, ox, oy)
        draw = ImageDraw.Draw(img, "RGBA")
        radius = min(obj.corner_radius * self.scale, (box[2] - box[0]) / 2, (box[3] - box[1]) / 2)

        if not isinstance(obj, MemoryText):
            for paint in obj.fills:
                self._fill(img, draw, obj, box, radius, paint, opacity)
            outline = next((p for p in obj.strokes if isinstance(p, SolidPaint)), None)
            if outline is not None:
                width = max(1, round(obj.stroke_weight * self.scale))
                color = self._rgba(outline, opacity)
                if isinstance(obj, MemoryEllipse):
                    draw.ellipse(box, outline=color, width=width)
                else:
                    draw.rounded_rectangle(box, radius=radius, outline=color, width=width)
        else:
            color = next((p for p in obj.fills if isinstance(p, SolidPaint)), SolidPaint(0, 0, 0))
            draw.text((box[0], box[1]), obj.characters, fill=self._rgba(color, opacity), font=self._font)

        if isinstance(obj, MemoryFrame):
            for child in obj.children:
                self._draw(img, child, ox + obj.x, oy + obj.y, opacity)

    def _fill(self, img, draw, obj, box, radius, paint: Paint, opacity: float) -> None:
        if isinstance(paint, SolidPaint):
            color = self._rgba(paint, opacity)
            if color[3] == 0:
                return
            if isinstance(obj, MemoryEllipse):
                draw.ellipse(box, fill=color)
            else:
                draw.rounded_rectangle(box, radius=radius, fill=color)
            return

        data = self.host.image_bytes(paint.image_hash)
        if data is None:
            return
        size = (box[2] - box[0], box[3] - box[1])
        with Image.open(io.BytesIO(data)) as src:
            src = src.convert("RGBA")
            if paint.scale_mode == "FIT":
                tile = Image.new("RGBA", size, (0, 0, 0, 0))
                fitted = ImageOps.contain(src, size)
                tile.paste(fitted, ((size[0] - fitted.width) // 2, (size[1] - fitted.height) // 2))
            else:
                tile = ImageOps.fit(src, size)

        mask = Image.new("L", size, 0)
        ImageDraw.Draw(mask).rounded_rectangle((0, 0, size[0] - 1, size[1] - 1), radius=radius, fill=round(255 * opacity))
        alpha = ImageChops.multiply(tile.getchannel("A"), mask)
        img.paste(tile.convert("RGB"), (box[0], box[1]), alpha)


def save_preview(host: MemoryCanvas, root: MemoryObject, path: Path, scale: float = 1.0) -> Path:
    """Rasterize *root* to a PNG file."""
    return CanvasRasterizer(host, scale=scale).save(root, path)
