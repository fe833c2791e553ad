"""Screenshot ingestion — the source image painted beneath generated layers."""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError


ACCEPTED_MIME_TYPES = ("image/png", "image/jpeg", "image/jpg")
MIN_BASE64_LENGTH = 16

_PIL_FORMAT_MIME = {"PNG": "image/png", "JPEG": "image/jpeg"}


class ScreenshotError(ValueError):
    """Raised for screenshots that are not usable PNG/JPEG payloads."""


@dataclass(frozen=True)
class Screenshot:
    base64: str
    mime: str

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.base64, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ScreenshotError(f"Image data is not valid base64: {exc}") from exc

    @classmethod
    def from_bytes(cls, data: bytes, mime: str) -> Screenshot:
        return cls(base64=base64.b64encode(data).decode("ascii"), mime=mime)

    @classmethod
    def from_path(cls, path: Path) -> Screenshot:
        """Load a screenshot file, detecting its type from the content."""
        data = Path(path).read_bytes()
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
        except (UnidentifiedImageError, OSError) as exc:
            raise ScreenshotError(f"{path}: not a readable image ({exc})") from exc
        mime = _PIL_FORMAT_MIME.get(fmt or "")
        if mime is None:
            raise ScreenshotError(f"Unsupported image type: {fmt}. Use PNG or JPEG.")
        return cls.from_bytes(data, mime)


def normalize_screenshot(shot: Screenshot | None) -> Screenshot | None:
    """Check type and size; lower-cases the MIME type.  None passes through."""
    if shot is None:
        return None
    mime = (shot.mime or "").strip().lower()
    if mime not in ACCEPTED_MIME_TYPES:
        raise ScreenshotError(f"Unsupported image type: {shot.mime}. Use PNG or JPEG.")
    if not shot.base64 or len(shot.base64) < MIN_BASE64_LENGTH:
        raise ScreenshotError("Image data is empty or too small.")
    return Screenshot(base64=shot.base64, mime=mime)
