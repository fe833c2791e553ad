"""Image resolution — turn an image node's source into a host image paint.

Embedded ``data:image/png|jpeg;base64,...`` payloads are decoded directly;
remote references are fetched with ``requests`` in a worker thread so the
render task stays responsive.  Any failure (bad payload, HTTP error,
undecodable bytes) yields ``None`` and the renderer paints a neutral fill.
No timeout override, no retry.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging

import requests

from screencanvas.canvas.host import CanvasHost, HostOperationError, ImagePaint
from screencanvas.pipeline.spec.models import ImageNode
from screencanvas.pipeline.spec.validation import DATA_URL_RE


log = logging.getLogger(__name__)

EMBEDDED_MIME_TYPES = ("image/png", "image/jpeg", "image/jpg")


class ImageResolver:
    """Resolve image nodes against one canvas host."""

    def __init__(self, host: CanvasHost, session: requests.Session | None = None):
        self.host = host
        self.session = session or requests.Session()

    async def resolve(self, node: ImageNode) -> ImagePaint | None:
        scale_mode = node.scale_mode or "FILL"
        if node.image_data_url:
            data = self._decode_data_url(node.image_data_url)
        elif node.image_url:
            data = await asyncio.to_thread(self._fetch, node.image_url)
        else:
            data = None
        if data is None:
            return None

        try:
            handle = self.host.create_image(data)
        except HostOperationError as exc:
            log.warning("Image for %r could not be decoded: %s", node.name, exc)
            return None
        return ImagePaint(image_hash=handle.hash, scale_mode=scale_mode)

    def _decode_data_url(self, data_url: str) -> bytes | None:
        m = DATA_URL_RE.match(data_url)
        if not m:
            log.warning("Malformed image data URL (%s...)", data_url[:32])
            return None
        mime = m.group(1).lower()
        if mime not in EMBEDDED_MIME_TYPES:
            log.warning("Unsupported embedded image type %s", mime)
            return None
        try:
            return base64.b64decode(m.group(2), validate=False)
        except (binascii.Error, ValueError) as exc:
            log.warning("Embedded image is not valid base64: %s", exc)
            return None

    def _fetch(self, url: str) -> bytes | None:
        try:
            res = self.session.get(url)
        except requests.RequestException as exc:
            log.warning("Image fetch failed for %s: %s", url, exc)
            return None
        if not res.ok:
            log.warning("Image fetch for %s returned HTTP %d", url, res.status_code)
            return None
        return res.content
