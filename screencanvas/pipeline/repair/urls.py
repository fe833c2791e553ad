"""Image reference repair — make generated ``imageUrl`` values fetchable.

Models emit URLs with spaces, missing schemes (``cdn.example.com/a.png``) or
protocol-relative prefixes (``//cdn.example.com/a.png``).  Each is rewritten
to an absolute http(s) URL when possible.  Images whose reference cannot be
repaired (and which carry no embedded data) become placeholder rectangles.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from requests.utils import requote_uri

from screencanvas.pipeline.spec.validation import DATA_URL_RE

from .normalizer import placeholder_rect


log = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_BARE_HOST_RE = re.compile(r"^[\w.-]+\.[a-z]{2,}", re.IGNORECASE)


@dataclass
class UrlRepairStats:
    fixed: int = 0
    replaced: int = 0


def _is_fetchable(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc) and requote_uri(url) == url


def repair_url(raw: str) -> str | None:
    """Return a fetchable form of *raw*, or None if it cannot be repaired."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    if _is_fetchable(trimmed):
        return trimmed

    # spaces / unicode in path or query
    try:
        encoded = requote_uri(trimmed)
    except ValueError:
        encoded = ""
    if encoded and _is_fetchable(encoded):
        return encoded

    if trimmed.startswith("//"):
        return repair_url(f"https:{trimmed}")
    if not _SCHEME_RE.match(trimmed) and _BARE_HOST_RE.match(trimmed):
        return repair_url(f"https://{trimmed}")
    return None


def repair_image_urls(data: Any) -> UrlRepairStats:
    """Repair every image reference in a normalized document, in place."""
    stats = UrlRepairStats()

    def walk(node: Any) -> None:
        if not isinstance(node, dict):
            return
        if node.get("type") == "image":
            _repair_image(node, stats)
        children = node.get("children")
        if isinstance(children, list):
            for child in children:
                walk(child)

    if isinstance(data, dict) and isinstance(data.get("nodes"), list):
        for node in data["nodes"]:
            walk(node)

    if stats.fixed or stats.replaced:
        log.info("imageUrl repaired: fixed %d, replaced %d", stats.fixed, stats.replaced)
    return stats


def _repair_image(node: dict, stats: UrlRepairStats) -> None:
    url = node.get("imageUrl")
    if not isinstance(url, str):
        return

    # an inline data URL in the wrong field
    if DATA_URL_RE.match(url.strip()):
        node.pop("imageUrl")
        node.setdefault("imageDataUrl", url.strip())
        stats.fixed += 1
        return

    repaired = repair_url(url)
    if repaired is not None:
        if repaired != url:
            node["imageUrl"] = repaired
            stats.fixed += 1
        return

    node.pop("imageUrl")
    if not node.get("imageDataUrl"):
        placeholder = placeholder_rect(node, node)
        node.clear()
        node.update(placeholder)
    stats.replaced += 1
