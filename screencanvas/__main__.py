"""
screencanvas — command-line entry point.

Usage:
    python -m screencanvas normalize reply.txt --width 1200 --height 800
    python -m screencanvas validate spec.json
    python -m screencanvas render reply.txt --screenshot shot.png --preview out.png
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from PIL import Image

from screencanvas.canvas import MemoryCanvas, save_preview
from screencanvas.pipeline.repair import GeneratedTextError, normalize_spec, parse_generated, repair_image_urls
from screencanvas.pipeline.spec import SchemaViolation, spec_to_dict, validate_spec
from screencanvas.render import Renderer, Screenshot, ScreenshotError


log = logging.getLogger("screencanvas")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="screencanvas",
        description="Model output → repaired JSON → validated spec → canvas layers",
    )
    p.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    n = sub.add_parser("normalize", help="Repair a generated reply into schema-shaped JSON")
    n.add_argument("input", help="Reply text or JSON file ('-' for stdin)")
    n.add_argument("--width", type=float, default=None, help="Fallback canvas width")
    n.add_argument("--height", type=float, default=None, help="Fallback canvas height")
    n.add_argument("--out", default=None, help="Write JSON here instead of stdout")

    v = sub.add_parser("validate", help="Strictly validate a spec (no repair)")
    v.add_argument("input", help="Spec JSON file ('-' for stdin)")

    r = sub.add_parser("render", help="Repair, validate and render into an in-memory canvas")
    r.add_argument("input", help="Reply text or JSON file ('-' for stdin)")
    r.add_argument("--screenshot", default=None, help="PNG/JPEG painted beneath the layers")
    r.add_argument("--width", type=float, default=None, help="Fallback canvas width")
    r.add_argument("--height", type=float, default=None, help="Fallback canvas height")
    r.add_argument("--strict", action="store_true", help="Skip the repair pass")
    r.add_argument("--preview", default=None, help="Write a PNG preview of the render")
    r.add_argument("--tree", default=None, help="Write the rendered object tree as JSON")

    return p


def _read_input(arg: str) -> str:
    if arg == "-":
        return sys.stdin.read()
    return Path(arg).read_text(encoding="utf-8")


def _write_json(data: dict, out: str | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if out:
        Path(out).write_text(text, encoding="utf-8")
    else:
        print(text)


def _repair(raw, width: float | None, height: float | None) -> dict:
    doc, _report = normalize_spec(raw, width, height)
    repair_image_urls(doc)
    return doc


def cmd_normalize(args) -> int:
    raw = parse_generated(_read_input(args.input))
    _write_json(_repair(raw, args.width, args.height), args.out)
    return 0


def cmd_validate(args) -> int:
    spec = validate_spec(parse_generated(_read_input(args.input)))
    log.info("Valid: %d node(s) on %gx%g canvas %r",
             sum(1 for _ in spec.walk()), spec.canvas.width, spec.canvas.height, spec.canvas.name)
    return 0


def cmd_render(args) -> int:
    screenshot = None
    width, height = args.width, args.height
    if args.screenshot:
        screenshot = Screenshot.from_path(Path(args.screenshot))
        if width is None or height is None:
            with Image.open(args.screenshot) as img:
                width = width if width is not None else img.width
                height = height if height is not None else img.height

    raw = parse_generated(_read_input(args.input))
    spec = validate_spec(raw if args.strict else _repair(raw, width, height))

    host = MemoryCanvas()
    result = asyncio.run(Renderer(host).render(spec, screenshot))

    if args.preview:
        path = save_preview(host, result.root, Path(args.preview))
        log.info("Preview written to %s", path)
    if args.tree:
        _write_json(host.to_dict(), args.tree)
    log.info("Done. %d object(s) on canvas %r", result.objects_created, result.root.name)
    return 0


COMMANDS = {
    "normalize": cmd_normalize,
    "validate": cmd_validate,
    "render": cmd_render,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.cmd](args)
    except (GeneratedTextError, SchemaViolation, ScreenshotError, OSError) as exc:
        log.error("Failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
