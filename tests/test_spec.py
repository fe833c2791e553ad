"""Tests for strict spec validation and serialization.

Validates:
  - Defaults are applied (layoutMode, children, canvas name, nodes)
  - Geometry, colour and opacity bounds are enforced
  - Image nodes need a source
  - Violations name the offending path
  - validate(serialize(validate(x))) == validate(x)
"""

from __future__ import annotations

import copy
import math
import unittest

from screencanvas.pipeline.spec import (
    Color, FrameNode, ImageNode, RectNode, TextNode,
    SchemaViolation, spec_to_dict, validate_node, validate_spec,
)
from tests.dashboard_fixture import make_dashboard_doc, png_data_url


def _rect(**overrides) -> dict:
    node = {"type": "rect", "x": 0, "y": 0, "width": 10, "height": 10}
    node.update(overrides)
    return node


class TestValidateNode(unittest.TestCase):

    def test_rect_fields(self):
        node = validate_node(_rect(fill={"r": 1, "g": 0.5, "b": 0}, cornerRadius=4, strokeWidth=2))
        self.assertIsInstance(node, RectNode)
        self.assertEqual(node.type, "rect")
        self.assertEqual(node.fill, Color(1, 0.5, 0))
        self.assertEqual(node.corner_radius, 4)
        self.assertEqual(node.stroke_width, 2)
        self.assertIsNone(node.stroke)

    def test_frame_defaults(self):
        node = validate_node({"type": "frame", "x": 0, "y": 0, "width": 50, "height": 50})
        self.assertIsInstance(node, FrameNode)
        self.assertEqual(node.layout_mode, "NONE")
        self.assertEqual(node.children, [])

    def test_unknown_tag_rejected(self):
        with self.assertRaises(SchemaViolation) as ctx:
            validate_node(_rect(type="button"))
        self.assertEqual(ctx.exception.path, "node.type")

    def test_non_positive_size_rejected(self):
        for size in (0, -5):
            with self.subTest(size=size):
                with self.assertRaises(SchemaViolation):
                    validate_node(_rect(width=size))
                with self.assertRaises(SchemaViolation):
                    validate_node(_rect(height=size))

    def test_non_finite_and_non_numeric_rejected(self):
        for bad in (math.inf, math.nan, "12", True, None):
            with self.subTest(bad=bad):
                with self.assertRaises(SchemaViolation):
                    validate_node(_rect(x=bad))

    def test_integer_beyond_float_range_rejected(self):
        huge = 10 ** 400
        with self.assertRaises(SchemaViolation) as ctx:
            validate_spec({"canvas": {"width": 100, "height": 100}, "nodes": [_rect(x=huge)]})
        self.assertEqual(str(ctx.exception), "nodes[0].x: must be finite")
        with self.assertRaises(SchemaViolation):
            validate_node(_rect(fill={"r": huge, "g": 0, "b": 0}))

    def test_color_channel_bounds(self):
        with self.assertRaises(SchemaViolation) as ctx:
            validate_node(_rect(fill={"r": 255, "g": 0, "b": 0}))
        self.assertEqual(ctx.exception.path, "node.fill.r")
        with self.assertRaises(SchemaViolation):
            validate_node(_rect(fill={"r": 0, "g": 0, "b": 0, "a": 1.5}))

    def test_opacity_bounds(self):
        self.assertEqual(validate_node(_rect(opacity=0)).opacity, 0)
        self.assertEqual(validate_node(_rect(opacity=1)).opacity, 1)
        with self.assertRaises(SchemaViolation):
            validate_node(_rect(opacity=1.01))

    def test_text_requires_text(self):
        with self.assertRaises(SchemaViolation) as ctx:
            validate_node({"type": "text", "x": 0, "y": 0, "width": 10, "height": 10})
        self.assertEqual(ctx.exception.path, "node.text")

    def test_text_alignment_enum(self):
        base = {"type": "text", "x": 0, "y": 0, "width": 10, "height": 10, "text": "hi"}
        node = validate_node({**base, "alignHorizontal": "CENTER"})
        self.assertIsInstance(node, TextNode)
        self.assertEqual(node.align_horizontal, "CENTER")
        with self.assertRaises(SchemaViolation):
            validate_node({**base, "alignHorizontal": "middle"})

    def test_image_without_source_rejected(self):
        with self.assertRaises(SchemaViolation) as ctx:
            validate_node({"type": "image", "x": 0, "y": 0, "width": 40, "height": 40})
        self.assertIn("imageUrl or imageDataUrl", ctx.exception.reason)

    def test_image_sources(self):
        base = {"type": "image", "x": 0, "y": 0, "width": 40, "height": 40}
        by_url = validate_node({**base, "imageUrl": "https://example.com/a.png"})
        self.assertIsInstance(by_url, ImageNode)
        by_data = validate_node({**base, "imageDataUrl": png_data_url()})
        self.assertTrue(by_data.image_data_url.startswith("data:image/png"))
        with self.assertRaises(SchemaViolation):
            validate_node({**base, "imageUrl": ""})
        with self.assertRaises(SchemaViolation):
            validate_node({**base, "imageDataUrl": "https://example.com/a.png"})

    def test_nested_violation_path(self):
        doc = make_dashboard_doc()
        doc["nodes"][2]["children"][1]["height"] = 0
        with self.assertRaises(SchemaViolation) as ctx:
            validate_spec(doc)
        self.assertEqual(ctx.exception.path, "nodes[2].children[1].height")
        self.assertEqual(str(ctx.exception), "nodes[2].children[1].height: must be > 0")

    def test_deep_nesting(self):
        node = _rect()
        for _ in range(200):
            node = {"type": "frame", "x": 0, "y": 0, "width": 10, "height": 10, "children": [node]}
        depth = 0
        current = validate_node(node)
        while isinstance(current, FrameNode):
            current = current.children[0]
            depth += 1
        self.assertEqual(depth, 200)


class TestValidateSpec(unittest.TestCase):

    def test_dashboard(self):
        spec = validate_spec(make_dashboard_doc())
        self.assertEqual(spec.canvas.name, "Dashboard")
        self.assertEqual(len(spec.nodes), 3)
        self.assertEqual([n.type for n in spec.walk()],
                         ["rect", "text", "frame", "ellipse", "text", "rect"])

    def test_canvas_defaults(self):
        spec = validate_spec({"canvas": {"width": 10, "height": 10}})
        self.assertEqual(spec.canvas.name, "Generated from Image")
        self.assertEqual(spec.nodes, [])

    def test_canvas_size_required(self):
        with self.assertRaises(SchemaViolation):
            validate_spec({"canvas": {"width": 10}, "nodes": []})
        with self.assertRaises(SchemaViolation):
            validate_spec({"nodes": []})

    def test_input_not_mutated(self):
        doc = make_dashboard_doc()
        before = copy.deepcopy(doc)
        validate_spec(doc)
        self.assertEqual(doc, before)

    def test_revalidation_is_idempotent(self):
        doc = make_dashboard_doc()
        doc["nodes"].append({
            "type": "frame", "x": 0, "y": 210, "width": 400, "height": 90,
            "layoutMode": "HORIZONTAL", "padding": {"top": 8, "left": 12}, "itemSpacing": 6,
            "stroke": {"r": 0, "g": 0, "b": 0, "a": 0.2}, "strokeWidth": 1,
            "children": [
                {"type": "image", "x": 0, "y": 0, "width": 30, "height": 30,
                 "imageDataUrl": png_data_url(), "scaleMode": "FIT"},
            ],
        })
        first = validate_spec(doc)
        second = validate_spec(spec_to_dict(first))
        self.assertEqual(first, second)
        self.assertEqual(spec_to_dict(first), spec_to_dict(second))


if __name__ == "__main__":
    unittest.main()
