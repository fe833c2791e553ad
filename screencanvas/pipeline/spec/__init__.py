"""Design spec — dataclasses, validation, and serialization."""

from .models import (
    Color, Canvas, Padding,
    RectNode, TextNode, FrameNode, EllipseNode, ImageNode,
    DesignNode, DesignSpec, NODE_TYPES,
)
from .validation import SchemaViolation, validate_spec, validate_node, validate_color
from .serialization import spec_to_dict, node_to_dict

__all__ = [
    # Models
    "Color", "Canvas", "Padding",
    "RectNode", "TextNode", "FrameNode", "EllipseNode", "ImageNode",
    "DesignNode", "DesignSpec", "NODE_TYPES",
    # Validation / Serialization
    "SchemaViolation", "validate_spec", "validate_node", "validate_color",
    "spec_to_dict", "node_to_dict",
]
