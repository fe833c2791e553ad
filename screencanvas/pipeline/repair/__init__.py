"""Repair — pull JSON out of model text and reshape it for strict validation."""

from .parsing import GeneratedTextError, extract_json, parse_generated
from .normalizer import RepairReport, normalize_spec, normalize_node, placeholder_rect, to_number
from .urls import UrlRepairStats, repair_image_urls, repair_url

__all__ = [
    # Parsing
    "GeneratedTextError", "extract_json", "parse_generated",
    # Normalization
    "RepairReport", "normalize_spec", "normalize_node", "placeholder_rect", "to_number",
    # Image references
    "UrlRepairStats", "repair_image_urls", "repair_url",
]
