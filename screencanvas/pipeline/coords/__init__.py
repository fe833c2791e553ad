"""Coordinate resolver — decides per subtree whether child coordinates are
canvas-absolute or parent-relative."""

from .resolver import (
    CoordinateMode, fit_score, detect_coordinate_mode, choose_mode, choose_local_position,
)

__all__ = [
    "CoordinateMode", "fit_score", "detect_coordinate_mode",
    "choose_mode", "choose_local_position",
]
