"""
Pure utility functions for annotation geometry and rasterization.

These functions have no side effects and can be tested in isolation.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .errors import ResourceNotReady
from .state import PageCanvasState, ShapeType, VectorObject

logger = logging.getLogger(__name__)

# Used for strokes whose color cannot be parsed
FALLBACK_COLOR = (0, 0, 0)

NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "transparent": (0, 0, 0),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "fuchsia": (255, 0, 255),
    "purple": (128, 0, 128),
    "violet": (238, 130, 238),
    "pink": (255, 192, 203),
    "hotpink": (255, 105, 180),
    "brown": (165, 42, 42),
    "maroon": (128, 0, 0),
    "crimson": (220, 20, 60),
    "gold": (255, 215, 0),
    "lime": (0, 255, 0),
    "olive": (128, 128, 0),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "darkgray": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "darkred": (139, 0, 0),
    "darkgreen": (0, 100, 0),
    "darkblue": (0, 0, 139),
    "lightblue": (173, 216, 230),
    "skyblue": (135, 206, 235),
    "indigo": (75, 0, 130),
    "coral": (255, 127, 80),
    "salmon": (250, 128, 114),
    "tomato": (255, 99, 71),
}

_RGB_RE = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*[\d.]+\s*)?\)")


def validate_dimensions(width, height) -> Tuple[int, int]:
    """
    Validate rendered page dimensions.

    Args:
        width: Page width in pixels, or None if not rendered yet
        height: Page height in pixels, or None if not rendered yet

    Returns:
        (width, height) as integers

    Raises:
        ResourceNotReady: If the page has not been measured yet
    """
    if width is None or height is None:
        raise ResourceNotReady("Page dimensions are not known yet")
    if width <= 0 or height <= 0:
        raise ResourceNotReady(f"Page has no area yet ({width}x{height})")
    return int(round(width)), int(round(height))


def parse_color(color: str) -> Tuple[int, int, int]:
    """
    Convert a CSS-like color string to an RGB tuple.

    Supports named colors, #RGB, #RRGGBB and rgb()/rgba() notation.

    Raises:
        ValueError: If the color cannot be understood
    """
    value = color.strip().lower()
    if value in NAMED_COLORS:
        return NAMED_COLORS[value]
    if value.startswith("#"):
        digits = value[1:]
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 6:
            try:
                return tuple(int(digits[i : i + 2], 16) for i in (0, 2, 4))
            except ValueError:
                pass
    match = _RGB_RE.fullmatch(value)
    if match:
        return tuple(min(int(v), 255) for v in match.groups())
    raise ValueError(f"Unknown color: {color!r}")


def bounding_box(points: Sequence[Tuple[float, float]]) -> Tuple[float, float, float, float]:
    """
    Compute the axis-aligned bounding box of a set of points.

    Returns:
        (min_x, min_y, max_x, max_y)
    """
    if len(points) == 0:
        raise ValueError("Cannot compute bounding box of no points")
    arr = np.asarray(points, dtype=np.float64)
    min_x, min_y = arr.min(axis=0)
    max_x, max_y = arr.max(axis=0)
    return float(min_x), float(min_y), float(max_x), float(max_y)


def distance_to_polyline(points: Sequence[Tuple[float, float]], x: float, y: float) -> float:
    """
    Shortest distance from a point to a polyline.

    Args:
        points: Polyline vertices
        x: Query X coordinate
        y: Query Y coordinate

    Returns:
        Euclidean distance (inf for an empty polyline)
    """
    if len(points) == 0:
        return float("inf")

    arr = np.asarray(points, dtype=np.float64)
    query = np.array([x, y], dtype=np.float64)

    if len(arr) == 1:
        return float(np.linalg.norm(arr[0] - query))

    starts = arr[:-1]
    seg = arr[1:] - starts
    seg_len_sq = (seg**2).sum(axis=1)

    # Projection parameter, clamped to the segment; degenerate segments use t=0
    safe_len = np.where(seg_len_sq == 0, 1.0, seg_len_sq)
    t = ((query - starts) * seg).sum(axis=1) / safe_len
    t = np.clip(np.where(seg_len_sq == 0, 0.0, t), 0.0, 1.0)

    nearest = starts + seg * t[:, None]
    return float(np.linalg.norm(nearest - query, axis=1).min())


def hit_test(obj: VectorObject, x: float, y: float, tolerance: float = 4.0) -> bool:
    """
    Check whether a point touches a vector object.

    Strokes and lines are hit near their centerline; rectangles and
    ellipses anywhere inside their bounding box.
    """
    reach = tolerance + obj.style.width / 2.0
    if obj.shape_type in (ShapeType.PATH, ShapeType.LINE):
        return distance_to_polyline(obj.points, x, y) <= reach

    min_x, min_y, max_x, max_y = bounding_box(obj.points)
    return (min_x - reach <= x <= max_x + reach) and (min_y - reach <= y <= max_y + reach)


def topmost_object_at(
    state: PageCanvasState, x: float, y: float, tolerance: float = 4.0
) -> Optional[VectorObject]:
    """Find the topmost object under a point, or None."""
    for obj in reversed(state.objects):
        if hit_test(obj, x, y, tolerance):
            return obj
    return None


def compute_object_statistics(state: PageCanvasState) -> Dict[str, int]:
    """
    Count objects on a page by shape type.

    Returns:
        Dictionary with a total and one count per shape type
    """
    stats = {"num_total": len(state.objects)}
    for shape_type in ShapeType:
        stats[f"num_{shape_type.value}"] = sum(
            1 for obj in state.objects if obj.shape_type == shape_type
        )
    return stats


def stroke_color(obj: VectorObject) -> Tuple[int, int, int]:
    """RGB color of an object; unknown colors are drawn in FALLBACK_COLOR."""
    try:
        return parse_color(obj.style.color)
    except ValueError:
        logger.warning(f"Drawing object {obj.id} with unknown color {obj.style.color!r} in black")
        return FALLBACK_COLOR


def _draw_object(canvas: np.ndarray, obj: VectorObject) -> None:
    color = stroke_color(obj)
    thickness = max(1, int(round(obj.style.width)))

    if obj.shape_type == ShapeType.ELLIPSE:
        cx, cy, rx, ry = obj.geometry
        cv2.ellipse(
            canvas,
            (int(round(cx)), int(round(cy))),
            (max(0, int(round(rx))), max(0, int(round(ry)))),
            0,
            0,
            360,
            color,
            thickness,
            cv2.LINE_AA,
        )
        return

    pts = np.round(np.asarray(obj.points, dtype=np.float64)).astype(np.int32)
    if len(pts) == 1:
        cv2.circle(canvas, tuple(int(v) for v in pts[0]), max(1, thickness // 2), color, -1)
        return
    cv2.polylines(canvas, [pts.reshape(-1, 1, 2)], False, color, thickness, cv2.LINE_AA)


def render_state(
    state: PageCanvasState,
    width: int,
    height: int,
    background: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Rasterize a page's annotations.

    Objects are painted in z-order, each blended with its own opacity.

    Args:
        state: Page canvas state
        width: Output width in pixels
        height: Output height in pixels
        background: Optional RGB page image of shape (height, width, 3)

    Returns:
        RGB image (uint8)
    """
    width, height = validate_dimensions(width, height)

    if background is None:
        result = np.full((height, width, 3), 255, dtype=np.uint8)
    else:
        if background.shape[:2] != (height, width):
            raise ValueError(
                f"Background shape {background.shape[:2]} doesn't match {(height, width)}"
            )
        result = background.copy()

    for obj in state.objects:
        layer = result.copy()
        _draw_object(layer, obj)
        alpha = float(np.clip(obj.style.opacity, 0.0, 1.0))
        result = cv2.addWeighted(layer, alpha, result, 1.0 - alpha, 0)

    return result


def finite_values(values) -> Tuple[float, ...]:
    """
    Convert coordinates to floats.

    Raises:
        ValueError: If any value is NaN or infinite
    """
    result = tuple(float(v) for v in values)
    if not all(math.isfinite(v) for v in result):
        raise ValueError(f"Coordinates must be finite, got {result}")
    return result


def path_from_points(points: List[Tuple[float, float]]) -> tuple:
    """Normalize raw pointer positions into PATH geometry."""
    return tuple(finite_values((x, y)) for x, y in points)
