"""
Canonical text encoding of page annotations.

The encoding is JSON with sorted keys and compact separators, so equal
states always serialize to identical strings. Objects are listed in
z-order.
"""

import json
import logging
import math
from typing import Optional

from .errors import ParseError
from .state import SHAPE_ARITY, PageCanvasState, PageKey, ShapeType, VectorObject

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def serialize(state: PageCanvasState) -> str:
    """
    Encode a page canvas state.

    Args:
        state: State to encode

    Returns:
        Canonical JSON text
    """
    data = state.to_dict()
    data["version"] = FORMAT_VERSION
    return json.dumps(data, sort_keys=True, separators=(",", ":"), allow_nan=False)


def _check_number(value, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{what} must be a number, got {value!r}")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise ParseError(f"{what} must be a finite number")


def _validate_object(raw, index: int) -> None:
    if not isinstance(raw, dict):
        raise ParseError(f"Object #{index} is not a mapping")
    for name in ("id", "type", "geometry", "style"):
        if name not in raw:
            raise ParseError(f"Object #{index} has no '{name}'")

    try:
        shape_type = ShapeType(raw["type"])
    except ValueError:
        raise ParseError(f"Object #{index} has unknown type {raw['type']!r}") from None

    geometry = raw["geometry"]
    if not isinstance(geometry, list):
        raise ParseError(f"Object #{index} geometry is not a list")
    if shape_type == ShapeType.PATH:
        for point in geometry:
            if not isinstance(point, list) or len(point) != 2:
                raise ParseError(f"Object #{index} has a malformed point {point!r}")
            for v in point:
                _check_number(v, f"Object #{index} coordinate")
    else:
        if len(geometry) != SHAPE_ARITY[shape_type]:
            raise ParseError(
                f"Object #{index} {shape_type.value} geometry needs "
                f"{SHAPE_ARITY[shape_type]} numbers, got {len(geometry)}"
            )
        for v in geometry:
            _check_number(v, f"Object #{index} geometry")

    style = raw["style"]
    if not isinstance(style, dict) or not isinstance(style.get("color"), str):
        raise ParseError(f"Object #{index} has a malformed style")
    _check_number(style.get("width"), f"Object #{index} width")
    _check_number(style.get("opacity", 1.0), f"Object #{index} opacity")
    if not 0.0 <= style.get("opacity", 1.0) <= 1.0:
        raise ParseError(f"Object #{index} opacity out of range")


def deserialize(text: str, key: Optional[PageKey] = None) -> PageCanvasState:
    """
    Decode a page canvas state.

    Args:
        text: Text produced by serialize()
        key: Page the state belongs to, used when the text carries none

    Returns:
        Reconstructed state with objects in their original order

    Raises:
        ParseError: If the text is not a valid encoding
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise ParseError(f"Expected text, got {type(text).__name__}")
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"Annotation payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Annotation payload must be a JSON object")

    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ParseError(f"Unsupported annotation format version {version!r}")

    objects = data.get("objects", [])
    if not isinstance(objects, list):
        raise ParseError("'objects' must be a list")
    for index, raw in enumerate(objects):
        _validate_object(raw, index)

    scale = data.get("scale", 1.0)
    _check_number(scale, "scale")
    if scale <= 0:
        raise ParseError(f"scale must be positive, got {scale}")

    page = data.get("page")
    if page is not None and not isinstance(page, dict):
        raise ParseError("'page' must be a mapping")

    try:
        state = PageCanvasState.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Malformed annotation payload: {e}") from e

    ids = state.ids
    if len(set(ids)) != len(ids):
        raise ParseError("Duplicate object ids in annotation payload")

    if state.key is None:
        state.key = key
    elif key is not None and state.key != key:
        logger.warning(f"Annotation payload for {state.key} loaded as {key}")
        state.key = key
    return state


def deserialize_or_empty(text: Optional[str], key: Optional[PageKey] = None) -> PageCanvasState:
    """
    Decode a stored payload, treating anything unreadable as no annotations.

    A broken payload must never keep a page from being displayed.
    """
    if not text:
        return PageCanvasState(key=key)
    try:
        return deserialize(text, key=key)
    except ParseError as e:
        logger.warning(f"Ignoring unreadable annotations for {key}: {e}")
        return PageCanvasState(key=key)
