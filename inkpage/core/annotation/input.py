"""
Pointer input events delivered to a drawing surface.

Events form a tagged union: every event carries a `kind` tag and typed
coordinate, pressure and pointer-type fields, so UI toolkits translate
their own payloads once at the boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class PointerType(Enum):
    MOUSE = "mouse"
    TOUCH = "touch"
    PEN = "pen"


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float
    pointer_type: PointerType = PointerType.MOUSE
    pressure: float = 0.5
    kind: str = "pointer_down"


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float
    pointer_type: PointerType = PointerType.MOUSE
    pressure: float = 0.5
    kind: str = "pointer_move"


@dataclass(frozen=True)
class PointerUp:
    x: float
    y: float
    pointer_type: PointerType = PointerType.MOUSE
    pressure: float = 0.0
    kind: str = "pointer_up"


@dataclass(frozen=True)
class MultiTouch:
    """Simultaneous contact of several pointers (pinch, two-finger scroll)."""

    pointer_count: int
    kind: str = "multi_touch"


InputEvent = Union[PointerDown, PointerMove, PointerUp, MultiTouch]
