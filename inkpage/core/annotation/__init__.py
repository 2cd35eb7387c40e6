"""
Core annotation module - UI-agnostic page annotation logic.

This module provides the drawing surface, tool handling, serialization
and page navigation that any UI (Qt, Web, CLI) can drive.
"""

from .errors import (
    AnnotationError,
    ParseError,
    PersistenceError,
    ResourceNotReady,
    SurfaceDisposed,
)
from .events import AnnotationEvent, EventEmitter, EventType
from .input import InputEvent, MultiTouch, PointerDown, PointerMove, PointerType, PointerUp
from .navigation import NavigationState, PageNavigationController, SaveDecision
from .serializer import deserialize, deserialize_or_empty, serialize
from .state import (
    AnnotationRecord,
    PageCanvasState,
    PageKey,
    ShapeType,
    Style,
    VectorObject,
)
from .surface import DrawingSurface
from .tools import BrushConfig, ToolStateMachine, ToolType, configure_brush

__all__ = [
    "AnnotationError",
    "ParseError",
    "PersistenceError",
    "ResourceNotReady",
    "SurfaceDisposed",
    "AnnotationEvent",
    "EventEmitter",
    "EventType",
    "InputEvent",
    "MultiTouch",
    "PointerDown",
    "PointerMove",
    "PointerType",
    "PointerUp",
    "NavigationState",
    "PageNavigationController",
    "SaveDecision",
    "deserialize",
    "deserialize_or_empty",
    "serialize",
    "AnnotationRecord",
    "PageCanvasState",
    "PageKey",
    "ShapeType",
    "Style",
    "VectorObject",
    "DrawingSurface",
    "BrushConfig",
    "ToolStateMachine",
    "ToolType",
    "configure_brush",
]
