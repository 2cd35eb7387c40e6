"""
Page-scoped drawing surface.

Holds the vector objects of the page currently on screen. A surface is
acquired when a page finishes rendering and released when the page is
left; geometry is in page pixels at render time, so a surface never
survives a page or scale change.
"""

import logging
import uuid
from gettext import gettext as _
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import SurfaceDisposed
from .events import AnnotationEvent, EventEmitter, EventType
from .input import InputEvent, MultiTouch, PointerDown, PointerMove, PointerUp
from .state import SHAPE_ARITY, PageCanvasState, PageKey, ShapeType, Style, VectorObject
from .tools import BrushConfig, ToolStateMachine, ToolType
from .utils import finite_values, path_from_points, topmost_object_at, validate_dimensions

logger = logging.getLogger(__name__)


def _new_object_id() -> str:
    return uuid.uuid4().hex


class DrawingSurface:
    """
    In-memory drawing surface for one page.

    This class handles:
    - Stroke capture from typed pointer events
    - Selection, deletion, clearing and single-level LIFO undo
    - The dirty flag and a revision counter for save bookkeeping
    - Event emission for UI updates
    """

    def __init__(
        self,
        events: Optional[EventEmitter] = None,
        tools: Optional[ToolStateMachine] = None,
        hit_tolerance: float = 4.0,
        id_factory: Callable[[], str] = _new_object_id,
    ):
        """
        Initialize drawing surface.

        Args:
            events: Emitter shared with the UI
            tools: Tool state machine governing the brush
            hit_tolerance: Extra pixels around objects for eraser picking
            id_factory: Generator for new object ids
        """
        self.events = events or EventEmitter()
        self.tools = tools or ToolStateMachine()
        self.hit_tolerance = hit_tolerance
        self._id_factory = id_factory

        self.state: Optional[PageCanvasState] = None
        self.width = 0
        self.height = 0
        self.brush: BrushConfig = self.tools.brush

        self.dirty = False
        # Bumped on every mutation; a save only clears dirty for its revision
        self.revision = 0
        # Bumped on every initialize; identifies the page this surface shows
        self.generation = 0

        self.selection: List[str] = []
        self._current_path: Optional[List[Tuple[float, float]]] = None

    @property
    def is_active(self) -> bool:
        return self.state is not None

    @property
    def key(self) -> Optional[PageKey]:
        return self.state.key if self.state is not None else None

    @property
    def objects(self) -> List[VectorObject]:
        return list(self._require_state().objects)

    def initialize(
        self, width, height, key: Optional[PageKey] = None, scale: float = 1.0
    ) -> None:
        """
        Create an empty surface sized to the rendered page.

        Any previous contents are disposed first.

        Args:
            width: Rendered page width in pixels
            height: Rendered page height in pixels
            key: Page the surface belongs to
            scale: Render scale the geometry is expressed in

        Raises:
            ResourceNotReady: If the dimensions are not known yet
        """
        width, height = validate_dimensions(width, height)
        if self.is_active:
            self.dispose()

        self.width = width
        self.height = height
        self.state = PageCanvasState(key=key, scale=scale)
        self.generation += 1
        self.revision = 0
        self.selection = []
        self._current_path = None
        self.tools.multi_touch = False
        self._set_dirty(False)
        self.configure_brush()

        logger.debug(f"Surface initialized {width}x{height} for {key}")
        self.events.emit(
            AnnotationEvent(
                EventType.SURFACE_INITIALIZED,
                {"width": width, "height": height, "key": key, "scale": scale},
            )
        )

    def dispose(self) -> None:
        """Release the surface. Safe to call more than once."""
        if not self.is_active:
            return
        key = self.state.key
        self.state = None
        self.selection = []
        self._current_path = None
        self.dirty = False
        logger.debug(f"Surface disposed for {key}")
        self.events.emit(AnnotationEvent(EventType.SURFACE_DISPOSED, {"key": key}))

    def load(self, state: PageCanvasState, keep_pending: bool = False) -> None:
        """
        Populate the surface from a freshly fetched state.

        Loaded content is clean by definition.

        Args:
            state: Fetched state
            keep_pending: Keep objects drawn while the fetch was running,
                on top of the loaded ones, and stay dirty
        """
        current = self._require_state()
        if state.key is not None and current.key is not None and state.key != current.key:
            logger.warning(f"Loading annotations stored for {state.key} into {current.key}")
        if state.scale != current.scale:
            state = state.rescaled(current.scale)

        pending = list(current.objects) if keep_pending else []
        self.state = PageCanvasState(
            key=current.key, objects=list(state.objects) + pending, scale=current.scale
        )
        self.selection = []
        if pending:
            self._mutated()
        else:
            self.revision = 0
            self._set_dirty(False)

    def snapshot(self) -> PageCanvasState:
        """Copy of the current state, detached from later mutations."""
        state = self._require_state()
        return PageCanvasState(key=state.key, objects=list(state.objects), scale=state.scale)

    def configure_brush(self) -> BrushConfig:
        """Apply the brush of the selected tool. Idempotent."""
        self.brush = self.tools.brush
        return self.brush

    def set_tool(self, tool: ToolType) -> BrushConfig:
        """Select a tool and reconfigure the brush."""
        self.tools.select(tool)
        self._current_path = None
        brush = self.configure_brush()
        if not brush.is_selecting:
            self.clear_selection()
        self.events.emit(AnnotationEvent(EventType.TOOL_CHANGED, {"tool": ToolType(tool)}))
        return brush

    def add_stroke(self, path: Sequence[Tuple[float, float]]) -> Optional[VectorObject]:
        """
        Append a freehand stroke drawn with the current brush.

        Args:
            path: Pointer positions in page pixels

        Returns:
            The new object, or None if drawing is currently disabled

        Raises:
            ValueError: If a position is not finite
        """
        state = self._require_state()
        if not self.tools.drawing_enabled:
            logger.debug("Stroke ignored, drawing is disabled")
            return None
        if len(path) == 0:
            return None

        brush = self.configure_brush()
        obj = VectorObject(
            id=self._id_factory(),
            shape_type=ShapeType.PATH,
            geometry=path_from_points(path),
            style=Style(color=brush.color, width=brush.width, opacity=brush.opacity),
        )
        self._append(state, obj)
        return obj

    def add_shape(self, shape_type: ShapeType, geometry, style: Style) -> VectorObject:
        """
        Append a shape object.

        Args:
            shape_type: Kind of shape
            geometry: Points for PATH, four numbers for the other shapes
            style: Stroke style

        Returns:
            The new object

        Raises:
            ValueError: On a wrong number of values or a non-finite one
        """
        state = self._require_state()
        shape_type = ShapeType(shape_type)
        finite_values((style.width, style.opacity))
        if shape_type == ShapeType.PATH:
            geometry = path_from_points(geometry)
        else:
            geometry = finite_values(geometry)
            if len(geometry) != SHAPE_ARITY[shape_type]:
                raise ValueError(
                    f"{shape_type.value} needs {SHAPE_ARITY[shape_type]} numbers, got {len(geometry)}"
                )
        obj = VectorObject(
            id=self._id_factory(), shape_type=shape_type, geometry=geometry, style=style
        )
        self._append(state, obj)
        return obj

    def select(self, object_ids: Sequence[str]) -> List[str]:
        """Select objects by id; unknown ids are ignored."""
        state = self._require_state()
        wanted = set(object_ids)
        self.selection = [oid for oid in state.ids if oid in wanted]
        self.events.emit(
            AnnotationEvent(EventType.SELECTION_CHANGED, {"selection": list(self.selection)})
        )
        return list(self.selection)

    def select_at(self, x: float, y: float) -> Optional[VectorObject]:
        """Select the topmost object under a point."""
        obj = topmost_object_at(self._require_state(), x, y, self.hit_tolerance)
        self.select([obj.id] if obj is not None else [])
        return obj

    def clear_selection(self) -> None:
        if self.selection:
            self.select([])

    def delete_selected(self) -> List[VectorObject]:
        """
        Remove the selected objects.

        Returns:
            Removed objects; empty (with a notice) if nothing was selected
        """
        state = self._require_state()
        if not self.selection:
            self.events.notice(_("Select an annotation to delete first"), level="warning")
            return []

        selected = set(self.selection)
        removed = [obj for obj in state.objects if obj.id in selected]
        state.objects = [obj for obj in state.objects if obj.id not in selected]
        self.selection = []

        if removed:
            self._mutated()
            self.events.emit(
                AnnotationEvent(
                    EventType.OBJECTS_REMOVED, {"ids": [obj.id for obj in removed]}
                )
            )
        return removed

    def clear_all(self) -> bool:
        """
        Remove every object from the page.

        Clearing an already empty page changes nothing and leaves the
        dirty flag alone.

        Returns:
            True if anything was removed
        """
        state = self._require_state()
        if not state.objects:
            return False
        count = len(state.objects)
        state.objects = []
        self.selection = []
        self._mutated()
        self.events.emit(AnnotationEvent(EventType.OBJECTS_CLEARED, {"count": count}))
        return True

    def undo(self) -> Optional[VectorObject]:
        """
        Remove the most recently added object.

        Returns:
            The removed object, or None on an empty page
        """
        state = self._require_state()
        if not state.objects:
            return None
        obj = state.objects.pop()
        if obj.id in self.selection:
            self.selection.remove(obj.id)
        self._mutated()
        self.events.emit(AnnotationEvent(EventType.OBJECT_UNDONE, {"id": obj.id}))
        return obj

    def handle(self, event: InputEvent) -> Optional[VectorObject]:
        """
        Feed a pointer event into the surface.

        Returns:
            The stroke completed by this event, if any
        """
        self._require_state()
        self.tools.observe(event)

        if isinstance(event, MultiTouch):
            if self._current_path is not None and self.tools.multi_touch:
                logger.debug("Stroke abandoned on multi-touch contact")
                self._current_path = None
            return None

        if isinstance(event, PointerDown):
            if self.brush.is_selecting:
                self.select_at(event.x, event.y)
            elif self.tools.drawing_enabled:
                self._current_path = [(event.x, event.y)]
            return None

        if self._current_path is None:
            return None

        if isinstance(event, PointerMove):
            self._current_path.append((event.x, event.y))
            return None

        if isinstance(event, PointerUp):
            path = self._current_path
            self._current_path = None
            if path[-1] != (event.x, event.y):
                path.append((event.x, event.y))
            return self.add_stroke(path)

        return None

    def mark_saved(self, revision: int) -> bool:
        """
        Record a successful save of the given revision.

        Returns:
            True if the surface is now clean
        """
        if not self.is_active or revision != self.revision:
            return False
        self._set_dirty(False)
        return True

    def _append(self, state: PageCanvasState, obj: VectorObject) -> None:
        state.objects.append(obj)
        self._mutated()
        self.events.emit(
            AnnotationEvent(
                EventType.OBJECT_ADDED, {"object": obj.to_dict(), "num_objects": len(state)}
            )
        )

    def _mutated(self) -> None:
        self.revision += 1
        self._set_dirty(True)

    def _set_dirty(self, dirty: bool) -> None:
        if self.dirty != dirty:
            self.dirty = dirty
            self.events.emit(AnnotationEvent(EventType.DIRTY_CHANGED, {"dirty": dirty}))

    def _require_state(self) -> PageCanvasState:
        if self.state is None:
            raise SurfaceDisposed("Drawing surface is not initialized")
        return self.state
