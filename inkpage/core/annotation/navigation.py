"""
Page navigation with save-or-discard gating.

Core logic for moving between pages of an annotated material.
UI-agnostic - the save prompt and the page renderer are injected.
"""

import asyncio
import inspect
import logging
from enum import Enum
from gettext import gettext as _
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from .errors import PersistenceError, ResourceNotReady
from .events import AnnotationEvent, EventEmitter, EventType
from .serializer import deserialize_or_empty, serialize
from .state import AnnotationRecord, PageCanvasState, PageKey
from .surface import DrawingSurface
from .tools import BrushConfig, ToolType

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    """Phases of the navigation state machine."""

    IDLE = "idle"
    SAVING = "saving"
    NAVIGATION_PENDING = "navigation_pending"


class SaveDecision(Enum):
    SAVE = "save"
    DISCARD = "discard"


class RenderProvider(Protocol):
    """Renders document pages; dimensions are None until rendering finished."""

    def get_page_dimensions(
        self, page_number: int, scale: float
    ) -> Optional[Tuple[float, float]]:
        ...


class PageNavigationController:
    """
    Orchestrates page changes for one user on one material.

    A navigation from page P to page Q:
    1. asks whether to save P if it has unsaved changes
    2. saves P and waits for the outcome when asked to
    3. disposes P's surface
    4. initializes a surface sized to Q's rendered page
    5. loads Q's stored annotations, or starts empty

    Requests run one after another; a second request waits until the
    first one, including its save, has fully finished.
    """

    def __init__(
        self,
        store,
        render_provider: RenderProvider,
        material_id: int,
        user_id: int,
        prompt: Callable[[int], Any],
        surface: Optional[DrawingSurface] = None,
        page_count: Optional[int] = None,
        scale: float = 1.0,
        min_scale: float = 0.5,
        max_scale: float = 3.0,
        scale_step: float = 0.2,
    ):
        """
        Initialize navigation controller.

        Args:
            store: Annotation store (fetch_for_page / save)
            render_provider: Source of rendered page dimensions
            material_id: Material being annotated
            user_id: Current user
            prompt: Called with the dirty page number; returns a
                SaveDecision (or True for save), possibly awaitable
            surface: Drawing surface to drive; created if omitted
            page_count: Number of pages, if known
            scale: Initial render scale
            min_scale: Smallest zoom level
            max_scale: Largest zoom level
            scale_step: Zoom increment
        """
        self.store = store
        self.render_provider = render_provider
        self.material_id = material_id
        self.user_id = user_id
        self.prompt = prompt
        self.surface = surface or DrawingSurface()
        self.events: EventEmitter = self.surface.events
        self.page_count = page_count
        self.scale = scale
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.scale_step = scale_step

        self.state = NavigationState.IDLE
        self.current_page: Optional[int] = None
        # Page whose surface waits for a render-complete signal
        self.deferred_page: Optional[int] = None
        # Last record seen per page, for display only; the store decides upserts
        self.records: Dict[PageKey, AnnotationRecord] = {}

        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, cfg, render_provider, material_id, user_id, prompt, **kwargs):
        """Build a controller talking to the annotation server named in cfg."""
        from ..store import HttpAnnotationStore

        store = HttpAnnotationStore(cfg.api.base_url, timeout=float(cfg.api.timeout))
        surface = DrawingSurface(hit_tolerance=float(cfg.surface.hit_tolerance))
        return cls(
            store,
            render_provider,
            material_id,
            user_id,
            prompt,
            surface=surface,
            scale=float(cfg.viewer.initial_scale),
            min_scale=float(cfg.viewer.min_scale),
            max_scale=float(cfg.viewer.max_scale),
            scale_step=float(cfg.viewer.scale_step),
            **kwargs,
        )

    @property
    def is_busy(self) -> bool:
        return self.state != NavigationState.IDLE or self._lock.locked()

    @property
    def can_save(self) -> bool:
        return self.surface.is_active and self.surface.dirty

    def page_key(self, page_number: int) -> PageKey:
        return PageKey(self.material_id, self.user_id, page_number)

    def select_tool(self, tool: ToolType) -> BrushConfig:
        """Select a tool on the current surface."""
        return self.surface.set_tool(tool)

    async def open(self, page_number: int = 1) -> None:
        """Show the first page; there is nothing to save yet."""
        self._check_page(page_number)
        if self.current_page is not None:
            await self.go_to_page(page_number)
            return
        async with self._lock:
            self._set_state(NavigationState.NAVIGATION_PENDING)
            try:
                await self._enter_page(page_number, self.scale)
            finally:
                self._set_state(NavigationState.IDLE)

    async def go_to_page(self, page_number: int) -> bool:
        """
        Navigate to another page.

        Returns:
            True if the page changed
        """
        self._check_page(page_number)
        async with self._lock:
            if page_number == self.current_page:
                return False
            return await self._transition(page_number, self.scale)

    async def next_page(self) -> bool:
        if self.current_page is None:
            return False
        if self.page_count is not None and self.current_page >= self.page_count:
            return False
        return await self.go_to_page(self.current_page + 1)

    async def previous_page(self) -> bool:
        if self.current_page is None or self.current_page <= 1:
            return False
        return await self.go_to_page(self.current_page - 1)

    async def set_scale(self, scale: float) -> bool:
        """
        Change the render scale of the current page.

        Geometry is expressed in rendered pixels, so the surface is
        rebuilt through the same save gate as a page change.

        Returns:
            True if the scale changed
        """
        scale = round(min(max(scale, self.min_scale), self.max_scale), 2)
        async with self._lock:
            if scale == self.scale:
                return False
            if self.current_page is None:
                self.scale = scale
                return True
            return await self._transition(self.current_page, scale)

    async def zoom_in(self) -> bool:
        return await self.set_scale(self.scale + self.scale_step)

    async def zoom_out(self) -> bool:
        return await self.set_scale(self.scale - self.scale_step)

    async def save(self) -> bool:
        """
        Persist the current page.

        Returns:
            True if the save succeeded (or there was nothing to save)
        """
        async with self._lock:
            if not self.can_save:
                return True
            return await self._save_current()

    async def on_render_complete(self, page_number: int) -> None:
        """Finish setting up a page whose dimensions were not ready."""
        async with self._lock:
            if self.deferred_page != page_number or self.current_page != page_number:
                return
            self._set_state(NavigationState.NAVIGATION_PENDING)
            try:
                await self._enter_page(page_number, self.scale)
            finally:
                self._set_state(NavigationState.IDLE)

    async def _transition(self, page_number: int, scale: float) -> bool:
        self._set_state(NavigationState.NAVIGATION_PENDING)
        try:
            if self.surface.is_active and self.surface.dirty:
                decision = await self._ask(self.current_page)
                if decision == SaveDecision.SAVE:
                    if not await self._save_current():
                        # Leaving now would throw the unsaved strokes away
                        logger.info(f"Staying on page {self.current_page}, save failed")
                        return False
                else:
                    logger.info(f"Discarding unsaved changes on page {self.current_page}")

            previous = self.current_page
            self.surface.dispose()
            await self._enter_page(page_number, scale)
            self.events.emit(
                AnnotationEvent(
                    EventType.PAGE_CHANGED,
                    {"from": previous, "to": page_number, "scale": scale},
                )
            )
            return True
        finally:
            self._set_state(NavigationState.IDLE)

    async def _ask(self, page_number: int) -> SaveDecision:
        answer = self.prompt(page_number)
        if inspect.isawaitable(answer):
            answer = await answer
        if isinstance(answer, SaveDecision):
            return answer
        return SaveDecision.SAVE if answer else SaveDecision.DISCARD

    async def _enter_page(self, page_number: int, scale: float) -> None:
        self.current_page = page_number
        self.scale = scale
        key = self.page_key(page_number)

        try:
            dims = self.render_provider.get_page_dimensions(page_number, scale)
            width, height = dims if dims is not None else (None, None)
            self.surface.initialize(width, height, key=key, scale=scale)
        except ResourceNotReady as e:
            logger.debug(f"Page {page_number} not rendered yet, deferring: {e}")
            self.deferred_page = page_number
            return

        self.deferred_page = None
        await self._load(key)

    async def _load(self, key: PageKey) -> None:
        generation = self.surface.generation
        try:
            record = await asyncio.to_thread(
                self.store.fetch_for_page, key.material_id, key.user_id, key.page_number
            )
        except PersistenceError as e:
            logger.warning(f"Could not load annotations for page {key.page_number}: {e}")
            self.events.emit(AnnotationEvent(EventType.LOAD_FAILED, {"key": key, "error": str(e)}))
            self.events.notice(_("Annotations could not be loaded"), level="warning")
            return

        if not self._is_current(key, generation):
            logger.debug(f"Dropping stale annotations for {key}")
            return

        if record is None:
            state = PageCanvasState(key=key)
        else:
            self.records[key] = record
            state = deserialize_or_empty(record.annotation_objects, key=key)

        self.surface.load(state, keep_pending=self.surface.revision > 0)
        self.events.emit(
            AnnotationEvent(
                EventType.PAGE_LOADED, {"key": key, "num_objects": len(self.surface.objects)}
            )
        )

    async def _save_current(self) -> bool:
        surface = self.surface
        key = surface.key
        generation = surface.generation
        revision = surface.revision

        previous_state = self.state
        self._set_state(NavigationState.SAVING)
        self.events.emit(AnnotationEvent(EventType.SAVE_STARTED, {"key": key}))
        try:
            # Non-finite geometry makes the payload unencodable
            payload = serialize(surface.snapshot())
            record = await asyncio.to_thread(
                self.store.save, key.material_id, key.user_id, key.page_number, payload
            )
        except (PersistenceError, ValueError) as e:
            logger.warning(f"Saving annotations for page {key.page_number} failed: {e}")
            self.events.emit(AnnotationEvent(EventType.SAVE_FAILED, {"key": key, "error": str(e)}))
            self.events.notice(_("Annotations could not be saved, please retry"), level="error")
            return False
        finally:
            self._set_state(previous_state)

        self.records[key] = record
        if self._is_current(key, generation):
            surface.mark_saved(revision)
        else:
            logger.debug(f"Save for {key} finished after the page was left")
        self.events.emit(AnnotationEvent(EventType.SAVE_COMPLETED, {"key": key, "id": record.id}))
        return True

    def _is_current(self, key: PageKey, generation: int) -> bool:
        return (
            self.surface.is_active
            and self.surface.generation == generation
            and self.surface.key == key
        )

    def _check_page(self, page_number: int) -> None:
        if page_number < 1 or (self.page_count is not None and page_number > self.page_count):
            raise ValueError(f"Page {page_number} is out of range 1..{self.page_count}")

    def _set_state(self, state: NavigationState) -> None:
        if state != self.state:
            self.state = state
            self.events.emit(
                AnnotationEvent(EventType.NAVIGATION_STATE_CHANGED, {"state": state})
            )
