"""
Test fixtures and utilities for inkpage tests.

Provides reusable fixtures for surfaces, stores, renderers and prompts.
"""

import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from inkpage.core.annotation import (
    DrawingSurface,
    EventEmitter,
    EventType,
    PageCanvasState,
    PageKey,
    PageNavigationController,
    SaveDecision,
    ShapeType,
    Style,
    ToolType,
    VectorObject,
)
from inkpage.core.store import InMemoryAnnotationStore


class FakeRenderProvider:
    """Render provider with fixed page sizes; pages in `pending` are not rendered yet."""

    def __init__(self, width=600, height=800):
        self.width = width
        self.height = height
        self.pending = set()
        self.calls = []

    def get_page_dimensions(self, page_number, scale):
        self.calls.append((page_number, scale))
        if page_number in self.pending:
            return None
        return self.width * scale, self.height * scale


class TickingClock:
    """Clock advancing one second per call."""

    def __init__(self):
        self._ticks = itertools.count()
        self.start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.start + timedelta(seconds=next(self._ticks))


class EventRecorder:
    """Collects every event emitted on an emitter."""

    def __init__(self, emitter: EventEmitter):
        self.events = []
        for event_type in EventType:
            emitter.on(event_type, self.events.append)

    def of_type(self, event_type):
        return [e for e in self.events if e.event_type == event_type]

    @property
    def types(self):
        return [e.event_type for e in self.events]


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"obj-{next(counter)}"


@pytest.fixture
def events():
    return EventEmitter()


@pytest.fixture
def recorder(events):
    return EventRecorder(events)


@pytest.fixture
def surface(events):
    """Surface initialized for page 1 of material 7, user 42."""
    s = DrawingSurface(events=events, id_factory=sequential_ids())
    s.initialize(600, 800, key=PageKey(7, 42, 1))
    return s


@pytest.fixture
def pen_surface(surface):
    surface.set_tool(ToolType.PEN)
    return surface


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryAnnotationStore(clock=clock)


@pytest.fixture
def render_provider():
    return FakeRenderProvider()


@pytest.fixture
def save_prompt():
    return Mock(return_value=SaveDecision.SAVE)


@pytest.fixture
def discard_prompt():
    return Mock(return_value=SaveDecision.DISCARD)


def make_state(key=None, scale=1.0):
    """Two pen strokes and a rectangle, in that z-order."""
    pen = Style(color="red", width=2, opacity=1.0)
    return PageCanvasState(
        key=key,
        scale=scale,
        objects=[
            VectorObject("s1", ShapeType.PATH, ((10.0, 10.0), (20.0, 25.5), (30.0, 40.0)), pen),
            VectorObject("s2", ShapeType.PATH, ((100.0, 100.0), (110.0, 90.0)), pen),
            VectorObject(
                "r1",
                ShapeType.RECT,
                (50.0, 60.0, 120.0, 40.0),
                Style(color="#0000ff", width=3, opacity=0.8),
            ),
        ],
    )


@pytest.fixture
def three_object_state():
    return make_state(key=PageKey(7, 42, 3))


@pytest.fixture
def state_factory():
    return make_state


@pytest.fixture
def make_controller(events, memory_store, render_provider, save_prompt):
    """Factory for controllers on material 7 for user 42."""

    def factory(store=None, prompt=None, **kwargs):
        surface = DrawingSurface(events=events, id_factory=sequential_ids())
        return PageNavigationController(
            store if store is not None else memory_store,
            render_provider,
            7,
            42,
            prompt if prompt is not None else save_prompt,
            surface=surface,
            **kwargs,
        )

    return factory
