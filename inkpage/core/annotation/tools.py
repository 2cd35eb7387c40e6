"""
Tool selection and brush configuration.

The brush is never stored: it is always derived from the selected tool,
so switching tools back and forth can never leave stale settings behind.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .input import InputEvent, MultiTouch, PointerDown

logger = logging.getLogger(__name__)


class ToolType(Enum):
    """Tools available in the annotation toolbar."""

    NONE = "none"
    PEN = "pen"
    HIGHLIGHTER = "highlighter"
    ERASER = "eraser"


@dataclass(frozen=True)
class BrushConfig:
    """Drawing configuration derived from a tool."""

    is_drawing: bool
    width: Optional[float] = None
    color: Optional[str] = None
    opacity: Optional[float] = None
    is_selecting: bool = False


_BRUSHES = {
    ToolType.NONE: BrushConfig(is_drawing=False),
    ToolType.PEN: BrushConfig(is_drawing=True, width=2, color="red", opacity=1.0),
    ToolType.HIGHLIGHTER: BrushConfig(
        is_drawing=True, width=20, color="yellow", opacity=0.3
    ),
    # select-and-delete mode
    ToolType.ERASER: BrushConfig(is_drawing=False, is_selecting=True),
}


def configure_brush(tool: ToolType) -> BrushConfig:
    """
    Get the brush configuration for a tool.

    Pure and idempotent: the result depends only on the tool.

    Args:
        tool: Selected tool

    Returns:
        Brush configuration
    """
    return _BRUSHES[ToolType(tool)]


class ToolStateMachine:
    """
    Tracks the selected tool and the multi-touch override.

    A contact with more than one pointer forces drawing off whatever the
    tool is; the next single-pointer interaction, or a contact report
    dropping back to one pointer, re-enables it. Stylus contacts behave
    like any other single pointer, so they only bring drawing back when
    the selected tool draws.
    """

    def __init__(self, tool: ToolType = ToolType.NONE):
        self.tool = ToolType(tool)
        self.multi_touch = False

    def select(self, tool: ToolType) -> BrushConfig:
        """Select a tool and return its brush."""
        self.tool = ToolType(tool)
        logger.debug(f"Tool selected: {self.tool.value}")
        return self.brush

    @property
    def brush(self) -> BrushConfig:
        return configure_brush(self.tool)

    @property
    def drawing_enabled(self) -> bool:
        return self.brush.is_drawing and not self.multi_touch

    def observe(self, event: InputEvent) -> None:
        """Update the multi-touch override from an input event."""
        if isinstance(event, MultiTouch):
            if event.pointer_count > 1 and not self.multi_touch:
                logger.debug("Multi-touch contact, drawing disabled")
                self.multi_touch = True
            elif event.pointer_count <= 1 and self.multi_touch:
                logger.debug("Back to a single contact, drawing re-enabled")
                self.multi_touch = False
        elif isinstance(event, PointerDown) and self.multi_touch:
            logger.debug(
                f"Single {event.pointer_type.value} contact, drawing re-enabled"
            )
            self.multi_touch = False
