"""
Exceptions raised by the annotation core.

Every error here is recoverable: none of them should stop a page from
being displayed.
"""


class AnnotationError(Exception):
    """Base class for annotation errors."""


class ParseError(AnnotationError, ValueError):
    """Stored annotation payload could not be decoded."""


class PersistenceError(AnnotationError):
    """Fetching or saving an annotation record failed."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ResourceNotReady(AnnotationError):
    """Surface requested before the page dimensions are known."""


class SurfaceDisposed(AnnotationError, RuntimeError):
    """Operation attempted on a surface that was already released."""
