"""
Annotation persistence.

One record per (material, user, page), upserted by the store itself.
"""

from .base import AnnotationStore, MaterialNotFound, RecordNotFound
from .memory import InMemoryAnnotationStore
from .remote import HttpAnnotationStore

__all__ = [
    "AnnotationStore",
    "MaterialNotFound",
    "RecordNotFound",
    "InMemoryAnnotationStore",
    "HttpAnnotationStore",
]
