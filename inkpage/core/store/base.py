"""
Annotation store contract.

A store keeps at most one AnnotationRecord per (material, user, page) and
decides by itself whether a save creates or updates a record.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..annotation.errors import PersistenceError
from ..annotation.state import AnnotationRecord

logger = logging.getLogger(__name__)


class RecordNotFound(PersistenceError):
    """Record is missing or belongs to another user."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class MaterialNotFound(PersistenceError):
    """Material is unknown to the store."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class AnnotationStore(ABC):
    """
    Base class for annotation stores.

    Every failure is reported as a PersistenceError.
    """

    @abstractmethod
    def list_for_material(
        self, material_id: int, user_id: int, page_number: Optional[int] = None
    ) -> List[AnnotationRecord]:
        """
        List a user's records for a material, ordered by page.

        Args:
            material_id: Material identifier
            user_id: Owner of the records
            page_number: Restrict to one page
        """

    @abstractmethod
    def save(
        self, material_id: int, user_id: int, page_number: int, serialized_state: str
    ) -> AnnotationRecord:
        """
        Create or update the record of a page.

        Returns:
            The stored record; an existing record keeps its id
        """

    @abstractmethod
    def update(
        self, material_id: int, user_id: int, annotation_id: int, serialized_state: str
    ) -> AnnotationRecord:
        """Replace the content of a record by id."""

    @abstractmethod
    def delete(self, material_id: int, user_id: int, annotation_id: int) -> None:
        """Delete a record by id."""

    def fetch_for_page(
        self, material_id: int, user_id: int, page_number: int
    ) -> Optional[AnnotationRecord]:
        """
        Get the record of one page, if any.

        More than one match breaks the uniqueness invariant: the first is
        used and the anomaly is logged.
        """
        records = [
            r
            for r in self.list_for_material(material_id, user_id, page_number)
            if r.page_number == page_number
        ]
        if not records:
            return None
        if len(records) > 1:
            logger.error(
                f"{len(records)} annotation records for material {material_id}, "
                f"user {user_id}, page {page_number}; using id {records[0].id}, "
                f"ignoring {[r.id for r in records[1:]]}"
            )
        return records[0]
