"""
In-memory annotation repository.

Authoritative for uniqueness: the (material, user, page) index is checked
and written under one lock, so concurrent saves for the same page always
end up in a single record.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..annotation.state import AnnotationRecord, PageKey
from .base import AnnotationStore, MaterialNotFound, RecordNotFound

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryAnnotationStore(AnnotationStore):
    """
    Annotation records kept in process memory.

    Records handed out are copies; mutating them never changes the store.
    """

    def __init__(
        self,
        materials: Optional[Iterable[int]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            materials: Known material ids; None accepts any material
            clock: Source of record timestamps
        """
        self._materials = set(materials) if materials is not None else None
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[int, AnnotationRecord] = {}
        self._by_key: Dict[PageKey, int] = {}
        self._next_id = 1

    def add_material(self, material_id: int) -> None:
        with self._lock:
            if self._materials is not None:
                self._materials.add(material_id)

    def material_exists(self, material_id: int) -> bool:
        return self._materials is None or material_id in self._materials

    def __len__(self):
        return len(self._records)

    def list_for_material(
        self, material_id: int, user_id: int, page_number: Optional[int] = None
    ) -> List[AnnotationRecord]:
        self._require_material(material_id)
        with self._lock:
            records = [
                replace(r)
                for r in self._records.values()
                if r.material_id == material_id
                and r.user_id == user_id
                and (page_number is None or r.page_number == page_number)
            ]
        return sorted(records, key=lambda r: (r.page_number, r.id))

    def upsert(
        self, material_id: int, user_id: int, page_number: int, serialized_state: str
    ) -> Tuple[AnnotationRecord, bool]:
        """
        Create or update the record of a page.

        Returns:
            (record, created) where created is False for an update in place
        """
        self._require_material(material_id)
        key = PageKey(material_id, user_id, page_number)
        now = self._clock()
        with self._lock:
            record_id = self._by_key.get(key)
            if record_id is not None:
                record = self._records[record_id]
                record.annotation_objects = serialized_state
                record.updated_at = now
                created = False
            else:
                record = AnnotationRecord(
                    id=self._next_id,
                    material_id=material_id,
                    user_id=user_id,
                    page_number=page_number,
                    annotation_objects=serialized_state,
                    created_at=now,
                    updated_at=now,
                )
                self._next_id += 1
                self._records[record.id] = record
                self._by_key[key] = record.id
                created = True
            result = replace(record)

        logger.debug(f"{'Created' if created else 'Updated'} annotation {result.id} for {key}")
        return result, created

    def save(
        self, material_id: int, user_id: int, page_number: int, serialized_state: str
    ) -> AnnotationRecord:
        record, _created = self.upsert(material_id, user_id, page_number, serialized_state)
        return record

    def update(
        self, material_id: int, user_id: int, annotation_id: int, serialized_state: str
    ) -> AnnotationRecord:
        with self._lock:
            record = self._owned_record(material_id, user_id, annotation_id)
            record.annotation_objects = serialized_state
            record.updated_at = self._clock()
            return replace(record)

    def delete(self, material_id: int, user_id: int, annotation_id: int) -> None:
        with self._lock:
            record = self._owned_record(material_id, user_id, annotation_id)
            del self._records[record.id]
            del self._by_key[record.key]
        logger.debug(f"Deleted annotation {annotation_id}")

    def _owned_record(self, material_id: int, user_id: int, annotation_id: int) -> AnnotationRecord:
        record = self._records.get(annotation_id)
        if record is None or record.user_id != user_id or record.material_id != material_id:
            raise RecordNotFound(f"Annotation {annotation_id} not found")
        return record

    def _require_material(self, material_id: int) -> None:
        if not self.material_exists(material_id):
            raise MaterialNotFound(f"Material {material_id} not found")
