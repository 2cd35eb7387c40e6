"""
REST client for the annotation server.

Endpoints:
    GET    /materials/{materialId}/annotations[?pageNumber=N]
    POST   /materials/{materialId}/annotations
    PUT    /materials/{materialId}/annotations/{annotationId}
    DELETE /materials/{materialId}/annotations/{annotationId}
"""

import logging
from typing import Any, List, Optional

import requests

from ..annotation.errors import PersistenceError
from ..annotation.state import AnnotationRecord
from .base import AnnotationStore

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


class HttpAnnotationStore(AnnotationStore):
    """
    Annotation store backed by the annotation REST API.

    Saves always go through POST: the server owns the uniqueness
    constraint and decides between create and update.
    """

    def __init__(self, base_url: str, session: Any = None, timeout: float = 30):
        """
        Args:
            base_url: Server root, e.g. http://localhost:8000
            session: Object with a requests-compatible request() method
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def list_for_material(
        self, material_id: int, user_id: int, page_number: Optional[int] = None
    ) -> List[AnnotationRecord]:
        params = {"pageNumber": page_number} if page_number is not None else None
        data = self._request(
            "GET", f"/materials/{material_id}/annotations", user_id, params=params
        )
        if not isinstance(data, list):
            raise PersistenceError(f"Expected a list of annotations, got {type(data).__name__}")
        return [self._record(item) for item in data]

    def save(
        self, material_id: int, user_id: int, page_number: int, serialized_state: str
    ) -> AnnotationRecord:
        data = self._request(
            "POST",
            f"/materials/{material_id}/annotations",
            user_id,
            json={"annotationObjects": serialized_state, "pageNumber": page_number},
        )
        return self._record(data)

    def update(
        self, material_id: int, user_id: int, annotation_id: int, serialized_state: str
    ) -> AnnotationRecord:
        data = self._request(
            "PUT",
            f"/materials/{material_id}/annotations/{annotation_id}",
            user_id,
            json={"annotationObjects": serialized_state},
        )
        return self._record(data)

    def delete(self, material_id: int, user_id: int, annotation_id: int) -> None:
        self._request(
            "DELETE", f"/materials/{material_id}/annotations/{annotation_id}", user_id
        )

    def _request(self, method: str, path: str, user_id: int, **kwargs):
        url = f"{self.base_url}{path}"
        headers = {USER_HEADER: str(user_id)}
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise PersistenceError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"{method} {url} returned {response.status_code}")
            raise PersistenceError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"{method} {url} returned invalid JSON") from e

    @staticmethod
    def _record(data) -> AnnotationRecord:
        try:
            return AnnotationRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed annotation record: {e}") from e
