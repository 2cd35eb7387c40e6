"""
Annotation API server.

Stores one annotation record per (material, user, page). The caller is
identified by the X-User-Id header set by the authentication layer in
front of this service; users only ever see their own records.

Usage:
    inkpage serve

Then visit http://localhost:8000/docs for API documentation.
"""

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response

from ..core.annotation.errors import PersistenceError
from ..core.store import InMemoryAnnotationStore
from .schemas import AnnotationCreate, AnnotationOut, AnnotationUpdate, Message

logger = logging.getLogger(__name__)


def get_current_user(x_user_id: Optional[int] = Header(None)) -> int:
    """Identity of the caller, as forwarded by the auth layer."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def _raise_http(e: PersistenceError):
    status = e.status_code or 500
    if status >= 500:
        logger.error(f"Annotation store failure: {e}")
        raise HTTPException(status_code=500, detail="Server error") from e
    raise HTTPException(status_code=status, detail=str(e)) from e


def create_app(store: Optional[InMemoryAnnotationStore] = None) -> FastAPI:
    """
    Build the annotation API.

    Args:
        store: Repository enforcing the one-record-per-page constraint

    Returns:
        FastAPI application
    """
    if store is None:
        store = InMemoryAnnotationStore()

    app = FastAPI(
        title="Page Annotation API",
        description="Per-page vector annotations of study materials",
        version="1.0.0",
    )
    app.state.store = store

    @app.get("/materials/{material_id}/annotations", response_model=List[AnnotationOut])
    def get_annotations(
        material_id: int,
        page_number: Optional[int] = Query(None, alias="pageNumber"),
        user_id: int = Depends(get_current_user),
    ):
        """List the caller's annotations of a material, optionally for one page."""
        try:
            records = store.list_for_material(material_id, user_id, page_number)
        except PersistenceError as e:
            _raise_http(e)
        return [r.to_dict() for r in records]

    @app.post(
        "/materials/{material_id}/annotations",
        response_model=AnnotationOut,
        status_code=201,
    )
    def create_annotation(
        material_id: int,
        body: AnnotationCreate,
        response: Response,
        user_id: int = Depends(get_current_user),
    ):
        """
        Save the annotations of a page.

        Updates the existing record of the page in place (200) or
        creates it (201).
        """
        try:
            record, created = store.upsert(
                material_id, user_id, body.page_number, body.annotation_objects
            )
        except PersistenceError as e:
            _raise_http(e)
        if not created:
            response.status_code = 200
        logger.info(
            f"{'Created' if created else 'Updated'} annotation {record.id} "
            f"(material {material_id}, user {user_id}, page {body.page_number})"
        )
        return record.to_dict()

    @app.put(
        "/materials/{material_id}/annotations/{annotation_id}",
        response_model=AnnotationOut,
    )
    def update_annotation(
        material_id: int,
        annotation_id: int,
        body: AnnotationUpdate,
        user_id: int = Depends(get_current_user),
    ):
        """Replace the content of one of the caller's records."""
        try:
            record = store.update(material_id, user_id, annotation_id, body.annotation_objects)
        except PersistenceError as e:
            _raise_http(e)
        return record.to_dict()

    @app.delete(
        "/materials/{material_id}/annotations/{annotation_id}",
        response_model=Message,
    )
    def delete_annotation(
        material_id: int,
        annotation_id: int,
        user_id: int = Depends(get_current_user),
    ):
        """Delete one of the caller's records."""
        try:
            store.delete(material_id, user_id, annotation_id)
        except PersistenceError as e:
            _raise_http(e)
        return {"message": "Annotation deleted"}

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "records": len(store)}

    return app
