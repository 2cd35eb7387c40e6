"""
Request and response schemas of the annotation API.

Field names on the wire are camelCase.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnnotationCreate(BaseModel):
    """Body of POST /materials/{materialId}/annotations."""

    model_config = ConfigDict(populate_by_name=True)

    annotation_objects: str = Field(
        ..., alias="annotationObjects", min_length=1, description="Serialized page state"
    )
    page_number: int = Field(..., alias="pageNumber", ge=1)


class AnnotationUpdate(BaseModel):
    """Body of PUT /materials/{materialId}/annotations/{annotationId}."""

    model_config = ConfigDict(populate_by_name=True)

    annotation_objects: str = Field(..., alias="annotationObjects", min_length=1)


class AnnotationOut(BaseModel):
    """Stored annotation record."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    material_id: int = Field(..., alias="materialId")
    user_id: int = Field(..., alias="userId")
    page_number: int = Field(..., alias="pageNumber")
    annotation_objects: str = Field(..., alias="annotationObjects")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class Message(BaseModel):
    message: str
