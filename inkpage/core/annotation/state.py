"""
State management for page annotations.

Contains data classes representing the vector objects drawn on a page,
the per-page canvas state and its persisted record form.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Tuple


class ShapeType(Enum):
    """Kinds of vector objects a page can hold."""

    PATH = "path"
    RECT = "rect"
    LINE = "line"
    ELLIPSE = "ellipse"


# Number of floats in the geometry of each fixed-size shape.
# PATH geometry is a variable-length sequence of (x, y) points instead.
SHAPE_ARITY = {
    ShapeType.RECT: 4,  # left, top, width, height
    ShapeType.LINE: 4,  # x1, y1, x2, y2
    ShapeType.ELLIPSE: 4,  # cx, cy, rx, ry
}


@dataclass(frozen=True)
class Style:
    """Stroke style of a vector object."""

    color: str
    width: float
    opacity: float = 1.0

    def to_dict(self):
        return {
            "color": self.color,
            "width": float(self.width),
            "opacity": float(self.opacity),
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            color=str(data["color"]),
            width=float(data["width"]),
            opacity=float(data.get("opacity", 1.0)),
        )


@dataclass(frozen=True)
class VectorObject:
    """
    A single drawable shape or stroke.

    Objects are immutable; editing a page means adding or removing them.
    """

    id: str
    shape_type: ShapeType
    geometry: tuple
    style: Style

    @property
    def points(self) -> List[Tuple[float, float]]:
        """Geometry as a list of (x, y) points."""
        if self.shape_type == ShapeType.PATH:
            return [tuple(p) for p in self.geometry]
        if self.shape_type == ShapeType.RECT:
            left, top, width, height = self.geometry
            return [
                (left, top),
                (left + width, top),
                (left + width, top + height),
                (left, top + height),
                (left, top),
            ]
        if self.shape_type == ShapeType.LINE:
            x1, y1, x2, y2 = self.geometry
            return [(x1, y1), (x2, y2)]
        cx, cy, rx, ry = self.geometry
        return [(cx - rx, cy), (cx, cy - ry), (cx + rx, cy), (cx, cy + ry)]

    def scaled(self, factor: float) -> "VectorObject":
        """Return a copy with geometry and stroke width multiplied by factor."""
        if self.shape_type == ShapeType.PATH:
            geometry = tuple((x * factor, y * factor) for x, y in self.geometry)
        else:
            geometry = tuple(v * factor for v in self.geometry)
        style = replace(self.style, width=self.style.width * factor)
        return replace(self, geometry=geometry, style=style)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        if self.shape_type == ShapeType.PATH:
            geometry = [[float(x), float(y)] for x, y in self.geometry]
        else:
            geometry = [float(v) for v in self.geometry]
        return {
            "id": self.id,
            "type": self.shape_type.value,
            "geometry": geometry,
            "style": self.style.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        shape_type = ShapeType(data["type"])
        if shape_type == ShapeType.PATH:
            geometry = tuple((float(x), float(y)) for x, y in data["geometry"])
        else:
            geometry = tuple(float(v) for v in data["geometry"])
        return cls(
            id=str(data["id"]),
            shape_type=shape_type,
            geometry=geometry,
            style=Style.from_dict(data["style"]),
        )


class PageKey(NamedTuple):
    """Identity of one user's annotations on one page of a material."""

    material_id: int
    user_id: int
    page_number: int


@dataclass
class PageCanvasState:
    """
    Complete set of vector objects for one page, one user, one material.

    List order is z-order: the last object is drawn on top.
    """

    key: Optional[PageKey] = None
    objects: List[VectorObject] = field(default_factory=list)
    scale: float = 1.0

    def __len__(self):
        return len(self.objects)

    def __iter__(self) -> Iterator[VectorObject]:
        return iter(self.objects)

    @property
    def ids(self) -> List[str]:
        return [obj.id for obj in self.objects]

    def find(self, object_id: str) -> Optional[VectorObject]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None

    def rescaled(self, new_scale: float) -> "PageCanvasState":
        """
        Map the geometry onto a page rendered at a different scale.

        Args:
            new_scale: Render scale the geometry should be expressed in

        Returns:
            New state; self is left untouched
        """
        if new_scale <= 0:
            raise ValueError(f"Scale must be positive, got {new_scale}")
        factor = new_scale / self.scale
        return PageCanvasState(
            key=self.key,
            objects=[obj.scaled(factor) for obj in self.objects],
            scale=new_scale,
        )

    def to_dict(self):
        """Convert to dictionary for serialization."""
        data = {
            "scale": float(self.scale),
            "objects": [obj.to_dict() for obj in self.objects],
        }
        if self.key is not None:
            data["page"] = {
                "materialId": self.key.material_id,
                "userId": self.key.user_id,
                "pageNumber": self.key.page_number,
            }
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        page = data.get("page")
        key = None
        if page is not None:
            key = PageKey(
                int(page["materialId"]), int(page["userId"]), int(page["pageNumber"])
            )
        return cls(
            key=key,
            objects=[VectorObject.from_dict(o) for o in data.get("objects", [])],
            scale=float(data.get("scale", 1.0)),
        )


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class AnnotationRecord:
    """
    Persisted form of a PageCanvasState.

    At most one record exists per (material_id, user_id, page_number).
    """

    material_id: int
    user_id: int
    page_number: int
    annotation_objects: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> PageKey:
        return PageKey(self.material_id, self.user_id, self.page_number)

    def to_dict(self):
        """Convert to the camelCase form used on the wire."""
        return {
            "id": self.id,
            "materialId": self.material_id,
            "userId": self.user_id,
            "pageNumber": self.page_number,
            "annotationObjects": self.annotation_objects,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create from the camelCase wire form."""
        return cls(
            id=data.get("id"),
            material_id=int(data["materialId"]),
            user_id=int(data["userId"]),
            page_number=int(data["pageNumber"]),
            annotation_objects=data["annotationObjects"],
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )
