"""MetaObject — one BIM element and its property sets, as exposed by a viewer.

The metadata graph is owned by the host.  Elements refer to their parent and
to shared property sets by id only, so the graph is always walked through
:class:`MetaModel` lookups rather than live object references.
"""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from pydantic import BaseModel, Field

from bimbudget.config import SPATIAL_CATEGORIES


class BoundingBox(BaseModel):
    """Axis-aligned bounding box."""

    min_x: float = 0.0
    min_y: float = 0.0
    min_z: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0
    max_z: float = 0.0

    @classmethod
    def from_aabb(cls, aabb: Sequence[float]) -> BoundingBox:
        """Build from a flat ``[minx, miny, minz, maxx, maxy, maxz]`` array."""
        if len(aabb) != 6:
            raise ValueError(f"AABB must have 6 values, got {len(aabb)}")
        min_x, min_y, min_z, max_x, max_y, max_z = (float(v) for v in aabb)
        return cls(
            min_x=min_x,
            min_y=min_y,
            min_z=min_z,
            max_x=max_x,
            max_y=max_y,
            max_z=max_z,
        )

    def dimensions(self) -> tuple[float, float, float]:
        """Return the (dx, dy, dz) extents, never negative."""
        return (
            max(0.0, self.max_x - self.min_x),
            max(0.0, self.max_y - self.min_y),
            max(0.0, self.max_z - self.min_z),
        )


class Property(BaseModel):
    """A single named fact inside a property set."""

    name: str = ""
    value: Any = None
    """Raw value: a scalar, or a nested ``{"value": ...}`` wrapper."""


class PropertySet(BaseModel):
    """A named bag of properties (e.g. ``Pset_WallCommon``, ``BaseQuantities``)."""

    id: str = ""
    name: str = ""
    type: str | None = None
    properties: list[Property] = Field(default_factory=list)


class MetaObject(BaseModel):
    """One modeled element.

    Property sets may be attached inline (``property_sets``) or referenced
    through ``property_set_ids`` into the model's shared table; different
    exporters use different layouts and both are honoured.
    """

    id: str
    category: str = ""
    """IFC-style category tag, e.g. ``IfcWall``."""

    name: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    """Direct element attributes (``ObjectType``, ``TypeName``, ``type`` ...)."""

    property_sets: list[PropertySet] = Field(default_factory=list)
    property_set_ids: list[str] = Field(default_factory=list)
    parent_id: str | None = None


class MetaModel(BaseModel):
    """Read-only snapshot of a loaded BIM model's metadata graph."""

    objects: dict[str, MetaObject] = Field(default_factory=dict)
    property_sets: dict[str, PropertySet] = Field(default_factory=dict)
    """Shared property-set table addressed by ``MetaObject.property_set_ids``."""

    bounding_boxes: dict[str, BoundingBox] = Field(default_factory=dict)

    def get(self, object_id: str | None) -> MetaObject | None:
        if object_id is None:
            return None
        return self.objects.get(object_id)

    def geometry_lookup(self, object_id: str) -> BoundingBox | None:
        """Return the bounding box recorded for *object_id*, if any."""
        return self.bounding_boxes.get(object_id)

    def building_elements(self) -> Iterator[MetaObject]:
        """Yield every object except spatial-structure containers."""
        for obj in self.objects.values():
            if obj.category.lower() in SPATIAL_CATEGORIES:
                continue
            yield obj
