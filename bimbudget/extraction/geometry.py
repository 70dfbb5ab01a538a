"""Bounding-box geometry: face-area estimates and boxes from IFC shapes.

Computes the axis-aligned bounding box of an IFC element with ifcopenshell's
geometry engine when available, with a safe fallback to ``None``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import ifcopenshell

from bimbudget.models.element import BoundingBox

logger = logging.getLogger(__name__)

# Try to import geometry processing; not every environment has OCC bindings.
try:
    import ifcopenshell.geom

    _HAS_GEOM = True
except ImportError:
    _HAS_GEOM = False

GeometryLookup = Callable[[str], BoundingBox | None]


def max_face_area(bbox: BoundingBox) -> float:
    """Return the largest of the three face areas (dx*dy, dy*dz, dx*dz)."""
    dx, dy, dz = bbox.dimensions()
    return max(dx * dy, dy * dz, dx * dz)


def estimate_area(element_id: str, geometry_lookup: GeometryLookup | None) -> float | None:
    """Estimate an element's area from its bounding box, or None."""
    if geometry_lookup is None:
        return None
    bbox = geometry_lookup(element_id)
    if bbox is None:
        return None
    area = max_face_area(bbox)
    if area <= 0:
        return None
    logger.debug("Area of %s estimated from bounding box: %.4f", element_id, area)
    return area


def _settings() -> Any:
    """Return ifcopenshell geometry settings."""
    settings = ifcopenshell.geom.settings()
    settings.set("use-world-coords", True)
    return settings


def extract_bounding_box(element: ifcopenshell.entity_instance) -> BoundingBox | None:
    """Return the world-space bounding box of *element*, or None.

    None is returned when the geometry kernel is unavailable, the element has
    no representation, or triangulation fails.
    """
    if not _HAS_GEOM or getattr(element, "Representation", None) is None:
        return None

    try:
        shape = ifcopenshell.geom.create_shape(_settings(), element)
        verts = shape.geometry.verts
        if not verts:
            return None

        xs = verts[0::3]
        ys = verts[1::3]
        zs = verts[2::3]

        return BoundingBox(
            min_x=min(xs),
            min_y=min(ys),
            min_z=min(zs),
            max_x=max(xs),
            max_y=max(ys),
            max_z=max(zs),
        )
    except Exception:
        logger.debug("Geometry extraction failed for %s", element.GlobalId, exc_info=True)
        return None
