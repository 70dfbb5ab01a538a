"""Model sources — build a :class:`MetaModel` snapshot.

Entry points:

* ``ifc_to_metamodel(ifc_path)`` reads an IFC2x3/IFC4 file with ifcopenshell.
* ``load_metamodel(json_path)`` reads viewer metadata (``metaObjects`` and
  ``propertySets``, as written by xeokit-style converters) plus optional
  per-object AABBs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import ifcopenshell
import ifcopenshell.util.element

from bimbudget.config import ELEMENT_BASE_CLASS
from bimbudget.extraction.geometry import extract_bounding_box
from bimbudget.models.element import BoundingBox, MetaModel, MetaObject, Property, PropertySet

logger = logging.getLogger(__name__)

# Spatial containers kept so that storeys can be resolved by parent id
_SPATIAL_CLASSES = ("IfcProject", "IfcSite", "IfcBuilding", "IfcBuildingStorey")

# Keys of a metaObject that are not element attributes
_META_OBJECT_KEYS = frozenset({"id", "name", "type", "parent", "propertySetIds", "propertySets"})


def _json_safe(value: Any) -> Any:
    if isinstance(value, ifcopenshell.entity_instance):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# IFC
# ---------------------------------------------------------------------------


def _ifc_property_sets(entity: ifcopenshell.entity_instance) -> list[PropertySet]:
    """Property and quantity sets of *entity*, including those of its type."""
    try:
        raw = ifcopenshell.util.element.get_psets(entity)
    except Exception:
        logger.debug("Pset extraction failed for %s", entity.GlobalId, exc_info=True)
        return []

    psets = []
    for pset_name, props in raw.items():
        psets.append(PropertySet(
            id=str(props.get("id", "")),
            name=pset_name,
            properties=[
                Property(name=k, value=_json_safe(v)) for k, v in props.items() if k != "id"
            ],
        ))
    return psets


def _ifc_attributes(entity: ifcopenshell.entity_instance) -> dict[str, Any]:
    attributes: dict[str, Any] = {}
    for key in ("ObjectType", "Tag", "Description"):
        value = getattr(entity, key, None)
        if value:
            attributes[key] = value

    element_type = ifcopenshell.util.element.get_type(entity)
    if element_type is not None and element_type.Name:
        attributes["type"] = {"name": element_type.Name}
    return attributes


def _ifc_parent_id(entity: ifcopenshell.entity_instance) -> str | None:
    """Spatial container, else the aggregate the entity is part of."""
    try:
        parent = ifcopenshell.util.element.get_container(entity)
        if parent is None:
            parent = ifcopenshell.util.element.get_aggregate(entity)
    except Exception:
        logger.debug("Parent lookup failed for %s", entity.GlobalId, exc_info=True)
        return None
    return parent.GlobalId if parent is not None else None


def _to_meta_object(entity: ifcopenshell.entity_instance) -> MetaObject:
    return MetaObject(
        id=entity.GlobalId,
        category=entity.is_a(),
        name=entity.Name,
        attributes=_ifc_attributes(entity),
        property_sets=_ifc_property_sets(entity),
        parent_id=_ifc_parent_id(entity),
    )


def ifc_to_metamodel(ifc_path: str | Path, *, with_geometry: bool = True) -> MetaModel:
    """Read an IFC file into a :class:`MetaModel`.

    Parameters
    ----------
    ifc_path:
        Path to an IFC2x3 or IFC4 file.
    with_geometry:
        Compute world-space bounding boxes (needs ifcopenshell's geometry
        kernel; elements without a shape simply get none).

    Returns
    -------
    MetaModel
        Spatial containers and every building element.  Elements that fail
        to convert are logged and skipped.
    """
    ifc_path = Path(ifc_path)
    if not ifc_path.is_file():
        raise FileNotFoundError(f"IFC file not found: {ifc_path}")

    logger.info("Opening %s", ifc_path)
    ifc_file = ifcopenshell.open(str(ifc_path))
    model = MetaModel()

    for ifc_class in _SPATIAL_CLASSES:
        for entity in ifc_file.by_type(ifc_class):
            model.objects[entity.GlobalId] = _to_meta_object(entity)

    building_elements = ifc_file.by_type(ELEMENT_BASE_CLASS)
    logger.info("Found %d building elements", len(building_elements))

    for entity in building_elements:
        try:
            model.objects[entity.GlobalId] = _to_meta_object(entity)
        except Exception:
            logger.warning(
                "Skipping element %s (%s) due to error",
                entity.GlobalId,
                entity.is_a(),
                exc_info=True,
            )
            continue
        if with_geometry:
            bbox = extract_bounding_box(entity)
            if bbox is not None:
                model.bounding_boxes[entity.GlobalId] = bbox

    logger.info(
        "Loaded %d objects (%d with bounding boxes) from %s",
        len(model.objects),
        len(model.bounding_boxes),
        ifc_path.name,
    )
    return model


# ---------------------------------------------------------------------------
# Viewer metadata JSON
# ---------------------------------------------------------------------------


def _property(data: Mapping[str, Any]) -> Property:
    """Read ``name``/``Name`` and ``value``/``Value`` keys."""
    value = data["value"] if "value" in data else data.get("Value")
    return Property(name=data.get("name") or data.get("Name") or "", value=value)


def _property_set(data: Mapping[str, Any]) -> PropertySet:
    return PropertySet(
        id=str(data.get("id", "")),
        name=data.get("name") or data.get("Name") or "",
        type=data.get("type"),
        properties=[
            _property(p) for p in data.get("properties") or [] if isinstance(p, Mapping)
        ],
    )


def metamodel_from_dict(
    data: Mapping[str, Any],
    aabbs: Mapping[str, Sequence[float]] | None = None,
) -> MetaModel:
    """Build a :class:`MetaModel` from parsed viewer metadata.

    AABBs come from *aabbs* or, failing that, from an ``"aabbs"`` key in
    *data*; malformed boxes are skipped.
    """
    model = MetaModel()

    for raw in data.get("propertySets") or []:
        pset = _property_set(raw)
        model.property_sets[pset.id] = pset

    for raw in data.get("metaObjects") or []:
        obj = MetaObject(
            id=str(raw["id"]),
            category=raw.get("type") or "",
            name=raw.get("name"),
            attributes={k: v for k, v in raw.items() if k not in _META_OBJECT_KEYS},
            property_sets=[_property_set(p) for p in raw.get("propertySets") or []],
            property_set_ids=[str(i) for i in raw.get("propertySetIds") or []],
            parent_id=str(raw["parent"]) if raw.get("parent") is not None else None,
        )
        model.objects[obj.id] = obj

    for object_id, aabb in (aabbs if aabbs is not None else data.get("aabbs") or {}).items():
        try:
            model.bounding_boxes[str(object_id)] = BoundingBox.from_aabb(aabb)
        except (TypeError, ValueError):
            logger.debug("Ignoring malformed AABB for %s", object_id, exc_info=True)

    return model


def load_metamodel(
    json_path: str | Path,
    aabbs: Mapping[str, Sequence[float]] | None = None,
) -> MetaModel:
    """Read viewer metadata from a JSON file."""
    json_path = Path(json_path)
    if not json_path.is_file():
        raise FileNotFoundError(f"Metadata file not found: {json_path}")

    data = json.loads(json_path.read_text(encoding="utf-8"))
    model = metamodel_from_dict(data, aabbs)
    logger.info("Loaded %d objects from %s", len(model.objects), json_path.name)
    return model
