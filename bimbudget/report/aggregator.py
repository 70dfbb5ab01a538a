"""Aggregator — group measured elements into a chapter/subchapter report.

Every input element lands in exactly one row.  Elements that cannot be
classified or measured are logged and filed under the unresolved chapter
with magnitude 0 instead of being dropped.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping

from bimbudget.config import UNKNOWN_TYPE_NAME, UNRESOLVED_CHAPTER
from bimbudget.extraction.geometry import GeometryLookup
from bimbudget.extraction.properties import fold_diacritics
from bimbudget.models.element import MetaModel, MetaObject, PropertySet
from bimbudget.quantities.lines import element_line
from bimbudget.quantities.units import Unit
from bimbudget.report.cache import MeasurementCache
from bimbudget.report.tree import ChapterGroup, MeasurementRow, ReportTree, SubchapterGroup

logger = logging.getLogger(__name__)

PreferredUnitFn = Callable[[MetaObject], Unit | str | None]
ObjectLookup = Callable[[str], MetaObject | None]

# chapter -> subchapter -> (type name, unit) -> row
_Groups = dict[str, dict[str, dict[tuple[str, str], MeasurementRow]]]


def _sort_key(text: str) -> tuple[str, str]:
    """Case-insensitive, accent-insensitive order; raw text breaks ties."""
    return fold_diacritics(text).casefold(), text


def aggregate(
    elements: Iterable[MetaObject],
    preferred_unit_fn: PreferredUnitFn | None = None,
    *,
    geometry_lookup: GeometryLookup | None = None,
    property_sets: Mapping[str, PropertySet] | None = None,
    object_lookup: ObjectLookup | None = None,
    cache: MeasurementCache | None = None,
) -> ReportTree:
    """Classify, measure and group *elements* into a :class:`ReportTree`.

    Parameters
    ----------
    elements:
        Elements to aggregate.  Consumed once, in order.
    preferred_unit_fn:
        Optional callable returning the unit to measure an element in.
    geometry_lookup:
        Bounding box per element id, for the area fallback.
    property_sets:
        The host model's shared property-set table.
    object_lookup:
        Object by id; used to label measurement lines with their storey.
    cache:
        Per-run cache.  When given, it is filled with the classification and
        quantity of every element seen in this run.  Line groups are left to
        the measurement source, which measures each element in the item's
        unit rather than in the element's own.

    Returns
    -------
    ReportTree
        Chapters and subchapters sorted; rows in first-seen order.
    """
    if cache is None:
        cache = MeasurementCache()

    groups: _Groups = {}
    processed = 0
    failed = 0

    for element in elements:
        processed += 1
        try:
            classification = cache.classification(element, property_sets)
            preferred = preferred_unit_fn(element) if preferred_unit_fn is not None else None
            resolved = cache.quantity(element, preferred, geometry_lookup, property_sets)
            line = element_line(element, resolved.magnitude, property_sets, object_lookup)
        except Exception:
            failed += 1
            logger.warning(
                "Could not measure element %s; filing it under '%s'",
                getattr(element, "id", "?"),
                UNRESOLVED_CHAPTER,
                exc_info=True,
            )
            chapter = subchapter = UNRESOLVED_CHAPTER
            type_name = getattr(element, "category", "") or UNKNOWN_TYPE_NAME
            unit = Unit.COUNT.value
            magnitude = 0.0
            approximated = False
            line = None
        else:
            chapter = classification.chapter or UNRESOLVED_CHAPTER
            subchapter = classification.subchapter or UNRESOLVED_CHAPTER
            type_name = classification.type_name or UNKNOWN_TYPE_NAME
            unit = resolved.unit.value
            magnitude = resolved.magnitude
            approximated = not resolved.authoritative

        rows = groups.setdefault(chapter, {}).setdefault(subchapter, {})
        row = rows.get((type_name, unit))
        if row is None:
            row = rows[(type_name, unit)] = MeasurementRow(type_name=type_name, unit=unit)
        row.total_magnitude += magnitude
        row.element_count += 1
        if approximated:
            row.approximated_count += 1
        if line is not None:
            row.lines.append(line)

    report = _build_tree(groups)
    logger.info(
        "Aggregated %d elements into %d chapters (%d unresolved)",
        processed,
        len(report.chapters),
        failed,
    )
    return report


def _build_tree(groups: _Groups) -> ReportTree:
    report = ReportTree()
    for chapter_code in sorted(groups, key=_sort_key):
        chapter = ChapterGroup(chapter=chapter_code)
        subgroups = groups[chapter_code]
        for subchapter_code in sorted(subgroups, key=_sort_key):
            group = SubchapterGroup(
                subchapter=subchapter_code,
                rows=list(subgroups[subchapter_code].values()),
            )
            group.total_magnitude = sum(row.total_magnitude for row in group.rows)
            group.element_count = sum(row.element_count for row in group.rows)
            chapter.subgroups.append(group)

        chapter.total_magnitude = sum(g.total_magnitude for g in chapter.subgroups)
        chapter.element_count = sum(g.element_count for g in chapter.subgroups)
        report.chapters.append(chapter)

    report.total_magnitude = sum(c.total_magnitude for c in report.chapters)
    report.element_count = sum(c.element_count for c in report.chapters)
    return report


def aggregate_model(
    model: MetaModel,
    preferred_unit_fn: PreferredUnitFn | None = None,
    *,
    cache: MeasurementCache | None = None,
) -> ReportTree:
    """Aggregate every building element of *model*, wiring its lookup tables."""
    return aggregate(
        model.building_elements(),
        preferred_unit_fn,
        geometry_lookup=model.geometry_lookup,
        property_sets=model.property_sets,
        object_lookup=model.get,
        cache=cache,
    )
