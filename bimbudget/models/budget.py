"""Budget tree — chapter / subchapter / sub-subchapter / item.

Also holds the user-curated configuration the tree is built from: the
hierarchy definitions and the item configurations with their preferred units
and optional manual measurement lines.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from pydantic import BaseModel, Field, model_validator

from bimbudget.quantities.units import round_quantity


class BudgetLevel(str, Enum):
    """Fixed depth of a node in the budget tree."""

    ROOT = "root"
    CHAPTER = "chapter"
    SUBCHAPTER = "subchapter"
    SUBSUBCHAPTER = "subsubchapter"
    ITEM = "item"


_CHILD_LEVEL = {
    BudgetLevel.ROOT: BudgetLevel.CHAPTER,
    BudgetLevel.CHAPTER: BudgetLevel.SUBCHAPTER,
    BudgetLevel.SUBCHAPTER: BudgetLevel.SUBSUBCHAPTER,
    BudgetLevel.SUBSUBCHAPTER: BudgetLevel.ITEM,
}


class MeasurementLine(BaseModel):
    """One elementary quantity contribution to an item."""

    comment: str = ""
    quantity: float = 0.0
    element_id: str | None = None


class BudgetNode(BaseModel):
    """A node of the four-level budget tree.

    Items carry measurement lines; every other level carries children.
    Sibling codes must be unique.  The full code of a node is the dotted
    concatenation of its ancestors' codes and is produced by
    :meth:`iter_with_codes`.
    """

    level: BudgetLevel
    code: str = ""
    name: str = ""
    children: list[BudgetNode] = Field(default_factory=list)
    hidden: bool = False

    # Item-only fields
    lines: list[MeasurementLine] = Field(default_factory=list)
    unit: str = "UT"
    description: str | None = None
    quantity: float | None = None
    """Declared total; informational, the exported total comes from lines."""

    price: float = 0.0
    category: str | None = None
    type_name: str | None = None
    is_manual: bool = False

    @model_validator(mode="after")
    def _check_structure(self) -> BudgetNode:
        if self.level is BudgetLevel.ITEM and self.children:
            raise ValueError(f"Item '{self.code}' cannot have children")
        if self.level is not BudgetLevel.ITEM and self.lines:
            raise ValueError(f"Only items carry measurement lines (node '{self.code}')")

        expected = _CHILD_LEVEL.get(self.level)
        seen: set[str] = set()
        for child in self.children:
            if child.level is not expected:
                raise ValueError(
                    f"Node '{self.code}' ({self.level.value}) cannot contain "
                    f"a {child.level.value}"
                )
            if child.code in seen:
                raise ValueError(f"Duplicate sibling code '{child.code}' under '{self.code}'")
            seen.add(child.code)
        return self

    @property
    def is_item(self) -> bool:
        return self.level is BudgetLevel.ITEM

    def total_quantity(self) -> float:
        """Item: rounded sum of its lines.  Other levels: sum of children."""
        if self.is_item:
            return round_quantity(sum(line.quantity for line in self.lines), self.unit)
        return sum(child.total_quantity() for child in self.children)

    def iter_items(self) -> Iterator[BudgetNode]:
        """Yield every item below (or at) this node, depth first."""
        if self.is_item:
            yield self
            return
        for child in self.children:
            yield from child.iter_items()

    def has_items(self) -> bool:
        return next(self.iter_items(), None) is not None

    def iter_with_codes(self, prefix: str = "") -> Iterator[tuple[str, BudgetNode]]:
        """Yield ``(full_code, node)`` pairs in pre-order."""
        full = ".".join(part for part in (prefix, self.code) if part)
        yield full, self
        for child in self.children:
            yield from child.iter_with_codes(full)


# ---------------------------------------------------------------------------
# User-curated configuration
# ---------------------------------------------------------------------------


class SubsubchapterDef(BaseModel):
    code: str
    name: str = ""
    hidden: bool = False


class SubchapterDef(BaseModel):
    code: str
    name: str = ""
    hidden: bool = False
    subsubchapters: list[SubsubchapterDef] = Field(default_factory=list)


class ChapterDef(BaseModel):
    code: str
    name: str = ""
    hidden: bool = False
    subchapters: list[SubchapterDef] = Field(default_factory=list)


class BudgetStructure(BaseModel):
    """Hierarchy definitions supplied by the surrounding application."""

    name: str = ""
    chapters: list[ChapterDef] = Field(default_factory=list)


class ManualLine(BaseModel):
    comment: str | None = None
    quantity: float = 0.0
    display_order: int = 0


class ItemConfig(BaseModel):
    """One budget line as configured by the user."""

    id: str = ""
    chapter_id: str
    subchapter_id: str
    subsubchapter_id: str
    ifc_category: str = ""
    type_name: str = ""
    custom_name: str | None = None
    preferred_unit: str = "UT"
    description: str | None = None
    measured_value: float | None = None
    price: float = 0.0
    display_order: int = 0
    is_manual: bool = False
    manual_lines: list[ManualLine] = Field(default_factory=list)
