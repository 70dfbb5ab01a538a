"""Global configuration: constants shared by takeoff, aggregation and export."""

from pathlib import Path

# Default output directory for generated reports and BC3 files
DEFAULT_OUTPUT_DIR = Path("output")

# IFC classes treated as building elements when reading an IFC file.
# Using the base class captures all subtypes (IfcWall, IfcDoor, IfcSlab, etc.)
ELEMENT_BASE_CLASS = "IfcBuildingElement"

# Spatial-structure categories that are never measured
SPATIAL_CATEGORIES = frozenset({
    "ifcproject",
    "ifcsite",
    "ifcbuilding",
    "ifcbuildingstorey",
})

# Known bad default written by one exporter for area properties
REJECTED_QUANTITY = 28.571428571428573
REJECTED_QUANTITY_TOLERANCE = 1e-4

# Chapter used for elements that could not be classified or quantified
UNRESOLVED_CHAPTER = "—"

# Type name used when an element carries no category at all
UNKNOWN_TYPE_NAME = "Unknown"

# FIEBDC-3 limits and conventions
BC3_MAX_CODE_LENGTH = 20
BC3_ROOT_CODE = "PRES##"
BC3_FORMAT_VERSION = "FIEBDC-3/2020"
BC3_CHARSET = "ANSI"
BC3_MAX_FILENAME_STEM = 28

# Zero-padded widths of the index minted at each budget level
CHAPTER_CODE_WIDTH = 2
SUBCHAPTER_CODE_WIDTH = 2
SUBSUBCHAPTER_CODE_WIDTH = 2
ITEM_CODE_WIDTH = 3

# Decimal places used when rounding measured quantities for export
QUANTITY_DECIMALS = 3
CSV_MEASURE_DECIMALS = 4
