"""FIEBDC-3/2020 (BC3) export."""

from bimbudget.bc3.codes import Bc3StructureError
from bimbudget.bc3.escape import bc3_escape, bc3_filename, encode_bc3
from bimbudget.bc3.exporter import export_bc3, write_bc3

__all__ = [
    "Bc3StructureError",
    "bc3_escape",
    "bc3_filename",
    "encode_bc3",
    "export_bc3",
    "write_bc3",
]
