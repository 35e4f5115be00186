"""Grid abstraction consumed by the resolver and its xlsx adapter."""

from htsresolver.grid.model import CellGrid, MergeRegion, Sheet
from htsresolver.grid.xlsx_loader import load_workbook_grid

__all__ = ["CellGrid", "MergeRegion", "Sheet", "load_workbook_grid"]
