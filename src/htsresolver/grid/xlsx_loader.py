"""Load an ``.xlsx`` tariff schedule into a :class:`CellGrid` via openpyxl.

Only the worksheet cell values and merged ranges are read; formulas are
taken at their cached values (``data_only=True``).
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import List

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from htsresolver.errors import SourceUnavailable
from htsresolver.grid.model import CellGrid, MergeRegion, Sheet

logger = logging.getLogger(__name__)


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    # Numeric code cells come back as floats ("4302.0"); keep integral values clean.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _merge_regions(worksheet) -> List[MergeRegion]:
    regions: List[MergeRegion] = []
    for cell_range in worksheet.merged_cells.ranges:
        regions.append(
            MergeRegion(
                top=cell_range.min_row - 1,
                left=cell_range.min_col - 1,
                bottom=cell_range.max_row - 1,
                right=cell_range.max_col - 1,
            )
        )
    return regions


def load_workbook_grid(path: Path | str) -> CellGrid:
    """Read every worksheet of ``path`` into an immutable grid.

    Raises:
        SourceUnavailable: the file is missing or is not a readable workbook.
    """
    path = Path(path)
    try:
        workbook = openpyxl.load_workbook(path, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise SourceUnavailable(f"Cannot open tariff workbook {path}: {exc}") from exc

    try:
        sheets = []
        for worksheet in workbook.worksheets:
            rows = [
                [_cell_text(value) for value in row]
                for row in worksheet.iter_rows(values_only=True)
            ]
            sheets.append(Sheet(worksheet.title, rows, _merge_regions(worksheet)))
    finally:
        workbook.close()

    grid = CellGrid(sheets=tuple(sheets))
    logger.info("Loaded tariff workbook %s: %d sheets, %d cells", path.name, len(grid), grid.cell_count)
    return grid
