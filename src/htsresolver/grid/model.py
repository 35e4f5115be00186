"""Read-only grid abstraction over a tariff schedule workbook.

A :class:`CellGrid` is a list of named :class:`Sheet` objects, each a ragged
2-D array of string cells plus the merge regions the source document
declared.  Sheets are built once and never mutated, so they are shared
freely across threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from htsresolver.codes import MIN_PARENT_DIGITS, digits_of, is_multiline

Position = Tuple[int, int]


@dataclass(frozen=True)
class MergeRegion:
    """A rectangle of physical cells holding one logical value.

    Coordinates are zero-based and inclusive; the value lives in the
    top-left (anchor) cell and the remaining cells read as blank.
    """

    top: int
    left: int
    bottom: int
    right: int

    @property
    def anchor(self) -> Position:
        return self.top, self.left

    def contains(self, row: int, column: int) -> bool:
        return self.top <= row <= self.bottom and self.left <= column <= self.right


class Sheet:
    """One named sheet: rows of string cells plus merge metadata."""

    def __init__(
        self,
        name: str,
        rows: Iterable[Sequence[object]],
        merges: Iterable[MergeRegion] = (),
    ) -> None:
        self.name = name
        self._rows: Tuple[Tuple[str, ...], ...] = tuple(
            tuple("" if value is None else str(value) for value in row) for row in rows
        )
        self._merges: Tuple[MergeRegion, ...] = tuple(merges)
        self._merge_anchors: Dict[Position, Position] = {
            (row, column): region.anchor
            for region in self._merges
            for row in range(region.top, region.bottom + 1)
            for column in range(region.left, region.right + 1)
            if (row, column) != region.anchor
        }
        self._digit_index = self._build_digit_index()

    def _build_digit_index(self) -> Dict[str, List[Position]]:
        index: Dict[str, List[Position]] = {}
        for row_idx, row in enumerate(self._rows):
            for col_idx, value in enumerate(row):
                if not value.strip() or is_multiline(value):
                    continue
                digits = digits_of(value)
                if len(digits) >= MIN_PARENT_DIGITS:
                    index.setdefault(digits, []).append((row_idx, col_idx))
        return index

    @property
    def rows(self) -> Tuple[Tuple[str, ...], ...]:
        return self._rows

    @property
    def merges(self) -> Tuple[MergeRegion, ...]:
        return self._merges

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def cell_count(self) -> int:
        return sum(len(row) for row in self._rows)

    def row(self, index: int) -> Tuple[str, ...]:
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return ()

    def cell(self, row: int, column: int) -> str:
        values = self.row(row)
        if 0 <= column < len(values):
            return values[column]
        return ""

    def iter_code_cells(self, code_columns: int) -> Iterator[Tuple[int, int, str]]:
        """Yield ``(row, column, text)`` for non-blank cells in the code columns."""
        for row_idx, row in enumerate(self._rows):
            for col_idx, value in enumerate(row[:code_columns]):
                if value.strip():
                    yield row_idx, col_idx, value

    def locate_digits(self, digits: str) -> List[Position]:
        """Positions of single-line cells whose digits equal ``digits``."""
        return list(self._digit_index.get(digits, ()))

    def merge_anchor(self, row: int, column: int) -> Optional[Position]:
        """Anchor of the declared merge region covering a non-anchor cell."""
        return self._merge_anchors.get((row, column))

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r}, rows={self.row_count})"


@dataclass(frozen=True)
class CellGrid:
    """Ordered collection of sheets loaded from one tariff schedule."""

    sheets: Tuple[Sheet, ...]

    @classmethod
    def from_rows(cls, sheets: Dict[str, Sequence[Sequence[object]]]) -> "CellGrid":
        """Build a grid from ``{sheet_name: rows}`` without merge metadata."""
        return cls(sheets=tuple(Sheet(name, rows) for name, rows in sheets.items()))

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    @property
    def cell_count(self) -> int:
        return sum(sheet.cell_count for sheet in self.sheets)

    def __len__(self) -> int:
        return len(self.sheets)

    def __iter__(self) -> Iterator[Sheet]:
        return iter(self.sheets)
