"""The five matching strategies, in precision-descending cascade order.

Each strategy scans one sheet and returns every candidate it can back with
a rate; the engine decides which candidate wins.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Set, Tuple

from htsresolver.cascade.base import (
    MIN_NORMALIZED_DIGITS,
    MatchCandidate,
    MatchStrategy,
    SearchStrategy,
)
from htsresolver.codes import (
    ClassificationCode,
    extract_code_tokens,
    is_code_cell,
    is_hierarchical_parent_of,
    is_multiline,
    normalize,
)
from htsresolver.config import ResolverSettings
from htsresolver.grid.model import Sheet

logger = logging.getLogger(__name__)

LogicalRows = Tuple[Tuple[str, ...], ...]


class ExactStrategy(SearchStrategy):
    """Cell text equals the caller's input or its canonical dotted form."""

    kind = MatchStrategy.EXACT

    def search(self, sheet: Sheet, target: ClassificationCode, original_text: str) -> List[MatchCandidate]:
        candidates: List[MatchCandidate] = []
        for row, column, text in sheet.iter_code_cells(self.settings.code_columns):
            if not self._matches_literal(text, target, original_text):
                continue
            candidate = self._candidate(sheet.rows, sheet, target, row, column)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


class NormalizedStrategy(SearchStrategy):
    """Digit-for-digit equality on codes of at least eight digits."""

    kind = MatchStrategy.NORMALIZED

    def search(self, sheet: Sheet, target: ClassificationCode, original_text: str) -> List[MatchCandidate]:
        if len(target.digits) < MIN_NORMALIZED_DIGITS:
            return []
        candidates: List[MatchCandidate] = []
        for row, column in sheet.locate_digits(target.digits):
            if column >= self.settings.code_columns:
                continue
            candidate = self._candidate(sheet.rows, sheet, target, row, column)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


class HierarchicalParentStrategy(SearchStrategy):
    """Find a parent heading, then look for the full code in the rows below it."""

    kind = MatchStrategy.HIERARCHICAL_PARENT

    def _is_child_cell(self, text: str, target: ClassificationCode, original_text: str) -> bool:
        if self._matches_literal(text, target, original_text):
            return True
        if not is_multiline(text) and normalize(text) == target:
            return True
        return any(token == target for token in extract_code_tokens(text))

    def _left_parent_block(self, text: str, parent: ClassificationCode) -> bool:
        if not is_code_cell(text):
            return False
        return not normalize(text).digits.startswith(parent.digits[:4])

    def search(self, sheet: Sheet, target: ClassificationCode, original_text: str) -> List[MatchCandidate]:
        code_columns = self.settings.code_columns
        rows = sheet.rows
        seen: Set[Tuple[int, int]] = set()
        candidates: List[MatchCandidate] = []

        for row, column, text in sheet.iter_code_cells(code_columns):
            if is_multiline(text) or not is_hierarchical_parent_of(normalize(text), target):
                continue
            parent = normalize(text)
            stop = min(row + 1 + self.settings.parent_scan_rows, len(rows))
            child = self._scan_children(rows, row + 1, stop, parent, target, original_text)
            if child is None or child in seen:
                continue
            seen.add(child)
            logger.debug("Parent %s at %s row %d leads to %s", parent.dotted, sheet.name, row, child)
            candidate = self._candidate(rows, sheet, target, *child)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _scan_children(
        self,
        rows: Sequence[Sequence[str]],
        start: int,
        stop: int,
        parent: ClassificationCode,
        target: ClassificationCode,
        original_text: str,
    ) -> Optional[Tuple[int, int]]:
        for row in range(start, stop):
            cells = rows[row][: self.settings.code_columns]
            for column, text in enumerate(cells):
                if not text.strip():
                    continue
                if self._is_child_cell(text, target, original_text):
                    return row, column
                if column == 0 and self._left_parent_block(text, parent):
                    return None
        return None


class EmbeddedMultilineStrategy(SearchStrategy):
    """Match one code token inside a multi-line cell such as ``"4302\\n4302.11.00"``."""

    kind = MatchStrategy.EMBEDDED_MULTILINE

    def search(self, sheet: Sheet, target: ClassificationCode, original_text: str) -> List[MatchCandidate]:
        if len(target.digits) < 4:
            return []
        candidates: List[MatchCandidate] = []
        for row, column, text in sheet.iter_code_cells(self.settings.code_columns):
            if not is_multiline(text):
                continue
            if not any(token == target for token in extract_code_tokens(text)):
                continue
            candidate = self._candidate(sheet.rows, sheet, target, row, column)
            if candidate is not None:
                candidates.append(candidate)
        return candidates


class MergedCellReconstructionStrategy(SearchStrategy):
    """Re-run exact/normalized matching on rows with merged blanks filled in.

    A blank cell takes the anchor value of a declared merge region covering
    it; failing that, the nearest non-blank value up to
    ``merge_lookback_rows`` rows above in the same column.
    """

    kind = MatchStrategy.MERGED_CELL_RECONSTRUCTION

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        super().__init__(settings)
        self._logical: Dict[Sheet, LogicalRows] = {}
        self._lock = threading.Lock()

    def logical_rows(self, sheet: Sheet) -> LogicalRows:
        with self._lock:
            cached = self._logical.get(sheet)
        if cached is not None:
            return cached
        rebuilt = self._reconstruct(sheet)
        with self._lock:
            self._logical[sheet] = rebuilt
        return rebuilt

    def _fill_value(self, sheet: Sheet, row: int, column: int) -> str:
        anchor = sheet.merge_anchor(row, column)
        if anchor is not None:
            value = sheet.cell(*anchor)
            if value.strip():
                return value
        for offset in range(1, self.settings.merge_lookback_rows + 1):
            if row - offset < 0:
                break
            value = sheet.cell(row - offset, column)
            if value.strip():
                return value
        return ""

    def _reconstruct(self, sheet: Sheet) -> LogicalRows:
        lookback = self.settings.merge_lookback_rows
        rows = sheet.rows
        logical = []
        for row_idx, row in enumerate(rows):
            window = rows[max(0, row_idx - lookback): row_idx + 1]
            width = max(len(r) for r in window)
            cells = []
            for column in range(width):
                value = row[column] if column < len(row) else ""
                if not value.strip():
                    value = self._fill_value(sheet, row_idx, column)
                cells.append(value)
            logical.append(tuple(cells))
        return tuple(logical)

    def search(self, sheet: Sheet, target: ClassificationCode, original_text: str) -> List[MatchCandidate]:
        logical = self.logical_rows(sheet)
        candidates: List[MatchCandidate] = []
        for row, cells in enumerate(logical):
            for column, text in enumerate(cells[: self.settings.code_columns]):
                if not (
                    self._matches_literal(text, target, original_text)
                    or self._matches_normalized(text, target)
                ):
                    continue
                candidate = self._candidate(logical, sheet, target, row, column)
                if candidate is not None:
                    candidates.append(candidate)
        return candidates


def default_cascade(settings: ResolverSettings | None = None) -> List[SearchStrategy]:
    """The standard strategy order, most precise first."""
    return [
        ExactStrategy(settings),
        NormalizedStrategy(settings),
        HierarchicalParentStrategy(settings),
        EmbeddedMultilineStrategy(settings),
        MergedCellReconstructionStrategy(settings),
    ]
