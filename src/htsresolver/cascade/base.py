"""Shared types for the strategy cascade."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from htsresolver.cascade.extraction import RowExtraction, extract_row
from htsresolver.codes import MIN_PARENT_DIGITS, ClassificationCode, digits_of, is_multiline
from htsresolver.config import ResolverSettings
from htsresolver.grid.model import Sheet


class MatchStrategy(str, Enum):
    """Matching rules in precision-descending order."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    HIERARCHICAL_PARENT = "hierarchical_parent"
    EMBEDDED_MULTILINE = "embedded_multiline"
    MERGED_CELL_RECONSTRUCTION = "merged_cell_reconstruction"

    @property
    def confidence(self) -> float:
        return _CONFIDENCE[self]


_CONFIDENCE = {
    MatchStrategy.EXACT: 1.00,
    MatchStrategy.NORMALIZED: 0.95,
    MatchStrategy.HIERARCHICAL_PARENT: 0.90,
    MatchStrategy.EMBEDDED_MULTILINE: 0.90,
    MatchStrategy.MERGED_CELL_RECONSTRUCTION: 0.80,
}

# Below this many digits a normalized comparison collides with chapter and
# heading numbers printed all over the schedule.
MIN_NORMALIZED_DIGITS = 8


@dataclass(frozen=True)
class MatchCandidate:
    """A located code plus the raw row text a strategy extracted for it."""

    code: ClassificationCode
    sheet_name: str
    row: int
    column: int
    strategy: MatchStrategy
    confidence: float
    raw_description: str
    raw_rate: str
    raw_unit: Optional[str] = None
    raw_special_rate: Optional[str] = None
    rate_row: Optional[int] = None


class SearchStrategy:
    """One matching rule, searchable against a single sheet.

    Subclasses set :attr:`kind` and implement :meth:`search`; the confidence
    is fixed by the kind, never computed per match.
    """

    kind: MatchStrategy

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        self.settings = settings or ResolverSettings()

    @property
    def confidence(self) -> float:
        return self.kind.confidence

    def search(
        self,
        sheet: Sheet,
        target: ClassificationCode,
        original_text: str,
    ) -> List[MatchCandidate]:
        raise NotImplementedError

    # -- helpers shared by the concrete strategies --------------------------

    def _matches_literal(self, text: str, target: ClassificationCode, original_text: str) -> bool:
        # Shorter inputs would collide with stat suffixes and footnote numbers.
        if len(target.digits) < MIN_PARENT_DIGITS:
            return False
        stripped = text.strip()
        if not stripped:
            return False
        return stripped == original_text.strip() or stripped == target.dotted

    def _matches_normalized(self, text: str, target: ClassificationCode) -> bool:
        if len(target.digits) < MIN_NORMALIZED_DIGITS or is_multiline(text):
            return False
        return digits_of(text) == target.digits

    def _candidate(
        self,
        rows: Sequence[Sequence[str]],
        sheet: Sheet,
        target: ClassificationCode,
        row: int,
        column: int,
    ) -> Optional[MatchCandidate]:
        """Extract the row's rate text; no rate means no candidate."""
        extracted: Optional[RowExtraction] = extract_row(
            rows,
            row,
            code_text=rows[row][column],
            lookahead=self.settings.rate_lookahead_rows,
            code_columns=self.settings.code_columns,
        )
        if extracted is None:
            return None
        return MatchCandidate(
            code=target,
            sheet_name=sheet.name,
            row=row,
            column=column,
            strategy=self.kind,
            confidence=self.confidence,
            raw_description=extracted.description,
            raw_rate=extracted.rate,
            raw_unit=extracted.unit,
            raw_special_rate=extracted.special_rate,
            rate_row=extracted.rate_row,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(confidence={self.confidence:.2f})"
