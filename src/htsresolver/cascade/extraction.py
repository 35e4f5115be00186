"""Row extraction shared by every strategy once a code's row is located.

Schedules print the code, description and unit on one row but frequently
push the rate columns onto a continuation row just below, so the rate scan
walks the matched row and then up to ``lookahead`` following rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from htsresolver.codes import is_code_cell
from htsresolver.rates import looks_like_rate, looks_like_unit


@dataclass(frozen=True)
class RowExtraction:
    rate: str
    rate_row: int
    description: str
    unit: Optional[str] = None
    special_rate: Optional[str] = None


def _clean(value: str) -> str:
    return " ".join(value.split())


def find_rate_in_row(cells: Sequence[str]) -> Optional[Tuple[int, str]]:
    """Leftmost rate-looking cell as ``(column, text)``."""
    for column, value in enumerate(cells):
        if looks_like_rate(value):
            return column, _clean(value)
    return None


def find_special_rate(cells: Sequence[str], general_column: int) -> Optional[str]:
    """The Special column sits immediately right of the General rate."""
    column = general_column + 1
    if column < len(cells) and looks_like_rate(cells[column]):
        return _clean(cells[column])
    return None


def find_description(cells: Sequence[str], code_text: str) -> str:
    """Longest cell that is neither a rate, a unit nor the code itself."""
    code_stripped = code_text.strip()
    best = ""
    for value in cells:
        stripped = value.strip()
        if not stripped or stripped == code_stripped:
            continue
        if looks_like_rate(stripped) or looks_like_unit(stripped) or is_code_cell(stripped):
            continue
        if len(stripped) > len(best):
            best = stripped
    return best


def find_unit(cells: Sequence[str]) -> Optional[str]:
    for value in cells:
        if looks_like_unit(value):
            return value.strip()
    return None


def starts_new_entry(cells: Sequence[str], code_text: str, code_columns: int = 3) -> bool:
    """True when a row carries a code of its own rather than continuing ``code_text``."""
    own = code_text.strip()
    for value in cells[:code_columns]:
        stripped = value.strip()
        if stripped and stripped != own and is_code_cell(stripped):
            return True
    return False


def extract_row(
    rows: Sequence[Sequence[str]],
    row: int,
    code_text: str,
    lookahead: int = 3,
    code_columns: int = 3,
) -> Optional[RowExtraction]:
    """Extract rate, description and unit for the code found at ``row``.

    Continuation rows end at the next row that prints its own code.  Returns
    None when neither the row nor its continuation rows carry a rate.
    """
    matched = rows[row]
    rate_row = None
    rate_hit = None
    for offset in range(0, lookahead + 1):
        index = row + offset
        if index >= len(rows):
            break
        if offset and starts_new_entry(rows[index], code_text, code_columns):
            break
        rate_hit = find_rate_in_row(rows[index])
        if rate_hit is not None:
            rate_row = index
            break
    if rate_hit is None or rate_row is None:
        return None

    rate_column, rate_text = rate_hit
    rate_cells = rows[rate_row]
    unit = find_unit(matched)
    if unit is None and rate_row != row:
        unit = find_unit(rate_cells)

    return RowExtraction(
        rate=rate_text,
        rate_row=rate_row,
        description=_clean(find_description(matched, code_text)),
        unit=unit,
        special_rate=find_special_rate(rate_cells, rate_column),
    )
