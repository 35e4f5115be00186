"""Resolver engine: run the strategy cascade over a tariff grid.

Strategies are tried tier by tier across every sheet before the next,
less precise tier is consulted, so an exact match on the last sheet beats a
merge-reconstructed match on the first.  Outcomes, including misses, are
memoized per normalized code for the lifetime of the resolver; the source
schedule is static data and the cache is never invalidated.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from openpyxl.utils import get_column_letter

from htsresolver.cascade.base import MatchCandidate, MatchStrategy, SearchStrategy
from htsresolver.cascade.strategies import default_cascade
from htsresolver.codes import ClassificationCode, normalize
from htsresolver.config import ResolverSettings
from htsresolver.errors import SourceUnavailable
from htsresolver.grid.model import CellGrid
from htsresolver.grid.xlsx_loader import load_workbook_grid
from htsresolver.observability import bind_lookup_id, log_event, new_lookup_id, reset_lookup_id
from htsresolver.rates import RateAnnotation, parse_rate

logger = logging.getLogger(__name__)

GridLoader = Callable[[], CellGrid]


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ResolutionResult:
    """A resolved duty rate with the sheet/row/column that produced it."""

    code: ClassificationCode
    description: str
    general_rate: RateAnnotation
    special_rate: Optional[RateAnnotation]
    unit: Optional[str]
    chapter: int
    confidence: float
    sheet_name: str
    row: int  # zero-based grid row of the code cell
    column: int
    strategy_used: MatchStrategy
    rate_row: Optional[int] = None  # row the general rate was read from

    @property
    def found(self) -> bool:
        return True

    @property
    def cell_reference(self) -> str:
        """Provenance in A1 notation, e.g. ``"A12"``."""
        return f"{get_column_letter(self.column + 1)}{self.row + 1}"

    def to_dict(self) -> dict:
        return {
            "found": True,
            "code": self.code.dotted,
            "description": self.description,
            "general_rate": self.general_rate.to_dict(),
            "special_rate": self.special_rate.to_dict() if self.special_rate else None,
            "unit": self.unit,
            "chapter": self.chapter,
            "confidence": self.confidence,
            "sheet_name": self.sheet_name,
            "row": self.row,
            "column": self.column,
            "cell_reference": self.cell_reference,
            "rate_row": self.rate_row,
            "strategy_used": self.strategy_used.value,
        }


@dataclass(frozen=True)
class NotFound:
    """No strategy cleared the acceptance threshold on any sheet."""

    code: ClassificationCode
    reason: str = "no strategy matched"

    @property
    def found(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"found": False, "code": self.code.dotted, "reason": self.reason}


Resolution = Union[ResolutionResult, NotFound]


# ---------------------------------------------------------------------------
# Cache and stats
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ResolverStats:
    cache_hits: int = 0
    cache_misses: int = 0
    cascade_runs: int = 0


class ResolutionCache:
    """Thread-safe map from normalized digits to a memoized outcome."""

    def __init__(self) -> None:
        self._entries: Dict[str, Resolution] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Resolution]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, outcome: Resolution) -> None:
        # Racing lookups for one code compute the same value; last writer wins.
        with self._lock:
            self._entries[key] = outcome

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _validate_grid(grid: Optional[CellGrid]) -> CellGrid:
    if grid is None:
        raise SourceUnavailable("Tariff grid loader produced no grid")
    if len(grid) == 0:
        raise SourceUnavailable("Tariff grid has no sheets")
    logger.info("Tariff grid ready: %d sheets, %d cells", len(grid), grid.cell_count)
    return grid


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------
class Resolver:
    """Resolve classification codes to duty rates over one tariff grid.

    Pass a ready ``grid`` to build eagerly, or a ``loader`` callable to defer
    the build until the first lookup.  Either way the grid is built exactly
    once and shared read-only afterwards.
    """

    def __init__(
        self,
        grid: Optional[CellGrid] = None,
        *,
        loader: Optional[GridLoader] = None,
        settings: Optional[ResolverSettings] = None,
        strategies: Optional[Sequence[SearchStrategy]] = None,
    ) -> None:
        if grid is not None and loader is not None:
            raise ValueError("Pass either a grid or a loader, not both")
        if grid is None and loader is None:
            raise SourceUnavailable("No tariff grid or loader supplied")

        self.settings = settings or ResolverSettings.from_env()
        self._strategies: List[SearchStrategy] = (
            list(strategies) if strategies is not None else default_cascade(self.settings)
        )
        if not self._strategies:
            raise ValueError("At least one search strategy is required")

        self._cache = ResolutionCache()
        self._stats = ResolverStats()
        self._stats_lock = threading.Lock()
        self._grid_lock = threading.Lock()
        self._loader = loader
        self._load_error: Optional[SourceUnavailable] = None
        self._grid: Optional[CellGrid] = _validate_grid(grid) if grid is not None else None

    @classmethod
    def from_workbook(cls, path: Path | str, **kwargs) -> "Resolver":
        """Build a resolver over an ``.xlsx`` schedule, loading it eagerly."""
        return cls(load_workbook_grid(path), **kwargs)

    # -- grid ---------------------------------------------------------------

    @property
    def grid(self) -> CellGrid:
        return self._ensure_grid()

    def _ensure_grid(self) -> CellGrid:
        grid = self._grid
        if grid is not None:
            return grid
        with self._grid_lock:
            if self._grid is not None:
                return self._grid
            # A failed build is final; later lookups see the same error.
            if self._load_error is not None:
                raise self._load_error
            if self._loader is None:
                raise SourceUnavailable("No tariff grid or loader supplied")
            try:
                self._grid = _validate_grid(self._loader())
            except SourceUnavailable as exc:
                self._load_error = exc
                raise
            except Exception as exc:
                self._load_error = SourceUnavailable(f"Tariff grid loader failed: {exc}")
                raise self._load_error from exc
            return self._grid

    # -- introspection ------------------------------------------------------

    @property
    def strategies(self) -> List[SearchStrategy]:
        return list(self._strategies)

    @property
    def stats(self) -> ResolverStats:
        with self._stats_lock:
            return self._stats

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    def _bump(self, **deltas: int) -> None:
        with self._stats_lock:
            current = self._stats
            self._stats = replace(
                current,
                **{name: getattr(current, name) + delta for name, delta in deltas.items()},
            )

    # -- lookups ------------------------------------------------------------

    def resolve(self, raw_code: str) -> Resolution:
        """Resolve one code; returns :class:`NotFound` rather than raising."""
        original = "" if raw_code is None else str(raw_code)
        target = normalize(original)
        if self._load_error is not None:
            raise self._load_error

        cached = self._cache.get(target.digits)
        if cached is not None:
            self._bump(cache_hits=1)
            return cached
        self._bump(cache_misses=1)

        token = bind_lookup_id(new_lookup_id())
        try:
            if target.is_empty:
                outcome: Resolution = NotFound(code=target, reason="input contains no digits")
                log_event("hts_code_rejected", raw=original)
            else:
                outcome = self._run_cascade(target, original)
        finally:
            reset_lookup_id(token)

        self._cache.put(target.digits, outcome)
        return outcome

    def resolve_batch(self, codes: Iterable[str]) -> List[Resolution]:
        """Resolve several codes; output is positionally aligned with input."""
        return [self.resolve(code) for code in codes]

    def _run_cascade(self, target: ClassificationCode, original: str) -> Resolution:
        grid = self._ensure_grid()
        threshold = self.settings.acceptance_threshold
        self._bump(cascade_runs=1)

        for strategy in self._strategies:
            if strategy.confidence < threshold:
                logger.debug("Skipping %r below threshold %.2f", strategy, threshold)
                continue
            for sheet in grid:
                for candidate in strategy.search(sheet, target, original):
                    if candidate.confidence < threshold:
                        continue
                    result = self._assemble(candidate)
                    log_event(
                        "hts_code_resolved",
                        code=target.dotted,
                        strategy=candidate.strategy.value,
                        sheet=candidate.sheet_name,
                        row=candidate.row,
                        column=candidate.column,
                        confidence=candidate.confidence,
                    )
                    return result

        log_event("hts_code_not_found", code=target.dotted, sheets=len(grid))
        return NotFound(code=target)

    def _assemble(self, candidate: MatchCandidate) -> ResolutionResult:
        code = candidate.code
        special = parse_rate(candidate.raw_special_rate) if candidate.raw_special_rate else None
        return ResolutionResult(
            code=code,
            description=candidate.raw_description or f"Product under HS {code.dotted}",
            general_rate=parse_rate(candidate.raw_rate),
            special_rate=special,
            unit=candidate.raw_unit,
            chapter=code.chapter_number,
            confidence=candidate.confidence,
            sheet_name=candidate.sheet_name,
            row=candidate.row,
            column=candidate.column,
            strategy_used=candidate.strategy,
            rate_row=candidate.rate_row,
        )
