"""Ordered matching strategies used by the resolver engine."""

from htsresolver.cascade.base import MatchCandidate, MatchStrategy, SearchStrategy
from htsresolver.cascade.extraction import RowExtraction, extract_row
from htsresolver.cascade.strategies import (
    EmbeddedMultilineStrategy,
    ExactStrategy,
    HierarchicalParentStrategy,
    MergedCellReconstructionStrategy,
    NormalizedStrategy,
    default_cascade,
)

__all__ = [
    "EmbeddedMultilineStrategy",
    "ExactStrategy",
    "HierarchicalParentStrategy",
    "MatchCandidate",
    "MatchStrategy",
    "MergedCellReconstructionStrategy",
    "NormalizedStrategy",
    "RowExtraction",
    "SearchStrategy",
    "default_cascade",
    "extract_row",
]
