"""htsresolver - tariff classification resolver for messy HTS schedules."""

from htsresolver.cascade import MatchCandidate, MatchStrategy, SearchStrategy, default_cascade
from htsresolver.codes import ClassificationCode, format_code, is_hierarchical_parent_of, normalize
from htsresolver.config import ResolverSettings
from htsresolver.engine import NotFound, Resolution, ResolutionResult, Resolver, ResolverStats
from htsresolver.errors import SourceUnavailable
from htsresolver.grid import CellGrid, MergeRegion, Sheet, load_workbook_grid
from htsresolver.rates import RateAnnotation, SpecificDuty, parse_rate
from htsresolver.version import __version__

__all__ = [
    "CellGrid",
    "ClassificationCode",
    "MatchCandidate",
    "MatchStrategy",
    "MergeRegion",
    "NotFound",
    "RateAnnotation",
    "Resolution",
    "ResolutionResult",
    "Resolver",
    "ResolverSettings",
    "ResolverStats",
    "SearchStrategy",
    "Sheet",
    "SourceUnavailable",
    "SpecificDuty",
    "default_cascade",
    "format_code",
    "is_hierarchical_parent_of",
    "load_workbook_grid",
    "normalize",
    "parse_rate",
    "__version__",
]
