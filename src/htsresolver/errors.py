"""Exceptions raised by the tariff classification resolver."""

from __future__ import annotations


class SourceUnavailable(RuntimeError):
    """The tariff schedule grid could not be built or loaded.

    This is a construction-time failure: a resolver is never usable without a
    grid, so callers see it when building (or first using a lazily built)
    :class:`~htsresolver.engine.Resolver`, never as a per-code lookup result.
    """
