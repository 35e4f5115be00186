"""Lookup-scoped observability helpers for the HTS resolver."""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

logger = logging.getLogger(__name__)

_lookup_id_ctx: ContextVar[Optional[str]] = ContextVar("lookup_id", default=None)


def new_lookup_id() -> str:
    """Generate a new lookup identifier for correlating logs."""

    return uuid.uuid4().hex[:12]


def bind_lookup_id(value: Optional[str]) -> ContextVar.Token | None:
    """Bind a lookup_id for the current context and return the reset token."""

    if value is None:
        return None
    return _lookup_id_ctx.set(value)


def reset_lookup_id(token: Optional[ContextVar.Token]) -> None:
    """Reset the lookup_id context using the provided token."""

    if token is None:
        return
    _lookup_id_ctx.reset(token)


def current_lookup_id() -> Optional[str]:
    """Return the active lookup_id if set."""

    return _lookup_id_ctx.get()


def log_event(message: str, **extra: object) -> None:
    """Log an event with the active lookup_id automatically attached."""

    payload = {"lookup_id": current_lookup_id(), **extra}
    logger.info(message, extra={"payload": payload})
