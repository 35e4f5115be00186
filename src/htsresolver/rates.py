"""Parse free-text duty rates into structured form.

Handles the formats printed in the HTS schedule columns:
  - "Free"
  - "5.3%"
  - "37.2¢/kg"
  - "$1.35/doz"
  - "37.2¢/kg + 8.5%"  (compound: specific + ad valorem)

Anything else is kept verbatim in ``raw_text`` with every structured field
left empty.  That is a valid result ("rate present but not machine
actionable"), never an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

# ---------------------------------------------------------------------------
# Token classes
# ---------------------------------------------------------------------------
_NUMBER = r"(\d+(?:\.\d+)?)"
_UNIT = r"(?:\s*/\s*([A-Za-z][A-Za-z.²]*))?"

_FREE_RE = re.compile(r"\bfree\b", re.IGNORECASE)
_PERCENT_RE = re.compile(_NUMBER + r"\s*%")
_CENTS_RE = re.compile(_NUMBER + r"\s*¢" + _UNIT)
_DOLLAR_PREFIX_RE = re.compile(r"\$\s*" + _NUMBER + _UNIT)
_DOLLAR_SUFFIX_RE = re.compile(_NUMBER + r"\s*\$" + _UNIT)

# Rate cells are short and open with a number or a currency sign; descriptions
# that merely mention "50%" are longer prose.  "Free" counts only on its own or
# followed by a program list, never as the first word of "Free-range ...".
_RATE_MARKER_RE = re.compile(r"[%¢$]")
_RATE_OPENING_RE = re.compile(r"^[$\d]")
_FREE_CELL_RE = re.compile(r"^free(?:\s*\([^)]*\))?$", re.IGNORECASE)
MAX_RATE_TEXT = 100

UNIT_VOCABULARY = ("kg", "doz", "No.", "prs", "liters", "m²", "tons", "units", "each")
_UNIT_TOKENS = {unit.lower().rstrip(".") for unit in UNIT_VOCABULARY}
_UNIT_SPLIT_RE = re.compile(r"[\s,;/]+")
MAX_UNIT_TEXT = 30


@dataclass(frozen=True)
class SpecificDuty:
    """A per-unit duty such as 37.2¢/kg."""

    amount_per_unit: Decimal
    unit: Optional[str] = None
    currency: str = "¢"  # "¢" or "$"

    @property
    def amount_in_dollars(self) -> Decimal:
        if self.currency == "¢":
            return self.amount_per_unit / 100
        return self.amount_per_unit


@dataclass(frozen=True)
class RateAnnotation:
    """Structured duty rate; ``raw_text`` is always retained for audit."""

    raw_text: str
    is_free: bool = False
    ad_valorem_fraction: Optional[Decimal] = None  # 0.053 for "5.3%"
    specific_duty: Optional[SpecificDuty] = None

    @property
    def is_compound(self) -> bool:
        return self.ad_valorem_fraction is not None and self.specific_duty is not None

    @property
    def is_interpretable(self) -> bool:
        return self.is_free or self.ad_valorem_fraction is not None or self.specific_duty is not None

    def to_dict(self) -> dict:
        specific = None
        if self.specific_duty is not None:
            specific = {
                "amount_per_unit": str(self.specific_duty.amount_per_unit),
                "unit": self.specific_duty.unit,
                "currency": self.specific_duty.currency,
            }
        return {
            "raw_text": self.raw_text,
            "is_free": self.is_free,
            "ad_valorem_fraction": (
                str(self.ad_valorem_fraction) if self.ad_valorem_fraction is not None else None
            ),
            "specific_duty": specific,
        }


def _decimal(text: str) -> Optional[Decimal]:
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def _specific_duty(cleaned: str) -> Optional[SpecificDuty]:
    for pattern, currency in (
        (_CENTS_RE, "¢"),
        (_DOLLAR_PREFIX_RE, "$"),
        (_DOLLAR_SUFFIX_RE, "$"),
    ):
        match = pattern.search(cleaned)
        if not match:
            continue
        amount = _decimal(match.group(1))
        if amount is None:
            continue
        return SpecificDuty(amount_per_unit=amount, unit=match.group(2), currency=currency)
    return None


def parse_rate(text: str) -> RateAnnotation:
    """Parse a duty-rate string into a :class:`RateAnnotation`."""
    raw = text if text is not None else ""
    cleaned = " ".join(raw.split())
    if not cleaned:
        return RateAnnotation(raw_text=raw)

    is_free = bool(_FREE_RE.search(cleaned))

    ad_valorem = None
    pct_match = _PERCENT_RE.search(cleaned)
    if pct_match:
        pct = _decimal(pct_match.group(1))
        if pct is not None:
            ad_valorem = pct / 100

    return RateAnnotation(
        raw_text=raw,
        is_free=is_free,
        ad_valorem_fraction=ad_valorem,
        specific_duty=_specific_duty(cleaned),
    )


def looks_like_rate(value: str) -> bool:
    """Heuristic used when scanning rows: does ``value`` read as a duty rate?"""
    cleaned = " ".join((value or "").split())
    if not cleaned or len(cleaned) > MAX_RATE_TEXT:
        return False
    if _FREE_CELL_RE.match(cleaned):
        return True
    return bool(_RATE_MARKER_RE.search(cleaned) and _RATE_OPENING_RE.match(cleaned))


def looks_like_unit(value: str) -> bool:
    """True when every token of ``value`` belongs to the unit vocabulary."""
    cleaned = (value or "").strip()
    if not cleaned or len(cleaned) > MAX_UNIT_TEXT or looks_like_rate(cleaned):
        return False
    tokens = [token.lower().rstrip(".") for token in _UNIT_SPLIT_RE.split(cleaned) if token]
    return bool(tokens) and all(token in _UNIT_TOKENS for token in tokens)
