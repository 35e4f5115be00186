"""Canonical handling of hierarchical HS/HTS classification codes.

Codes arrive in every shape a spreadsheet or a user can produce:
``4302.11.00``, ``430211.00``, ``4302 11 00``, ``"4302\\r\\n4302.11.00"``.
Everything is reduced to the digit sequence, which is the identity of a
code, and re-grouped as ``HHHH.SS.SSxx`` for display.  Normalization never
fails; garbled input simply yields a shorter (possibly empty) code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

_NON_DIGIT_RE = re.compile(r"\D")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

# Code-shaped substrings: dotted groups ("4302.11.00", "4302.11") or bare
# digit runs of heading length or longer ("4302", "43021100").
_CODE_TOKEN_RE = re.compile(r"(?<![\d.])\d{4}(?:\.\d{2,4}){1,3}(?!\d)|(?<![\d.])\d{4,10}(?![\d])")

# A cell counts as code-shaped when it holds nothing but digits, dots and
# blanks, e.g. "4302.11.00" or "8539 22 80".
_CODE_CELL_RE = re.compile(r"^[\d.\s]+$")

MIN_PARENT_DIGITS = 4


def digits_of(raw: object) -> str:
    """Strip every non-digit character from ``raw``."""
    return _NON_DIGIT_RE.sub("", str(raw or ""))


def _dotted(digits: str) -> str:
    if len(digits) < 6:
        return digits
    head = f"{digits[:4]}.{digits[4:6]}"
    if len(digits) > 6:
        head = f"{head}.{digits[6:]}"
    return head


@dataclass(frozen=True)
class ClassificationCode:
    """Immutable classification code; equality is digit-sequence equality."""

    digits: str
    dotted: str = field(compare=False)

    @property
    def chapter(self) -> str:
        return self.digits[:2]

    @property
    def heading(self) -> str:
        return self.digits[2:4]

    @property
    def subheading(self) -> str:
        return self.digits[4:6]

    @property
    def statistical_suffix(self) -> str:
        return self.digits[6:8]

    @property
    def chapter_number(self) -> int:
        """Chapter as an int, 0 when fewer than two digits are known."""
        if len(self.digits) < 2:
            return 0
        return int(self.digits[:2])

    @property
    def is_empty(self) -> bool:
        return not self.digits

    def __str__(self) -> str:
        return self.dotted


def normalize(raw: object) -> ClassificationCode:
    """Canonicalize free-form code text.

    >>> normalize("430211.00").dotted
    '4302.11.00'
    >>> normalize("43-02").dotted
    '4302'
    """
    digits = digits_of(raw)
    return ClassificationCode(digits=digits, dotted=_dotted(digits))


def format_code(code: ClassificationCode) -> str:
    """Render ``code`` in its canonical dotted form."""
    return code.dotted


def is_hierarchical_parent_of(parent: ClassificationCode, child: ClassificationCode) -> bool:
    """True iff ``parent`` is a strict digit prefix of ``child`` with >= 4 digits."""
    if len(parent.digits) < MIN_PARENT_DIGITS:
        return False
    if len(parent.digits) >= len(child.digits):
        return False
    return child.digits.startswith(parent.digits)


def split_lines(text: str) -> List[str]:
    """Split cell text on any line-break convention, dropping blank lines."""
    return [line.strip() for line in _LINE_BREAK_RE.split(text) if line.strip()]


def is_multiline(text: str) -> bool:
    return len(split_lines(text)) > 1


def extract_code_tokens(text: str) -> List[ClassificationCode]:
    """Pull every code-shaped substring out of ``text``, line by line."""
    tokens: List[ClassificationCode] = []
    for line in split_lines(text):
        for match in _CODE_TOKEN_RE.finditer(line):
            tokens.append(normalize(match.group(0)))
    return tokens


def is_code_cell(text: str) -> bool:
    """True when ``text`` is a single-line, code-shaped value."""
    stripped = text.strip()
    if not stripped or is_multiline(stripped):
        return False
    return bool(_CODE_CELL_RE.match(stripped)) and len(digits_of(stripped)) >= MIN_PARENT_DIGITS
