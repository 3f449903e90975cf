"""
Numbering -- document identifiers of the form PREFIX-YEAR-COUNTER.

Responsibility:
    Formatting, parsing and validation of sequential document numbers
    such as ``FAC-2024-001``.  Counters are scoped by (prefix, year):
    ``FAC-2024-001`` and ``FAC-2025-001`` are both valid first numbers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Allocation of the
    next counter against the database lives in
    services/document_sequence_service.py.

Grammar:
    prefix   := [A-Za-z0-9]+        (no hyphen, so parsing is unambiguous)
    year     := [0-9]{4}
    counter  := [0-9]+              (zero-padded to at least 3 digits on output)

Invariants enforced:
    - Round trip: ``parse(generate(p, y, c)) == DocumentNumber(p, y, c)``.
    - Counters are padded to the minimum width and never truncated:
      ``format_counter(1) == "001"``, ``format_counter(1000) == "1000"``.

Failure modes:
    - InvalidArgumentError from generate/format_counter/next_counter on
      empty or non-alphanumeric prefixes, years outside the accepted window,
      negative or non-integer counters.
    - DocumentNumberParseError from parse on text outside the grammar.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from heraclion_kernel.domain.clock import Clock, SystemClock
from heraclion_kernel.exceptions import DocumentNumberParseError, InvalidArgumentError

DEFAULT_COUNTER_WIDTH = 3

# Accepted year window around the current year.  Ten-year-old documents
# are still re-issued from archives, next year's numbers are prepared in
# December.
DEFAULT_YEARS_BACK = 20
DEFAULT_YEARS_AHEAD = 5

_PREFIX_RE = re.compile(r"[A-Za-z0-9]+")
_NUMBER_RE = re.compile(r"(?P<prefix>[A-Za-z0-9]+)-(?P<year>[0-9]{4})-(?P<counter>[0-9]+)")


@dataclass(frozen=True)
class DocumentNumber:
    """A parsed document number."""

    prefix: str
    year: int
    counter: int

    def format(self, width: int = DEFAULT_COUNTER_WIDTH) -> str:
        return f"{self.prefix}-{self.year}-{format_counter(self.counter, width)}"

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def parse(cls, text: Any) -> DocumentNumber:
        return parse(text)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_year(
    year: Any,
    *,
    clock: Clock | None = None,
    years_back: int = DEFAULT_YEARS_BACK,
    years_ahead: int = DEFAULT_YEARS_AHEAD,
) -> bool:
    """
    True only for an int inside the window around the current year.

    Numeric strings ("2024"), bools and None are rejected.
    """
    if not _is_int(year):
        return False
    current = (clock or SystemClock()).today().year
    return current - years_back <= year <= current + years_ahead


def format_counter(n: Any, width: int = DEFAULT_COUNTER_WIDTH) -> str:
    """Zero-pad ``n`` to at least ``width`` digits; wider values are kept whole."""
    if not _is_int(n):
        raise InvalidArgumentError("counter", n, "must be an integer")
    if n < 0:
        raise InvalidArgumentError("counter", n, "must not be negative")
    if not _is_int(width) or width < 1:
        raise InvalidArgumentError("width", width, "must be a positive integer")
    return str(n).zfill(width)


def validate_prefix(prefix: Any) -> str:
    if not isinstance(prefix, str) or not prefix:
        raise InvalidArgumentError("prefix", prefix, "must be a non-empty string")
    if not _PREFIX_RE.fullmatch(prefix):
        raise InvalidArgumentError("prefix", prefix, "must contain only letters and digits")
    return prefix


def generate(
    prefix: Any,
    year: Any,
    counter: Any,
    *,
    width: int = DEFAULT_COUNTER_WIDTH,
    clock: Clock | None = None,
    years_back: int = DEFAULT_YEARS_BACK,
    years_ahead: int = DEFAULT_YEARS_AHEAD,
) -> str:
    """Build ``PREFIX-YEAR-COUNTER`` after validating every part."""
    validate_prefix(prefix)
    if not is_valid_year(year, clock=clock, years_back=years_back, years_ahead=years_ahead):
        raise InvalidArgumentError("year", year, "outside the accepted year window")
    return f"{prefix}-{year}-{format_counter(counter, width)}"


def parse(text: Any) -> DocumentNumber:
    """
    Split a document number into its parts.

    The year is checked for shape (four digits) only, so numbers from
    archived years still parse.
    """
    if not isinstance(text, str):
        raise DocumentNumberParseError(text)
    match = _NUMBER_RE.fullmatch(text)
    if match is None:
        raise DocumentNumberParseError(text)
    return DocumentNumber(
        prefix=match.group("prefix"),
        year=int(match.group("year")),
        counter=int(match.group("counter")),
    )


def is_valid_document_number(text: Any) -> bool:
    """Grammar check that never raises."""
    try:
        parse(text)
    except DocumentNumberParseError:
        return False
    return True


def next_counter(last_counter: Any) -> int:
    """
    Counter following ``last_counter``.

    Callers pass 0 when the (prefix, year) scope has no document yet, so
    the first counter is 1.
    """
    if not _is_int(last_counter):
        raise InvalidArgumentError("last_counter", last_counter, "must be an integer")
    if last_counter < 0:
        raise InvalidArgumentError("last_counter", last_counter, "must not be negative")
    return last_counter + 1


def generate_sequential(
    prefix: Any,
    year: Any,
    start_counter: int,
    count: int,
    **kwargs: Any,
) -> list[str]:
    """``count`` consecutive numbers starting at ``start_counter``."""
    if not _is_int(count) or count < 0:
        raise InvalidArgumentError("count", count, "must be a non-negative integer")
    if not _is_int(start_counter):
        raise InvalidArgumentError("start_counter", start_counter, "must be an integer")
    return [generate(prefix, year, start_counter + i, **kwargs) for i in range(count)]
