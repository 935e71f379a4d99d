# ABOUTME: ExternalCandidate is one provider result mapped into a provider-neutral shape.
# ABOUTME: Also hosts the year extraction shared by every provider parser.

import re
from dataclasses import dataclass
from typing import Any

_YEAR_RE = re.compile(r"\d{4}")


@dataclass
class ExternalCandidate:
    """A book found by an external bibliographic provider.

    The score is a 0-100 similarity between this result and the query that
    produced it. The resolver re-scores every candidate before picking one.
    """

    title: str
    author: str
    source: str
    score: float
    isbn: str | None = None
    year: int | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 100.0:
            msg = f"score must be between 0 and 100, got {self.score}"
            raise ValueError(msg)


def extract_year(value: Any) -> int | None:
    """Pull a publication year out of a provider field.

    Accepts integers, date-like strings ("2005-03-01", "March 1967"), and
    lists of either; for a list the earliest year wins. Falls back to the
    first run of four digits in a string.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, (list, tuple)):
        years = [y for y in (extract_year(v) for v in value) if y is not None]
        return min(years) if years else None
    match = _YEAR_RE.search(str(value))
    if match is None:
        return None
    year = int(match.group(0))
    return year if year > 0 else None


def first_year(*values: Any) -> int | None:
    """Return the year from the first field that yields one."""
    for value in values:
        year = extract_year(value)
        if year is not None:
            return year
    return None
