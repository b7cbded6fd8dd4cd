"""
Composite-key records shared by every sort in the suite.

Ordering rule (the one comparator used everywhere):
1. Date ascending (year, then month, then day)
2. FullName descending (last name, then first name, then middle name),
   ordinal text comparison with every field comparison negated

Two records are "tied" when both the date and the full name are equal.
The position is the 1-based input line number; it is never part of the
key and only serves as a witness when checking stability.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Tuple


def _cmp(x, y) -> int:
    return (x > y) - (x < y)


@dataclass(frozen=True)
class Date:
    day: int
    month: int
    year: int

    @classmethod
    def parse(cls, text: str) -> "Date":
        """Parse a ``YYYY-MM-DD`` token."""
        parts = text.strip().split("-")
        if len(parts) != 3:
            raise ValueError(f"expected YYYY-MM-DD, got {text!r}")
        year, month, day = (int(p) for p in parts)
        return cls(day, month, year)

    def compare(self, other: "Date") -> int:
        if self.year != other.year:
            return _cmp(self.year, other.year)
        if self.month != other.month:
            return _cmp(self.month, other.month)
        return _cmp(self.day, other.day)

    def __str__(self):
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class FullName:
    last_name: str
    first_name: str
    middle_name: str

    @classmethod
    def parse(cls, text: str) -> "FullName":
        """Parse ``Last First Middle``; extra tokens are ignored."""
        tokens = text.split()
        if len(tokens) < 3:
            raise ValueError(f"expected three name tokens, got {text!r}")
        return cls(tokens[0], tokens[1], tokens[2])

    def compare(self, other: "FullName") -> int:
        #Negated on every field: names sort in descending order
        c = _cmp(self.last_name, other.last_name)
        if c:
            return -c
        c = _cmp(self.first_name, other.first_name)
        if c:
            return -c
        return -_cmp(self.middle_name, other.middle_name)

    def __str__(self):
        return f"{self.last_name} {self.first_name} {self.middle_name}"


@dataclass(frozen=True)
class Record:
    date: Date
    name: FullName
    position: int

    @property
    def key(self) -> Tuple[Date, FullName]:
        return (self.date, self.name)

    def __str__(self):
        return f"{self.date}\t{self.name}\t{self.position}"


def compare_records(a: Record, b: Record) -> int:
    """Return -1, 0 or 1: date ascending, then name descending."""
    c = a.date.compare(b.date)
    if c:
        return c
    return a.name.compare(b.name)


def record_key(record: Record) -> Tuple[Date, FullName]:
    """Hashable grouping key: records with equal keys are ties."""
    return record.key


sort_key = cmp_to_key(compare_records)


__all__ = [
    'Date',
    'FullName',
    'Record',
    'compare_records',
    'record_key',
    'sort_key',
]
