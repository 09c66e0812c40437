from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator


def today_iso() -> str:
    return date.today().isoformat()


def add_days(date_str: str, days: int) -> str:
    return (date.fromisoformat(date_str) + timedelta(days=days)).isoformat()


def days_between(start: str, end: str) -> int:
    """Whole days from ``start`` to ``end`` (negative when end is earlier)."""
    return (date.fromisoformat(end) - date.fromisoformat(start)).days


def date_range(start: str, days: int) -> Iterator[str]:
    first = date.fromisoformat(start)
    for i in range(days):
        yield (first + timedelta(days=i)).isoformat()
