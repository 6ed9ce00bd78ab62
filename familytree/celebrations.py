from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Literal

from .models import Member

CelebrationKind = Literal["birthday", "anniversary"]


def parse_date(value: Any) -> date | None:
    """Parse an ISO date (or datetime) value; anything unusable is ``None``."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def _on_year(d: date, year: int) -> date:
    try:
        return d.replace(year=year)
    except ValueError:
        # Feb 29 -> Feb 28 in non-leap years.
        return d.replace(month=2, day=28, year=year)


def is_same_day(value: Any, *, today: date | None = None) -> bool:
    """True when the month/day of *value* is today's month/day."""

    d = parse_date(value)
    if d is None:
        return False
    t = today or date.today()
    return _on_year(d, t.year) == t


def age_on(dob: Any, *, today: date | None = None) -> int | None:
    d = parse_date(dob)
    if d is None:
        return None
    t = today or date.today()
    years = t.year - d.year
    if t < _on_year(d, t.year):
        years -= 1
    return years


def years_married(anniversary: Any, *, today: date | None = None) -> int | None:
    # Calendar years, matching how the anniversary badge is displayed.
    d = parse_date(anniversary)
    if d is None:
        return None
    t = today or date.today()
    return t.year - d.year


def days_until(value: Any, *, today: date | None = None) -> int | None:
    """Days until the next occurrence of the month/day of *value* (0 = today)."""

    d = parse_date(value)
    if d is None:
        return None
    t = today or date.today()
    nxt = _on_year(d, t.year)
    if nxt < t:
        nxt = _on_year(d, t.year + 1)
    return (nxt - t).days


def celebrations_today(
    members: Iterable[Member],
    *,
    today: date | None = None,
) -> list[tuple[Member, CelebrationKind]]:
    out: list[tuple[Member, CelebrationKind]] = []
    for m in members:
        if is_same_day(m.dob, today=today):
            out.append((m, "birthday"))
        if is_same_day(m.anniversary, today=today):
            out.append((m, "anniversary"))
    return out


def upcoming_birthdays(
    members: Iterable[Member],
    *,
    within_days: int = 30,
    today: date | None = None,
) -> list[tuple[Member, int]]:
    """Members whose birthday falls in the next *within_days* days, soonest first."""

    out: list[tuple[Member, int]] = []
    for m in members:
        n = days_until(m.dob, today=today)
        if n is None or n > within_days:
            continue
        out.append((m, n))
    out.sort(key=lambda item: (item[1], item[0].name.lower()))
    return out
