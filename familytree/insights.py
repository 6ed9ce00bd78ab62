from __future__ import annotations

from datetime import date
from typing import Iterable, Literal

from .celebrations import days_until, is_same_day
from .models import Member

_MIN_QUERY_LEN = 2


def _has(value: str | None) -> bool:
    return bool(value and str(value).strip())


def member_stats(members: Iterable[Member], *, today: date | None = None) -> dict[str, int]:
    """Headline counts for the member directory.

    "married" counts anyone with an anniversary or a declared spouse.
    """

    total = married = with_photo = celebrating = 0
    for m in members:
        total += 1
        if _has(m.anniversary) or _has(m.spouse_name):
            married += 1
        if _has(m.profile_photo):
            with_photo += 1
        if is_same_day(m.dob, today=today) or is_same_day(m.anniversary, today=today):
            celebrating += 1
    return {
        "total": total,
        "married": married,
        "with_photo": with_photo,
        "celebrating_today": celebrating,
    }


def search_members(
    members: Iterable[Member],
    query: str | None,
    *,
    min_length: int = _MIN_QUERY_LEN,
) -> list[Member]:
    """Case-insensitive substring search over name and current status.

    Queries shorter than *min_length* match nothing (the tree search overlay
    waits for two characters; the directory filters from the first one).
    """

    q = (query or "").strip().lower()
    if not q or len(q) < min_length:
        return []
    out: list[Member] = []
    for m in members:
        if q in (m.name or "").lower() or q in (m.current_status or "").lower():
            out.append(m)
    return out


def sort_members(
    members: Iterable[Member],
    by: Literal["name", "upcoming"] = "name",
    *,
    today: date | None = None,
) -> list[Member]:
    """Directory order: alphabetical, or by days until the next birthday.

    Members without a usable date of birth go last when sorting by birthday.
    """

    if by == "upcoming":

        def _upcoming_key(m: Member) -> tuple[bool, int, str]:
            n = days_until(m.dob, today=today)
            return (n is None, n or 0, (m.name or "").lower())

        return sorted(members, key=_upcoming_key)
    return sorted(members, key=lambda m: (m.name or "").lower())
