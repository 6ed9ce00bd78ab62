from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from ..celebrations import age_on, celebrations_today, upcoming_birthdays, years_married
from ..dedupe import deduplicate
from ..serialize import _member_to_public
from ..source import _load_members

router = APIRouter()


@router.get("/celebrations/today")
def today_celebrations() -> dict[str, Any]:
    """Birthdays and wedding anniversaries falling on today's date."""

    results: list[dict[str, Any]] = []
    for m, kind in celebrations_today(deduplicate(_load_members())):
        entry: dict[str, Any] = {"member": _member_to_public(m), "kind": kind}
        if kind == "birthday":
            entry["age"] = age_on(m.dob)
        else:
            entry["years"] = years_married(m.anniversary)
        results.append(entry)
    return {"results": results, "total": len(results)}


@router.get("/celebrations/upcoming")
def upcoming(days: int = Query(default=30, ge=0, le=366)) -> dict[str, Any]:
    results = [
        {"member": _member_to_public(m), "days_until": n}
        for m, n in upcoming_birthdays(deduplicate(_load_members()), within_days=days)
    ]
    return {"results": results, "total": len(results)}
