from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Query

from ..dedupe import deduplicate, find_conflicts
from ..insights import member_stats, search_members, sort_members
from ..serialize import _member_to_public
from ..source import _load_members

router = APIRouter()


@router.get("/members")
def list_members(
    q: Optional[str] = Query(default=None, max_length=200),
    sort: Literal["name", "upcoming"] = "name",
) -> dict[str, Any]:
    """List registered members, one record per person.

    - q: only members whose name or status contains it (case-insensitive)
    - sort=name: alphabetical; sort=upcoming: soonest birthday first
    """

    members = deduplicate(_load_members())
    if q and q.strip():
        members = search_members(members, q, min_length=1)
    members = sort_members(members, sort)
    results = [_member_to_public(m) for m in members]
    return {"results": results, "total": len(results)}


@router.get("/members/conflicts")
def member_conflicts() -> dict[str, Any]:
    """Fields where duplicate registrations disagreed (first registration was kept)."""

    results = [
        {"name": name, "field": field_name, "kept": kept, "dropped": dropped}
        for name, field_name, kept, dropped in find_conflicts(_load_members())
    ]
    return {"results": results, "total": len(results)}


@router.get("/members/stats")
def member_statistics() -> dict[str, int]:
    return member_stats(deduplicate(_load_members()))
