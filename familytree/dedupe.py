"""Merge member records that were registered more than once under one name.

Records match when their names are equal after ``normalize_name``. The first
record seen keeps its id, its name spelling and every non-empty value; later
duplicates only fill the fields the first one left empty.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Iterable

from .models import Member
from .names import normalize_name

log = logging.getLogger(__name__)

# Identity of the surviving record; never filled from a duplicate.
_IDENTITY_FIELDS = frozenset({"id", "name"})


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _merge_into(kept: Member, dup: Member) -> list[tuple[str, Any, Any]]:
    """Fill gaps of *kept* from *dup* in place; return the conflicting fields."""

    conflicts: list[tuple[str, Any, Any]] = []
    for f in fields(Member):
        if f.name in _IDENTITY_FIELDS:
            continue
        if f.name == "extra":
            for k, v in dup.extra.items():
                if _is_absent(v):
                    continue
                cur = kept.extra.get(k)
                if _is_absent(cur):
                    kept.extra[k] = v
                elif cur != v:
                    conflicts.append((k, cur, v))
            continue

        new = getattr(dup, f.name)
        if _is_absent(new):
            continue
        cur = getattr(kept, f.name)
        if _is_absent(cur):
            setattr(kept, f.name, new)
        elif cur != new:
            conflicts.append((f.name, cur, new))
    return conflicts


def _dedupe(members: Iterable[Member]) -> tuple[list[Member], list[tuple[str, str, Any, Any]]]:
    merged: list[Member] = []
    by_name: dict[str, Member] = {}
    conflicts: list[tuple[str, str, Any, Any]] = []

    for m in members:
        key = normalize_name(m.name)
        kept = by_name.get(key)
        if kept is None:
            copy = replace(m, extra=dict(m.extra))
            merged.append(copy)
            by_name[key] = copy
            continue

        for field_name, kept_value, dropped_value in _merge_into(kept, m):
            log.warning(
                "duplicate member %r: keeping %s=%r from id=%s, ignoring %r from id=%s",
                kept.name,
                field_name,
                kept_value,
                kept.id,
                dropped_value,
                m.id,
            )
            conflicts.append((key, field_name, kept_value, dropped_value))

    return merged, conflicts


def deduplicate(members: Iterable[Member]) -> list[Member]:
    """Return one record per normalized name, in first-seen order.

    Inputs are not modified. Conflicting non-empty values resolve to the first
    record's value (logged as a warning).
    """

    merged, _conflicts = _dedupe(members)
    return merged


def find_conflicts(members: Iterable[Member]) -> list[tuple[str, str, Any, Any]]:
    """Return ``(normalized_name, field, kept, dropped)`` for every first-wins conflict."""

    _merged, conflicts = _dedupe(members)
    return conflicts
