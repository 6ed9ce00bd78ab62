"""Build a forest of couple nodes from members linked only by free-text names.

Members reference their spouse and parents by name, not by id. Names are matched
with ``normalize_name``; a referenced name that matches no registered member
becomes a ghost that exists only for the current build. Each couple is keyed by
its occupants' sorted normalized names so that "father=X, mother=Y" and
"father=Y, mother=X" collapse into one unit.

All state lives in a ``BuildContext`` created per call, so builds never share
registries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .dedupe import deduplicate
from .models import CoupleUnit, GhostMember, Member, ParentSlot, TreeNode
from .names import _clean_ref, normalize_name

log = logging.getLogger(__name__)

_KEY_SEP = "__"
_SINGLE_PREFIX = "single__"


def couple_key(a: str | None = None, b: str | None = None, *, fallback_id: str | None = None) -> str:
    """Order-independent key for the couple formed by names *a* and *b*.

    With neither name known, the key is derived from *fallback_id* and is unique
    to that one person.
    """

    parts = sorted(normalize_name(n) for n in (a, b) if _clean_ref(n))
    if parts:
        return _KEY_SEP.join(parts)
    return f"{_SINGLE_PREFIX}{fallback_id}"


def _single_key(member_id: str) -> str:
    return f"{_SINGLE_PREFIX}{member_id}"


@dataclass
class BuildContext:
    members: list[Member]
    ghosts: dict[str, GhostMember] = field(default_factory=dict)
    couples: dict[str, CoupleUnit] = field(default_factory=dict)
    # member id -> key of the couple where that member is a parent
    parent_couple: dict[str, str] = field(default_factory=dict)
    # member id -> key of the couple that parents them
    child_of: dict[str, str] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)
    _ghost_counter: int = 0
    # normalized name -> members carrying it, in input order
    _by_name: dict[str, list[Member]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for m in self.members:
            self._by_name.setdefault(normalize_name(m.name), []).append(m)

    def ghost(self, name: str) -> GhostMember:
        k = normalize_name(name)
        g = self.ghosts.get(k)
        if g is None:
            self._ghost_counter -= 1
            g = GhostMember(id=f"ghost_{self._ghost_counter}", name=name.strip())
            self.ghosts[k] = g
        return g

    def find_real(self, name: str, *, exclude_id: str | None = None) -> Optional[Member]:
        k = normalize_name(name)
        if not k:
            return None
        for m in self._by_name.get(k, []):
            if m.id != exclude_id:
                return m
        return None

    def resolve(self, name: str, *, exclude_id: str | None = None) -> ParentSlot:
        real = self.find_real(name, exclude_id=exclude_id)
        if real is not None:
            return ParentSlot(real, is_ghost=False)
        return ParentSlot(self.ghost(name), is_ghost=True)

    def parents_couple(self, first_name: str | None, second_name: str | None) -> CoupleUnit:
        key = couple_key(first_name, second_name)
        unit = self.couples.get(key)
        if unit is not None:
            return unit
        unit = CoupleUnit(key=key)
        if first_name:
            unit.first = self.resolve(first_name)
        if second_name:
            unit.second = self.resolve(second_name)
        self.couples[key] = unit
        return unit


def _assign_children(ctx: BuildContext) -> None:
    for child in ctx.members:
        fn = _clean_ref(child.fathers_name)
        mn = _clean_ref(child.mothers_name)
        if not fn and not mn:
            continue
        unit = ctx.parents_couple(fn, mn)
        unit.add_child(child)
        ctx.child_of[child.id] = unit.key


def _index_parents(ctx: BuildContext) -> None:
    for unit in ctx.couples.values():
        for m in unit.real_occupants():
            ctx.parent_couple[m.id] = unit.key


def _cover_remaining(ctx: BuildContext) -> None:
    """Give every member not yet parenting a couple one of their own."""

    for m in ctx.members:
        if m.id in ctx.parent_couple:
            continue

        spouse_name = _clean_ref(m.spouse_name)
        if spouse_name:
            spouse = ctx.find_real(spouse_name, exclude_id=m.id)
            if spouse is not None:
                key = couple_key(m.name, spouse.name)
                if key not in ctx.couples:
                    ctx.couples[key] = CoupleUnit(
                        key=key,
                        first=ParentSlot(m),
                        second=ParentSlot(spouse),
                    )
                ctx.parent_couple.setdefault(m.id, key)
                ctx.parent_couple.setdefault(spouse.id, key)
                continue

            key = couple_key(m.name, spouse_name)
            if key not in ctx.couples:
                ctx.couples[key] = CoupleUnit(
                    key=key,
                    first=ParentSlot(m),
                    second=ParentSlot(ctx.ghost(spouse_name), is_ghost=True),
                )
            ctx.parent_couple[m.id] = key
            continue

        key = _single_key(m.id)
        if key not in ctx.couples:
            ctx.couples[key] = CoupleUnit(key=key, first=ParentSlot(m))
        ctx.parent_couple[m.id] = key


def _root_couples(ctx: BuildContext) -> list[CoupleUnit]:
    roots: list[CoupleUnit] = []
    seen: set[str] = set()
    for unit in ctx.couples.values():
        if any(m.id in ctx.child_of for m in unit.real_occupants()):
            continue
        if unit.key in seen:
            continue
        seen.add(unit.key)
        roots.append(unit)
    return roots


def _next_unit(ctx: BuildContext, child: Member) -> Optional[CoupleUnit]:
    """Couple to draw for *child* under its parents, or None if already drawn."""

    key = ctx.parent_couple.get(child.id)
    if key is not None and key not in ctx.visited:
        return ctx.couples[key]

    single = _single_key(child.id)
    if single in ctx.visited:
        return None
    return CoupleUnit(key=single, first=ParentSlot(child))


def _emit(ctx: BuildContext, root: CoupleUnit) -> TreeNode:
    """Emit *root* and everything below it, depth-first, without recursion.

    A couple is marked visited when it is entered, before any of its children
    are looked at, so a cycle in the name references ends at its second
    occurrence. Each frame holds the couple, its remaining children and the
    nodes finished so far; a node is attached to its parent once complete.
    """

    ctx.visited.add(root.key)
    stack: list[tuple[CoupleUnit, Iterator[Member], list[TreeNode]]] = [(root, iter(root.children), [])]
    result: Optional[TreeNode] = None

    while stack:
        unit, pending, built = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            node = TreeNode(
                couple_key=unit.key,
                first=unit.first,
                second=unit.second,
                children=built,
            )
            if stack:
                stack[-1][2].append(node)
            else:
                result = node
            continue

        nxt = _next_unit(ctx, child)
        if nxt is None:
            continue
        ctx.visited.add(nxt.key)
        stack.append((nxt, iter(nxt.children), []))

    assert result is not None
    return result


def _reached_ids(forest: list[TreeNode]) -> set[str]:
    out: set[str] = set()
    for node, _depth in walk_forest(forest):
        for slot in node.slots():
            if not slot.is_ghost:
                out.add(slot.member.id)
    return out


def build_forest(members: Iterable[Member]) -> list[TreeNode]:
    """Resolve name references into a forest of couple nodes.

    Expects deduplicated input (see ``deduplicate``); with duplicates present,
    the first matching member wins. Never raises on inconsistent data: unknown
    names become ghosts and cyclic parentage is cut at the second occurrence.
    """

    ctx = BuildContext(members=list(members))

    _assign_children(ctx)
    _index_parents(ctx)
    _cover_remaining(ctx)

    forest: list[TreeNode] = []
    for unit in _root_couples(ctx):
        if unit.key in ctx.visited:
            continue
        forest.append(_emit(ctx, unit))

    # Couples only reachable through a parentage cycle (or through a member who
    # also parents a second couple) have no root above them. Attach them as
    # trees of their own so no registered member is lost.
    reached = _reached_ids(forest)
    for unit in list(ctx.couples.values()):
        if unit.key in ctx.visited:
            continue
        pending = [m.id for m in unit.real_occupants() + unit.children if m.id not in reached]
        if not pending:
            continue
        node = _emit(ctx, unit)
        forest.append(node)
        reached |= _reached_ids([node])

    log.debug(
        "built family forest: members=%d ghosts=%d couples=%d trees=%d",
        len(ctx.members),
        len(ctx.ghosts),
        len(ctx.couples),
        len(forest),
    )
    return forest


def build_family_tree(records: Iterable[Member]) -> list[TreeNode]:
    """Deduplicate raw member records, then build the forest."""

    return build_forest(deduplicate(records))


def walk_forest(forest: Iterable[TreeNode]) -> Iterator[tuple[TreeNode, int]]:
    """Yield ``(node, depth)`` for every node, depth-first, roots at depth 0."""

    stack: list[tuple[TreeNode, int]] = [(n, 0) for n in reversed(list(forest))]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))
