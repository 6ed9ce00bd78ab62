from __future__ import annotations

from dataclasses import asdict
from typing import Any, Iterable, Literal

from .layout import Edge, LayoutNode, bounds, edges, walk_layout
from .models import Member, ParentSlot, Person, TreeNode
from .names import _initials
from .tree import walk_forest


def _compact(value: Any) -> Any:
    """Drop None / blank-string / empty-container values, recursively.

    0 and False are kept.
    """

    if value is None:
        return None

    if isinstance(value, str):
        s = value.strip()
        return s if s else None

    if isinstance(value, list):
        items = [v for v in (_compact(x) for x in value) if v is not None]
        return items or None

    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            vv = _compact(v)
            if vv is None:
                continue
            out[k] = vv
        return out or None

    return value


def _member_to_public(m: Member) -> dict[str, Any]:
    d = asdict(m)
    extra = d.pop("extra", {}) or {}
    for k, v in extra.items():
        d.setdefault(k, v)
    d["initials"] = _initials(m.name)
    return _compact(d) or {}


def _person_to_public(p: Person) -> dict[str, Any]:
    if isinstance(p, Member):
        return _member_to_public(p)
    return {
        "id": p.id,
        "name": p.name,
        "current_status": p.current_status,
        "initials": "?",
    }


def _slot_to_public(slot: ParentSlot | None) -> dict[str, Any] | None:
    if slot is None:
        return None
    return {"member": _person_to_public(slot.member), "is_ghost": slot.is_ghost}


def _tree_node_shell(node: TreeNode) -> dict[str, Any]:
    return {
        "couple_key": node.couple_key,
        "father": _slot_to_public(node.first),
        "mother": _slot_to_public(node.second),
        "children": [],
    }


def _tree_node_to_public(root: TreeNode) -> dict[str, Any]:
    # Explicit stack: children lists are filled in order as parents are popped.
    out = _tree_node_shell(root)
    stack = [(root, out)]
    while stack:
        node, d = stack.pop()
        for child in node.children:
            cd = _tree_node_shell(child)
            d["children"].append(cd)
            stack.append((child, cd))
    return out


def _tree_nodes_flat(forest: Iterable[TreeNode]) -> list[dict[str, Any]]:
    """Depth-first node list where ``children`` holds child couple keys.

    For lineages too deep to nest in one JSON document.
    """

    out: list[dict[str, Any]] = []
    for node, depth in walk_forest(forest):
        d = _tree_node_shell(node)
        d["depth"] = depth
        d["children"] = [c.couple_key for c in node.children]
        out.append(d)
    return out


def _layout_node_shell(ln: LayoutNode) -> dict[str, Any]:
    return {
        "couple_key": ln.node.couple_key,
        "x": ln.x,
        "y": ln.y,
        "left": ln.left,
        "width": ln.width,
        "depth": ln.depth,
        "anchor_x": ln.anchor_x,
        "children": [],
    }


def _layout_node_to_public(root: LayoutNode) -> dict[str, Any]:
    out = _layout_node_shell(root)
    stack = [(root, out)]
    while stack:
        ln, d = stack.pop()
        for child in ln.children:
            cd = _layout_node_shell(child)
            d["children"].append(cd)
            stack.append((child, cd))
    return out


def _layout_nodes_flat(layouts: Iterable[LayoutNode]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for ln in walk_layout(layouts):
        d = _layout_node_shell(ln)
        d["children"] = [c.node.couple_key for c in ln.children]
        out.append(d)
    return out


def _edge_to_public(e: Edge) -> dict[str, Any]:
    return {
        "kind": e.kind,
        "couple_key": e.couple_key,
        "points": [list(p) for p in e.points],
    }


def _forest_payload(
    forest: list[TreeNode],
    layouts: Iterable[LayoutNode] | None = None,
    *,
    shape: Literal["nested", "flat"] = "nested",
) -> dict[str, Any]:
    """Tree (and optional layout) payload.

    - shape=nested: each node embeds its child nodes
    - shape=flat: depth-first node lists; ``children`` are couple keys and
      ``roots`` lists the top-level keys
    """

    if shape == "flat":
        payload: dict[str, Any] = {
            "roots": [t.couple_key for t in forest],
            "nodes": _tree_nodes_flat(forest),
        }
    else:
        payload = {"trees": [_tree_node_to_public(t) for t in forest]}
    payload["total"] = len(forest)

    if layouts is not None:
        layouts = list(layouts)
        width, height = bounds(layouts)
        if shape == "flat":
            layout_nodes = _layout_nodes_flat(layouts)
        else:
            layout_nodes = [_layout_node_to_public(ln) for ln in layouts]
        payload["layout"] = {
            "nodes": layout_nodes,
            "edges": [_edge_to_public(e) for e in edges(layouts)],
            "width": width,
            "height": height,
        }
    return payload
