"""Deterministic 2D layout for a forest of couple nodes.

A node is drawn as two avatar slots side by side (first slot on the left).
Subtrees are packed left to right; a parent is centered over the combined span
of its children, and each generation sits on its own row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal

from .models import TreeNode

NODE_WIDTH = 120
NODE_HEIGHT = 115
H_GAP = 50
V_GAP = 90
COUPLE_GAP = 56
TREE_MARGIN = 80

BASE_WIDTH = NODE_WIDTH * 2 + COUPLE_GAP
ROW_HEIGHT = NODE_HEIGHT + V_GAP

# Padding added around the laid-out forest for the drawing canvas.
_CANVAS_PAD_X = 100
_CANVAS_PAD_Y = 120


@dataclass
class LayoutNode:
    """A positioned node.

    ``x``/``y`` is the top-left corner of the drawn couple box. The subtree below
    the node occupies ``[left, left + width)`` horizontally; sibling subtrees never
    share any part of that interval.
    """

    node: TreeNode
    x: float
    y: float
    left: float
    width: float
    depth: int
    children: list["LayoutNode"] = field(default_factory=list)

    @property
    def first_center(self) -> tuple[float, float]:
        return (self.x + NODE_WIDTH / 2, self.y + NODE_HEIGHT / 2)

    @property
    def second_center(self) -> tuple[float, float]:
        return (self.x + NODE_WIDTH + COUPLE_GAP + NODE_WIDTH / 2, self.y + NODE_HEIGHT / 2)

    @property
    def anchor_x(self) -> float:
        """Where lines attach: the couple midpoint, or the lone occupant's center."""

        fx = self.first_center[0]
        sx = self.second_center[0]
        if self.node.first and self.node.second:
            return (fx + sx) / 2
        if self.node.first:
            return fx
        return sx


@dataclass(frozen=True)
class Edge:
    kind: Literal["couple", "stem", "rail", "drop"]
    couple_key: str
    points: tuple[tuple[float, float], ...]


@dataclass
class _Frame:
    node: TreeNode
    depth: int
    x_offset: float
    cursor: float
    pending: Iterator[TreeNode]
    children: list[LayoutNode] = field(default_factory=list)


def _finish(frame: _Frame) -> LayoutNode:
    y = frame.depth * ROW_HEIGHT
    if not frame.children:
        return LayoutNode(node=frame.node, x=frame.x_offset, y=y, left=frame.x_offset, width=BASE_WIDTH, depth=frame.depth)

    span = frame.cursor - H_GAP - frame.x_offset
    return LayoutNode(
        node=frame.node,
        x=frame.x_offset + span / 2 - BASE_WIDTH / 2,
        y=y,
        left=frame.x_offset,
        width=max(span, BASE_WIDTH),
        depth=frame.depth,
        children=frame.children,
    )


def layout(node: TreeNode, depth: int = 0, x_offset: float = 0) -> LayoutNode:
    """Lay out *node* and its descendants starting at *x_offset*.

    Children are placed left to right as they are reached; a node's width and
    centered position are computed once all of its children are placed. Uses an
    explicit stack so lineage depth is not bounded by the interpreter.
    """

    stack = [_Frame(node, depth, x_offset, x_offset, iter(node.children))]
    while True:
        frame = stack[-1]
        child = next(frame.pending, None)
        if child is not None:
            stack.append(_Frame(child, frame.depth + 1, frame.cursor, frame.cursor, iter(child.children)))
            continue

        stack.pop()
        laid = _finish(frame)
        if not stack:
            return laid
        parent = stack[-1]
        parent.children.append(laid)
        parent.cursor += laid.width + H_GAP


def layout_forest(forest: Iterable[TreeNode]) -> list[LayoutNode]:
    out: list[LayoutNode] = []
    offset: float = 0
    for tree in forest:
        laid = layout(tree, 0, offset)
        out.append(laid)
        offset += laid.width + TREE_MARGIN
    return out


def walk_layout(layouts: Iterable[LayoutNode]) -> Iterator[LayoutNode]:
    stack = list(reversed(list(layouts)))
    while stack:
        ln = stack.pop()
        yield ln
        stack.extend(reversed(ln.children))


def edges(layouts: Iterable[LayoutNode]) -> list[Edge]:
    """Connecting lines for the renderer.

    - couple: between the two slot centers of a two-occupant node
    - stem: from a parent node down to the midline between generations
    - rail: along the midline from the first to the last child
    - drop: from the midline down to each child's top edge
    """

    out: list[Edge] = []
    for ln in walk_layout(layouts):
        key = ln.node.couple_key
        if ln.node.first and ln.node.second:
            out.append(Edge("couple", key, (ln.first_center, ln.second_center)))

        if not ln.children:
            continue

        mid_y = ln.y + NODE_HEIGHT + V_GAP / 2
        ax = ln.anchor_x
        out.append(Edge("stem", key, ((ax, ln.y + NODE_HEIGHT), (ax, mid_y))))
        if len(ln.children) > 1:
            out.append(
                Edge(
                    "rail",
                    key,
                    ((ln.children[0].anchor_x, mid_y), (ln.children[-1].anchor_x, mid_y)),
                )
            )
        for child in ln.children:
            cx = child.anchor_x
            out.append(Edge("drop", key, ((cx, mid_y), (cx, child.y))))
    return out


def bounds(layouts: Iterable[LayoutNode]) -> tuple[float, float]:
    """Canvas (width, height) that fits every laid-out node plus padding."""

    max_x: float = 0
    max_y: float = 0
    for ln in walk_layout(layouts):
        max_x = max(max_x, ln.left + ln.width)
        max_y = max(max_y, ln.y + NODE_HEIGHT)
    return (max_x + _CANVAS_PAD_X, max_y + _CANVAS_PAD_Y)
