"""
Typed condition trees.

Fantasy-Calendar stores event recurrence as nested JSON lists::

    [["Month", "0", ["2"]], ["&&"], ["Day", "0", ["14"]]]
    [["Date", "0", ["1492", "2", "1"]], "||", ["Date", "0", ["1493", "5", "9"]]]
    ["", [["Weekday", "0", ["Sunday"]], ["||"], ["Weekday", "0", ["Monday"]]]]

:func:`parse_conditions` turns that into a closed union of node types so the
two walks below never have to guess whether a list is a leaf or a group.

Limitation: only *top-level* ``||`` operators split an event into branches.
Groups are flattened into the branch that contains them, so an OR nested
inside a group is merged with its siblings (a warning is raised for it).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Union

PREDICATE_KINDS = frozenset(
    {"Date", "Month", "Day", "Weekday", "Season", "Week", "Year", "Moons", "Random"}
)
OPERATORS = frozenset({"&&", "||", "^"})
GROUP_MODES = frozenset({"", "!", "#"})

GroupMode = Literal["", "!", "#"]


@dataclass(frozen=True, slots=True)
class Predicate:
    kind: str
    operator: str
    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class UnknownCondition:
    tag: str
    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Operator:
    symbol: str   # "&&", "||" or "^"


@dataclass(frozen=True, slots=True)
class Group:
    children: tuple["Node", ...]
    mode: GroupMode = ""   # "" all, "!" none, "#" at least ``count``
    count: int = 0


Leaf = Union[Predicate, UnknownCondition]
Node = Union[Predicate, UnknownCondition, Operator, Group]


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")


def parse_int(value: Any, default: int) -> int:
    """Leading-integer parse of a condition argument; ``default`` when absent or unparseable."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else default


def parse_float(value: Any, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _LEADING_FLOAT.match(str(value)) if value is not None else None
    return float(match.group(1)) if match else default


def _strings(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)):
        values = [values]
    return tuple("" if v is None else str(v) for v in values)


def _parse_node(item: Any, warnings: list[str]) -> Node | None:
    if isinstance(item, str):
        if item in OPERATORS:
            return Operator(item)
        warnings.append(f"ignored stray condition token {item!r}")
        return None
    if not isinstance(item, (list, tuple)) or not item:
        warnings.append(f"ignored malformed condition {item!r}")
        return None

    head = item[0]
    if isinstance(head, str):
        if head in OPERATORS and len(item) == 1:
            return Operator(head)
        if head in GROUP_MODES and len(item) >= 2 and isinstance(item[1], (list, tuple)):
            count = 0
            if head == "#" and len(item) >= 3:
                count = parse_int(item[2], 0)
            return Group(_parse_list(item[1], warnings), head, count)
        operator = str(item[1]) if len(item) > 1 and item[1] is not None else ""
        values = _strings(item[2]) if len(item) > 2 else ()
        if head in PREDICATE_KINDS:
            return Predicate(head, operator, values)
        return UnknownCondition(head, values)
    # bare nesting: a list of nodes
    return Group(_parse_list(item, warnings))


def _parse_list(items: Any, warnings: list[str]) -> tuple[Node, ...]:
    nodes = []
    for item in items or ():
        node = _parse_node(item, warnings)
        if node is not None:
            nodes.append(node)
    return tuple(nodes)


def parse_conditions(raw: Any) -> tuple[tuple[Node, ...], list[str]]:
    """
    Parse a raw condition list into typed nodes.

    Returns ``(nodes, warnings)``; malformed fragments are dropped with a
    warning rather than raising.  A tree that is nothing but one plain group
    is unwrapped so its operators count as top-level.
    """
    warnings: list[str] = []
    if raw is None:
        return (), warnings
    if not isinstance(raw, (list, tuple)):
        return (), [f"ignored malformed condition list {raw!r}"]
    nodes = _parse_list(raw, warnings)
    while len(nodes) == 1 and isinstance(nodes[0], Group) and nodes[0].mode == "":
        nodes = nodes[0].children
    return nodes, warnings


def flatten(nodes: tuple[Node, ...]) -> list[Leaf]:
    """All leaves in encounter order; operators and group shells are skipped."""
    out: list[Leaf] = []
    for node in nodes:
        if isinstance(node, Group):
            out.extend(flatten(node.children))
        elif isinstance(node, (Predicate, UnknownCondition)):
            out.append(node)
    return out


def has_or(nodes: tuple[Node, ...]) -> bool:
    for node in nodes:
        if isinstance(node, Operator) and node.symbol == "||":
            return True
        if isinstance(node, Group) and has_or(node.children):
            return True
    return False


def split_or_branches(nodes: tuple[Node, ...]) -> tuple[list[list[Leaf]], list[str]]:
    """
    Split on top-level ``||`` into independent branches of leaves.

    Returns ``(branches, warnings)``.  Empty branches (e.g. a leading ``||``)
    are dropped; an input without leaves yields a single empty branch.
    """
    branches: list[list[Leaf]] = []
    warnings: list[str] = []
    current: list[Leaf] = []
    for node in nodes:
        if isinstance(node, Operator):
            if node.symbol == "||":
                if current:
                    branches.append(current)
                current = []
            elif node.symbol == "^":
                warnings.append("exclusive-or conditions imported as if all were required")
            continue
        if isinstance(node, Group):
            if has_or(node.children):
                warnings.append("OR conditions inside a nested group were merged into one rule")
            if node.mode == "!":
                warnings.append("negated condition group imported as if its conditions were required")
            elif node.mode == "#":
                warnings.append(
                    f"'at least {node.count}' condition group imported as if all conditions were required"
                )
            current.extend(flatten(node.children))
            continue
        current.append(node)
    if current:
        branches.append(current)
    return branches or [[]], warnings
