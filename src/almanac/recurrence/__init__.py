"""
almanac.recurrence
~~~~~~~~~~~~~~~~~~

Turns tree-shaped event conditions into the canonical recurrence vocabulary
(``never``, ``yearly``, ``monthly``, ``weekly``, ``seasonal``,
``weekOfMonth``, ``moon``, ``random``, ``range``).

Basic usage::

    from almanac.recurrence import ClassifierContext, classify

    ctx = ClassifierContext(weekday_names=("Sul", "Mol", "Zol"))
    [c] = classify([["Weekday", "0", ["Mol"]]], ctx)
    c.recurrence, c.weekday                  # (Recurrence.WEEKLY, 1)

Top-level ``||`` splits an event into independent results; name them with
:func:`branch_label`.

Public API
----------
classify            Condition list -> list of Classification.
parse_conditions    Raw list -> typed nodes (Predicate, Operator, Group, ...).
flatten             Leaves of a parsed tree in encounter order.
split_or_branches   Leaves grouped by top-level OR branch.
Recurrence          Canonical recurrence categories.
"""

from __future__ import annotations

from almanac.recurrence.classifier import (
    Classification,
    ClassifierContext,
    MoonCondition,
    RandomConfig,
    Recurrence,
    branch_label,
    classify,
    classify_branch,
    derive_seed,
)
from almanac.recurrence.conditions import (
    Group,
    Operator,
    Predicate,
    UnknownCondition,
    flatten,
    has_or,
    parse_conditions,
    split_or_branches,
)

__all__ = [
    "Classification",
    "ClassifierContext",
    "Group",
    "MoonCondition",
    "Operator",
    "Predicate",
    "RandomConfig",
    "Recurrence",
    "UnknownCondition",
    "branch_label",
    "classify",
    "classify_branch",
    "derive_seed",
    "flatten",
    "has_or",
    "parse_conditions",
    "split_or_branches",
]
