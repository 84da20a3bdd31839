"""
Leap-year classification.

Custom patterns are comma-separated modulus terms.  Each term may carry a
``!`` prefix (the term *denies* leap status when it matches) and a ``+``
prefix (the term tests the raw year, ignoring the rule's start offset)::

    "400,!100,4"    Gregorian written out by hand
    "8,!4"          never leap: every multiple of 8 is also denied by 4
    "+5"            every fifth year counted from year 0 regardless of start

Every matching term casts a vote; the year is leap when allow votes
outnumber deny votes.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np


@dataclass(frozen=True, slots=True)
class LeapTerm:
    modulus: int
    exclusive: bool = False       # "!" prefix, votes deny
    ignore_offset: bool = False   # "+" prefix, tests the raw year

    def matches(self, year: int, start: int) -> bool:
        if self.modulus <= 0:
            return False
        base = year if self.ignore_offset else year - start
        return base % self.modulus == 0

    def __str__(self) -> str:
        return f"{'!' if self.exclusive else ''}{'+' if self.ignore_offset else ''}{self.modulus}"


@lru_cache(maxsize=256)
def parse_leap_pattern(pattern: str) -> tuple[tuple[LeapTerm, ...], tuple[str, ...]]:
    """
    Parse a custom leap pattern into ``(terms, invalid_tokens)``.

    Empty segments are skipped; anything that is not ``[!][+]<int>`` (in
    either prefix order) lands in ``invalid_tokens`` instead of raising.
    """
    terms: list[LeapTerm] = []
    invalid: list[str] = []
    for raw in (pattern or "").split(","):
        token = raw.strip()
        if not token:
            continue
        body = token
        exclusive = ignore_offset = False
        while body[:1] in ("!", "+"):
            if body[0] == "!":
                exclusive = True
            else:
                ignore_offset = True
            body = body[1:].strip()
        try:
            modulus = int(body)
        except ValueError:
            invalid.append(token)
            continue
        terms.append(LeapTerm(modulus, exclusive, ignore_offset))
    return tuple(terms), tuple(invalid)


def vote(terms: tuple[LeapTerm, ...], year: int, start: int = 0) -> int:
    """Net vote (allows minus denies) of ``terms`` on ``year``."""
    net = 0
    for term in terms:
        if term.matches(year, start):
            net += -1 if term.exclusive else 1
    return net


def _gregorian(n):
    return (n % 4 == 0) & ((n % 100 != 0) | (n % 400 == 0))


def rule_is_leap(rule, year: int) -> bool:
    """Classify ``year`` under any of the leap rule variants in the model."""
    kind = rule.kind
    if kind == "simple":
        if rule.interval <= 0:
            return False
        return (year - rule.start) % rule.interval == 0
    if kind == "gregorian":
        return bool(_gregorian(year - rule.start))
    if kind == "custom":
        return vote(rule.terms, year, rule.start) > 0
    return False


def leap_mask(rule, years: np.ndarray) -> np.ndarray:
    """Vectorised :func:`rule_is_leap` over an integer array of years."""
    years = np.asarray(years, dtype=np.int64)
    kind = rule.kind
    if kind == "simple":
        if rule.interval <= 0:
            return np.zeros(years.shape, dtype=bool)
        return (years - rule.start) % rule.interval == 0
    if kind == "gregorian":
        return _gregorian(years - rule.start)
    if kind == "custom":
        net = np.zeros(years.shape, dtype=np.int64)
        for term in rule.terms:
            if term.modulus <= 0:
                continue
            base = years if term.ignore_offset else years - rule.start
            hit = (base % term.modulus == 0).astype(np.int64)
            net += -hit if term.exclusive else hit
        return net > 0
    return np.zeros(years.shape, dtype=bool)


def _multiples_below(n: int, m: int) -> int:
    # ceil(n / m); differences count the multiples of m in a half-open range
    return (n - 1) // m + 1


def count_leap_years(rule, lo: int, hi: int) -> int:
    """Number of leap years in ``[lo, hi)``; closed form except for custom patterns."""
    if hi <= lo:
        return 0
    kind = rule.kind
    if kind == "simple":
        if rule.interval <= 0:
            return 0
        a, b = lo - rule.start, hi - rule.start
        return _multiples_below(b, rule.interval) - _multiples_below(a, rule.interval)
    if kind == "gregorian":
        a, b = lo - rule.start, hi - rule.start

        def below(n: int) -> int:
            return _multiples_below(n, 4) - _multiples_below(n, 100) + _multiples_below(n, 400)

        return below(b) - below(a)
    if kind == "custom":
        return int(np.count_nonzero(leap_mask(rule, np.arange(lo, hi))))
    return 0


def describe_leap_rule(rule) -> str:
    kind = rule.kind
    if kind == "simple":
        suffix = f", starting at year {rule.start}" if rule.start else ""
        return f"Every {rule.interval} years{suffix}"
    if kind == "gregorian":
        suffix = f" (offset {rule.start})" if rule.start else ""
        return f"Gregorian: every 4 years, except centuries not divisible by 400{suffix}"
    if kind == "custom":
        parts = []
        for term in rule.terms:
            verb = "not when" if term.exclusive else "when"
            anchor = " (absolute)" if term.ignore_offset else ""
            parts.append(f"{verb} divisible by {term.modulus}{anchor}")
        body = "; ".join(parts) if parts else "no valid terms"
        return f"Custom pattern {rule.pattern!r}: {body}"
    return "No leap years"
