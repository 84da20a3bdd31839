from __future__ import annotations

from functools import lru_cache
from typing import Sequence

import numpy as np

from .model import Month


class YearLayout:
    """
    Compiled year: month lengths + prefix-sum array.

    ``prefix[i]`` is the 0-based day-of-year on which month ``i`` (0-based)
    begins; ``prefix[-1]`` is the year length.  Lookups are a single
    ``searchsorted`` instead of a walk over the months.
    """

    def __init__(self, months: Sequence[Month], leap: bool = False) -> None:
        self._leap: bool = leap
        self._lengths: np.ndarray = np.array(
            [max(m.length(leap), 0) for m in months], dtype=np.int64
        )
        self._n: int = len(self._lengths)
        self._prefix: np.ndarray = np.zeros(self._n + 1, dtype=np.int64)
        np.cumsum(self._lengths, out=self._prefix[1:])
        self._total: int = int(self._prefix[self._n])

    # ── lookups ──────────────────────────────────────────────────────────

    def month_day(self, day_of_year: int) -> tuple[int, int]:
        """0-based ``day_of_year`` (wrapped) -> 1-based ``(month, day)``."""
        if self._total <= 0:
            return 1, 1
        d = int(day_of_year) % self._total
        i = int(np.searchsorted(self._prefix[1:], d, side="right"))
        if i >= self._n:
            # lengths disagree with the total; pin to the last day
            return self._n, int(self._lengths[-1]) or 1
        return i + 1, d - int(self._prefix[i]) + 1

    def day_of_year(self, month: int, day: int) -> int:
        """1-based ``(month, day)`` -> 0-based day-of-year."""
        if self._n == 0:
            return 0
        i = min(max(int(month), 1), self._n) - 1
        return int(self._prefix[i]) + int(day) - 1

    def month_days(self, day_of_year: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Vectorised :meth:`month_day` for an array of days."""
        d = np.atleast_1d(np.asarray(day_of_year, dtype=np.int64))
        if self._total <= 0:
            return np.ones_like(d), np.ones_like(d)
        d = d % self._total
        i = np.searchsorted(self._prefix[1:], d, side="right")
        i = np.clip(i, 0, self._n - 1)
        return i + 1, d - self._prefix[i] + 1

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return self._total

    @property
    def prefix(self) -> np.ndarray:
        return self._prefix.copy()

    @property
    def lengths(self) -> np.ndarray:
        return self._lengths.copy()

    def __len__(self) -> int:
        return self._n

    def __repr__(self) -> str:
        return (
            f"YearLayout(lengths={self._lengths.tolist()}, "
            f"total={self._total}, "
            f"leap={self._leap})"
        )


@lru_cache(maxsize=128)
def layout_for(months: tuple[Month, ...], leap: bool = False) -> YearLayout:
    """Shared, memoised layout; ``Month`` tuples are hashable."""
    return YearLayout(months, leap)
