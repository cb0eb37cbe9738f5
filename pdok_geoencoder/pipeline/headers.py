"""Collision-free output column and property names."""

from __future__ import annotations

from collections import Counter
from typing import Iterable


def make_unique(existing_names: Iterable[str], candidate_names: Iterable[str]) -> list[str]:
    """Rename candidates that clash with ``existing_names`` or with each other.

    A clashing ``name`` becomes ``name_<k>`` for the smallest ``k`` not taken
    so far in this call. ``make_unique(["a"], ["a", "a"]) == ["a_1", "a_2"]``.
    """
    counts = Counter(existing_names)
    unique: list[str] = []
    for name in candidate_names:
        final = name
        if counts[name]:
            suffix = 1
            while counts[f"{name}_{suffix}"]:
                suffix += 1
            final = f"{name}_{suffix}"
        counts[final] = 1
        unique.append(final)
    return unique
