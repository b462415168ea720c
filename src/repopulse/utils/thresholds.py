"""Ordered threshold ladders for mapping scores onto tiers."""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def classify(value: float, ladder: Sequence[tuple[float, T]], default: T) -> T:
    """Return the tier of the first rung whose threshold ``value`` reaches.

    Rungs are ``(threshold, tier)`` pairs ordered from the highest threshold
    down. A value equal to a threshold belongs to that rung.
    """
    for threshold, tier in ladder:
        if value >= threshold:
            return tier
    return default
