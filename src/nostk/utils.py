"""Small shared helpers."""

from collections.abc import Iterable
from typing import TypeVar

T = TypeVar("T")


def deduplicate_preserving_order(items: Iterable[T]) -> list[T]:
    """Remove duplicates, keeping the first occurrence of each item in order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
