"""
Batch partitioning helpers.
"""

from collections import OrderedDict
from typing import Callable, Hashable, Iterable, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def chunk_list(items: list[T], size: int) -> list[list[T]]:
    """
    Split a list into consecutive chunks of at most size items.

    chunk_list([1, 2, 3, 4, 5], 2) -> [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [items[i:i + size] for i in range(0, len(items), size)]


def group_by(items: Iterable[T], key: Callable[[T], K]) -> "OrderedDict[K, list[T]]":
    """Group items by key, keeping first-seen key order and item order."""
    groups: OrderedDict = OrderedDict()
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups
