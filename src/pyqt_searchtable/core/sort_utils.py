"""Sorting utilities."""

from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


def priority_sort(items: Iterable[T], priority: Callable[[T], Optional[int]]) -> List[T]:
    """
    Order items by an optional explicit priority index.

    Items with a non-negative index come first, ascending by index. Items
    without one follow, in their original order. Ties keep original order.
    """
    def sort_key(pair):
        position, item = pair
        index = priority(item)
        if index is not None and index >= 0:
            return (0, index, position)
        return (1, 0, position)

    return [item for _, item in sorted(enumerate(items), key=sort_key)]
