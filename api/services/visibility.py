"""
Spoiler gate for segment discussions.

A member may read a segment's discussion once they completed that segment or any
segment ordered after it. Completion need not be sequential: jumping ahead unlocks
every earlier discussion.
"""

from typing import Iterable, Protocol, Set


class Ordered(Protocol):
    id: str
    order_index: int


def can_view(segments: Iterable[Ordered], completed_ids: Set[str], target: Ordered) -> bool:
    if target.id in completed_ids:
        return True
    return any(s.order_index > target.order_index and s.id in completed_ids for s in segments)


def visible_segment_ids(segments: Iterable[Ordered], completed_ids: Set[str]) -> Set[str]:
    """Gate every segment at once: everything up to the furthest completed order is visible."""
    segments = list(segments)
    completed_orders = [s.order_index for s in segments if s.id in completed_ids]
    if not completed_orders:
        return set()
    furthest = max(completed_orders)
    return {s.id for s in segments if s.order_index <= furthest}
