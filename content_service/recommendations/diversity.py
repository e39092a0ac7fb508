"""Category/creator caps applied to the score-sorted candidate list."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence, TypeVar

from ..models import ContentItem

T = TypeVar("T")


def apply_diversity(
    ranked: Sequence[T],
    limit: int,
    max_per_category: int = 3,
    max_per_creator: int = 3,
    item_of=lambda candidate: candidate.item,
) -> List[T]:
    """Pick up to ``limit`` entries from a list already sorted best-first.

    The first pass accepts an entry only while both its category and its
    creator are under their caps. If that leaves the page short, a second
    pass appends the best remaining entries regardless of the caps, so the
    result always holds ``min(limit, len(ranked))`` entries.
    """
    if limit <= 0 or not ranked:
        return []

    selected: List[int] = []
    category_counts: Dict[str, int] = defaultdict(int)
    creator_counts: Dict[str, int] = defaultdict(int)

    for index, candidate in enumerate(ranked):
        item: ContentItem = item_of(candidate)
        if category_counts[item.category] >= max_per_category:
            continue
        if creator_counts[item.creator_id] >= max_per_creator:
            continue
        selected.append(index)
        category_counts[item.category] += 1
        creator_counts[item.creator_id] += 1
        if len(selected) >= limit:
            break

    if len(selected) < limit:
        taken = set(selected)
        for index in range(len(ranked)):
            if index in taken:
                continue
            selected.append(index)
            if len(selected) >= limit:
                break

    return [ranked[index] for index in selected]
