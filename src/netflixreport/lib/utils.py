from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Hashable, List, Tuple, TypeVar, Optional

K = TypeVar("K", bound=Hashable)


def round_half_up(value: Decimal, places: int = 2) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def percentage(part: int, whole: int, places: int = 2) -> Decimal:
    return round_half_up(Decimal(part) * 100 / Decimal(whole), places)


def rank(counter: Counter, limit: Optional[int] = None) -> List[Tuple[K, int]]:
    """Count descending, ties broken by the key ascending."""
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return ranked if limit is None else ranked[:limit]


def top_ties(counter: Counter) -> List[Tuple[K, int]]:
    """All the keys sharing the maximum count (rank 1 with ties), sorted by key."""
    if not counter:
        return []
    best = max(counter.values())
    return sorted((key, count) for key, count in counter.items() if count == best)
