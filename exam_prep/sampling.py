"""Unbiased shuffling shared by question selection and answer ordering."""
import random
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

Shuffler = Callable[[Sequence[T]], List[T]]


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Fisher-Yates shuffle into a new list; the input is never mutated.

    Args:
        items: Any sequence
        rng: Optional random.Random (seed it for reproducible runs)

    Returns:
        New list holding the same items in uniformly random order
    """
    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def make_shuffler(rng: Optional[random.Random] = None) -> Shuffler:
    """Bind a shuffle to one RNG so a whole exam draws from the same stream."""
    return lambda items: shuffle(items, rng)


def take_shuffled(items: Sequence[T], n: int, shuffler: Shuffler) -> List[T]:
    """Shuffle and keep the first n (capped at len(items), never padded)."""
    if n <= 0 or not items:
        return []
    return shuffler(items)[: min(n, len(items))]
