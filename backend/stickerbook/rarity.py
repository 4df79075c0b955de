"""
Rarity-weighted sticker sampling.

Every sticker in the catalogue gets a relative weight from its rarity tier:

    common 50, uncommon 30, rare 15, epic 4, legendary 1

A pack is a fixed number of independent draws from the whole weighted pool
(with replacement), so the probability of drawing sticker s is

    P(s) = w(s) / sum_j w(j)

The weights are relative, not percentages of a depleting pool.
"""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")

RARITY_WEIGHTS: dict[str, int] = {
    "common": 50,
    "uncommon": 30,
    "rare": 15,
    "epic": 4,
    "legendary": 1,
}


def weight_for(rarity: str) -> int:
    """Relative weight of a rarity tier.

    Raises:
        ValueError: If the rarity tier is unknown.
    """
    try:
        return RARITY_WEIGHTS[rarity]
    except KeyError:
        raise ValueError(f"Unknown rarity tier: {rarity!r}")


def draw(
    items: Sequence[T],
    rarities: Sequence[str],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[T]:
    """Draw ``count`` items independently, weighted by their rarity.

    Args:
        items: Candidate pool (e.g. every sticker in the catalogue).
        rarities: Rarity tier of each item, aligned with ``items``.
        count: Number of draws.
        rng: Random source; defaults to the module-level generator.

    Returns:
        A list of ``count`` items; the same item may appear more than once.

    Raises:
        ValueError: If the pool is empty, the inputs are misaligned or count < 0.
    """
    if not items:
        raise ValueError("Cannot draw from an empty pool")
    if len(items) != len(rarities):
        raise ValueError("items and rarities must have the same length")
    if count < 0:
        raise ValueError("count must be non-negative")

    weights = [weight_for(r) for r in rarities]
    rng = rng or random
    return rng.choices(list(items), weights=weights, k=count)


def expected_share(rarities: Sequence[str]) -> dict[str, float]:
    """Expected fraction of draws landing in each tier for a given catalogue."""
    weights = [weight_for(r) for r in rarities]
    total = sum(weights)
    if total == 0:
        return {}
    shares: dict[str, float] = {}
    for rarity, w in zip(rarities, weights):
        shares[rarity] = shares.get(rarity, 0.0) + w / total
    return shares
