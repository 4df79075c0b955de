"""Tests for rarity-weighted sampling (no DB dependency)."""

import random
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from stickerbook.rarity import RARITY_WEIGHTS, draw, expected_share, weight_for


class TestWeights:
    """Test the fixed per-rarity weights."""

    def test_declared_weights(self):
        """Weights are the relative values 50/30/15/4/1."""
        assert RARITY_WEIGHTS == {"common": 50, "uncommon": 30, "rare": 15, "epic": 4, "legendary": 1}

    def test_unknown_rarity_rejected(self):
        """An unknown tier is an error, not a silent default."""
        with pytest.raises(ValueError):
            weight_for("mythic")

    def test_expected_share_balanced_catalogue(self):
        """One sticker per tier gives shares equal to weight / 100."""
        shares = expected_share(list(RARITY_WEIGHTS))
        assert shares["common"] == pytest.approx(0.50)
        assert shares["legendary"] == pytest.approx(0.01)
        assert sum(shares.values()) == pytest.approx(1.0)


class TestDraw:
    """Test independent weighted draws."""

    def test_draw_count(self):
        """A draw returns exactly the requested number of items."""
        assert len(draw(["a", "b"], ["common", "rare"], 5, rng=random.Random(1))) == 5

    def test_single_item_pool_repeats(self):
        """Sampling is with replacement: a one-item pool fills every slot."""
        assert draw(["only"], ["legendary"], 5, rng=random.Random(7)) == ["only"] * 5

    def test_empty_pool(self):
        """Drawing from nothing is an error."""
        with pytest.raises(ValueError):
            draw([], [], 5)

    def test_misaligned_inputs(self):
        """Every item needs a rarity."""
        with pytest.raises(ValueError):
            draw(["a", "b"], ["common"], 1)

    def test_seeded_draws_are_reproducible(self):
        """The same seed yields the same pack."""
        items = list("abcde")
        rarities = list(RARITY_WEIGHTS)
        assert draw(items, rarities, 5, rng=random.Random(42)) == draw(items, rarities, 5, rng=random.Random(42))

    def test_proportions_converge(self):
        """100,000 draws from a balanced catalogue match the weight proportions."""
        rarities = list(RARITY_WEIGHTS)
        trials = 100_000
        results = draw(rarities, rarities, trials, rng=random.Random(2024))

        total_weight = sum(RARITY_WEIGHTS.values())
        for tier, weight in RARITY_WEIGHTS.items():
            observed = results.count(tier) / trials
            assert abs(observed - weight / total_weight) < 0.01, tier
