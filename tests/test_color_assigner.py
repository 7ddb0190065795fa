"""Tests for event color assignment."""

import random

import pytest

from motionview.services.color_assigner import (
    DEFAULT_BUCKETS,
    MAX_BUCKET_ATTEMPTS,
    BucketColorStrategy,
    EventColorAssigner,
    HashColorStrategy,
    string_hash,
)
from motionview.services.config_loader import ColorMode


class ScriptedRandom:
    """Random source returning scripted values, then a fixed default."""

    def __init__(self, values=None, default=0):
        self.values = list(values or [])
        self.default = default
        self.calls = 0

    def shuffle(self, items):
        pass

    def randrange(self, stop):
        self.calls += 1
        value = self.values.pop(0) if self.values else self.default
        assert 0 <= value < stop
        return value


class TestStringHash:
    """Tests for the rolling string hash."""

    def test_empty_string(self):
        assert string_hash("") == 0

    def test_single_character(self):
        assert string_hash("a") == 97

    def test_matches_recurrence(self):
        # "ab": 98 + ((97 << 5) - 97) = 98 + 3007
        assert string_hash("ab") == 3105

    def test_wraps_to_signed_32_bit(self):
        value = string_hash("a-rather-long-event-identifier-1700000000")
        assert -(2**31) <= value < 2**31

    def test_counts_utf16_code_units(self):
        """Test astral characters hash as surrogate pairs."""
        high, low = 0xD83D, 0xDE97
        expected = (low + ((high << 5) - high)) & 0xFFFFFFFF
        if expected >= 2**31:
            expected -= 2**32
        assert string_hash("\U0001f697") == expected


class TestHashColorStrategy:
    """Tests for deterministic hash coloring."""

    def test_fresh_runs_agree(self):
        """Test two independent assigners produce identical colors."""
        ids = [f"event_{i}" for i in range(40)]
        first = EventColorAssigner(HashColorStrategy())
        second = EventColorAssigner(HashColorStrategy())

        assert [first.color_for(i) for i in ids] == [second.color_for(i) for i in ids]

    def test_index_into_flattened_palette(self):
        flat = [color.color for bucket in DEFAULT_BUCKETS for color in bucket]
        assignment = HashColorStrategy().pick("ab")

        assert assignment.index == 3105 % len(flat)
        assert assignment.color == flat[assignment.index]

    def test_empty_palette_rejected(self):
        with pytest.raises(ValueError):
            HashColorStrategy(buckets=())


class TestBucketColorStrategy:
    """Tests for randomized anti-repeat bucket coloring."""

    def test_never_three_in_a_row(self):
        """Test no bucket is chosen three times in a row."""
        strategy = BucketColorStrategy(rng=random.Random(1234))
        buckets = [strategy.pick(f"event_{i}").bucket for i in range(200)]

        for a, b, c in zip(buckets, buckets[1:], buckets[2:]):
            assert not (a == b == c)

    def test_rejects_last_two_buckets(self):
        """Test draws matching either recent bucket are retried."""
        rng = ScriptedRandom(values=[0, 1, 0, 1, 1, 0, 2])
        strategy = BucketColorStrategy(rng=rng)
        strategy.choose_bucket()
        strategy.choose_bucket()

        assert strategy.choose_bucket() == 2
        assert rng.calls == 7

    def test_color_comes_from_chosen_bucket(self):
        strategy = BucketColorStrategy(rng=random.Random(7))
        for i in range(30):
            assignment = strategy.pick(f"event_{i}")
            colors = [c.color for c in strategy.buckets[assignment.bucket]]
            assert assignment.color == colors[assignment.index]

    def test_fallback_after_max_attempts(self):
        """Test a source stuck on the last bucket falls back deterministically."""
        rng = ScriptedRandom(values=[1, 0, 0, 0], default=0)
        strategy = BucketColorStrategy(rng=rng)

        assert strategy.choose_bucket() == 1
        assert strategy.choose_bucket() == 0
        calls_before = rng.calls

        bucket = strategy.choose_bucket()

        # One past the older of the last two buckets (1)
        assert bucket == 2
        assert rng.calls - calls_before == MAX_BUCKET_ATTEMPTS
        assert strategy.last_two == [0, 2]

    def test_fallback_wraps_around(self):
        rng = ScriptedRandom(values=[2, 0], default=0)
        strategy = BucketColorStrategy(rng=rng)
        strategy.choose_bucket()
        strategy.choose_bucket()
        rng.default = 2

        assert strategy.choose_bucket() == 0

    def test_last_two_rolls_forward(self):
        rng = ScriptedRandom(values=[0, 0, 1, 0, 1, 2])
        strategy = BucketColorStrategy(rng=rng)

        strategy.pick("a")
        assert strategy.last_two == [-1, 0]
        strategy.pick("b")
        assert strategy.last_two == [0, 1]

    def test_shuffle_keeps_bucket_contents(self):
        strategy = BucketColorStrategy(rng=random.Random(1))

        for shuffled, original in zip(strategy.buckets, DEFAULT_BUCKETS):
            assert sorted(c.color for c in shuffled) == sorted(
                c.color for c in original
            )

    def test_empty_bucket_rejected(self):
        with pytest.raises(ValueError):
            BucketColorStrategy(buckets=((),))


class TestEventColorAssigner:
    """Tests for the memoized assigner."""

    @pytest.mark.parametrize("mode", [ColorMode.BUCKET, ColorMode.HASH])
    def test_repeated_lookup_is_identical(self, mode):
        assigner = EventColorAssigner.for_mode(mode, rng=random.Random(3))
        ids = ["a", "b", "c", "a", "b", "a"]

        first = {i: assigner.color_for(i) for i in ids}

        for i in ids:
            assert assigner.color_for(i) == first[i]
        assert len(assigner) == 3

    def test_strategy_called_once_per_id(self):
        class CountingStrategy:
            def __init__(self):
                self.calls = []

            def pick(self, event_id):
                self.calls.append(event_id)
                return HashColorStrategy().pick(event_id)

        strategy = CountingStrategy()
        assigner = EventColorAssigner(strategy)

        for _ in range(5):
            assigner.color_for("evt")

        assert strategy.calls == ["evt"]
        assert "evt" in assigner

    def test_every_id_gets_a_color(self):
        assigner = EventColorAssigner.for_mode(ColorMode.BUCKET)
        for i in range(100):
            assert assigner.color_for(str(i)).startswith("hsla(")
