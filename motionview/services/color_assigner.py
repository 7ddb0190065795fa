"""Stable per-event display colors.

Two strategies pick a color for an event id the first time it is seen:

- ``BucketColorStrategy`` draws from randomly shuffled color buckets and never
  picks one of the two most recently used buckets, so neighbouring events look
  visibly different.
- ``HashColorStrategy`` hashes the id into the flattened palette, giving the
  same color for the same id on every run.

``EventColorAssigner`` memoizes whichever strategy it is given, so an id keeps
its color for the lifetime of the assigner.
"""

import logging
import random
from dataclasses import dataclass
from typing import Protocol

from ..domain.models import ColorAssignment
from .config_loader import ColorMode

logger = logging.getLogger(__name__)

MAX_BUCKET_ATTEMPTS = 10


@dataclass(frozen=True)
class PaletteColor:
    label: str
    color: str


DEFAULT_BUCKETS: tuple[tuple[PaletteColor, ...], ...] = (
    # Warm colors
    (
        PaletteColor("Red", "hsla(0, 100%, 55%, 0.9)"),
        PaletteColor("Light Red", "hsla(15, 100%, 55%, 0.9)"),
        PaletteColor("Orange", "hsla(30, 100%, 55%, 0.9)"),
        PaletteColor("Gold", "hsla(45, 100%, 55%, 0.9)"),
        PaletteColor("Light Gold", "hsla(54, 100%, 63%, 0.9)"),
        PaletteColor("Yellow", "hsla(60, 100%, 55%, 0.9)"),
    ),
    # Cool colors
    (
        PaletteColor("Light Yellow", "hsla(75, 100%, 55%, 0.9)"),
        PaletteColor("Lime", "hsla(90, 100%, 55%, 0.9)"),
        PaletteColor("Light Green", "hsla(150, 100%, 55%, 0.9)"),
        PaletteColor("Cyan", "hsla(180, 100%, 55%, 0.9)"),
    ),
    # Purples and pinks
    (
        PaletteColor("Purple", "hsla(270, 100%, 55%, 0.9)"),
        PaletteColor("Lavender", "hsla(285, 100%, 55%, 0.9)"),
        PaletteColor("Magenta", "hsla(300, 100%, 55%, 0.8)"),
        PaletteColor("Pink", "hsla(330, 100%, 55%, 0.9)"),
    ),
)


class ColorStrategy(Protocol):
    def pick(self, event_id: str) -> ColorAssignment: ...


def string_hash(value: str) -> int:
    """Signed 32-bit rolling hash: ``hash = code + ((hash << 5) - hash)``.

    Iterates over UTF-16 code units so results agree with browser-side
    ``charCodeAt`` hashing for any string.
    """
    encoded = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        h = (code + ((h << 5) - h)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class HashColorStrategy:
    """Deterministic color picking by hashing the event id."""

    def __init__(self, buckets=DEFAULT_BUCKETS):
        self._flat: list[tuple[int, PaletteColor]] = [
            (bucket_index, color)
            for bucket_index, bucket in enumerate(buckets)
            for color in bucket
        ]
        if not self._flat:
            raise ValueError("Palette must contain at least one color")

    def pick(self, event_id: str) -> ColorAssignment:
        index = abs(string_hash(event_id)) % len(self._flat)
        bucket, entry = self._flat[index]
        return ColorAssignment(
            event_id=event_id, color=entry.color, bucket=bucket, index=index
        )


class BucketColorStrategy:
    """Randomized bucket picking that avoids the last two buckets used.

    Each bucket is shuffled once on construction. For every new id a random
    bucket is drawn, rejecting the two most recently used ones; after
    ``MAX_BUCKET_ATTEMPTS`` rejected draws the bucket after the older of the
    last two is used instead. A random color is then taken from the bucket.

    Attributes:
        last_two: Indices of the two most recently used buckets, oldest first
            (-1 while unused)
    """

    def __init__(self, buckets=DEFAULT_BUCKETS, rng: random.Random | None = None):
        if not buckets or any(len(bucket) == 0 for bucket in buckets):
            raise ValueError("Every color bucket must contain at least one color")
        self._rng = rng or random.Random()
        self._buckets: list[list[PaletteColor]] = []
        for bucket in buckets:
            shuffled = list(bucket)
            self._rng.shuffle(shuffled)
            self._buckets.append(shuffled)
        self.last_two: list[int] = [-1, -1]

    @property
    def buckets(self) -> list[list[PaletteColor]]:
        return self._buckets

    def choose_bucket(self) -> int:
        """Pick the next bucket index and record it as most recently used."""
        count = len(self._buckets)
        bucket = None
        for _ in range(MAX_BUCKET_ATTEMPTS):
            candidate = self._rng.randrange(count)
            if candidate not in self.last_two:
                bucket = candidate
                break

        if bucket is None:
            bucket = (self.last_two[0] + 1) % count
            logger.debug(f"No fresh color bucket found, falling back to {bucket}")

        self.last_two = [self.last_two[1], bucket]
        return bucket

    def pick(self, event_id: str) -> ColorAssignment:
        bucket = self.choose_bucket()
        colors = self._buckets[bucket]
        index = self._rng.randrange(len(colors))
        return ColorAssignment(
            event_id=event_id, color=colors[index].color, bucket=bucket, index=index
        )


class EventColorAssigner:
    """Memoized event id to color mapping for one viewer session."""

    def __init__(self, strategy: ColorStrategy):
        self.strategy = strategy
        self._assignments: dict[str, ColorAssignment] = {}

    @classmethod
    def for_mode(
        cls, mode: ColorMode, rng: random.Random | None = None
    ) -> "EventColorAssigner":
        """Create an assigner using the strategy for a configured color mode."""
        if mode == ColorMode.HASH:
            return cls(HashColorStrategy())
        return cls(BucketColorStrategy(rng=rng))

    def assignment_for(self, event_id: str) -> ColorAssignment:
        """Get the assignment for an id, picking one on first sight."""
        assignment = self._assignments.get(event_id)
        if assignment is None:
            assignment = self.strategy.pick(event_id)
            self._assignments[event_id] = assignment
        return assignment

    def color_for(self, event_id: str) -> str:
        """Get the display color for an event id."""
        return self.assignment_for(event_id).color

    def __len__(self) -> int:
        return len(self._assignments)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._assignments
