"""Turns search results into gallery cards and detail badges."""

import logging

from ..domain.models import Card, DetectedObject, Event, ObjectIcon, ObjectSummary
from .color_assigner import EventColorAssigner
from .config_loader import BadgeMode, IconMatch, RenderMode

logger = logging.getLogger(__name__)

UNKNOWN_ICON = "fas fa-question"

OBJECT_ICONS = {
    "car": "fas fa-car",
    "truck": "fas fa-truck",
    "person": "fas fa-user",
    "bicycle": "fas fa-bicycle",
    "motorcycle": "fas fa-motorcycle",
    "bus": "fas fa-bus",
    "cat": "fas fa-cat",
    "dog": "fas fa-dog",
    "boat": "fas fa-ship",
}

# Most specific labels first: "motorcycle" must win over "car"/"cycle" lookalikes
CONTAINS_PRIORITY = (
    "motorcycle",
    "bicycle",
    "truck",
    "bus",
    "car",
    "person",
    "cat",
    "dog",
    "boat",
)


def icon_for_label(label: str, match: IconMatch = IconMatch.EXACT) -> str:
    """Map an object class label to its icon token."""
    if match == IconMatch.EXACT:
        return OBJECT_ICONS.get(label, UNKNOWN_ICON)

    lowered = label.lower()
    for key in CONTAINS_PRIORITY:
        if key in lowered:
            return OBJECT_ICONS[key]
    return UNKNOWN_ICON


def summarize_objects(objects: list[DetectedObject]) -> list[ObjectSummary]:
    """Aggregate detections by class label, keeping first-seen order."""
    counts: dict[str, int] = {}
    best: dict[str, float] = {}
    for obj in objects:
        counts[obj.label] = counts.get(obj.label, 0) + 1
        best[obj.label] = max(best.get(obj.label, obj.confidence), obj.confidence)
    return [
        ObjectSummary(label=label, count=count, max_confidence=best[label])
        for label, count in counts.items()
    ]


def format_badge(summary: ObjectSummary, mode: BadgeMode = BadgeMode.AGGREGATE) -> str:
    """Format one object badge: ``car (2) 95.0%`` or ``car (2)``."""
    text = f"{summary.label} ({summary.count})"
    if mode == BadgeMode.AGGREGATE:
        text += f" {summary.max_confidence * 100:.1f}%"
    return text


def join_url(base: str, path: str) -> str:
    """Join a relative asset path to a base prefix with exactly one slash."""
    if not base:
        return path
    return base.rstrip("/") + "/" + path.lstrip("/")


class GalleryRenderer:
    """Builds gallery cards from events.

    In expand-all mode every snapshot of every event becomes a card. In
    representative mode each event yields one card showing its middle
    snapshot. Events without snapshots never produce a card.
    """

    def __init__(
        self,
        colors: EventColorAssigner,
        image_base_url: str = "/images/",
        render_mode: RenderMode = RenderMode.EXPAND_ALL,
        icon_match: IconMatch = IconMatch.EXACT,
        badge_mode: BadgeMode = BadgeMode.AGGREGATE,
    ):
        self.colors = colors
        self.image_base_url = image_base_url
        self.render_mode = render_mode
        self.icon_match = icon_match
        self.badge_mode = badge_mode

    def render(self, events: list[Event]) -> list[Card]:
        """Render events into cards in result order."""
        cards: list[Card] = []
        skipped = 0
        for event in events:
            if not event.has_snapshots():
                skipped += 1
                continue
            cards.extend(self.render_event(event))

        if skipped:
            logger.debug(f"Skipped {skipped} events without snapshots")
        return cards

    def render_event(self, event: Event) -> list[Card]:
        """Render the cards for a single event."""
        if self.render_mode == RenderMode.REPRESENTATIVE:
            snapshots = [event.representative_snapshot()]
        else:
            snapshots = event.snapshots

        color = self.colors.color_for(event.event_id)
        icons = self.icons_for(event)
        return [
            Card(
                event=event,
                snapshot=snapshot,
                image_url=join_url(self.image_base_url, snapshot),
                color=color,
                icons=list(icons),
            )
            for snapshot in snapshots
            if snapshot is not None
        ]

    def icons_for(self, event: Event) -> list[ObjectIcon]:
        """One icon per distinct object class in the event."""
        return [
            ObjectIcon(label=label, icon=icon_for_label(label, self.icon_match))
            for label in event.distinct_labels()
        ]

    def badges_for(self, event: Event) -> list[str]:
        """Detail view badges, one per distinct object class."""
        return [
            format_badge(summary, self.badge_mode)
            for summary in summarize_objects(event.objects)
        ]
