"""Domain models for the motion-event viewer."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class DetectedObject:
    """An object detected during a motion event.

    Attributes:
        label: Class label reported by the detector (e.g. "car", "person")
        confidence: Detector confidence in [0, 1]
    """

    label: str
    confidence: float


class Event:
    """Domain model for a motion event - pure business object."""

    def __init__(
        self,
        event_id: str,
        motion_start: str,
        camera_name: str,
        snapshots: list[str],
        objects: list[DetectedObject],
        video_file: str,
    ):
        self.event_id = event_id
        self.motion_start = motion_start
        self.camera_name = camera_name
        self.snapshots = snapshots
        self.objects = objects
        self.video_file = video_file

    def has_snapshots(self) -> bool:
        """Check if the event captured at least one snapshot."""
        return len(self.snapshots) > 0

    def representative_snapshot(self) -> str | None:
        """Get the snapshot at the middle of the event's sequence."""
        if not self.snapshots:
            return None
        return self.snapshots[len(self.snapshots) // 2]

    def distinct_labels(self) -> list[str]:
        """Get object labels in order of first appearance, without repeats."""
        labels: list[str] = []
        for obj in self.objects:
            if obj.label not in labels:
                labels.append(obj.label)
        return labels


@dataclass(frozen=True)
class ColorAssignment:
    """Color picked for an event id.

    Attributes:
        event_id: Identifier the color belongs to
        color: Display color (CSS color string)
        bucket: Index of the color bucket the color was drawn from
        index: Position of the color in the bucket (or flattened palette)
    """

    event_id: str
    color: str
    bucket: int
    index: int


@dataclass(frozen=True)
class ObjectSummary:
    """Aggregate of all detections sharing one class label within an event."""

    label: str
    count: int
    max_confidence: float


@dataclass(frozen=True)
class ObjectIcon:
    """Icon overlay for one distinct object class on a card."""

    label: str
    icon: str


@dataclass
class Card:
    """One rendered gallery tile.

    Attributes:
        event: Event the card belongs to
        snapshot: Snapshot path as returned by the backend
        image_url: Fetchable URL of the snapshot
        color: Glow color assigned to the event
        icons: One icon per distinct object class
    """

    event: Event
    snapshot: str
    image_url: str
    color: str
    icons: list[ObjectIcon] = field(default_factory=list)


@dataclass(frozen=True)
class InfoLabel:
    """A single label in the event detail view."""

    text: str
    css_class: str | None = None


class PlaceholderKind(Enum):
    """Reasons the grid shows a message instead of cards."""

    PROMPT = "prompt"
    LOADING = "loading"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class Placeholder:
    """Message shown in place of the whole grid."""

    kind: PlaceholderKind
    message: str

    def is_error(self) -> bool:
        """Check if the placeholder reports a failure."""
        return self.kind == PlaceholderKind.ERROR


@dataclass
class GridView:
    """Current content of the gallery grid.

    Exactly one of ``placeholder`` and ``cards`` is meaningful: a grid showing a
    placeholder never carries cards.
    """

    placeholder: Placeholder | None = None
    cards: list[Card] = field(default_factory=list)
    time_start: str | None = None
    time_end: str | None = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def showing(cls, kind: PlaceholderKind, message: str) -> "GridView":
        """Create a grid that only shows a placeholder."""
        return cls(placeholder=Placeholder(kind=kind, message=message))


@dataclass(frozen=True)
class ModalClosed:
    """Playback modal is hidden."""

    is_open = False


@dataclass(frozen=True)
class ModalOpen:
    """Playback modal is visible and playing a video."""

    video_url: str
    poster_url: str
    is_open = True


ModalState = ModalClosed | ModalOpen
