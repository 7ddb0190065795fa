"""Playback modal state machine and the event detail view."""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Protocol

from ..domain.models import Event, InfoLabel, ModalClosed, ModalOpen, ModalState

logger = logging.getLogger(__name__)

DISPLAY_TIME_FORMAT = "%d/%m/%y %H:%M:%S"

# Fractions longer than microseconds (nanosecond timestamps) are cut to six digits
_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


class MediaElement(Protocol):
    """Video element the modal delegates playback to."""

    src: str
    poster: str
    current_time: float

    def play(self) -> None: ...

    def pause(self) -> None: ...


class VideoElement:
    """In-memory video element that records what the page should show."""

    def __init__(self):
        self.src = ""
        self.poster = ""
        self.current_time = 0.0
        self.paused = True

    def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True


class ClickTarget(Enum):
    """Where a click inside the modal overlay landed."""

    BACKDROP = "backdrop"
    CONTENT = "content"


class PlaybackModal:
    """Modal showing an event's video.

    Transitions only through ``open`` and ``close``; a click on the backdrop
    closes it, a click on its content does not.
    """

    def __init__(self, player: MediaElement | None = None):
        self.player = player or VideoElement()
        self._state: ModalState = ModalClosed()

    @property
    def state(self) -> ModalState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    def open(self, video_url: str, poster_url: str) -> ModalState:
        """Show the modal and start playing a video."""
        self.player.poster = poster_url
        self.player.src = video_url
        self._state = ModalOpen(video_url=video_url, poster_url=poster_url)
        self.player.play()
        return self._state

    def close(self) -> ModalState:
        """Hide the modal, stop playback and rewind to the start."""
        self._state = ModalClosed()
        self.player.pause()
        self.player.current_time = 0
        return self._state

    def click(self, target: ClickTarget) -> ModalState:
        if target == ClickTarget.BACKDROP and self.is_open:
            return self.close()
        return self._state


def format_motion_start(timestamp: str) -> str:
    """Format an event timestamp as ``dd/mm/yy HH:MM:SS``.

    The time is shown as recorded, in the timestamp's own offset. Input that
    cannot be parsed is returned unchanged.
    """
    text = timestamp.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable motion start timestamp: {timestamp!r}")
        return timestamp
    return parsed.strftime(DISPLAY_TIME_FORMAT)


class DetailView:
    """Metadata labels shown beside the video for the last clicked card."""

    def __init__(self):
        self._labels: list[InfoLabel] = []

    @property
    def labels(self) -> list[InfoLabel]:
        return list(self._labels)

    def clear(self) -> None:
        self._labels = []

    def add_info_label(self, name: str, value: str, css_class: str | None = None):
        self._labels.append(InfoLabel(text=f"{name}: {value}", css_class=css_class))

    def add_plain_label(self, value: str, css_class: str | None = None):
        self._labels.append(InfoLabel(text=value, css_class=css_class))

    def show(self, event: Event, badges: list[str]) -> list[InfoLabel]:
        """Replace the labels with the given event's metadata and badges."""
        self.clear()
        self.add_info_label("ID", event.event_id, "infoLabelEventID")
        self.add_info_label(
            "T", format_motion_start(event.motion_start), "infoLabelTime"
        )
        self.add_info_label("Cam", event.camera_name, "infoLabelCameraName")
        for badge in badges:
            self.add_plain_label(badge)
        return self.labels
