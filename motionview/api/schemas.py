from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import (
    Card,
    DetectedObject,
    Event,
    GridView,
    InfoLabel,
    ModalState,
)


class ErrorResponseSchema(BaseModel):
    """Schema for error responses with consistent format.

    All error responses include detail, error_code, and timestamp
    for debugging and client-side error handling.
    """

    detail: str = Field(
        ...,
        description="Human-readable error message describing what went wrong",
        examples=["Card not found: 12"],
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code for programmatic handling",
        examples=["CARD_NOT_FOUND"],
    )
    timestamp: datetime = Field(
        ...,
        description="UTC timestamp when the error occurred",
        examples=["2025-05-19T02:22:21Z"],
    )


# --- Backend wire format ---


class BackendObjectSchema(BaseModel):
    """Detected object as returned by the archive backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    label: str = Field(..., alias="Class")
    confidence: float = Field(0.0, alias="Confidence")

    def to_domain(self) -> DetectedObject:
        return DetectedObject(label=self.label, confidence=self.confidence)


class BackendEventSchema(BaseModel):
    """Motion event as returned by the archive backend.

    The backend serializes empty slices as ``null``; those are read as empty
    lists.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_id: str = Field(..., alias="ID")
    motion_start: str = Field(..., alias="MotionStart")
    camera_name: str = Field("", alias="CameraName")
    snapshots: list[str] = Field(default_factory=list, alias="Snapshots")
    objects: list[BackendObjectSchema] = Field(default_factory=list, alias="Objects")
    video_file: str = Field("", alias="VideoFile")

    @field_validator("snapshots", "objects", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("camera_name", "video_file", mode="before")
    @classmethod
    def null_as_blank(cls, value):
        return "" if value is None else value

    def to_domain(self) -> Event:
        return Event(
            event_id=self.event_id,
            motion_start=self.motion_start,
            camera_name=self.camera_name,
            snapshots=list(self.snapshots),
            objects=[obj.to_domain() for obj in self.objects],
            video_file=self.video_file,
        )


class BackendTagSchema(BaseModel):
    """Keyword the backend recognized in the prompt."""

    tag: str
    type: str = ""


class BackendSearchResponseSchema(BaseModel):
    """Envelope of a backend search response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: list[BackendEventSchema]
    success: bool = True
    error: str | None = None
    time_start: str | None = Field(None, alias="timeStart")
    time_end: str | None = Field(None, alias="timeEnd")
    tags: list[BackendTagSchema] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def null_tags_as_empty(cls, value):
        return [] if value is None else value


# --- Viewer API ---


class ObjectIconSchema(BaseModel):
    label: str = Field(..., description="Detected object class")
    icon: str = Field(..., description="Icon class token", examples=["fas fa-car"])


class CardSchema(BaseModel):
    """Schema for a single gallery card."""

    index: int = Field(..., description="Position of the card in the grid", ge=0)
    event_id: str = Field(..., description="Identifier of the motion event")
    camera_name: str = Field(..., description="Camera that recorded the event")
    image_url: str = Field(
        ...,
        description="URL of the snapshot shown on the card",
        examples=["/images/2024-05-01/front_1.jpg"],
    )
    color: str = Field(
        ...,
        description="Glow color assigned to the event",
        examples=["hsla(30, 100%, 55%, 0.9)"],
    )
    icons: list[ObjectIconSchema] = Field(default_factory=list)

    @classmethod
    def from_card(cls, index: int, card: Card) -> "CardSchema":
        return cls(
            index=index,
            event_id=card.event.event_id,
            camera_name=card.event.camera_name,
            image_url=card.image_url,
            color=card.color,
            icons=[ObjectIconSchema(label=i.label, icon=i.icon) for i in card.icons],
        )


class PlaceholderSchema(BaseModel):
    kind: str = Field(..., examples=["loading", "empty", "error", "prompt"])
    message: str = Field(..., examples=["No events found for this period."])


class GalleryResponseSchema(BaseModel):
    """Schema for the gallery grid.

    Either ``placeholder`` is set and ``cards`` is empty, or ``cards`` holds the
    rendered events.
    """

    placeholder: PlaceholderSchema | None = None
    cards: list[CardSchema] = Field(default_factory=list)
    time_start: str | None = Field(None, description="Start of the resolved range")
    time_end: str | None = Field(None, description="End of the resolved range")
    tags: list[str] = Field(default_factory=list, description="Matched keywords")

    @classmethod
    def from_grid(cls, grid: GridView) -> "GalleryResponseSchema":
        placeholder = None
        if grid.placeholder is not None:
            placeholder = PlaceholderSchema(
                kind=grid.placeholder.kind.value, message=grid.placeholder.message
            )
        return cls(
            placeholder=placeholder,
            cards=[CardSchema.from_card(i, card) for i, card in enumerate(grid.cards)],
            time_start=grid.time_start,
            time_end=grid.time_end,
            tags=list(grid.tags),
        )


class InfoLabelSchema(BaseModel):
    text: str
    css_class: str | None = None


class ModalResponseSchema(BaseModel):
    """Schema for the playback modal and the detail view beside it."""

    is_open: bool = Field(..., description="Whether the modal is visible")
    video_url: str | None = Field(None, examples=["/rec/2024-05-01/clip.mp4"])
    poster_url: str | None = Field(None, examples=["/images/2024-05-01/front_1.jpg"])
    labels: list[InfoLabelSchema] = Field(default_factory=list)

    @classmethod
    def from_state(
        cls, modal: ModalState, labels: list[InfoLabel]
    ) -> "ModalResponseSchema":
        return cls(
            is_open=modal.is_open,
            video_url=getattr(modal, "video_url", None),
            poster_url=getattr(modal, "poster_url", None),
            labels=[
                InfoLabelSchema(text=label.text, css_class=label.css_class)
                for label in labels
            ],
        )


class ViewerStateSchema(BaseModel):
    gallery: GalleryResponseSchema
    modal: ModalResponseSchema
