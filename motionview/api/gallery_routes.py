"""JSON API for the viewer: run queries, open cards, close the modal."""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from ..domain.exceptions import CardNotFoundError
from ..services.gallery_controller import GalleryController
from ..services.playback import ClickTarget
from ..services.query_builder import DateMode, SearchForm
from .schemas import (
    ErrorResponseSchema,
    GalleryResponseSchema,
    ModalResponseSchema,
    ViewerStateSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gallery"])


def create_error_response(
    status_code: int, detail: str, error_code: str
) -> JSONResponse:
    """Create a consistent error response with detail, error_code, and timestamp."""
    error_data = ErrorResponseSchema(
        detail=detail,
        error_code=error_code,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_data.model_dump(mode="json"),
    )


def get_controller(request: Request) -> GalleryController:
    """Dependency returning the session's controller."""
    return request.app.state.controller


def search_form(
    keywords: str = Query("", description="Free-text keywords"),
    date_mode: DateMode = Query(DateMode.ANY, description="Quick-select date"),
    date_value: date | None = Query(
        None, alias="date", description="Calendar date for the custom date mode"
    ),
    start: str | None = Query(
        None, description="Range start (structured mode)", examples=["2024-05-01T08:00"]
    ),
    end: str | None = Query(
        None, description="Range end (structured mode)", examples=["2024-05-01T18:30"]
    ),
) -> SearchForm:
    """Dependency building the search form from query parameters."""
    return SearchForm(
        keywords=keywords,
        date_mode=date_mode,
        picked_date=date_value,
        start=start,
        end=end,
    )


def modal_response(controller: GalleryController) -> ModalResponseSchema:
    return ModalResponseSchema.from_state(controller.modal.state, controller.labels)


@router.get("/gallery", response_model=GalleryResponseSchema)
async def query_gallery(
    form: SearchForm = Depends(search_form),
    controller: GalleryController = Depends(get_controller),
) -> GalleryResponseSchema:
    """Run a query and return the resulting grid.

    Failed or empty searches still answer 200 with a placeholder describing
    the outcome.
    """
    grid = await controller.submit(form)
    return GalleryResponseSchema.from_grid(grid)


@router.get("/state", response_model=ViewerStateSchema)
async def get_state(
    controller: GalleryController = Depends(get_controller),
) -> ViewerStateSchema:
    """Return the current grid, modal and detail view without querying."""
    return ViewerStateSchema(
        gallery=GalleryResponseSchema.from_grid(controller.grid),
        modal=modal_response(controller),
    )


@router.post(
    "/gallery/cards/{card_index}/open",
    response_model=ModalResponseSchema,
    responses={404: {"model": ErrorResponseSchema}},
)
async def open_card(
    card_index: int,
    controller: GalleryController = Depends(get_controller),
):
    """Open the playback modal for a card and fill in the detail view."""
    try:
        controller.open_card(card_index)
    except CardNotFoundError as e:
        return create_error_response(
            status.HTTP_404_NOT_FOUND, str(e), "CARD_NOT_FOUND"
        )
    return modal_response(controller)


@router.post("/modal/close", response_model=ModalResponseSchema)
async def close_modal(
    controller: GalleryController = Depends(get_controller),
) -> ModalResponseSchema:
    """Close the modal, stopping and rewinding playback."""
    controller.close_modal()
    return modal_response(controller)


@router.post("/modal/backdrop", response_model=ModalResponseSchema)
async def click_backdrop(
    controller: GalleryController = Depends(get_controller),
) -> ModalResponseSchema:
    """Handle a click on the modal backdrop outside its content."""
    controller.click_modal(ClickTarget.BACKDROP)
    return modal_response(controller)
