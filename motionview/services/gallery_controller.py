"""Page-session controller tying queries, rendering and playback together."""

import logging
import random
from datetime import date

from ..domain.exceptions import (
    CardNotFoundError,
    NoSearchCriteriaError,
    SearchError,
    SearchResponseError,
)
from ..domain.models import Card, GridView, InfoLabel, ModalState, PlaceholderKind
from .color_assigner import EventColorAssigner
from .config_loader import ViewerConfig
from .gallery_renderer import GalleryRenderer, join_url
from .playback import ClickTarget, DetailView, MediaElement, PlaybackModal
from .query_builder import DateMode, QueryBuilder, SearchForm
from .search_client import SearchClient, SearchResult

logger = logging.getLogger(__name__)

PROMPT_MESSAGE = "Enter a date range or keywords to search."
LOADING_MESSAGE = "Loading events..."
EMPTY_MESSAGE = "No events found for this period."
ERROR_MESSAGE = "Error fetching data."


class GalleryController:
    """Owns all state of one viewer session.

    The color memo, the modal, the detail view and the grid live here for as
    long as the controller does. Queries are numbered as they are issued; a
    response is only rendered if no newer query was issued while it was in
    flight.

    Attributes:
        grid: Current grid content
        modal: Playback modal
        detail: Detail view for the last opened card
        colors: Event color memo
    """

    def __init__(
        self,
        config: ViewerConfig,
        search_client: SearchClient,
        player: MediaElement | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.search_client = search_client
        self.query_builder = QueryBuilder(config.query_mode)
        self.colors = EventColorAssigner.for_mode(config.color_mode, rng=rng)
        self.renderer = GalleryRenderer(
            self.colors,
            image_base_url=config.image_base_url,
            render_mode=config.render_mode,
            icon_match=config.icon_match,
            badge_mode=config.badge_mode,
        )
        self.modal = PlaybackModal(player)
        self.detail = DetailView()
        self.grid = GridView()
        self.form = SearchForm()
        self._generation = 0

    @staticmethod
    def initial_form(today: date | None = None, keywords: str = "") -> SearchForm:
        """Form the page starts with: today's events, no keywords."""
        if keywords.strip().lower() == "today":
            keywords = ""
        return SearchForm(
            keywords=keywords,
            date_mode=DateMode.TODAY,
            picked_date=today or date.today(),
        )

    @property
    def generation(self) -> int:
        """Number of queries issued so far."""
        return self._generation

    async def submit(self, form: SearchForm) -> GridView:
        """Run a query for the form and render its outcome into the grid.

        The grid switches to the loading placeholder before the request is
        sent. Failures end in a placeholder and are never raised.
        """
        self.form = form
        try:
            query = self.query_builder.build(form)
        except NoSearchCriteriaError:
            self._generation += 1
            self.grid = GridView.showing(PlaceholderKind.PROMPT, PROMPT_MESSAGE)
            return self.grid

        self._generation += 1
        ticket = self._generation
        self.grid = GridView.showing(PlaceholderKind.LOADING, LOADING_MESSAGE)

        try:
            result = await self.search_client.search(query)
        except SearchError as e:
            if self._is_stale(ticket):
                return self.grid
            logger.error(f"Search failed: {e}")
            self.grid = GridView.showing(PlaceholderKind.ERROR, _error_message(e))
            return self.grid
        except Exception as e:
            if self._is_stale(ticket):
                return self.grid
            logger.error(f"Unexpected error during search: {e}", exc_info=True)
            self.grid = GridView.showing(PlaceholderKind.ERROR, ERROR_MESSAGE)
            return self.grid

        if self._is_stale(ticket):
            return self.grid

        try:
            self.grid = self._render(result)
        except Exception as e:
            logger.error(f"Failed to render search results: {e}", exc_info=True)
            self.grid = GridView.showing(PlaceholderKind.ERROR, ERROR_MESSAGE)
        return self.grid

    def _is_stale(self, ticket: int) -> bool:
        if ticket != self._generation:
            logger.info(
                f"Discarding response for query {ticket}, "
                f"query {self._generation} is newer"
            )
            return True
        return False

    def _render(self, result: SearchResult) -> GridView:
        cards = [] if result.is_empty() else self.renderer.render(result.events)
        if not cards:
            grid = GridView.showing(PlaceholderKind.EMPTY, EMPTY_MESSAGE)
        else:
            grid = GridView(cards=cards)
        grid.time_start = result.time_start
        grid.time_end = result.time_end
        grid.tags = list(result.tags)
        return grid

    def card(self, index: int) -> Card:
        if index < 0 or index >= len(self.grid.cards):
            raise CardNotFoundError(index)
        return self.grid.cards[index]

    def open_card(self, index: int) -> ModalState:
        """Play the clicked card's video and show its event details.

        Raises:
            CardNotFoundError: If the grid has no card at ``index``.
        """
        card = self.card(index)
        event = card.event
        state = self.modal.open(
            video_url=join_url(self.config.video_base_url, event.video_file),
            poster_url=card.image_url,
        )
        self.detail.show(event, self.renderer.badges_for(event))
        return state

    def close_modal(self) -> ModalState:
        return self.modal.close()

    def click_modal(self, target: ClickTarget) -> ModalState:
        return self.modal.click(target)

    @property
    def labels(self) -> list[InfoLabel]:
        return self.detail.labels


def _error_message(error: SearchError) -> str:
    if isinstance(error, SearchResponseError) and error.detail:
        return f"{ERROR_MESSAGE} {error.detail}"
    return ERROR_MESSAGE
