"""Tests for the session controller: query, render and playback flow."""

import asyncio
import random
from datetime import date
from unittest.mock import AsyncMock

import pytest

from motionview.domain.exceptions import (
    CardNotFoundError,
    MalformedResponseError,
    SearchResponseError,
    SearchTransportError,
)
from motionview.domain.models import DetectedObject, Event, PlaceholderKind
from motionview.services.config_loader import (
    BadgeMode,
    ColorMode,
    RenderMode,
    ViewerConfig,
)
from motionview.services.gallery_controller import (
    EMPTY_MESSAGE,
    ERROR_MESSAGE,
    LOADING_MESSAGE,
    PROMPT_MESSAGE,
    GalleryController,
)
from motionview.services.playback import ClickTarget
from motionview.services.query_builder import DateMode, SearchForm
from motionview.services.search_client import SearchResult


def make_event(event_id: str, snapshots=None, objects=None) -> Event:
    """Helper to create a test event."""
    return Event(
        event_id=event_id,
        motion_start="2024-05-01T13:45:10+02:00",
        camera_name="front",
        snapshots=snapshots if snapshots is not None else [f"{event_id}/s0.jpg"],
        objects=objects or [],
        video_file=f"{event_id}/clip.mp4",
    )


class GatedSearchClient:
    """Search client whose responses are released on demand, keyed by prompt."""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}
        self.outcomes: dict[str, SearchResult | Exception] = {}
        self.queries = []

    def respond(self, prompt: str, outcome, gated: bool = False):
        self.outcomes[prompt] = outcome
        if gated:
            self.gates[prompt] = asyncio.Event()

    async def search(self, query):
        self.queries.append(query)
        gate = self.gates.get(query.prompt)
        if gate is not None:
            await gate.wait()
        outcome = self.outcomes[query.prompt]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self):
        pass


@pytest.fixture
def config():
    return ViewerConfig(
        render_mode=RenderMode.EXPAND_ALL,
        color_mode=ColorMode.BUCKET,
        badge_mode=BadgeMode.AGGREGATE,
    )


@pytest.fixture
def client():
    return GatedSearchClient()


@pytest.fixture
def controller(config, client):
    return GalleryController(config, client, rng=random.Random(42))


class TestSubmit:
    """Tests for query outcomes reaching the grid."""

    @pytest.mark.asyncio
    async def test_results_become_cards(self, controller, client):
        client.respond(
            "person", SearchResult(events=[make_event("a"), make_event("b")])
        )

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder is None
        assert [card.event.event_id for card in grid.cards] == ["a", "b"]
        assert grid.cards[0].image_url == "/images/a/s0.jpg"

    @pytest.mark.asyncio
    async def test_empty_result_shows_empty_placeholder(self, controller, client):
        client.respond("person", SearchResult(events=[]))

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.EMPTY
        assert grid.placeholder.message == EMPTY_MESSAGE
        assert grid.cards == []

    @pytest.mark.asyncio
    async def test_events_without_snapshots_count_as_empty(self, controller, client):
        client.respond("person", SearchResult(events=[make_event("a", snapshots=[])]))

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.EMPTY

    @pytest.mark.asyncio
    async def test_network_error_shows_error_placeholder(self, controller, client):
        client.respond("person", SearchTransportError("connection refused"))

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.ERROR
        assert grid.placeholder.message == ERROR_MESSAGE
        assert grid.placeholder.is_error()
        assert grid.cards == []

    @pytest.mark.asyncio
    async def test_backend_error_text_is_shown(self, controller, client):
        client.respond("person", SearchResponseError(500, "disk unavailable"))

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.message == f"{ERROR_MESSAGE} disk unavailable"

    @pytest.mark.asyncio
    async def test_malformed_response_shows_error(self, controller, client):
        client.respond("person", MalformedResponseError("no data"))

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.ERROR

    @pytest.mark.asyncio
    async def test_no_criteria_shows_prompt_without_request(self, controller, client):
        grid = await controller.submit(SearchForm(keywords=""))

        assert grid.placeholder.kind == PlaceholderKind.PROMPT
        assert grid.placeholder.message == PROMPT_MESSAGE
        assert client.queries == []

    @pytest.mark.asyncio
    async def test_error_replaces_previous_cards(self, controller, client):
        client.respond("person", SearchResult(events=[make_event("a")]))
        client.respond("car", SearchTransportError("down"))

        await controller.submit(SearchForm(keywords="person"))
        grid = await controller.submit(SearchForm(keywords="car"))

        assert grid.cards == []
        assert grid.placeholder.kind == PlaceholderKind.ERROR

    @pytest.mark.asyncio
    async def test_unexpected_render_failure_is_contained(self, controller, client):
        client.respond("person", SearchResult(events=[make_event("a")]))
        controller.renderer.render = lambda events: 1 / 0

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.ERROR

    @pytest.mark.asyncio
    async def test_unexpected_search_failure_is_contained(self, controller, client):
        client.respond(
            "person", OverflowError("connect(): port must be 0-65535.")
        )

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.ERROR
        assert grid.placeholder.message == ERROR_MESSAGE
        assert grid.cards == []

    @pytest.mark.asyncio
    async def test_late_unexpected_failure_does_not_overwrite_newer(
        self, controller, client
    ):
        client.respond("person", RuntimeError("stream closed"), gated=True)
        client.respond("car", SearchResult(events=[make_event("b")]))

        first = asyncio.create_task(controller.submit(SearchForm(keywords="person")))
        await asyncio.sleep(0)
        await controller.submit(SearchForm(keywords="car"))
        client.gates["person"].set()
        await first

        assert [card.event.event_id for card in controller.grid.cards] == ["b"]

    @pytest.mark.asyncio
    async def test_empty_result_skips_rendering(self, controller, client):
        client.respond("person", SearchResult(events=[]))
        controller.renderer.render = lambda events: 1 / 0

        grid = await controller.submit(SearchForm(keywords="person"))

        assert grid.placeholder.kind == PlaceholderKind.EMPTY

    @pytest.mark.asyncio
    async def test_resolved_range_and_tags_are_kept(self, controller, client):
        client.respond(
            "car",
            SearchResult(
                events=[make_event("a")],
                time_start="2024-05-01T00:00:00Z",
                time_end="2024-05-01T23:59:59Z",
                tags=["car"],
            ),
        )

        grid = await controller.submit(SearchForm(keywords="car"))

        assert grid.time_start == "2024-05-01T00:00:00Z"
        assert grid.tags == ["car"]


class TestOrdering:
    """Tests for superseded queries."""

    @pytest.mark.asyncio
    async def test_loading_shown_before_response(self, controller, client):
        client.respond("person", SearchResult(events=[make_event("a")]), gated=True)

        task = asyncio.create_task(controller.submit(SearchForm(keywords="person")))
        await asyncio.sleep(0)

        assert controller.grid.placeholder.kind == PlaceholderKind.LOADING
        assert controller.grid.placeholder.message == LOADING_MESSAGE

        client.gates["person"].set()
        grid = await task
        assert len(grid.cards) == 1

    @pytest.mark.asyncio
    async def test_late_response_does_not_overwrite_newer(self, controller, client):
        client.respond("slow", SearchResult(events=[make_event("old")]), gated=True)
        client.respond("fast", SearchResult(events=[make_event("new")]))

        slow = asyncio.create_task(controller.submit(SearchForm(keywords="slow")))
        await asyncio.sleep(0)
        await controller.submit(SearchForm(keywords="fast"))

        client.gates["slow"].set()
        await slow

        assert [card.event.event_id for card in controller.grid.cards] == ["new"]

    @pytest.mark.asyncio
    async def test_late_error_does_not_overwrite_newer(self, controller, client):
        client.respond("slow", SearchTransportError("down"), gated=True)
        client.respond("fast", SearchResult(events=[]))

        slow = asyncio.create_task(controller.submit(SearchForm(keywords="slow")))
        await asyncio.sleep(0)
        await controller.submit(SearchForm(keywords="fast"))

        client.gates["slow"].set()
        await slow

        assert controller.grid.placeholder.kind == PlaceholderKind.EMPTY

    @pytest.mark.asyncio
    async def test_prompt_after_inflight_query_wins(self, controller, client):
        client.respond("slow", SearchResult(events=[make_event("old")]), gated=True)

        slow = asyncio.create_task(controller.submit(SearchForm(keywords="slow")))
        await asyncio.sleep(0)
        await controller.submit(SearchForm(keywords=""))

        client.gates["slow"].set()
        await slow

        assert controller.grid.placeholder.kind == PlaceholderKind.PROMPT


class TestColors:
    """Tests for colors across queries."""

    @pytest.mark.asyncio
    async def test_event_keeps_color_across_queries(self, controller, client):
        client.respond("a", SearchResult(events=[make_event("x"), make_event("y")]))
        client.respond("b", SearchResult(events=[make_event("y"), make_event("x")]))

        first = await controller.submit(SearchForm(keywords="a"))
        colors = {card.event.event_id: card.color for card in first.cards}
        second = await controller.submit(SearchForm(keywords="b"))

        for card in second.cards:
            assert card.color == colors[card.event.event_id]


class TestCardClicks:
    """Tests for opening and closing the playback modal."""

    @pytest.fixture
    def event(self):
        return make_event(
            "evt_7",
            snapshots=["evt_7/s0.jpg", "evt_7/s1.jpg"],
            objects=[
                DetectedObject("car", 0.8),
                DetectedObject("car", 0.95),
                DetectedObject("person", 0.6),
            ],
        )

    @pytest.mark.asyncio
    async def test_open_card_plays_video_with_snapshot_poster(
        self, controller, client, event
    ):
        client.respond("car", SearchResult(events=[event]))
        await controller.submit(SearchForm(keywords="car"))

        state = controller.open_card(1)

        assert state.is_open
        assert state.video_url == "/rec/evt_7/clip.mp4"
        assert state.poster_url == "/images/evt_7/s1.jpg"
        assert not controller.modal.player.paused

    @pytest.mark.asyncio
    async def test_open_card_fills_detail_view(self, controller, client, event):
        client.respond("car", SearchResult(events=[event]))
        await controller.submit(SearchForm(keywords="car"))

        controller.open_card(0)

        assert [label.text for label in controller.labels] == [
            "ID: evt_7",
            "T: 01/05/24 13:45:10",
            "Cam: front",
            "car (2) 95.0%",
            "person (1) 60.0%",
        ]

    @pytest.mark.asyncio
    async def test_close_keeps_detail_view(self, controller, client, event):
        client.respond("car", SearchResult(events=[event]))
        await controller.submit(SearchForm(keywords="car"))
        controller.open_card(0)
        controller.modal.player.current_time = 4.0

        state = controller.close_modal()

        assert not state.is_open
        assert controller.modal.player.paused
        assert controller.modal.player.current_time == 0
        assert len(controller.labels) == 5

    @pytest.mark.asyncio
    async def test_backdrop_click_closes(self, controller, client, event):
        client.respond("car", SearchResult(events=[event]))
        await controller.submit(SearchForm(keywords="car"))
        controller.open_card(0)

        state = controller.click_modal(ClickTarget.BACKDROP)

        assert not state.is_open

    def test_open_missing_card_raises(self, controller):
        with pytest.raises(CardNotFoundError):
            controller.open_card(0)


class TestRepresentativeMode:
    @pytest.mark.asyncio
    async def test_one_card_per_event(self, client):
        config = ViewerConfig(render_mode=RenderMode.REPRESENTATIVE)
        controller = GalleryController(config, client)
        client.respond(
            "car",
            SearchResult(
                events=[make_event("a", snapshots=["s0", "s1", "s2", "s3", "s4"])]
            ),
        )

        grid = await controller.submit(SearchForm(keywords="car"))

        assert [card.snapshot for card in grid.cards] == ["s2"]


class TestInitialForm:
    def test_defaults_to_today(self):
        form = GalleryController.initial_form(today=date(2024, 5, 1))

        assert form.date_mode == DateMode.TODAY
        assert form.picked_date == date(2024, 5, 1)
        assert form.keywords == ""

    def test_default_today_keyword_is_cleared(self):
        form = GalleryController.initial_form(keywords="today")
        assert form.keywords == ""


class TestWithMockClient:
    @pytest.mark.asyncio
    async def test_search_called_with_built_query(self, config):
        search_client = AsyncMock()
        search_client.search.return_value = SearchResult(events=[])
        controller = GalleryController(config, search_client)

        await controller.submit(
            SearchForm(keywords="car", date_mode=DateMode.YESTERDAY)
        )

        query = search_client.search.call_args.args[0]
        assert query.prompt == "yesterday car"
