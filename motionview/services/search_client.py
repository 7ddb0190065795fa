"""HTTP client for the archive backend's search endpoint."""

import logging
from dataclasses import dataclass, field

import httpx
from pydantic import ValidationError

from ..api.schemas import BackendSearchResponseSchema
from ..domain.exceptions import (
    MalformedResponseError,
    SearchResponseError,
    SearchTransportError,
)
from ..domain.models import Event
from .query_builder import QuerySpec

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass
class SearchResult:
    """Events returned for one query plus what the backend resolved.

    Attributes:
        events: Matching events, possibly empty
        time_start: Start of the date range the backend searched, if reported
        time_end: End of the date range the backend searched, if reported
        tags: Keywords the backend matched against cameras or object classes
    """

    events: list[Event]
    time_start: str | None = None
    time_end: str | None = None
    tags: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.events


class SearchClient:
    """Issues queries to the backend and decodes the event list.

    Each call is an independent attempt: there are no retries, and every
    failure surfaces as a ``SearchError`` subclass.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the search client.

        Args:
            api_url: Absolute URL of the backend search endpoint.
            timeout: Timeout in seconds for one round trip.
            client: Optional preconfigured HTTP client (used by tests).
        """
        self.api_url = api_url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def search(self, query: QuerySpec) -> SearchResult:
        """Run a query against the backend.

        Args:
            query: Prompt or structured query to send as URL parameters.

        Returns:
            SearchResult with the decoded events (empty when nothing matched).

        Raises:
            SearchTransportError: If the backend could not be reached.
            SearchResponseError: If the backend answered with a non-2xx status
                or reported ``success: false``.
            MalformedResponseError: If the body is not a valid event list.
        """
        params = query.to_params()
        try:
            response = await self._client.get(self.api_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Search request to {self.api_url} failed: {e}")
            raise SearchTransportError(f"Could not reach search backend: {e}") from e

        if not response.is_success:
            detail = _error_detail(response)
            logger.error(
                f"Search returned status {response.status_code}: {detail or '-'}"
            )
            raise SearchResponseError(response.status_code, detail)

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Search response is not JSON: {e}")
            raise MalformedResponseError("Response body is not valid JSON") from e

        if not isinstance(body, dict) or "data" not in body:
            logger.error(f"Invalid data structure: {body!r}")
            if isinstance(body, dict) and body.get("success") is False:
                raise SearchResponseError(response.status_code, body.get("error"))
            raise MalformedResponseError("Response has no 'data' field")

        if body.get("success") is False:
            logger.error(f"Search reported failure: {body.get('error')}")
            raise SearchResponseError(response.status_code, body.get("error"))

        try:
            parsed = BackendSearchResponseSchema.model_validate(body)
        except ValidationError as e:
            logger.error(f"Search response does not match event schema: {e}")
            raise MalformedResponseError(f"Invalid event data: {e}") from e

        events = [item.to_domain() for item in parsed.data]
        logger.debug(f"Received {len(events)} events")

        return SearchResult(
            events=events,
            time_start=parsed.time_start,
            time_end=parsed.time_end,
            tags=[tag.tag for tag in parsed.tags],
        )


def _error_detail(response: httpx.Response) -> str | None:
    """Extract the backend's own error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None

    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if body.get(key):
                return str(body[key])
    return None
