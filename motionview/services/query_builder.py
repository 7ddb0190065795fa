"""Query construction from the viewer's search form.

The backend accepts either a single natural-language prompt embedding a date
phrase and keywords, or separate start/end/keyword parameters. Which one is
used is a deployment choice (``QueryMode``); both are produced here from the
same ``SearchForm``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from ..domain.exceptions import NoSearchCriteriaError
from .config_loader import QueryMode

logger = logging.getLogger(__name__)

# Date phrases typed into the keyword box would conflict with the picked range
DATE_PHRASE_PATTERN = re.compile(r"today|yesterday|from .* to .*", re.IGNORECASE)

BACKEND_DATETIME_FORMAT = "%Y-%m-%d %H:%M"


class DateMode(Enum):
    """Quick-select options for the date range."""

    ANY = "any"
    TODAY = "today"
    YESTERDAY = "yesterday"
    CUSTOM = "custom"


@dataclass
class SearchForm:
    """Current state of the search controls.

    Attributes:
        keywords: Free text typed by the operator
        date_mode: Quick-select date option (prompt mode)
        picked_date: Calendar date used when ``date_mode`` is custom
        start: Range start for structured mode (datetime or datetime-local text)
        end: Range end for structured mode (datetime or datetime-local text)
    """

    keywords: str = ""
    date_mode: DateMode = DateMode.ANY
    picked_date: date | None = None
    start: datetime | str | None = None
    end: datetime | str | None = None

    @property
    def date_picker_visible(self) -> bool:
        """The calendar picker is only shown for a custom date."""
        return self.date_mode == DateMode.CUSTOM


@dataclass(frozen=True)
class PromptQuery:
    """Single free-text query with an embedded date phrase."""

    prompt: str

    def to_params(self) -> dict[str, str]:
        return {"prompt": self.prompt}


@dataclass(frozen=True)
class StructuredQuery:
    """Separate start/end/keyword query parameters."""

    start: str | None
    end: str | None
    keywords: str

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.start:
            params["start"] = self.start
        if self.end:
            params["end"] = self.end
        if self.keywords:
            params["q"] = self.keywords
        return params


QuerySpec = PromptQuery | StructuredQuery


def strip_date_phrases(keywords: str) -> str:
    """Remove date phrases from keyword text so they are not sent twice."""
    return DATE_PHRASE_PATTERN.sub("", keywords).strip()


def date_phrase(mode: DateMode, picked_date: date | None) -> str:
    """Build the date phrase the backend's natural-language parser expects.

    A custom date with nothing picked yields no phrase.
    """
    if mode == DateMode.TODAY:
        return "today"
    if mode == DateMode.YESTERDAY:
        return "yesterday"
    if mode == DateMode.CUSTOM and picked_date is not None:
        day = picked_date.isoformat()
        return f"from {day} 00:00 to {day} 23:59"
    return ""


def to_backend_datetime(value: datetime | str | None) -> str | None:
    """Convert a local date-time into the backend's "YYYY-MM-DD HH:MM" form.

    Accepts datetime objects or the text of a datetime-local control
    (``2024-05-01T13:45`` or ``2024-05-01T13:45:30``). Seconds and finer are
    dropped.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(BACKEND_DATETIME_FORMAT)

    text = value.strip()
    if not text:
        return None
    # "2024-05-01T13:45:30.5" -> "2024-05-01 13:45"
    return text.replace("T", " ", 1)[:16]


class QueryBuilder:
    """Turns the search form into one outbound query."""

    def __init__(self, mode: QueryMode = QueryMode.PROMPT):
        self.mode = mode

    def build(self, form: SearchForm) -> QuerySpec:
        """Build the query for the configured mode.

        Raises:
            NoSearchCriteriaError: If the form holds neither dates nor keywords.
        """
        if self.mode == QueryMode.STRUCTURED:
            return self.build_structured(form)
        return self.build_prompt(form)

    def build_prompt(self, form: SearchForm) -> PromptQuery:
        """Compose the date phrase and cleaned keywords into one prompt."""
        phrase = date_phrase(form.date_mode, form.picked_date)
        keywords = strip_date_phrases(form.keywords)

        prompt = f"{phrase} {keywords}".strip()
        if not prompt:
            raise NoSearchCriteriaError()

        logger.info(f"Querying API with prompt: {prompt}")
        return PromptQuery(prompt=prompt)

    def build_structured(self, form: SearchForm) -> StructuredQuery:
        """Convert the start/end pickers and keywords into separate parameters."""
        start = to_backend_datetime(form.start)
        end = to_backend_datetime(form.end)
        keywords = form.keywords.strip()

        if not start and not end and not keywords:
            raise NoSearchCriteriaError()

        query = StructuredQuery(start=start, end=end, keywords=keywords)
        logger.info(f"Querying API with parameters: {query.to_params()}")
        return query
