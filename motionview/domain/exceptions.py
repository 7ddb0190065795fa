"""Domain exceptions for the viewer."""


class ViewerError(Exception):
    """Base exception for viewer errors."""

    pass


class ConfigError(ViewerError):
    """Raised when a configuration value is invalid.

    Attributes:
        key: Name of the offending configuration key
    """

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid config value for '{key}': {message}")


class NoSearchCriteriaError(ViewerError):
    """Raised when a query is requested with neither dates nor keywords."""

    def __init__(self):
        super().__init__("No date range or keywords were given")


class SearchError(ViewerError):
    """Base exception for failed searches against the archive backend."""

    pass


class SearchTransportError(SearchError):
    """Raised when the backend could not be reached."""

    pass


class SearchResponseError(SearchError):
    """Raised when the backend answered with an error.

    Attributes:
        status_code: HTTP status of the response
        detail: Error text reported by the backend, if any
    """

    def __init__(self, status_code: int, detail: str | None = None):
        self.status_code = status_code
        self.detail = detail
        message = f"Search failed with status {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class MalformedResponseError(SearchError):
    """Raised when the backend body cannot be decoded into events."""

    pass


class CardNotFoundError(ViewerError):
    """Raised when a card index is not present in the current grid.

    Attributes:
        index: The requested card index
    """

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Card not found: {index}")
