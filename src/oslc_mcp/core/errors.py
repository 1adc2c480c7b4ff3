from .client import OslcClientError, OslcHTTPError, OslcParseError


class QueryExhaustedError(OslcClientError):
    """Raised when advancing a query whose last page carried no oslc:nextPage."""

    def __init__(self, url: str):
        super().__init__(f"No further pages after {url}")
        self.url = url


class DialogCancelledError(OslcClientError):
    """Raised when a dialog is dismissed before it posts a response."""


__all__ = [
    "OslcClientError",
    "OslcHTTPError",
    "OslcParseError",
    "QueryExhaustedError",
    "DialogCancelledError",
]
