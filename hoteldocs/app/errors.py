"""Error taxonomy for the document search service.

Every domain failure derives from HotelDocsError and carries the HTTP status
it maps to. Exceptions are translated into the ``{"error", "details"}``
envelope only at the HTTP boundary (see main.py).
"""

from typing import Any


class HotelDocsError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    summary: str = "Internal server error"

    def __init__(self, details: str | None = None, *, summary: str | None = None) -> None:
        super().__init__(details or summary or self.summary)
        self.details = details
        if summary is not None:
            self.summary = summary


class InvalidInputError(HotelDocsError):
    """Missing or malformed request fields."""

    status_code = 400
    summary = "Invalid input"


class MissingScopeError(HotelDocsError):
    """Request has no hotel scope."""

    status_code = 400
    summary = "hotel_id is required"


class DocumentNotFoundError(HotelDocsError):
    """Document does not exist or belongs to another hotel."""

    status_code = 404
    summary = "Document not found"


class PayloadTooLargeError(HotelDocsError):
    """Uploaded file exceeds the configured size limit."""

    status_code = 413
    summary = "File too large"


class ModelUnavailableError(HotelDocsError):
    """Embedding model could not be loaded."""

    status_code = 500
    summary = "Embedding model unavailable"


class SearchBackendError(HotelDocsError):
    """All similarity-search attempts failed."""

    status_code = 500
    summary = "Database search failed"


class SearchTimeoutError(HotelDocsError):
    """Search exceeded its wall-clock budget."""

    status_code = 504
    summary = "Search timed out"


class StorageError(HotelDocsError):
    """Blob store operation failed."""

    status_code = 500
    summary = "Storage operation failed"


def error_envelope(exc: HotelDocsError) -> dict[str, Any]:
    """Render an exception as the public failure envelope."""
    body: dict[str, Any] = {"error": exc.summary}
    if exc.details:
        body["details"] = exc.details
    return body
