"""
Domain errors raised by the link, redirect and analytics services.

Validation-shaped errors end an operation cleanly with a message for the
caller. Persistence-shaped errors (StoreUnavailable) are infrastructure
faults and propagate to the HTTP layer as 5xx responses.
"""


class ShortenerError(Exception):
    """Base class for all SnapLink domain errors"""

    status_code = 500
    detail = "Internal error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class InvalidUrl(ShortenerError):
    status_code = 400
    detail = "Invalid URL format. Please provide a valid HTTP or HTTPS URL."


class InvalidExpiry(ShortenerError):
    status_code = 400
    detail = "Expiry must be in the future"


class InvalidCustomCode(ShortenerError):
    status_code = 400
    detail = (
        "Custom short code must be 4-12 characters long and contain only "
        "letters, numbers, hyphens, and underscores."
    )


class ReservedCode(ShortenerError):
    status_code = 400
    detail = "This short code is reserved. Please choose another."


class CodeTaken(ShortenerError):
    status_code = 409
    detail = "Custom short code is already taken"


class CodeGenerationExhausted(ShortenerError):
    status_code = 503
    detail = "Failed to generate unique short code. Please try again."


class DuplicateCode(ShortenerError):
    """The unique index rejected an insert: another writer won the race"""
    status_code = 409
    detail = "Short code already exists"


class LinkNotFound(ShortenerError):
    status_code = 404
    detail = "Short URL not found"


class LinkInactive(LinkNotFound):
    """An inactive link is a not-found link with its own message"""
    detail = "Short URL is inactive"


class LinkExpired(ShortenerError):
    status_code = 410
    detail = "Short URL has expired"


class StoreUnavailable(ShortenerError):
    status_code = 503
    detail = "Storage is temporarily unavailable"
