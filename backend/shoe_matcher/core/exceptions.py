"""Domain errors raised by the matching engine and translated to HTTP at the routes."""


class ShoeMatcherError(Exception):
    """Base class for all engine errors."""


class InvalidRequestError(ShoeMatcherError):
    """Request is missing mode-specific fields or carries out-of-range values."""


class CatalogueUnavailableError(ShoeMatcherError):
    """The shoe catalogue is missing, unreadable or empty."""


class InsufficientCandidatesError(ShoeMatcherError):
    """Fewer qualifying shoes than required, even after relaxation."""

    def __init__(self, found: int, required: int = 3, context: str = ""):
        self.found = found
        self.required = required
        self.context = context
        message = f"Unable to find {required} suitable recommendations. Only found {found} candidates"
        if context:
            message += f" for {context}"
        super().__init__(message + ".")
