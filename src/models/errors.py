# src/models/errors.py

"""Exception taxonomy for the price-monitoring engine."""


class PriceTrackerError(Exception):
    """Base class for every error raised by price_tracker."""


class FetchFailure(PriceTrackerError):
    """A document could not be retrieved (network, timeout, HTTP status)."""

    def __init__(
        self,
        url: str,
        reason: str,
        status: int | None = None,
    ) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Fetch failed for {url}: {reason}")


class ExtractionFailure(PriceTrackerError):
    """No price could be resolved from a fetched document."""

    def __init__(self, reason: str, store: str | None = None) -> None:
        self.reason = reason
        self.store = store
        super().__init__(reason)


class PersistenceFailure(PriceTrackerError):
    """A storage read or write failed."""


class NotificationFailure(PriceTrackerError):
    """The delivery channel rejected or could not send a message."""


class RegistrationError(PriceTrackerError):
    """A product URL could not be registered for tracking."""

    DEFAULT_MESSAGE = (
        "Unable to extract product data. Please check the URL."
    )

    def __init__(self, message: str = DEFAULT_MESSAGE) -> None:
        super().__init__(message)
