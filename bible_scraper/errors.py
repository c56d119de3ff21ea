"""Exception taxonomy for the scraper pipeline and job service."""

from typing import Optional


class ScraperError(Exception):
    """Base class for every error raised by bible_scraper."""


class ConfigurationError(ScraperError):
    """Systemic misconfiguration (unknown source, missing source id). Fails the job."""


class FetchFailure(ScraperError):
    """A single chapter fetch failed. Recoverable: recorded and the job continues."""

    kind = "NetworkError"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimited(FetchFailure):
    kind = "RateLimited"


class NotFound(FetchFailure):
    kind = "NotFound"


class FetchTimeout(FetchFailure):
    kind = "Timeout"


class FetchConnectionError(FetchFailure):
    kind = "ConnectionError"


class NetworkError(FetchFailure):
    kind = "NetworkError"


class ExtractionError(ScraperError):
    """A raw payload could not be turned into verses."""

    kind = "ExtractionError"


# Service-level errors, surfaced to the API layer

class UnknownTranslation(ScraperError):
    pass


class LegalAgreementRequired(ScraperError):
    pass


class InvalidOption(ScraperError):
    pass


class JobNotFound(ScraperError):
    pass


class AlreadyTerminal(ScraperError):
    pass
