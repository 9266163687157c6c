"""Exceptions shared by the extraction, classification and storage services."""


class FetchError(Exception):
    """Fetching or rendering a single URL failed.

    Raised by the extraction strategies after translating the underlying
    transport error (``httpx.HTTPError``, Playwright ``Error``, SSRF
    ``ValueError``, size ``RuntimeError``).  The crawler treats it as local to
    the branch being processed.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ExtractionEmptyError(FetchError):
    """A document was retrieved but produced no text."""


class ClassifierError(ValueError):
    """The classifier could not be reached or returned an unusable payload."""
