"""Error taxonomy shared by the services and the HTTP boundary.

Every failure that reaches a request handler is a :class:`RelayError`
subclass. Each one carries the HTTP status it maps to and the i18n key of
the generic message shown to the user; the technical ``reason`` is only
logged.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for request-level failures"""

    status_code = 500
    message_key = "error.unexpected"

    def __init__(self, reason: str = "", *, message_key: Optional[str] = None):
        super().__init__(reason or self.__class__.__name__)
        self.reason = reason
        if message_key:
            self.message_key = message_key


class InvalidUrl(RelayError):
    """The input is not a well-formed, resolvable video URL."""

    status_code = 400
    message_key = "error.invalid_url"


class NoMatchingFormat(RelayError):
    """No format survived the selection policy."""

    status_code = 404
    message_key = "error.no_matching_format"


class UpstreamError(RelayError):
    """yt-dlp failed: process error, bad output, timeout or scraping breakage."""

    status_code = 500
    message_key = "error.upstream"
