from .errors import InvalidUrl, NoMatchingFormat, RelayError, UpstreamError

__all__ = ["InvalidUrl", "NoMatchingFormat", "RelayError", "UpstreamError"]
