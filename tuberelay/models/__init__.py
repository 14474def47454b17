from .internal import DownloadIntent, FormatDescriptor, MediaKind, RelaySession, ResolvedVideo, VideoDetails
from .request import DownloadQuery, InfoRequest
from .response import AudioFormat, CombinedFormat, ErrorResponse, VideoInfo

__all__ = [
    "AudioFormat",
    "CombinedFormat",
    "DownloadIntent",
    "DownloadQuery",
    "ErrorResponse",
    "FormatDescriptor",
    "InfoRequest",
    "MediaKind",
    "RelaySession",
    "ResolvedVideo",
    "VideoDetails",
    "VideoInfo",
]
