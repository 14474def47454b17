from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from tuberelay.utils.filename import content_disposition


class MediaKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class FormatDescriptor(BaseModel):
    """One concrete encoding variant as reported by yt-dlp"""
    model_config = ConfigDict(frozen=True)

    id: str
    has_video: bool
    has_audio: bool
    container: str
    quality_label: Optional[str] = None
    audio_bit_rate: Optional[float] = None
    video_bit_rate: Optional[float] = None
    bit_rate: Optional[float] = None
    sample_rate: Optional[str] = None
    mime_type: Optional[str] = None
    approximate_byte_length: Optional[int] = None

    @property
    def is_combined(self) -> bool:
        return self.has_video and self.has_audio

    @property
    def is_audio_only(self) -> bool:
        return self.has_audio and not self.has_video


class VideoDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    author_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration_seconds: int = 0


class ResolvedVideo(BaseModel):
    """Immutable snapshot of one metadata lookup"""
    model_config = ConfigDict(frozen=True)

    details: VideoDetails
    formats: Tuple[FormatDescriptor, ...] = ()


class DownloadIntent(BaseModel):
    """Internal download intent (separated from HTTP concerns)"""
    url: str
    kind: MediaKind = MediaKind.VIDEO
    format_id: Optional[str] = None


@dataclass
class RelaySession:
    """Byte stream plus the framing derived from the selected format"""
    body: AsyncIterator[bytes]
    media_type: str
    filename: str
    format_id: str
    content_length: Optional[int] = None

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Content-Disposition": content_disposition(self.filename),
            "X-Content-Type-Options": "nosniff",
            "Cache-Control": "no-cache",
            "Accept-Ranges": "none",
        }
        if self.content_length is not None:
            headers["Content-Length"] = str(self.content_length)
        return headers
