from typing import Optional

from pydantic import BaseModel, Field

from tuberelay.models.internal import DownloadIntent, MediaKind


class InfoRequest(BaseModel):
    # Plain string: URL validity is decided by the resolver and reported as a 400, not a 422
    url: str = Field(..., description="Video URL")


class DownloadQuery(BaseModel):
    url: str = Field(..., description="Video URL")
    type: MediaKind = Field(MediaKind.VIDEO, description="Coarse intent: video or audio")
    itag: Optional[str] = Field(None, description="Explicit yt-dlp format id")

    def to_intent(self) -> DownloadIntent:
        """Convert to download intent"""
        return DownloadIntent(
            url=self.url.strip(),
            kind=self.type,
            format_id=self.itag.strip() if self.itag and self.itag.strip() else None,
        )
