from tuberelay.core.errors import InvalidUrl, UpstreamError
from tuberelay.models.response import VideoInfo
from tuberelay.services.format import FormatDecision
from tuberelay.services.resolver import YouTubeResolver


class VideoInfoService:
    """Video info fetching service"""

    def __init__(self, resolver: YouTubeResolver):
        self.resolver = resolver

    async def fetch(self, url: str) -> VideoInfo:
        """
        Resolve a URL once and split its formats into the two lists the
        client chooses from. Both lists keep yt-dlp's native order.
        """
        if not self.resolver.validate(url):
            raise InvalidUrl(f"Rejected URL {url[:100]!r}")

        try:
            video = await self.resolver.get_metadata(url)
        except UpstreamError as e:
            raise UpstreamError(e.reason, message_key="error.upstream_info") from e

        return VideoInfo.from_resolved(
            video,
            combined=FormatDecision.combined(video.formats),
            audio_only=FormatDecision.audio_only(video.formats),
        )
