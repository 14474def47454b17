import logging
from typing import AsyncIterator

from tuberelay.core.errors import InvalidUrl, NoMatchingFormat, UpstreamError
from tuberelay.i18n import i18n
from tuberelay.models.internal import DownloadIntent, RelaySession
from tuberelay.services.format import FormatDecision
from tuberelay.services.resolver import ByteStream, YouTubeResolver
from tuberelay.utils.filename import build_filename
from tuberelay.utils.locale import safe_url_for_log
from tuberelay.utils.mime import base_media_type, extension_from_mime

logger = logging.getLogger(__name__)


class StreamService:
    """Select one format and relay its bytes"""

    def __init__(self, resolver: YouTubeResolver):
        self.resolver = resolver

    async def select(self, intent: DownloadIntent) -> tuple:
        """Returns (video details, selected format) from a fresh metadata lookup"""
        if not self.resolver.validate(intent.url):
            raise InvalidUrl(f"Rejected URL {intent.url[:100]!r}")

        try:
            video = await self.resolver.get_metadata(intent.url)
        except UpstreamError as e:
            raise UpstreamError(e.reason, message_key="error.upstream_download") from e

        selected = FormatDecision.find(video.formats, intent.format_id)
        if selected is None:
            if intent.format_id:
                logger.warning(i18n.get("log.format_not_found", format_id=intent.format_id))
            selected = FormatDecision.decide(video.formats, intent.kind)
        if selected is None:
            raise NoMatchingFormat(f"No {intent.kind.value} format among {len(video.formats)} candidates")

        logger.info(i18n.get(
            "log.format_selected",
            format_id=selected.id,
            kind=intent.kind.value,
            url=safe_url_for_log(intent.url),
        ))
        return video.details, selected

    async def stream(self, intent: DownloadIntent) -> RelaySession:
        """
        Open the relay for an intent.
        The upstream stream is primed before returning, so failures that
        produce no bytes still raise here rather than inside the response.
        """
        details, selected = await self.select(intent)

        filename = build_filename(details.title, extension_from_mime(selected.mime_type))

        try:
            upstream = await self.resolver.open_stream(intent.url, selected.id)
        except UpstreamError as e:
            raise UpstreamError(e.reason, message_key="error.upstream_download") from e

        try:
            await upstream.prime()
        except UpstreamError as e:
            await upstream.aclose()
            raise UpstreamError(e.reason, message_key="error.upstream_download") from e
        except BaseException:
            await upstream.aclose()
            raise

        return RelaySession(
            body=self._relay(upstream),
            media_type=base_media_type(selected.mime_type),
            filename=filename,
            format_id=selected.id,
            content_length=selected.approximate_byte_length,
        )

    @staticmethod
    async def _relay(upstream: ByteStream) -> AsyncIterator[bytes]:
        """Yield upstream chunks verbatim; always release the upstream process"""
        received = 0
        completed = False
        try:
            async for chunk in upstream:
                received += len(chunk)
                yield chunk
            completed = True
        finally:
            if completed:
                logger.info(i18n.get("log.relay_finished", received=received))
            else:
                logger.warning(i18n.get("log.relay_aborted", received=received))
            await upstream.aclose()
