from typing import List, Optional, Sequence

import httpx
import pytest

from tuberelay.core.errors import UpstreamError
from tuberelay.main import app
from tuberelay.models.internal import FormatDescriptor, ResolvedVideo, VideoDetails
from tuberelay.services.resolver import YouTubeResolver, get_resolver

VALID_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def make_format(format_id: str, **kwargs) -> FormatDescriptor:
    kwargs.setdefault("has_video", False)
    kwargs.setdefault("has_audio", False)
    kwargs.setdefault("container", "mp4")
    return FormatDescriptor(id=format_id, **kwargs)


def sample_formats() -> tuple:
    """Shaped like a typical YouTube format list, in yt-dlp's order"""
    return (
        make_format("249", has_audio=True, container="webm", audio_bit_rate=50.0,
                    sample_rate="48000", mime_type='audio/webm; codecs="opus"'),
        make_format("140", has_audio=True, container="m4a", audio_bit_rate=128.0, bit_rate=129.5,
                    sample_rate="44100", mime_type='audio/mp4; codecs="mp4a.40.2"'),
        make_format("251", has_audio=True, container="webm", audio_bit_rate=160.0,
                    sample_rate="48000", mime_type='audio/webm; codecs="opus"', approximate_byte_length=6),
        make_format("18", has_video=True, has_audio=True, container="mp4", quality_label="360p",
                    bit_rate=500.0, mime_type='video/mp4; codecs="avc1.42001E, mp4a.40.2"',
                    approximate_byte_length=6),
        make_format("43", has_video=True, has_audio=True, container="webm", quality_label="1080p",
                    mime_type='video/webm; codecs="vp8, vorbis"'),
        make_format("22", has_video=True, has_audio=True, container="mp4", quality_label="720p",
                    bit_rate=1200.0, mime_type='video/mp4; codecs="avc1.64001F, mp4a.40.2"'),
        make_format("137", has_video=True, container="mp4", quality_label="1080p",
                    mime_type='video/mp4; codecs="avc1.640028"'),
    )


def sample_video(formats: Optional[Sequence[FormatDescriptor]] = None, title: str = "Test Video") -> ResolvedVideo:
    return ResolvedVideo(
        details=VideoDetails(
            title=title,
            author_name="Test Channel",
            thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
            duration_seconds=213,
        ),
        formats=tuple(sample_formats() if formats is None else formats),
    )


class FakeStream:
    def __init__(self, chunks: Sequence[bytes], prime_error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.prime_error = prime_error
        self.primed = False
        self.closed = False

    async def prime(self):
        if self.prime_error:
            raise self.prime_error
        self.primed = True

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self):
        self.closed = True


class FakeResolver(YouTubeResolver):
    """Real URL validation, canned metadata and streams"""

    def __init__(
        self,
        video: Optional[ResolvedVideo] = None,
        chunks: Sequence[bytes] = (b"abc", b"def"),
        metadata_error: Optional[Exception] = None,
        prime_error: Optional[Exception] = None,
    ):
        self.video = video or sample_video()
        self.chunks = chunks
        self.metadata_error = metadata_error
        self.prime_error = prime_error
        self.metadata_calls: List[str] = []
        self.opened: List[tuple] = []
        self.streams: List[FakeStream] = []

    async def get_metadata(self, url: str) -> ResolvedVideo:
        self.metadata_calls.append(url)
        if self.metadata_error:
            raise self.metadata_error
        return self.video

    async def open_stream(self, url: str, format_id: str) -> FakeStream:
        self.opened.append((url, format_id))
        stream = FakeStream(self.chunks, prime_error=self.prime_error)
        self.streams.append(stream)
        return stream

    @property
    def contacted(self) -> bool:
        return bool(self.metadata_calls or self.opened)


@pytest.fixture
def fake_resolver():
    return FakeResolver()


@pytest.fixture
def use_resolver():
    """Install a resolver for the app; returns the installer"""
    def install(resolver: YouTubeResolver) -> YouTubeResolver:
        app.dependency_overrides[get_resolver] = lambda: resolver
        return resolver

    yield install
    app.dependency_overrides.pop(get_resolver, None)


@pytest.fixture
async def client(use_resolver, fake_resolver):
    use_resolver(fake_resolver)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def upstream_failure() -> UpstreamError:
    return UpstreamError("yt-dlp exited with 1: ERROR: Video unavailable")


@pytest.fixture
async def lenient_client(use_resolver, fake_resolver):
    """Client that receives the 500 response instead of the re-raised server error"""
    use_resolver(fake_resolver)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
