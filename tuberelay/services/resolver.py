"""yt-dlp backed resolver.

Turns a YouTube URL into a :class:`ResolvedVideo` snapshot and opens byte
streams for a single format. This is the only module that knows about
yt-dlp's JSON layout; everything above it works with
:class:`FormatDescriptor`.
"""

import asyncio
import json
import logging
import re
from collections import deque
from contextlib import suppress
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import parse_qs, urlparse

from tuberelay.config.settings import config
from tuberelay.core.errors import UpstreamError
from tuberelay.models.internal import FormatDescriptor, ResolvedVideo, VideoDetails
from tuberelay.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder
from tuberelay.utils.mime import mime_from_container

logger = logging.getLogger(__name__)

STDERR_MAX_LINES = 50

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

QUERY_HOSTS = {
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "gaming.youtube.com",
}
PATH_HOSTS = {"youtu.be", "www.youtu.be"}
PATH_PREFIXES = ("embed", "v", "shorts", "live")


def extract_video_id(url: str) -> Optional[str]:
    """Return the 11-character video id of a YouTube URL, or None"""
    if not isinstance(url, str):
        return None

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None

    host = parsed.hostname.lower()
    segments = [s for s in parsed.path.split("/") if s]

    candidate = None
    if host in PATH_HOSTS:
        candidate = segments[0] if segments else None
    elif host in QUERY_HOSTS:
        values = parse_qs(parsed.query).get("v")
        if values:
            candidate = values[0]
        elif len(segments) >= 2 and segments[0] in PATH_PREFIXES:
            candidate = segments[1]

    if candidate and VIDEO_ID_PATTERN.match(candidate):
        return candidate
    return None


def _codec(value: Optional[str]) -> Optional[str]:
    if not value or value == "none":
        return None
    return value


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _quality_label(raw: Dict[str, Any]) -> Optional[str]:
    height = raw.get("height")
    if isinstance(height, int) and height > 0:
        fps = raw.get("fps")
        if isinstance(fps, (int, float)) and fps > 30:
            return f"{height}p{int(round(fps))}"
        return f"{height}p"
    return None


def parse_format(raw: Dict[str, Any]) -> Optional[FormatDescriptor]:
    """Map one yt-dlp format dict; storyboards and other trackless entries yield None"""
    format_id = raw.get("format_id")
    vcodec = _codec(raw.get("vcodec"))
    acodec = _codec(raw.get("acodec"))

    if not format_id or (vcodec is None and acodec is None):
        return None

    has_video = vcodec is not None
    has_audio = acodec is not None
    container = str(raw.get("ext") or "")
    codecs = ", ".join(c for c in (vcodec, acodec) if c)
    sample_rate = raw.get("asr")
    filesize = raw.get("filesize")

    return FormatDescriptor(
        id=str(format_id),
        has_video=has_video,
        has_audio=has_audio,
        container=container,
        quality_label=_quality_label(raw) if has_video else None,
        audio_bit_rate=_number(raw.get("abr")) if has_audio else None,
        video_bit_rate=_number(raw.get("vbr")) if has_video else None,
        bit_rate=_number(raw.get("tbr")),
        sample_rate=str(sample_rate) if sample_rate else None,
        mime_type=mime_from_container(container, has_video, codecs or None),
        approximate_byte_length=filesize if isinstance(filesize, int) and filesize > 0 else None,
    )


def parse_video(info: Dict[str, Any]) -> ResolvedVideo:
    """Snapshot yt-dlp's --dump-json output"""
    thumbnails = [t for t in info.get("thumbnails") or [] if t.get("url")]
    # yt-dlp lists thumbnails worst-to-best
    thumbnail_url = thumbnails[-1]["url"] if thumbnails else info.get("thumbnail")

    duration = _number(info.get("duration"))
    details = VideoDetails(
        title=info.get("title") or "Unknown",
        author_name=info.get("uploader") or info.get("channel"),
        thumbnail_url=thumbnail_url,
        duration_seconds=int(duration) if duration else 0,
    )

    formats = tuple(
        fmt for fmt in (parse_format(raw) for raw in info.get("formats") or []) if fmt is not None
    )
    return ResolvedVideo(details=details, formats=formats)


class ByteStream:
    """
    Single-reader byte stream backed by a yt-dlp process writing to stdout.

    Call :meth:`prime` before handing the stream to a response so that a
    process that fails without producing output is reported as an
    :class:`UpstreamError` while a proper error response is still possible.
    """

    def __init__(self, process: asyncio.subprocess.Process, chunk_size: int):
        self.process = process
        self.chunk_size = chunk_size
        self.received = 0
        self._first_chunk: Optional[bytes] = None
        self._consumed = False
        self._stderr_lines: deque = deque(maxlen=STDERR_MAX_LINES)
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    async def _drain_stderr(self):
        """Drain stderr to prevent buffer deadlock"""
        while True:
            line = await self.process.stderr.readline()
            if not line:
                break
            self._stderr_lines.append(line.decode(errors="ignore").strip())

    def _error_summary(self) -> str:
        return "\n".join(self._stderr_lines)[:200]

    async def prime(self) -> None:
        chunk = await self.process.stdout.read(self.chunk_size)
        if chunk:
            self._first_chunk = chunk
            return

        returncode = await self.process.wait()
        await self._finish_stderr()
        if returncode != 0:
            raise UpstreamError(f"yt-dlp exited with {returncode}: {self._error_summary()}")
        self._first_chunk = b""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("ByteStream can only be consumed once")
        self._consumed = True

        if self._first_chunk is None:
            await self.prime()
        if self._first_chunk:
            self.received += len(self._first_chunk)
            yield self._first_chunk
        self._first_chunk = None

        while True:
            chunk = await self.process.stdout.read(self.chunk_size)
            if not chunk:
                break
            self.received += len(chunk)
            yield chunk

        returncode = await self.process.wait()
        if returncode != 0:
            await self._finish_stderr()
            raise UpstreamError(f"yt-dlp exited with {returncode} mid-stream: {self._error_summary()}")

    async def _finish_stderr(self) -> None:
        with suppress(asyncio.CancelledError):
            await self._stderr_task

    async def aclose(self) -> None:
        """Kill the process if it is still running and reap it"""
        self._stderr_task.cancel()
        if self.process.returncode is None:
            with suppress(ProcessLookupError):
                self.process.kill()
            await self.process.wait()
        with suppress(asyncio.CancelledError):
            await self._stderr_task


class YouTubeResolver:
    """Resolver capability: validate, get_metadata, open_stream"""

    def validate(self, url: str) -> bool:
        return extract_video_id(url) is not None

    async def get_metadata(self, url: str) -> ResolvedVideo:
        cmd = YTDLPCommandBuilder.build_info_command(url)

        try:
            result = await SubprocessExecutor.run(cmd, timeout=config.ytdlp.info_timeout_seconds)
        except asyncio.TimeoutError:
            raise UpstreamError("yt-dlp metadata lookup timed out")
        except OSError as e:
            raise UpstreamError(f"Failed to start yt-dlp: {e}")

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors="ignore").strip()
            raise UpstreamError(f"yt-dlp exited with {result.returncode}: {error_msg[:200]}")

        try:
            info = json.loads(result.stdout.decode())
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise UpstreamError("Failed to parse yt-dlp output")

        if not isinstance(info, dict):
            raise UpstreamError("Unexpected yt-dlp output")

        return parse_video(info)

    async def open_stream(self, url: str, format_id: str) -> ByteStream:
        cmd = YTDLPCommandBuilder.build_stream_command(url, format_id)

        try:
            process = await SubprocessExecutor.spawn(cmd)
        except OSError as e:
            raise UpstreamError(f"Failed to start yt-dlp: {e}")

        logger.debug(f"yt-dlp pid {process.pid} streaming format {format_id}")
        return ByteStream(process, chunk_size=config.download.chunk_size)


resolver = YouTubeResolver()


def get_resolver() -> YouTubeResolver:
    """FastAPI dependency; tests override it with a fake"""
    return resolver
