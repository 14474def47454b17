"""Python consumer of the relay API.

Mirrors what the browser page does: fetch the format lists, download one
selection while reporting progress, then save the bytes under a name built
from the video title and the response's content type.
"""

import os
import tempfile
from contextlib import suppress
from typing import Callable, Optional

import aiofiles
import httpx

from tuberelay.models.internal import MediaKind
from tuberelay.models.response import VideoInfo
from tuberelay.utils.filename import build_filename
from tuberelay.utils.mime import DEFAULT_MEDIA_TYPE, extension_from_mime

DEFAULT_INFO_ERROR = "Unable to fetch video data."
DEFAULT_DOWNLOAD_ERROR = "Download failed. Please try again."

ProgressCallback = Callable[[Optional[int], int, Optional[int]], None]


class RelayClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProgressTracker:
    """
    Running byte counter for one response body.

    With a known total the percentage is capped at 99 until :meth:`finish`,
    so 100 is only ever shown once the stream is exhausted. Without a total
    there is no percentage at all.
    """

    def __init__(self, total: Optional[int] = None):
        self.total = total if total and total > 0 else None
        self.received = 0
        self.percent: Optional[int] = 0 if self.total else None

    def update(self, size: int) -> Optional[int]:
        self.received += size
        if self.total:
            self.percent = min(99, self.received * 100 // self.total)
        return self.percent

    def finish(self) -> int:
        self.percent = 100
        return self.percent


def _content_length(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if value and value.isdigit():
        return int(value)
    return None


async def _error_message(response: httpx.Response, fallback: str) -> str:
    await response.aread()
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return fallback


class RelayClient:
    """Async client for POST /info and GET /download"""

    def __init__(self, base_url: str = "http://localhost:8000", client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=None)

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch_info(self, url: str) -> VideoInfo:
        response = await self.client.post("/info", json={"url": url.strip()})
        if response.is_error:
            raise RelayClientError(await _error_message(response, DEFAULT_INFO_ERROR), response.status_code)
        return VideoInfo.model_validate(response.json())

    async def download(
        self,
        url: str,
        title: str,
        dest_dir: str = ".",
        kind: MediaKind = MediaKind.VIDEO,
        format_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Download one selection and return the saved path.

        The server's Content-Disposition is ignored: the name comes from the
        sanitized title plus the extension of the response Content-Type.
        Bytes go to a temporary file that is renamed into place only after
        the body is fully read; the temporary file never outlives the call.
        """
        params = {"url": url.strip(), "type": MediaKind(kind).value}
        if format_id:
            params["itag"] = format_id

        async with self.client.stream("GET", "/download", params=params) as response:
            if response.is_error:
                raise RelayClientError(await _error_message(response, DEFAULT_DOWNLOAD_ERROR), response.status_code)

            tracker = ProgressTracker(_content_length(response))
            chunks = []
            async for chunk in response.aiter_bytes():
                if not chunk:
                    continue
                chunks.append(chunk)
                percent = tracker.update(len(chunk))
                if on_progress:
                    on_progress(percent, tracker.received, tracker.total)

            media_type = response.headers.get("content-type", DEFAULT_MEDIA_TYPE)

        payload = b"".join(chunks)
        filename = build_filename(title, extension_from_mime(media_type))
        target = os.path.join(dest_dir, filename)

        fd, temp_path = tempfile.mkstemp(dir=dest_dir, prefix=".tuberelay-", suffix=".part")
        os.close(fd)
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(payload)
            os.replace(temp_path, target)
        finally:
            with suppress(FileNotFoundError):
                os.remove(temp_path)

        tracker.finish()
        if on_progress:
            on_progress(tracker.percent, tracker.received, tracker.total)
        return target
