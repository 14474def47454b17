import os

import httpx
import pytest

from tests.conftest import VALID_URL, FakeResolver, sample_video
from tuberelay import client as client_module
from tuberelay.client import ProgressTracker, RelayClient, RelayClientError
from tuberelay.main import app
from tuberelay.models.internal import MediaKind


def test_progress_never_reaches_100_before_finish():
    tracker = ProgressTracker(total=1000)

    percents = [tracker.update(size) for size in (300, 300, 300, 100)]

    assert percents == [30, 60, 90, 99]
    assert tracker.finish() == 100


def test_progress_floors_partial_percentages():
    tracker = ProgressTracker(total=3)

    assert tracker.update(1) == 33
    assert tracker.update(1) == 66


def test_progress_without_total_has_no_percentage():
    tracker = ProgressTracker(total=None)

    assert tracker.update(4096) is None
    assert tracker.received == 4096
    assert tracker.finish() == 100


@pytest.fixture
async def relay_client(use_resolver, fake_resolver):
    use_resolver(fake_resolver)
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    async with RelayClient(client=http) as rc:
        yield rc
    await http.aclose()


@pytest.mark.asyncio
async def test_fetch_info(relay_client):
    info = await relay_client.fetch_info(VALID_URL)

    assert info.title == "Test Video"
    assert [f.id for f in info.combined_formats] == ["18", "22"]


@pytest.mark.asyncio
async def test_fetch_info_surfaces_server_message(relay_client):
    with pytest.raises(RelayClientError) as excinfo:
        await relay_client.fetch_info("not a url")

    assert str(excinfo.value) == "Please provide a valid YouTube URL."
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_download_saves_file_and_reports_progress(relay_client, tmp_path):
    events = []

    path = await relay_client.download(
        VALID_URL,
        title="Test Video",
        dest_dir=str(tmp_path),
        kind=MediaKind.AUDIO,
        on_progress=lambda percent, received, total: events.append((percent, received, total)),
    )

    assert os.path.basename(path) == "Test Video.webm"
    with open(path, "rb") as f:
        assert f.read() == b"abcdef"
    assert events[-1] == (100, 6, 6)
    assert all(percent < 100 for percent, _, _ in events[:-1])
    assert os.listdir(tmp_path) == ["Test Video.webm"]


@pytest.mark.asyncio
async def test_download_names_file_from_content_type(relay_client, use_resolver, tmp_path):
    # Title differs from the server's: the client builds its own name
    use_resolver(FakeResolver(video=sample_video(title="Server Title")))

    path = await relay_client.download(VALID_URL, title="Client: Title", dest_dir=str(tmp_path), format_id="140")

    assert os.path.basename(path) == "Client_ Title.mp4"


@pytest.mark.asyncio
async def test_download_without_length_has_no_percentage_until_done(relay_client, tmp_path):
    events = []

    await relay_client.download(
        VALID_URL,
        title="Test Video",
        dest_dir=str(tmp_path),
        on_progress=lambda percent, received, total: events.append(percent),
    )

    assert events[-1] == 100
    assert all(percent is None for percent in events[:-1])


@pytest.mark.asyncio
async def test_download_error_uses_server_message(relay_client, use_resolver, tmp_path):
    use_resolver(FakeResolver(video=sample_video(formats=[])))

    with pytest.raises(RelayClientError) as excinfo:
        await relay_client.download(VALID_URL, title="x", dest_dir=str(tmp_path), kind=MediaKind.AUDIO)

    assert str(excinfo.value) == "No matching format available for download."
    assert excinfo.value.status_code == 404
    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_download_error_without_json_body_uses_fallback(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway"))

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        with pytest.raises(RelayClientError) as excinfo:
            await RelayClient(client=http).download(VALID_URL, title="x", dest_dir=str(tmp_path))

    assert str(excinfo.value) == client_module.DEFAULT_DOWNLOAD_ERROR


@pytest.mark.asyncio
async def test_download_removes_temporary_file_on_error(relay_client, tmp_path, monkeypatch):
    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(client_module.os, "replace", fail_replace)

    with pytest.raises(OSError):
        await relay_client.download(VALID_URL, title="Test Video", dest_dir=str(tmp_path))

    assert os.listdir(tmp_path) == []
