import pytest

from tuberelay.core.state import state


@pytest.mark.asyncio
async def test_health_check(client):
    """Test public health endpoint"""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "ytdlp_version": state.ytdlp_version}


@pytest.mark.asyncio
async def test_docs_disabled_by_default(client):
    response = await client.get("/docs")

    assert response.status_code == 404
