from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from tuberelay.core.logging import log_info
from tuberelay.i18n import i18n
from tuberelay.models.internal import MediaKind
from tuberelay.models.request import DownloadQuery
from tuberelay.models.response import ErrorResponse
from tuberelay.services.resolver import YouTubeResolver, get_resolver
from tuberelay.services.stream import StreamService

router = APIRouter()


def get_stream_service(resolver: YouTubeResolver = Depends(get_resolver)) -> StreamService:
    return StreamService(resolver)


def download_query(
    url: str = Query(..., description="Video URL"),
    type: MediaKind = Query(MediaKind.VIDEO, description="video or audio"),
    itag: Optional[str] = Query(None, description="Explicit format id"),
) -> DownloadQuery:
    return DownloadQuery(url=url, type=type, itag=itag)


@router.get(
    "/download",
    response_class=StreamingResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def download_video(
    request: Request,
    query: DownloadQuery = Depends(download_query),
    service: StreamService = Depends(get_stream_service),
):
    """Select a format and relay its bytes as an attachment"""
    session = await service.stream(query.to_intent())

    log_info(request, i18n.get(
        "log.starting_relay",
        filename=session.filename,
        length=session.content_length if session.content_length is not None else "unknown",
    ))

    return StreamingResponse(
        session.body,
        media_type=session.media_type,
        headers=session.headers,
    )
