from fastapi import APIRouter, Depends, Request

from tuberelay.core.logging import log_info
from tuberelay.i18n import i18n
from tuberelay.models.request import InfoRequest
from tuberelay.models.response import ErrorResponse, VideoInfo
from tuberelay.services.info import VideoInfoService
from tuberelay.services.resolver import YouTubeResolver, get_resolver
from tuberelay.utils.locale import safe_url_for_log

router = APIRouter()


def get_info_service(resolver: YouTubeResolver = Depends(get_resolver)) -> VideoInfoService:
    return VideoInfoService(resolver)


@router.post(
    "/info",
    response_model=VideoInfo,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_video_info(
    request: Request,
    info_request: InfoRequest,
    service: VideoInfoService = Depends(get_info_service),
):
    """Get video metadata plus combined and audio-only format lists"""
    log_info(request, i18n.get("log.fetching_info", url=safe_url_for_log(info_request.url)))

    video_info = await service.fetch(info_request.url.strip())

    log_info(request, i18n.get(
        "log.info_retrieved",
        title=video_info.title,
        combined=len(video_info.combined_formats),
        audio=len(video_info.audio_only_formats),
    ))
    return video_info
