from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tuberelay.models.internal import FormatDescriptor, ResolvedVideo


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CombinedFormat(_CamelModel):
    """Muxed audio+video entry offered to the client"""
    id: str
    quality_label: Optional[str] = Field(None, alias="qualityLabel")
    container: str
    bit_rate: Optional[float] = Field(None, alias="bitRate")

    @classmethod
    def from_descriptor(cls, fmt: FormatDescriptor) -> "CombinedFormat":
        return cls(id=fmt.id, quality_label=fmt.quality_label, container=fmt.container, bit_rate=fmt.bit_rate)


class AudioFormat(_CamelModel):
    """Audio-only entry offered to the client"""
    id: str
    bit_rate: Optional[float] = Field(None, alias="bitRate")
    container: str
    sample_rate: Optional[str] = Field(None, alias="sampleRate")

    @classmethod
    def from_descriptor(cls, fmt: FormatDescriptor) -> "AudioFormat":
        return cls(
            id=fmt.id,
            bit_rate=fmt.audio_bit_rate if fmt.audio_bit_rate is not None else fmt.bit_rate,
            container=fmt.container,
            sample_rate=fmt.sample_rate,
        )


class VideoInfo(_CamelModel):
    """Video information response"""
    title: str
    author: Optional[str] = None
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    length_seconds: int = Field(0, alias="lengthSeconds")
    combined_formats: List[CombinedFormat] = Field(default_factory=list, alias="combinedFormats")
    audio_only_formats: List[AudioFormat] = Field(default_factory=list, alias="audioOnlyFormats")

    @classmethod
    def from_resolved(
        cls,
        video: ResolvedVideo,
        combined: List[FormatDescriptor],
        audio_only: List[FormatDescriptor],
    ) -> "VideoInfo":
        return cls(
            title=video.details.title,
            author=video.details.author_name,
            thumbnail_url=video.details.thumbnail_url,
            length_seconds=video.details.duration_seconds,
            combined_formats=[CombinedFormat.from_descriptor(f) for f in combined],
            audio_only_formats=[AudioFormat.from_descriptor(f) for f in audio_only],
        )


class ErrorResponse(BaseModel):
    error: str
