from typing import Optional

DEFAULT_MEDIA_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = "bin"

# Checked in order against the full MIME string
_EXTENSION_HINTS = (
    ("mp4", "mp4"),
    ("webm", "webm"),
    ("mpeg", "mp3"),
    ("ogg", "ogg"),
)

# yt-dlp reports containers as file extensions
_AUDIO_TYPES = {
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "webm": "audio/webm",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "opus": "audio/ogg",
}
_VIDEO_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "3gp": "video/3gpp",
    "ogv": "video/ogg",
}


def extension_from_mime(mime_type: Optional[str]) -> str:
    """Map a MIME type (parameters allowed) to a file extension"""
    if not mime_type:
        return DEFAULT_EXTENSION
    for hint, ext in _EXTENSION_HINTS:
        if hint in mime_type:
            return ext
    return DEFAULT_EXTENSION


def base_media_type(mime_type: Optional[str]) -> str:
    """Strip parameters: 'video/mp4; codecs="avc1"' -> 'video/mp4'"""
    if not mime_type:
        return DEFAULT_MEDIA_TYPE
    media_type = mime_type.split(";", 1)[0].strip()
    return media_type or DEFAULT_MEDIA_TYPE


def mime_from_container(container: Optional[str], has_video: bool, codecs: Optional[str] = None) -> Optional[str]:
    """Build a MIME type for a yt-dlp format from its extension and codecs"""
    if not container:
        return None
    table = _VIDEO_TYPES if has_video else _AUDIO_TYPES
    media_type = table.get(container.lower())
    if not media_type:
        return None
    if codecs:
        return f'{media_type}; codecs="{codecs}"'
    return media_type
