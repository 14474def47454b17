from .filename import build_filename, content_disposition, sanitize_filename
from .mime import base_media_type, extension_from_mime

__all__ = [
    "base_media_type",
    "build_filename",
    "content_disposition",
    "extension_from_mime",
    "sanitize_filename",
]
