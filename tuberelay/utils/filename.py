import os
import re
import unicodedata
from urllib.parse import quote

DEFAULT_FILENAME = "download"

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r"\s+")

WINDOWS_RESERVED = {
    'CON', 'PRN', 'AUX', 'NUL',
    'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
    'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
}


def sanitize_filename(name: str, max_length: int = 200) -> str:
    """
    Sanitize a title for use as a file name.
    Idempotent: sanitize_filename(sanitize_filename(x)) == sanitize_filename(x).
    """
    name = unicodedata.normalize("NFKC", name or "")
    name = _WHITESPACE.sub(" ", name)
    name = _UNSAFE_CHARS.sub("_", name)
    name = name[:max_length].strip(" .")

    if not name:
        return DEFAULT_FILENAME

    if name.upper() in WINDOWS_RESERVED:
        name = f"_{name}"

    return name


def build_filename(title: str, ext: str) -> str:
    return f"{sanitize_filename(title)}.{ext}"


def content_disposition(filename: str) -> str:
    """Attachment header value; non-ASCII names get an RFC 5987 filename* form"""
    try:
        filename.encode("ascii")
    except UnicodeEncodeError:
        stem, ext = os.path.splitext(filename)
        stem = stem.encode("ascii", "ignore").decode("ascii").strip(" .") or DEFAULT_FILENAME
        ext = ext.encode("ascii", "ignore").decode("ascii")
        return f"attachment; filename=\"{stem}{ext}\"; filename*=UTF-8''{quote(filename)}"
    return f'attachment; filename="{filename}"'
