import re
from typing import Iterable, Optional, Sequence, Tuple

from tuberelay.config.settings import config
from tuberelay.models.internal import FormatDescriptor, MediaKind

QUALITY_PATTERN = re.compile(r"^\s*(\d+)p")


def parse_quality(label: Optional[str]) -> Optional[int]:
    """'1080p60' -> 1080, anything unparseable -> None"""
    if not label:
        return None
    match = QUALITY_PATTERN.match(label)
    return int(match.group(1)) if match else None


def _rank(value: Optional[float]) -> Tuple[bool, float]:
    # Absent values sort below every present value
    return (value is not None, value or 0)


def _best(formats: Iterable[FormatDescriptor], key) -> Optional[FormatDescriptor]:
    # max() keeps the first of equal elements, so ties fall back to native order
    return max(formats, key=key, default=None)


def _first(formats: Iterable[FormatDescriptor]) -> Optional[FormatDescriptor]:
    return next(iter(formats), None)


class FormatDecision:
    """Make format decisions"""

    @staticmethod
    def combined(formats: Sequence[FormatDescriptor], container: Optional[str] = None) -> list:
        """Formats with both tracks in the canonical container"""
        container = container or config.ytdlp.canonical_container
        return [f for f in formats if f.is_combined and f.container == container]

    @staticmethod
    def audio_only(formats: Sequence[FormatDescriptor]) -> list:
        return [f for f in formats if f.is_audio_only]

    @staticmethod
    def find(formats: Sequence[FormatDescriptor], format_id: Optional[str]) -> Optional[FormatDescriptor]:
        if not format_id:
            return None
        return _first(f for f in formats if f.id == format_id)

    @staticmethod
    def default_audio(formats: Sequence[FormatDescriptor]) -> Optional[FormatDescriptor]:
        best = _best(FormatDecision.audio_only(formats), key=lambda f: _rank(f.audio_bit_rate))
        if best is not None:
            return best
        return _first(f for f in formats if f.has_audio)

    @staticmethod
    def default_video(
        formats: Sequence[FormatDescriptor],
        container: Optional[str] = None,
    ) -> Optional[FormatDescriptor]:
        best = _best(
            FormatDecision.combined(formats, container),
            key=lambda f: _rank(parse_quality(f.quality_label)),
        )
        if best is not None:
            return best
        return _first(f for f in formats if f.is_combined)

    @staticmethod
    def decide(
        formats: Sequence[FormatDescriptor],
        kind: MediaKind,
        format_id: Optional[str] = None,
        container: Optional[str] = None,
    ) -> Optional[FormatDescriptor]:
        """
        Pick one format.
        An explicit id found anywhere in the list wins regardless of kind;
        otherwise the default policy for the kind applies.
        """
        explicit = FormatDecision.find(formats, format_id)
        if explicit is not None:
            return explicit

        if kind == MediaKind.AUDIO:
            return FormatDecision.default_audio(formats)
        return FormatDecision.default_video(formats, container)
