import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from ..config.common import AUDIO_FIELD_DELIMITER, UNDEFINED_FIELD
from ..utils.format_utils import format_bit_rate, formatted_size


def parse_duration(duration_str: Any) -> Optional[float]:
    """
    Parses a duration value reported by a probe into seconds.

    Probes report duration either as a decimal number of seconds
    (e.g. "3600.5") or as a timecode 'HH:MM:SS.sss' (e.g. "01:00:00.500").
    Hours and minutes are optional in the timecode format.

    Args:
        duration_str: The raw duration value (string or number).

    Returns:
        The duration in seconds, or None if the value is absent or unparsable.
    """
    if duration_str is None:
        return None
    try:
        return float(duration_str)
    except (TypeError, ValueError):
        pattern = r"(?:(\d{1,2}):)?(\d{1,2}):(\d{1,2}(?:\.\d+)?)"
        match = re.fullmatch(pattern, str(duration_str).strip())
        if match:
            hours_str, minutes_str, seconds_str = match.groups()
            hours = int(hours_str) if hours_str else 0
            minutes = int(minutes_str)
            seconds = float(seconds_str)
            return float(hours * 3600 + minutes * 60 + seconds)
        logger.debug(f"Could not parse duration value: {duration_str!r}")
    return None


def parse_int(value: Any) -> Optional[int]:
    """
    Converts a probe value such as "1920", "4500000" or "1 920" to an int.

    Decimal strings are truncated. Anything else becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    cleaned = str(value).replace(" ", "").strip()
    if not cleaned:
        return None
    try:
        return int(cleaned)
    except ValueError:
        try:
            return int(float(cleaned))
        except ValueError:
            return None


def floor_seconds(seconds: Optional[float]) -> int:
    """Floors a decimal seconds value; an unknown duration counts as 0."""
    if seconds is None:
        return 0
    return int(math.floor(seconds))


def join_track_values(values: Iterable[Any]) -> Optional[str]:
    """
    Joins one field across all audio tracks, e.g. "AAC / AC-3".

    A track that does not report the field contributes "UND". An empty
    iterable (no audio tracks at all) yields None.
    """
    normalized = [
        str(v) if v is not None and str(v).strip() else UNDEFINED_FIELD for v in values
    ]
    if not normalized:
        return None
    return AUDIO_FIELD_DELIMITER.join(normalized)


@dataclass(frozen=True)
class VideoDescriptor:
    """
    The normalized summary of one probed media file.

    A descriptor is created fresh by every probe call (the source scan, the
    sample scan and the final scan) and is never modified afterwards.

    `file_name` is the base name without its extension. It is the only key
    used to pair a source with its encoded output, which lets `movie.mp4`
    match the `movie.mkv` that the encoder produced. Two files with the same
    base name in different folders will therefore be paired with the same
    target; the reconciler warns about this but does not resolve it.

    Attributes:
        file_name: Base name without extension; the reconciliation key.
        full_path: Absolute path of the probed file.
        container_format: Container identifier reported by the probe.
        video_codec: Codec identifier of the first video stream.
        width: Frame width in pixels, if reported.
        height: Frame height in pixels, if reported.
        color_space: Color space of the first video stream, if reported.
        video_bit_rate_raw: Video stream bit rate in bits/s, if reported.
        total_bit_rate_raw: Overall bit rate in bits/s, if reported.
        duration_seconds: Duration floored to whole seconds.
        audio_codecs: Per-track codecs joined with " / ", or None without audio.
        audio_languages: Per-track languages joined with " / ", or None.
        audio_channels: Per-track channel counts joined with " / ", or None.
        file_size: Size on disk in bytes, if known.
        encoded_application: The writing application tag, if reported.
    """

    file_name: str
    full_path: Path
    container_format: Optional[str] = None
    video_codec: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    color_space: Optional[str] = None
    video_bit_rate_raw: Optional[int] = None
    total_bit_rate_raw: Optional[int] = None
    duration_seconds: int = 0
    audio_codecs: Optional[str] = None
    audio_languages: Optional[str] = None
    audio_channels: Optional[str] = None
    file_size: Optional[int] = None
    encoded_application: Optional[str] = None

    @property
    def total_bit_rate_formatted(self) -> str:
        return format_bit_rate(self.total_bit_rate_raw)

    @property
    def video_bit_rate_formatted(self) -> str:
        return format_bit_rate(self.video_bit_rate_raw)

    @property
    def file_size_formatted(self) -> str:
        if self.file_size is None:
            return ""
        return formatted_size(self.file_size)

    @property
    def resolution(self) -> str:
        if self.width is None or self.height is None:
            return ""
        return f"{self.width}x{self.height}"

    @staticmethod
    def key_for(path: Path) -> str:
        """The reconciliation key for a path: its base name without extension."""
        return path.stem
