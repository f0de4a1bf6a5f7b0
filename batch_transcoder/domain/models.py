"""
Value objects for encoding decisions and their outcomes.

- `EncodeProfile`: the preset selected by the user.
- `SampleWindow`: the clip boundaries used for a test encode.
- `EncodeResult`: the outcome of one encoder invocation.
- `ComparisonRecord`: one row of the source-versus-target report.

All of them are immutable; a new comparison builds new records.
"""
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from .media import VideoDescriptor


@dataclass(frozen=True)
class EncodeProfile:
    """
    A named encoder preset and the container it produces.

    Attributes:
        profile_name: The preset name passed to the encoder.
        output_container_extension: Output suffix including the dot, e.g. ".mkv".
        preset_file_path: The preset file handed to the encoder unchanged.
    """

    profile_name: str
    output_container_extension: str
    preset_file_path: Path

    def __str__(self) -> str:
        return f"{self.profile_name} ({self.output_container_extension}, {self.preset_file_path.name})"


@dataclass(frozen=True)
class SampleWindow:
    """
    Clip boundaries for a test encode.

    `stop_seconds` is the number of seconds to encode counted from
    `start_seconds`, not an absolute timestamp. This is how the encoder
    interprets `--stop-at` after `--start-at`.
    """

    start_seconds: int
    stop_seconds: int


@dataclass(frozen=True)
class EncodeResult:
    """The outcome of a single encoder invocation."""

    source_path: Path
    output_path: Path
    window: Optional[SampleWindow]
    succeeded: bool
    returncode: Optional[int] = None
    error_message: str = ""
    elapsed: timedelta = timedelta(0)


@dataclass(frozen=True)
class ComparisonRecord:
    """
    One reconciled row of the comparison report.

    A record always has at least one side. `target` is None for a source
    with no encoded counterpart; `source` is None for an output that no
    source maps to. `bitrate_reduction_percent` is only set when both sides
    are present and both report a total bit rate.
    """

    source: Optional[VideoDescriptor] = None
    target: Optional[VideoDescriptor] = None
    bitrate_reduction_percent: Optional[float] = None

    def __post_init__(self):
        if self.source is None and self.target is None:
            raise ValueError("A ComparisonRecord needs a source or a target descriptor.")

    @property
    def file_name(self) -> str:
        return self.source.file_name if self.source is not None else self.target.file_name

    @property
    def is_matched(self) -> bool:
        return self.source is not None and self.target is not None

    @property
    def dimensions_match(self) -> Optional[bool]:
        """Whether width and height survived the encode; None if unmatched."""
        if not self.is_matched:
            return None
        return (self.source.width, self.source.height) == (self.target.width, self.target.height)

    @property
    def duration_match(self) -> Optional[bool]:
        if not self.is_matched:
            return None
        return self.source.duration_seconds == self.target.duration_seconds

    @property
    def container_match(self) -> Optional[bool]:
        if not self.is_matched:
            return None
        return self.source.container_format == self.target.container_format

    @property
    def video_codec_match(self) -> Optional[bool]:
        if not self.is_matched:
            return None
        return self.source.video_codec == self.target.video_codec

    def as_row(self) -> Dict[str, Any]:
        """
        Flattens the record into report columns: all "Source" columns, then
        all "Target" columns, then the derived comparison columns.
        """
        row: Dict[str, Any] = {}
        row.update(_descriptor_columns("Source", self.source))
        row.update(_descriptor_columns("Target", self.target))
        row["Dimensions Match"] = self.dimensions_match
        row["Duration Match"] = self.duration_match
        row["Container Match"] = self.container_match
        row["Video Codec Match"] = self.video_codec_match
        row["Bitrate Reduction %"] = (
            round(self.bitrate_reduction_percent, 2)
            if self.bitrate_reduction_percent is not None
            else None
        )
        return row


def _descriptor_columns(prefix: str, descriptor: Optional[VideoDescriptor]) -> Dict[str, Any]:
    d = descriptor
    return {
        f"{prefix} File Name": d.file_name if d else None,
        f"{prefix} Path": str(d.full_path) if d else None,
        f"{prefix} Container": d.container_format if d else None,
        f"{prefix} Video Codec": d.video_codec if d else None,
        f"{prefix} Resolution": d.resolution if d else None,
        f"{prefix} Color Space": d.color_space if d else None,
        f"{prefix} Duration (s)": d.duration_seconds if d else None,
        f"{prefix} Video Bitrate": d.video_bit_rate_formatted if d else None,
        f"{prefix} Total Bitrate": d.total_bit_rate_formatted if d else None,
        f"{prefix} Total Bitrate Raw": d.total_bit_rate_raw if d else None,
        f"{prefix} Size": d.file_size_formatted if d else None,
        f"{prefix} Audio Codecs": d.audio_codecs if d else None,
        f"{prefix} Audio Languages": d.audio_languages if d else None,
        f"{prefix} Audio Channels": d.audio_channels if d else None,
        f"{prefix} Encoded Application": d.encoded_application if d else None,
    }
