from pathlib import Path

import pytest

from batch_transcoder.domain.media import (
    VideoDescriptor,
    floor_seconds,
    join_track_values,
    parse_duration,
    parse_int,
)
from batch_transcoder.domain.models import ComparisonRecord


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3600.5", 3600.5),
        (42, 42.0),
        ("01:00:00.500", 3600.5),
        ("1:30", 90.0),
        ("not a duration", None),
        (None, None),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


def test_parse_int():
    assert parse_int("1920") == 1920
    assert parse_int("1 920") == 1920
    assert parse_int("4500000.7") == 4500000
    assert parse_int(6) == 6
    assert parse_int("") is None
    assert parse_int("abc") is None
    assert parse_int(True) is None


def test_floor_seconds():
    assert floor_seconds(59.9) == 59
    assert floor_seconds(None) == 0


def test_join_track_values_uses_sentinel_for_missing_fields():
    assert join_track_values(["AAC", None, " "]) == "AAC / UND / UND"
    assert join_track_values([2, 6]) == "2 / 6"


def test_join_track_values_without_tracks_is_none():
    assert join_track_values([]) is None


def test_descriptor_key_ignores_directory_and_extension():
    assert VideoDescriptor.key_for(Path("/library/show/episode.01.mp4")) == "episode.01"
    assert VideoDescriptor.key_for(Path("/out/show/episode.01.mkv")) == "episode.01"


def test_descriptor_derived_fields():
    d = VideoDescriptor(
        file_name="movie",
        full_path=Path("/x/movie.mkv"),
        width=1920,
        height=1080,
        total_bit_rate_raw=2_500_000,
        file_size=1536,
    )
    assert d.resolution == "1920x1080"
    assert d.total_bit_rate_formatted == "2.50 Mb/s"
    assert d.video_bit_rate_formatted == ""
    assert d.file_size_formatted == "1.50 KB"
    assert VideoDescriptor("x", Path("x.mkv")).resolution == ""


def test_comparison_record_requires_one_side():
    with pytest.raises(ValueError):
        ComparisonRecord()


def test_comparison_record_row_lists_source_then_target_columns():
    source = VideoDescriptor(
        "movie", Path("/src/movie.mp4"), container_format="MPEG-4", video_codec="HEVC",
        width=1920, height=1080, duration_seconds=600,
    )
    target = VideoDescriptor(
        "movie", Path("/out/movie.mkv"), container_format="Matroska", video_codec="HEVC",
        width=1280, height=720, duration_seconds=600, encoded_application="HandBrake 1.7.0",
    )
    record = ComparisonRecord(source=source, target=target, bitrate_reduction_percent=-33.3333)

    row = record.as_row()
    keys = list(row)
    last_source = max(i for i, k in enumerate(keys) if k.startswith("Source "))
    first_target = min(i for i, k in enumerate(keys) if k.startswith("Target "))
    assert last_source < first_target
    assert keys[-5:] == [
        "Dimensions Match",
        "Duration Match",
        "Container Match",
        "Video Codec Match",
        "Bitrate Reduction %",
    ]
    assert row["Dimensions Match"] is False
    assert row["Duration Match"] is True
    assert row["Container Match"] is False
    assert row["Video Codec Match"] is True
    assert row["Source Encoded Application"] is None
    assert row["Target Encoded Application"] == "HandBrake 1.7.0"
    assert row["Bitrate Reduction %"] == -33.33
    assert row["Target Path"] == "/out/movie.mkv"


def test_unmatched_record_has_no_comparison():
    record = ComparisonRecord(target=VideoDescriptor("extra", Path("/out/extra.mkv")))
    assert record.file_name == "extra"
    assert not record.is_matched
    assert record.dimensions_match is None
    assert record.duration_match is None
    assert record.video_codec_match is None
    assert record.as_row()["Source File Name"] is None
