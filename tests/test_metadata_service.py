import json
import threading
from pathlib import Path

import ffmpeg
import pytest

from batch_transcoder.config.settings import TranscodeConfig
from batch_transcoder.domain.exceptions import ProbeInvocationError
from batch_transcoder.domain.media import VideoDescriptor
from batch_transcoder.services import metadata_service
from batch_transcoder.services.metadata_service import (
    FfprobeExtractor,
    MediaInfoExtractor,
    MetadataExtractor,
    build_extractor,
    descriptor_from_mediainfo,
)

MEDIAINFO_DOCUMENT = {
    "media": {
        "@ref": "/videos/movie.mp4",
        "track": [
            {
                "@type": "General",
                "Format": "MPEG-4",
                "Duration": "600.512",
                "OverallBitRate": "10000000",
                "FileSize": "750000000",
                "Encoded_Application": "HandBrake 1.7.0",
            },
            {
                "@type": "Video",
                "Format": "AVC",
                "Width": "1920",
                "Height": "1080",
                "ColorSpace": "YUV",
                "BitRate": "9000000",
                "Duration": "600.480",
            },
            {"@type": "Audio", "Format": "AAC", "Language": "en", "Channels": "2"},
            {"@type": "Audio", "Format": "AC-3", "Channels": "6"},
        ],
    }
}

FFPROBE_DOCUMENT = {
    "format": {
        "format_name": "matroska,webm",
        "duration": "299.999",
        "bit_rate": "4000000",
        "size": "150000000",
        "tags": {"encoder": "libebml v1.4.4"},
    },
    "streams": [
        {"codec_type": "video", "codec_name": "hevc", "width": 1280, "height": 720, "color_space": "bt709"},
        {"codec_type": "audio", "codec_name": "opus", "channels": 2, "tags": {"language": "jpn"}},
        {"codec_type": "subtitle", "codec_name": "ass"},
    ],
}


def test_mediainfo_command(completed):
    extractor = MediaInfoExtractor("mediainfo", runner=lambda cmd: completed())
    assert extractor.build_command(Path("/v/a b.mp4")) == ["mediainfo", "--Output=JSON", "/v/a b.mp4"]


def test_mediainfo_document_is_normalized(completed):
    calls = []

    def runner(cmd):
        calls.append(cmd)
        return completed(stdout=json.dumps(MEDIAINFO_DOCUMENT))

    descriptor = MediaInfoExtractor("mediainfo", runner=runner).extract(Path("/videos/movie.mp4"))

    assert calls == [["mediainfo", "--Output=JSON", "/videos/movie.mp4"]]
    assert descriptor.file_name == "movie"
    assert descriptor.full_path == Path("/videos/movie.mp4")
    assert descriptor.container_format == "MPEG-4"
    assert descriptor.video_codec == "AVC"
    assert (descriptor.width, descriptor.height) == (1920, 1080)
    assert descriptor.color_space == "YUV"
    assert descriptor.video_bit_rate_raw == 9_000_000
    assert descriptor.total_bit_rate_raw == 10_000_000
    assert descriptor.duration_seconds == 600
    assert descriptor.audio_codecs == "AAC / AC-3"
    assert descriptor.audio_languages == "en / UND"
    assert descriptor.audio_channels == "2 / 6"
    assert descriptor.file_size == 750_000_000
    assert descriptor.encoded_application == "HandBrake 1.7.0"


def test_duration_falls_back_to_general_track():
    document = json.loads(json.dumps(MEDIAINFO_DOCUMENT))
    del document["media"]["track"][1]["Duration"]
    descriptor = descriptor_from_mediainfo(Path("/videos/movie.mp4"), document)
    assert descriptor.duration_seconds == 600


def test_missing_fields_are_not_errors(tmp_path, make_file):
    path = make_file(tmp_path / "bare.mkv", b"12345")
    document = {"media": {"track": [{"@type": "General"}]}}

    descriptor = descriptor_from_mediainfo(path, document)

    assert descriptor.video_codec is None
    assert descriptor.width is None
    assert descriptor.duration_seconds == 0
    assert descriptor.audio_codecs is None
    assert descriptor.total_bit_rate_formatted == ""
    assert descriptor.file_size == 5


@pytest.mark.parametrize(
    "result_kwargs",
    [
        {"returncode": 1, "stderr": "Unable to open file"},
        {"returncode": 0, "stdout": "this is not json"},
        {"returncode": 0, "stdout": json.dumps({"something": "else"})},
    ],
)
def test_bad_probe_output_raises(completed, result_kwargs):
    extractor = MediaInfoExtractor("mediainfo", runner=lambda cmd: completed(**result_kwargs))
    with pytest.raises(ProbeInvocationError) as excinfo:
        extractor.extract(Path("/videos/broken.mp4"))
    assert excinfo.value.path == Path("/videos/broken.mp4")


def test_probe_that_cannot_start_raises():
    extractor = MediaInfoExtractor("mediainfo", runner=lambda cmd: None)
    with pytest.raises(ProbeInvocationError, match="could not start"):
        extractor.extract(Path("/videos/movie.mp4"))


def test_ffprobe_document_is_normalized(monkeypatch):
    seen = {}

    def fake_probe(filename, cmd="ffprobe", **kwargs):
        seen["filename"] = filename
        seen["cmd"] = cmd
        return FFPROBE_DOCUMENT

    monkeypatch.setattr(metadata_service.ffmpeg, "probe", fake_probe)

    descriptor = FfprobeExtractor("/opt/ffprobe").extract(Path("/out/show.mkv"))

    assert seen == {"filename": "/out/show.mkv", "cmd": "/opt/ffprobe"}
    assert descriptor.file_name == "show"
    assert descriptor.container_format == "matroska,webm"
    assert descriptor.video_codec == "hevc"
    assert descriptor.resolution == "1280x720"
    assert descriptor.duration_seconds == 299
    assert descriptor.total_bit_rate_raw == 4_000_000
    assert descriptor.audio_codecs == "opus"
    assert descriptor.audio_languages == "jpn"
    assert descriptor.audio_channels == "2"
    assert descriptor.encoded_application == "libebml v1.4.4"


def test_ffprobe_error_becomes_probe_error(monkeypatch):
    def fake_probe(filename, cmd="ffprobe", **kwargs):
        raise ffmpeg.Error("ffprobe", b"", b"Invalid data found when processing input")

    monkeypatch.setattr(metadata_service.ffmpeg, "probe", fake_probe)

    with pytest.raises(ProbeInvocationError, match="Invalid data"):
        FfprobeExtractor("ffprobe").extract(Path("/out/broken.mkv"))


def test_build_extractor_follows_backend(tmp_path):
    common = dict(source_dir=tmp_path, output_dir=tmp_path / "out", preset_path=tmp_path / "p.json")
    assert isinstance(build_extractor(TranscodeConfig(**common)), MediaInfoExtractor)
    ffprobe_config = TranscodeConfig(probe_backend="ffprobe", probe_executable="ffprobe", **common)
    assert isinstance(build_extractor(ffprobe_config), FfprobeExtractor)


class StemExtractor(MetadataExtractor):
    """Builds descriptors from the path alone and records the probing threads."""

    def __init__(self, fail_on=None):
        super().__init__("fake-probe")
        self.fail_on = fail_on
        self.threads = set()

    def extract(self, path):
        self.threads.add(threading.get_ident())
        if path.name == self.fail_on:
            raise ProbeInvocationError(path, "boom")
        return VideoDescriptor(VideoDescriptor.key_for(path), path)


@pytest.mark.parametrize("workers", [1, 3])
def test_extract_many_keeps_input_order(workers):
    paths = [Path(f"/v/{name}.mp4") for name in ("c", "a", "e", "b", "d")]
    descriptors = StemExtractor().extract_many(paths, workers=workers)
    assert [d.full_path for d in descriptors] == paths


def test_extract_many_stops_on_probe_failure(log_messages):
    paths = [Path("/v/a.mp4"), Path("/v/broken.mp4"), Path("/v/c.mp4")]
    with pytest.raises(ProbeInvocationError) as excinfo:
        StemExtractor(fail_on="broken.mp4").extract_many(paths, workers=2)
    assert excinfo.value.path == Path("/v/broken.mp4")
    assert any("/v/broken.mp4" in m for m in log_messages)


def test_extract_many_of_nothing():
    assert StemExtractor().extract_many([], workers=4) == []


def test_duplicate_base_names_are_reported(log_messages):
    paths = [Path("/v/s1/pilot.mp4"), Path("/v/s2/pilot.mkv")]
    StemExtractor().extract_many(paths)
    assert any("pilot" in m and "2 times" in m for m in log_messages)
