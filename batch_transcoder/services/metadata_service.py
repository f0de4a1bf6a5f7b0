"""
Extracts structural metadata from media files with an external probe.

Two probe backends produce the same `VideoDescriptor`:

- `MediaInfoExtractor` runs `mediainfo --Output=JSON <file>` and reads its
  list of typed tracks (`General`, `Video`, `Audio`).
- `FfprobeExtractor` uses `ffmpeg.probe` from ffmpeg-python and reads the
  `format` section and the typed `streams`.

The probe output is treated as structured data read by key: a missing key is
normal and becomes `None` (or "UND" for per-track audio values). A probe that
cannot be started or returns something that is not the expected document
raises `ProbeInvocationError`, which stops the batch.

Probing is read-only and independent per file, so `extract_many` may run
several probes at once on a bounded thread pool. Results keep input order.
"""
import concurrent.futures
import json
from collections import Counter
from pathlib import Path
from pprint import pformat
from typing import Any, Callable, Dict, List, Optional, Sequence

import ffmpeg
from loguru import logger

from ..config.common import PROBE_BACKEND_FFPROBE
from ..config.settings import TranscodeConfig
from ..domain.exceptions import ProbeInvocationError
from ..domain.media import (
    VideoDescriptor,
    floor_seconds,
    join_track_values,
    parse_duration,
    parse_int,
)
from ..utils.process_utils import run_cmd

Runner = Callable[..., Any]


class MetadataExtractor:
    """
    Base class for probe backends.

    Subclasses implement `extract()` for a single file; `extract_many()` is
    shared.
    """

    def __init__(self, probe_executable: str):
        self.probe_executable = probe_executable

    def extract(self, path: Path) -> VideoDescriptor:
        raise NotImplementedError("Subclasses must implement extract().")

    def extract_many(self, paths: Sequence[Path], workers: int = 1) -> List[VideoDescriptor]:
        """
        Probes every path and returns the descriptors in the same order.

        Args:
            paths: The files to probe.
            workers: Maximum number of probes running at the same time.

        Returns:
            One descriptor per path, in input order.

        Raises:
            ProbeInvocationError: For the first file (in input order) whose
                probe failed. Probes not yet started are cancelled.
        """
        paths = list(paths)
        if not paths:
            return []

        workers = max(1, min(workers, len(paths)))
        logger.info(f"Probing {len(paths)} file(s) with {self.__class__.__name__} ({workers} worker(s)).")

        descriptors: List[VideoDescriptor] = []
        if workers == 1:
            for i, path in enumerate(paths, start=1):
                logger.debug(f"Probing {i}/{len(paths)}: {path.name}")
                descriptors.append(self._extract_logged(path))
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._extract_logged, path) for path in paths]
                try:
                    for future in futures:
                        descriptors.append(future.result())
                except ProbeInvocationError:
                    for future in futures:
                        future.cancel()
                    raise

        warn_on_duplicate_names(descriptors)
        return descriptors

    def _extract_logged(self, path: Path) -> VideoDescriptor:
        try:
            return self.extract(path)
        except ProbeInvocationError as e:
            logger.error(f"Probe stage failed for '{e.path}': {e.reason}")
            raise


class MediaInfoExtractor(MetadataExtractor):
    """Probe backend for the MediaInfo command-line tool."""

    def __init__(self, probe_executable: str, runner: Runner = run_cmd):
        super().__init__(probe_executable)
        self.runner = runner

    def build_command(self, path: Path) -> List[str]:
        return [self.probe_executable, "--Output=JSON", str(path)]

    def extract(self, path: Path) -> VideoDescriptor:
        result = self.runner(self.build_command(path))
        if result is None:
            raise ProbeInvocationError(path, f"could not start '{self.probe_executable}'")
        if result.returncode != 0:
            stderr_tail = (result.stderr or "").strip()[-500:]
            raise ProbeInvocationError(path, f"exited with rc={result.returncode}: {stderr_tail}")

        try:
            payload = json.loads(result.stdout or "")
        except json.JSONDecodeError as e:
            raise ProbeInvocationError(path, f"output is not valid JSON ({e})") from e

        logger.trace(f"MediaInfo data for {path.name}:\n{pformat(payload)}")
        return descriptor_from_mediainfo(path, payload)


class FfprobeExtractor(MetadataExtractor):
    """Probe backend for ffprobe, through ffmpeg-python."""

    def extract(self, path: Path) -> VideoDescriptor:
        try:
            payload = ffmpeg.probe(str(path), cmd=self.probe_executable)
        except ffmpeg.Error as e:
            stderr_text = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            raise ProbeInvocationError(path, f"ffprobe failed: {stderr_text.strip()[-500:]}") from e
        except OSError as e:
            raise ProbeInvocationError(path, f"could not start '{self.probe_executable}': {e}") from e
        except ValueError as e:
            raise ProbeInvocationError(path, f"output is not valid JSON ({e})") from e

        logger.trace(f"ffprobe data for {path.name}:\n{pformat(payload)}")
        return descriptor_from_ffprobe(path, payload)


def build_extractor(config: TranscodeConfig, runner: Runner = run_cmd) -> MetadataExtractor:
    """Returns the extractor for the configured probe backend."""
    if config.probe_backend == PROBE_BACKEND_FFPROBE:
        return FfprobeExtractor(config.probe_executable)
    return MediaInfoExtractor(config.probe_executable, runner=runner)


def _file_size_on_disk(path: Path) -> Optional[int]:
    try:
        return path.stat().st_size
    except OSError:
        return None


def _first(tracks: List[Dict[str, Any]]) -> Dict[str, Any]:
    return tracks[0] if tracks else {}


def descriptor_from_mediainfo(path: Path, payload: Any) -> VideoDescriptor:
    """
    Maps a MediaInfo JSON document to a descriptor.

    Only the first `General` and the first `Video` track are used; every
    `Audio` track contributes to the joined audio fields.

    Raises:
        ProbeInvocationError: If the document has no `media.track` list.
    """
    media = payload.get("media") if isinstance(payload, dict) else None
    tracks = media.get("track") if isinstance(media, dict) else None
    if not isinstance(tracks, list):
        raise ProbeInvocationError(path, "probe output has no track list")

    by_type: Dict[str, List[Dict[str, Any]]] = {"General": [], "Video": [], "Audio": []}
    for track in tracks:
        if not isinstance(track, dict):
            continue
        track_type = track.get("@type")
        if track_type in by_type:
            by_type[track_type].append(track)

    general = _first(by_type["General"])
    video = _first(by_type["Video"])
    audio_tracks = by_type["Audio"]

    duration = parse_duration(video.get("Duration"))
    if duration is None:
        duration = parse_duration(general.get("Duration"))

    file_size = parse_int(general.get("FileSize"))
    if file_size is None:
        file_size = _file_size_on_disk(path)

    return VideoDescriptor(
        file_name=VideoDescriptor.key_for(path),
        full_path=path,
        container_format=general.get("Format"),
        video_codec=video.get("Format"),
        width=parse_int(video.get("Width")),
        height=parse_int(video.get("Height")),
        color_space=video.get("ColorSpace"),
        video_bit_rate_raw=parse_int(video.get("BitRate")),
        total_bit_rate_raw=parse_int(general.get("OverallBitRate")),
        duration_seconds=floor_seconds(duration),
        audio_codecs=join_track_values(t.get("Format") for t in audio_tracks),
        audio_languages=join_track_values(t.get("Language") for t in audio_tracks),
        audio_channels=join_track_values(t.get("Channels") for t in audio_tracks),
        file_size=file_size,
        encoded_application=general.get("Encoded_Application"),
    )


def descriptor_from_ffprobe(path: Path, payload: Any) -> VideoDescriptor:
    """
    Maps an ffprobe JSON document (`-show_format -show_streams`) to a descriptor.

    Raises:
        ProbeInvocationError: If the document has no `streams` list.
    """
    streams = payload.get("streams") if isinstance(payload, dict) else None
    if not isinstance(streams, list):
        raise ProbeInvocationError(path, "probe output has no stream list")

    format_info = payload.get("format") or {}
    video = next((s for s in streams if s.get("codec_type") == "video"), {})
    audio_streams = [s for s in streams if s.get("codec_type") == "audio"]

    duration = parse_duration(video.get("duration"))
    if duration is None:
        duration = parse_duration(format_info.get("duration"))

    file_size = parse_int(format_info.get("size"))
    if file_size is None:
        file_size = _file_size_on_disk(path)

    return VideoDescriptor(
        file_name=VideoDescriptor.key_for(path),
        full_path=path,
        container_format=format_info.get("format_name"),
        video_codec=video.get("codec_name"),
        width=parse_int(video.get("width")),
        height=parse_int(video.get("height")),
        color_space=video.get("color_space"),
        video_bit_rate_raw=parse_int(video.get("bit_rate")),
        total_bit_rate_raw=parse_int(format_info.get("bit_rate")),
        duration_seconds=floor_seconds(duration),
        audio_codecs=join_track_values(s.get("codec_name") for s in audio_streams),
        audio_languages=join_track_values((s.get("tags") or {}).get("language") for s in audio_streams),
        audio_channels=join_track_values(s.get("channels") for s in audio_streams),
        file_size=file_size,
        encoded_application=(format_info.get("tags") or {}).get("encoder"),
    )


def warn_on_duplicate_names(descriptors: Sequence[VideoDescriptor]):
    """
    Logs a warning for base names that occur more than once in one scan.

    Reconciliation pairs files by base name only, so such files will all be
    compared against the same counterpart.
    """
    counts = Counter(d.file_name for d in descriptors)
    for name, count in counts.items():
        if count > 1:
            paths = [str(d.full_path) for d in descriptors if d.file_name == name]
            logger.warning(
                f"Base name '{name}' occurs {count} times in one scan; comparison pairs files by base name only: {paths}"
            )
