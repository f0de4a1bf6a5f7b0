"""
Builds and runs encoder invocations.

The encoder is a black box called with a preset file, a preset name, an input
path and an output path, optionally bounded to a sample window:

    HandBrakeCLI --preset-import-file presets.json -Z "H.265 MKV 1080p30" \\
        -i source.mp4 -o output.mkv --start-at seconds:240 --stop-at seconds:120

Encodes always run one at a time. A batch reports its progress before each
file and checks for a shutdown request before starting the next subprocess,
so an interrupted batch never leaves a half-written output behind.

By default a failed encode is logged (console and error log), its partial
output is deleted, and the batch continues with the next file. With
`fail_fast=True` the first failure raises `EncodeInvocationError` instead.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from ..config.video import (
    ENCODER_INPUT_FLAG,
    ENCODER_OUTPUT_FLAG,
    ENCODER_PRESET_FILE_FLAG,
    ENCODER_PRESET_NAME_FLAG,
    ENCODER_START_AT_FLAG,
    ENCODER_STOP_AT_FLAG,
    ENCODER_TIME_UNIT,
)
from ..domain.exceptions import EncodeInvocationError, TranscodeAborted
from ..domain.models import EncodeProfile, EncodeResult, SampleWindow
from ..utils.format_utils import format_timedelta, formatted_size
from ..utils.process_utils import display_command, run_cmd
from ..utils.shutdown_manager import ShutdownManager
from .logging_service import ErrorLog

Runner = Callable[..., Any]
ProgressCallback = Callable[[int, int, Path], None]


@dataclass(frozen=True)
class EncodeJob:
    """One file to encode: where it comes from, where it goes, and the clip, if any."""

    source_path: Path
    output_path: Path
    window: Optional[SampleWindow] = None


class EncodeInvoker:
    """
    Runs the encoder for single files and for sequential batches.

    Attributes:
        encoder_executable: Encoder command or absolute path.
        runner: Callable used to execute an argument vector; returns a
            `CompletedProcess` or None when the program could not be started.
        fail_fast: Raise on the first failure instead of skipping the file.
        error_log: Where failures are recorded, if anywhere.
        shutdown: Checked before each file of a batch.
    """

    def __init__(
        self,
        encoder_executable: str,
        runner: Runner = run_cmd,
        fail_fast: bool = False,
        error_log: Optional[ErrorLog] = None,
        shutdown: Optional[ShutdownManager] = None,
    ):
        self.encoder_executable = encoder_executable
        self.runner = runner
        self.fail_fast = fail_fast
        self.error_log = error_log
        self.shutdown = shutdown

    def build_command(
        self,
        source_path: Path,
        output_path: Path,
        profile: EncodeProfile,
        window: Optional[SampleWindow] = None,
    ) -> List[str]:
        cmd = [
            self.encoder_executable,
            ENCODER_PRESET_FILE_FLAG, str(profile.preset_file_path),
            ENCODER_PRESET_NAME_FLAG, profile.profile_name,
            ENCODER_INPUT_FLAG, str(source_path),
            ENCODER_OUTPUT_FLAG, str(output_path),
        ]
        if window is not None:
            cmd.extend([
                ENCODER_START_AT_FLAG, f"{ENCODER_TIME_UNIT}:{window.start_seconds}",
                ENCODER_STOP_AT_FLAG, f"{ENCODER_TIME_UNIT}:{window.stop_seconds}",
            ])
        return cmd

    @staticmethod
    def output_path_for(
        source_path: Path, source_root: Path, output_root: Path, profile: EncodeProfile
    ) -> Path:
        """
        Mirrors `source_path` under `output_root` and applies the profile's suffix.

        Example: source_root/show/s01/e01.mp4 -> output_root/show/s01/e01.mkv
        """
        relative = source_path.resolve().relative_to(source_root.resolve())
        return (output_root / relative).with_suffix(profile.output_container_extension)

    def encode(
        self,
        source_path: Path,
        output_path: Path,
        profile: EncodeProfile,
        window: Optional[SampleWindow] = None,
    ) -> EncodeResult:
        """
        Encodes one file, blocking until the encoder exits.

        The output suffix is always replaced by the profile's container
        extension, and the output directory is created if needed.

        Returns:
            The `EncodeResult`. `succeeded` is False for a skipped failure.

        Raises:
            EncodeInvocationError: On failure, when `fail_fast` is set.
        """
        output_path = output_path.with_suffix(profile.output_container_extension)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = self.build_command(source_path, output_path, profile, window)
        clip_text = (
            f" (clip start={window.start_seconds}s, length={window.stop_seconds}s)" if window else ""
        )
        logger.info(f"Encoding {source_path.name} -> {output_path.name}{clip_text}")

        started = datetime.now()
        res = self.runner(cmd)
        elapsed = datetime.now() - started

        if res is None:
            return self._failed(source_path, output_path, window, cmd, None, "encoder could not be started", elapsed)
        if res.returncode != 0:
            stderr_tail = (res.stderr or "").strip()[-1000:]
            return self._failed(source_path, output_path, window, cmd, res.returncode, stderr_tail, elapsed)
        if not output_path.exists():
            return self._failed(
                source_path, output_path, window, cmd, res.returncode,
                "encoder reported success but the output file is missing", elapsed,
            )

        logger.info(
            f"Encoded {output_path.name} in {format_timedelta(elapsed)} "
            f"({formatted_size(output_path.stat().st_size)})"
        )
        return EncodeResult(
            source_path=source_path,
            output_path=output_path,
            window=window,
            succeeded=True,
            returncode=res.returncode,
            elapsed=elapsed,
        )

    def _failed(
        self,
        source_path: Path,
        output_path: Path,
        window: Optional[SampleWindow],
        cmd: Sequence[str],
        returncode: Optional[int],
        reason: str,
        elapsed,
    ) -> EncodeResult:
        rc_text = "not started" if returncode is None else f"rc={returncode}"
        logger.error(f"Encode stage failed for '{source_path}' ({rc_text}): {reason}")

        if self.error_log is not None:
            self.error_log.write(
                f"Failed command: {display_command(cmd)}",
                f"Source file: {source_path}",
                f"Output file: {output_path}",
                f"Return code: {returncode}",
                f"Reason: {reason}",
            )

        if output_path.exists():
            try:
                output_path.unlink()
                logger.debug(f"Deleted partially encoded file: {output_path}")
            except OSError as e:
                logger.error(f"Could not delete partially encoded file {output_path}: {e}")

        if self.fail_fast:
            raise EncodeInvocationError(source_path, returncode, reason)

        return EncodeResult(
            source_path=source_path,
            output_path=output_path,
            window=window,
            succeeded=False,
            returncode=returncode,
            error_message=reason,
            elapsed=elapsed,
        )

    def encode_many(
        self,
        jobs: Sequence[EncodeJob],
        profile: EncodeProfile,
        progress: Optional[ProgressCallback] = None,
    ) -> List[EncodeResult]:
        """
        Encodes the jobs strictly one after another.

        Args:
            jobs: The files to encode, in order.
            profile: The profile used for every job.
            progress: Called with (index, total, source_path) before each job.

        Returns:
            One `EncodeResult` per job that was started.

        Raises:
            TranscodeAborted: If a shutdown was requested; raised before the
                next job's subprocess is started.
            EncodeInvocationError: On the first failure, when `fail_fast` is set.
        """
        warn_on_output_collisions(jobs, profile)
        total = len(jobs)
        results: List[EncodeResult] = []
        for index, job in enumerate(jobs, start=1):
            if self.shutdown is not None and self.shutdown.shutdown_requested():
                remaining = total - index + 1
                logger.warning(f"Stopping before {job.source_path.name}; {remaining} file(s) not started.")
                raise TranscodeAborted(f"Stopped by user after {index - 1} of {total} file(s).")
            if progress is not None:
                progress(index, total, job.source_path)
            results.append(self.encode(job.source_path, job.output_path, profile, job.window))

        failed = sum(1 for r in results if not r.succeeded)
        if failed:
            logger.warning(f"{failed} of {total} encode(s) failed and were skipped.")
        return results


def warn_on_output_collisions(jobs: Sequence[EncodeJob], profile: EncodeProfile):
    """
    Logs a warning for every output path that more than one job writes.

    `a.mp4` and `a.mkv` in the same folder both become `a.mkv` once the
    profile's suffix is applied; the later encode replaces the earlier one.
    """
    sources_by_output: Dict[Path, List[Path]] = defaultdict(list)
    for job in jobs:
        output_path = job.output_path.with_suffix(profile.output_container_extension)
        sources_by_output[output_path].append(job.source_path)
    for output_path, sources in sources_by_output.items():
        if len(sources) > 1:
            logger.warning(
                f"{len(sources)} sources are encoded to the same file '{output_path}'; "
                f"only the last one is kept: {[str(s) for s in sources]}"
            )
