"""
Runtime configuration for a transcoding run.

The user can keep tool locations and default behavior in a `config.user.yaml`
file at the project root, for example:

    paths:
      encoder: /usr/local/bin/HandBrakeCLI
      probe: /usr/bin/mediainfo
      presets: ~/handbrake/presets
    defaults:
      probe_backend: mediainfo
      test_encode_seconds: 120
      probe_workers: 4
      copy_everything: false
      fail_fast: false

`load_user_config()` reads that file into a `UserConfig`, and
`build_config()` merges it with the parsed command-line arguments into the
single `TranscodeConfig` that the pipeline and every service receive at
construction time.
"""
import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

from .common import (
    DEFAULT_ENCODER_EXECUTABLE,
    DEFAULT_FFPROBE_EXECUTABLE,
    DEFAULT_MEDIAINFO_EXECUTABLE,
    DEFAULT_PROBE_WORKERS,
    DEFAULT_TEST_ENCODE_SECONDS,
    ERROR_DIR_NAME,
    PROBE_BACKEND_FFPROBE,
    PROBE_BACKEND_MEDIAINFO,
    PROBE_BACKENDS,
    REPORT_FILE_NAME,
    SAMPLE_DIR_NAME,
    USER_CONFIG_PATH,
)


@dataclass
class UserConfig:
    """Values read from `config.user.yaml`. `None` means "not configured"."""

    encoder_executable: Optional[str] = None
    probe_executable: Optional[str] = None
    preset_path: Optional[Path] = None
    defaults: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TranscodeConfig:
    """
    Explicit configuration for one transcoding run.

    Attributes:
        source_dir: Root of the tree to transcode.
        output_dir: Root of the mirrored output tree.
        preset_path: A preset JSON file, or a directory of them.
        encoder_executable: Encoder command or absolute path.
        probe_executable: Probe command or absolute path.
        probe_backend: Either "mediainfo" or "ffprobe".
        test_encode: Run the sampling and approval loop before committing.
        test_encode_seconds: Length of each sample clip.
        copy_everything: Copy non-media files into the output tree verbatim.
        fail_fast: Abort the batch on the first failed encode instead of
            logging it and moving on to the next file.
        probe_workers: Maximum number of concurrent probe subprocesses.
        report_path: Where the final comparison report is written.
    """

    source_dir: Path
    output_dir: Path
    preset_path: Path
    encoder_executable: str = DEFAULT_ENCODER_EXECUTABLE
    probe_executable: str = DEFAULT_MEDIAINFO_EXECUTABLE
    probe_backend: str = PROBE_BACKEND_MEDIAINFO
    test_encode: bool = False
    test_encode_seconds: int = DEFAULT_TEST_ENCODE_SECONDS
    copy_everything: bool = False
    fail_fast: bool = False
    probe_workers: int = DEFAULT_PROBE_WORKERS
    report_path: Optional[Path] = None

    def __post_init__(self):
        if self.probe_backend not in PROBE_BACKENDS:
            raise ValueError(
                f"Unknown probe backend '{self.probe_backend}'. Expected one of {PROBE_BACKENDS}."
            )
        if self.test_encode_seconds <= 0:
            raise ValueError(
                f"test_encode_seconds must be positive, got {self.test_encode_seconds}."
            )
        if self.probe_workers < 1:
            raise ValueError(f"probe_workers must be at least 1, got {self.probe_workers}.")

    @property
    def sample_dir(self) -> Path:
        return self.output_dir / SAMPLE_DIR_NAME

    @property
    def error_dir(self) -> Path:
        return self.output_dir / ERROR_DIR_NAME

    @property
    def effective_report_path(self) -> Path:
        return self.report_path or self.output_dir / REPORT_FILE_NAME


def load_user_config(config_path: Path = USER_CONFIG_PATH) -> UserConfig:
    """
    Loads user-specific settings from a YAML file.

    A missing file is normal and yields an empty `UserConfig`. A file that
    cannot be read or parsed is reported as a warning and also yields an
    empty `UserConfig`, so a broken config never prevents a run that passes
    everything on the command line.

    Args:
        config_path: The YAML file to read.

    Returns:
        The parsed `UserConfig`.
    """
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Relying on defaults and system PATH.")
        return UserConfig()

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return UserConfig()

    if not isinstance(raw_config, dict):
        logger.warning(f"Ignoring '{config_path}': expected a mapping at the top level.")
        return UserConfig()

    paths_config = raw_config.get("paths") or {}
    defaults_config = raw_config.get("defaults") or {}
    preset_str = paths_config.get("presets")

    return UserConfig(
        encoder_executable=paths_config.get("encoder"),
        probe_executable=paths_config.get("probe"),
        preset_path=Path(preset_str).expanduser() if preset_str else None,
        defaults=dict(defaults_config) if isinstance(defaults_config, dict) else {},
    )


def _pick(cli_value: Any, user_value: Any, fallback: Any) -> Any:
    if cli_value is not None:
        return cli_value
    if user_value is not None:
        return user_value
    return fallback


def build_config(args: argparse.Namespace, user_config: UserConfig) -> TranscodeConfig:
    """
    Merges command-line arguments over the user config into a `TranscodeConfig`.

    Precedence is: command line, then `config.user.yaml`, then built-in defaults.
    """
    defaults = user_config.defaults
    probe_backend = _pick(args.probe_backend, defaults.get("probe_backend"), PROBE_BACKEND_MEDIAINFO)
    default_probe = (
        DEFAULT_FFPROBE_EXECUTABLE if probe_backend == PROBE_BACKEND_FFPROBE else DEFAULT_MEDIAINFO_EXECUTABLE
    )

    preset_path = _pick(args.preset, user_config.preset_path, None)
    if preset_path is None:
        raise ValueError("No preset file given. Use --preset or set paths.presets in config.user.yaml.")

    return TranscodeConfig(
        source_dir=Path(args.source).resolve(),
        output_dir=Path(args.output).resolve(),
        preset_path=Path(preset_path).expanduser().resolve(),
        encoder_executable=_pick(args.encoder, user_config.encoder_executable, DEFAULT_ENCODER_EXECUTABLE),
        probe_executable=_pick(args.probe, user_config.probe_executable, default_probe),
        probe_backend=probe_backend,
        test_encode=bool(args.test_encode or defaults.get("test_encode", False)),
        test_encode_seconds=int(
            _pick(args.test_encode_seconds, defaults.get("test_encode_seconds"), DEFAULT_TEST_ENCODE_SECONDS)
        ),
        copy_everything=bool(args.copy_everything or defaults.get("copy_everything", False)),
        fail_fast=bool(args.fail_fast or defaults.get("fail_fast", False)),
        probe_workers=int(_pick(args.probe_workers, defaults.get("probe_workers"), DEFAULT_PROBE_WORKERS)),
        report_path=Path(args.report).resolve() if args.report else None,
    )
