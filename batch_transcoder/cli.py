"""
Command-Line Interface (CLI) setup for the Batch Transcoder.

This module uses Python's `argparse` to define and parse the command-line
arguments that control a run. Options left unset stay `None` so that
`build_config()` can fall back to `config.user.yaml` and then to the
built-in defaults.
"""
import argparse
from typing import Optional, Sequence

from .config.common import DEFAULT_LOG_LEVEL, PROBE_BACKENDS


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the Batch Transcoder.

    Args:
        argv: Arguments to parse. Defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: An object containing the parsed command-line
                            arguments as attributes.
    """
    parser = argparse.ArgumentParser(
        description="Batch-encode a directory tree with an encoder preset, "
                    "optionally approving the preset on short test clips first."
    )
    parser.add_argument("source", type=str, help="Root of the directory tree to transcode.")
    parser.add_argument("output", type=str, help="Root of the mirrored output tree.")
    parser.add_argument(
        "--preset", type=str, default=None,
        help="Preset JSON file, or a directory of preset files."
    )
    parser.add_argument("--encoder", type=str, default=None, help="Encoder executable (default: HandBrakeCLI).")
    parser.add_argument("--probe", type=str, default=None, help="Metadata probe executable.")
    parser.add_argument(
        "--probe-backend", type=str, default=None, choices=PROBE_BACKENDS,
        help="Which probe produces the metadata (default: mediainfo)."
    )
    parser.add_argument(
        "--test-encode", action="store_true",
        help="Encode a short clip of every file and ask for approval before the full encode."
    )
    parser.add_argument(
        "--test-encode-seconds", type=int, default=None,
        help="Length of each test clip in seconds (default: 120)."
    )
    parser.add_argument(
        "--copy-everything", action="store_true",
        help="Copy non-media files into the output tree as well."
    )
    parser.add_argument(
        "--fail-fast", action="store_true",
        help="Stop the batch at the first failed encode instead of skipping the file."
    )
    parser.add_argument(
        "--probe-workers", type=int, default=None,
        help="Number of metadata probes to run at the same time (default: 4)."
    )
    parser.add_argument(
        "--report", type=str, default=None,
        help="Where to write the YAML comparison report (default: <output>/comparison_report.yaml)."
    )
    parser.add_argument(
        "--log-level", type=str, default=DEFAULT_LOG_LEVEL,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write the log to this file.")
    parser.add_argument(
        "--skip-tool-check", action="store_true",
        help="Do not run the encoder and probe version checks at startup."
    )

    args = parser.parse_args(argv)

    if args.test_encode_seconds is not None and args.test_encode_seconds <= 0:
        parser.error("--test-encode-seconds must be a positive number of seconds.")
    if args.probe_workers is not None and args.probe_workers < 1:
        parser.error("--probe-workers must be at least 1.")

    return args
