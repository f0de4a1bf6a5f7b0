"""
Main entry point for the Batch Transcoder application.

This script parses the command-line arguments, configures logging, merges the
user configuration, checks the external tools and runs the transcoding
pipeline. Failures are reported with the stage and the file involved, and the
process exits with a non-zero status.
"""

import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from batch_transcoder.cli import get_args
from batch_transcoder.config.common import (
    DEFAULT_LOG_LEVEL,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    LOGGER_FORMAT,
)
from batch_transcoder.config.settings import build_config, load_user_config
from batch_transcoder.domain.exceptions import (
    EncodeInvocationError,
    PresetFileException,
    ProbeInvocationError,
    TranscodeAborted,
)
from batch_transcoder.pipeline.transcode_pipeline import TranscodePipeline
from batch_transcoder.ui import BatchProgress, ComparisonPresenter, ConsolePrompter, section_header
from batch_transcoder.utils.shutdown_manager import ShutdownManager
from batch_transcoder.utils.tool_verifier import Tools

# Configure the logger for initial setup.
# The level is overridden once the command-line arguments are known.
logger.remove()
logger.add(sys.stderr, level=DEFAULT_LOG_LEVEL, format=LOGGER_FORMAT)


def configure_logging(log_level: str, log_file: Optional[str] = None):
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=LOGGER_FORMAT)
    if log_file:
        logger.add(Path(log_file), level="DEBUG", format=LOGGER_FORMAT, encoding="utf-8")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Runs one batch and returns the process exit code.

    Steps:
    1. Parses command-line arguments and configures the logger.
    2. Merges the arguments over `config.user.yaml` into a `TranscodeConfig`.
    3. Verifies that the encoder and the probe can be started.
    4. Runs the pipeline with graceful Ctrl+C handling.
    """
    args = get_args(argv)
    configure_logging(args.log_level, args.log_file)
    logger.debug(f"Parsed arguments: {args}")

    try:
        config = build_config(args, load_user_config())
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILURE
    logger.debug(f"Effective configuration: {config}")

    if not args.skip_tool_check and not Tools.verify(config):
        logger.error("Required tools are missing. Fix the paths above or pass --skip-tool-check.")
        return EXIT_FAILURE

    section_header("Batch Transcoder", f"{config.source_dir} -> {config.output_dir}")

    shutdown = ShutdownManager()
    try:
        with shutdown.handle_signals():
            pipeline = TranscodePipeline.from_config(
                config,
                prompter=ConsolePrompter(),
                presenter=ComparisonPresenter(),
                shutdown=shutdown,
                progress_factory=BatchProgress,
            )
            pipeline.run()
    except ProbeInvocationError as e:
        if shutdown.shutdown_requested():
            logger.warning(f"Run aborted while probing '{e.path}'.")
            return EXIT_INTERRUPTED
        logger.error(f"Probe stage failed for '{e.path}': {e.reason}")
        return EXIT_FAILURE
    except EncodeInvocationError as e:
        logger.error(f"Encode stage failed for '{e.path}': {e}")
        return EXIT_FAILURE
    except PresetFileException as e:
        logger.error(f"Preset stage failed: {e}")
        return EXIT_FAILURE
    except NotADirectoryError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except TranscodeAborted as e:
        logger.warning(f"Run aborted: {e}")
        return EXIT_INTERRUPTED
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return EXIT_INTERRUPTED

    logger.success("Batch Transcoder process finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
