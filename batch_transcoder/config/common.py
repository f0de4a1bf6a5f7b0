"""
Common configuration settings used throughout the application.

This module contains the constants shared by the services and the pipeline:
the logging format, the defaults for the external tools, the sentinel values
used when the probe omits a field, and the names of the directories the
application creates inside the output tree.

Unlike user-specific settings (see `settings.py`), nothing here is meant to
change at runtime.
"""
from pathlib import Path

# --- Logging Configuration ---

# The format string for the Loguru logger. It defines the structure and appearance
# of log messages, including timestamp, level, module name, and the message itself.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

DEFAULT_LOG_LEVEL = "INFO"


# --- User Configuration ---

# Optional YAML file at the project root holding tool paths and defaults.
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"


# --- External Tools ---

# Executables are looked up on the system PATH unless configured otherwise.
DEFAULT_ENCODER_EXECUTABLE = "HandBrakeCLI"
DEFAULT_MEDIAINFO_EXECUTABLE = "mediainfo"
DEFAULT_FFPROBE_EXECUTABLE = "ffprobe"

PROBE_BACKEND_MEDIAINFO = "mediainfo"
PROBE_BACKEND_FFPROBE = "ffprobe"
PROBE_BACKENDS = (PROBE_BACKEND_MEDIAINFO, PROBE_BACKEND_FFPROBE)

# Upper bound on concurrent probe subprocesses. Encoding is always sequential.
DEFAULT_PROBE_WORKERS = 4


# --- Metadata Normalization ---

# Placeholder for a per-track audio field the probe did not report.
UNDEFINED_FIELD = "UND"

# Separator used when joining per-track audio values into one string.
AUDIO_FIELD_DELIMITER = " / "


# --- Test Encode ---

# Length of the representative clip encoded during the sampling stage.
DEFAULT_TEST_ENCODE_SECONDS = 120


# --- Output Tree Layout ---

# Sample encodes are written here, inside the output root, and cleared after
# every approval round.
SAMPLE_DIR_NAME = ".sample_encode"

# Failed encodes are appended to a plain text log in this folder.
ERROR_DIR_NAME = "transcode_error"

# The comparison report written at the end of the commit pass.
REPORT_FILE_NAME = "comparison_report.yaml"

# Exit codes used by the entry point.
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
