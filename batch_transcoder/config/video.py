"""
Configuration settings related to video files and the encoder command line.
"""

# --- General Video Settings ---
VIDEO_EXTENSIONS = (
    ".wmv", ".ts", ".mp4", ".mov", ".mpg", ".mpeg", ".mkv", ".avi",
    ".m2ts", ".rmvb", ".3gp", ".flv", ".vob", ".webm", ".m4v", ".asf", ".mts",
)

# --- Preset Settings ---
# HandBrake preset exports name the container as e.g. "av_mkv"; the output
# extension is this identifier with the prefix stripped and a dot prepended.
OUTPUT_FORMAT_PREFIX = "av_"
PRESET_FILE_GLOB = "*.json"

# --- Encoder Arguments ---
ENCODER_PRESET_FILE_FLAG = "--preset-import-file"
ENCODER_PRESET_NAME_FLAG = "-Z"
ENCODER_INPUT_FLAG = "-i"
ENCODER_OUTPUT_FLAG = "-o"
# The value following --stop-at is a duration measured from --start-at.
ENCODER_START_AT_FLAG = "--start-at"
ENCODER_STOP_AT_FLAG = "--stop-at"
ENCODER_TIME_UNIT = "seconds"
