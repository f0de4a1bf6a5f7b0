"""
Configuration Package for the Batch Transcoder.

This package separates static settings from the application logic.

- `common.py`: Logging format, sentinels, directory names and tool defaults.
- `video.py`: Media file recognition and encoder argument conventions.
- `settings.py`: The `TranscodeConfig` object that is built once at startup
  (from `config.user.yaml` and the command line) and passed explicitly into
  every service and the pipeline. Nothing in the application reads
  configuration from module-level mutable state.
"""
