"""
Batch Transcoder.

Transcodes a tree of media files with an external encoder (HandBrakeCLI by
default). Before committing to a full-length run it can encode a short sample
window of every source, compare the sample against the source with an external
probe (MediaInfo by default), and ask for approval, looping over encoder
presets until the result is accepted.

Subpackages:
    config:   Static constants and the explicit `TranscodeConfig` object.
    domain:   Descriptors, profiles, sample windows and exceptions.
    services: Probing, sampling, encoding, reconciliation, presets, files, reports.
    pipeline: The test-approve-commit state machine.
    utils:    Formatting, subprocess, tool verification and shutdown helpers.
"""

__version__ = "1.0.0"
