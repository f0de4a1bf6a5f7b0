"""
Defines custom exception types for the Batch Transcoder.

Services raise these so the pipeline and the entry point can tell the failing
stage apart (probe, encode, preset loading, user input) and report the file
involved. All of them inherit from `BatchTranscoderException`.

A probe field that is simply absent is not an error and has no exception:
it becomes `None` or the "UND" sentinel on the descriptor.
"""
from pathlib import Path
from typing import Optional


class BatchTranscoderException(Exception):
    """Base class for all custom exceptions in the Batch Transcoder."""

    pass


# --- Probe Exceptions ---
class ProbeInvocationError(BatchTranscoderException):
    """
    Raised when the metadata probe cannot be started, exits with an error,
    or returns output that cannot be parsed.

    This is fatal for the batch: the caller stops the run and reports the file.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Probe failed for {path}: {reason}")


# --- Encoding Exceptions ---
class EncodeInvocationError(BatchTranscoderException):
    """
    Raised when the encoder cannot be started or exits with a non-zero code.

    Only raised when the run is configured to fail fast; otherwise the failure
    is logged and the file is skipped.
    """

    def __init__(self, path: Path, returncode: Optional[int], reason: str = ""):
        self.path = path
        self.returncode = returncode
        self.reason = reason
        rc_text = "not started" if returncode is None else f"rc={returncode}"
        message = f"Encode failed for {path} ({rc_text})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# --- Preset Exceptions ---
class PresetFileException(BatchTranscoderException):
    """Raised when a preset file is missing, unreadable, or has no usable profile."""

    pass


# --- Interaction Exceptions ---
class SelectionInputError(BatchTranscoderException):
    """
    Raised for malformed or out-of-range answers to a menu or approval prompt.

    Prompters catch it themselves and ask again; it never ends a run.
    """

    pass


class TranscodeAborted(BatchTranscoderException):
    """
    Raised when the user asks to stop. The current subprocess is allowed to
    finish; no new one is started.
    """

    pass
