"""
This module provides the Tools class to verify the external programs required
by the application: the encoder and the metadata probe.

Installing or updating those programs is left to the user; this check only
makes a missing or broken executable visible before a long batch starts.
"""
import subprocess
from typing import Sequence

from loguru import logger

from ..config.common import PROBE_BACKEND_FFPROBE
from ..config.settings import TranscodeConfig


class Tools:
    """
    Startup checks for the executables named in a `TranscodeConfig`.
    """

    @staticmethod
    def _version_command(config: TranscodeConfig) -> Sequence[str]:
        if config.probe_backend == PROBE_BACKEND_FFPROBE:
            return [config.probe_executable, "-version"]
        return [config.probe_executable, "--Version"]

    @staticmethod
    def verify_executable(cmd: Sequence[str], label: str) -> bool:
        """
        Runs a version command and logs the first line of its output.

        Args:
            cmd: The version command, e.g. ["HandBrakeCLI", "--version"].
            label: A human-readable name for log messages.

        Returns:
            True if the command ran and exited with code 0, False otherwise.
        """
        try:
            result = subprocess.run(
                list(cmd),
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"{label} version command failed (return code {e.returncode}):\n{e.stderr}")
            return False
        except FileNotFoundError:
            logger.error(
                f"{label} command '{cmd[0]}' not found. Please ensure it is installed and accessible.\n"
                "You can either add it to your system's PATH or specify its location in the 'config.user.yaml' file."
            )
            return False
        except OSError as e:
            logger.error(f"An unexpected error occurred while checking the {label} version: {e}")
            return False

        output_lines = (result.stdout or result.stderr or "").strip().splitlines()
        first_line = output_lines[0] if output_lines else "(no output)"
        logger.info(f"{label} version check successful: {first_line}")
        return True

    @staticmethod
    def verify(config: TranscodeConfig) -> bool:
        """
        Verifies both the encoder and the probe. Never raises.

        Returns:
            True when both tools responded.
        """
        encoder_ok = Tools.verify_executable([config.encoder_executable, "--version"], "Encoder")
        probe_ok = Tools.verify_executable(Tools._version_command(config), "Probe")
        return encoder_ok and probe_ok
