"""
This module provides the file-based logs written next to the output tree.

- `ErrorLog` appends a human-readable block for every failed encode, so a long
  unattended batch leaves a record of what was skipped and why.
- `ComparisonReport` writes the reconciled source-versus-target rows as YAML,
  a machine-readable copy of the report shown on the console.

Console logging itself is done with loguru and configured in `main.py`.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Sequence

import yaml
from loguru import logger

from ..domain.models import ComparisonRecord


class Log:
    """
    A base class for file logs. It makes sure the log directory exists.
    """

    # Written after every error block.
    linesep_marker: str = "=" * 50

    def __init__(self, log_file_path: Path):
        self.log_file_path = log_file_path
        self.log_dir = log_file_path.parent
        self.log_dir.mkdir(parents=True, exist_ok=True)


class ErrorLog(Log):
    """
    Handles the writing of error logs to a plain text file.

    Each call appends; the file is a chronological record of failures.
    """

    DEFAULT_ERROR_FILENAME = "error.txt"

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        super().__init__(error_log_dir / filename)

    def write(self, *error_messages: str):
        """
        Writes one or more error messages to the log file, followed by a
        separator line.
        """
        if not error_messages:
            return

        timestamp = datetime.now().isoformat(timespec="seconds")
        content_to_write = f"[{timestamp}]\n" + "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Fall back to the console.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")


class ComparisonReport(Log):
    """
    Writes comparison records to a YAML file.

    Each entry is one `ComparisonRecord.as_row()` mapping plus an `index`,
    the `stage` it was produced in ("sample" or "final") and a timestamp.
    """

    def write(self, records: Sequence[ComparisonRecord], stage: str) -> Path:
        generated = datetime.now().isoformat(timespec="seconds")
        entries: List[dict] = []
        for index, record in enumerate(records, start=1):
            entry = {"index": index, "stage": stage, "generated_datetime": generated}
            entry.update(record.as_row())
            entries.append(entry)

        with self.log_file_path.open("w", encoding="utf-8") as f:
            yaml.dump(
                entries,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
                indent=4,
                width=220,
            )
        logger.info(f"Wrote comparison report with {len(entries)} entries: {self.log_file_path}")
        return self.log_file_path
