"""
Provides services for discovering source files and laying out the output tree.

The output tree mirrors the source tree: every file keeps its path relative to
the source root. Media files are encoded into that mirrored location (with the
profile's container suffix), other files are copied there verbatim when the
run is configured to copy everything.
"""

import shutil
from pathlib import Path
from typing import Iterable, Tuple

from loguru import logger

from ..config.video import VIDEO_EXTENSIONS
from ..utils.format_utils import contains_any_extensions, formatted_size


class ProcessFiles:
    """
    Discovers the files of one source tree.

    The scan is recursive and sorted, so the file order is the same on every
    run. Anything inside the output directory is ignored, which keeps an
    output tree placed under the source root from being picked up as input.

    Attributes:
        source_dir (Path): The root of the tree to transcode.
        output_dir (Path): The root of the mirrored output tree.
        media_files (Tuple[Path, ...]): Files with a recognized video extension.
        other_files (Tuple[Path, ...]): Every other regular file.
    """

    def __init__(self, source_dir: Path, output_dir: Path, extensions: Iterable[str] = VIDEO_EXTENSIONS):
        self.source_dir = source_dir.resolve()
        self.output_dir = output_dir.resolve()
        self.extensions = tuple(extensions)
        self.media_files: Tuple[Path, ...] = tuple()
        self.other_files: Tuple[Path, ...] = tuple()

        if not self.source_dir.is_dir():
            raise NotADirectoryError(f"Source directory does not exist: {self.source_dir}")

        self.scan()

    def _is_excluded(self, path: Path) -> bool:
        return path == self.output_dir or self.output_dir in path.parents

    def scan(self):
        """Scans the source directory recursively and populates the file lists."""
        media_files = []
        other_files = []
        for path in sorted(self.source_dir.rglob("*")):
            if not path.is_file() or self._is_excluded(path):
                continue
            if contains_any_extensions(path, self.extensions):
                media_files.append(path)
            else:
                other_files.append(path)
        self.media_files = tuple(media_files)
        self.other_files = tuple(other_files)

        total_size = sum(p.stat().st_size for p in self.media_files)
        logger.info(
            f"Found {len(self.media_files)} media file(s) ({formatted_size(total_size)}) "
            f"and {len(self.other_files)} other file(s) under {self.source_dir}"
        )

    def mirror_path(self, path: Path, output_root: Path) -> Path:
        """
        Maps a source file to the same relative location under `output_root`.

        Raises:
            ValueError: If `path` is not inside the source directory.
        """
        return output_root / path.resolve().relative_to(self.source_dir)

    def copy_file(self, path: Path, output_root: Path) -> Path:
        """Copies a file byte-for-byte into its mirrored location."""
        destination = self.mirror_path(path, output_root)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, destination)
        logger.debug(f"Copied {path} -> {destination}")
        return destination

    @staticmethod
    def clear_directory(directory: Path):
        """Deletes a directory and everything in it. A missing directory is fine."""
        if not directory.exists():
            return
        shutil.rmtree(directory)
        logger.debug(f"Cleared directory: {directory}")
