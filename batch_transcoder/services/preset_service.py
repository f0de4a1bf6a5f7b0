"""
Loads encoder profiles from preset export files.

A preset file is the JSON document written by the encoder's "export preset"
feature. Only two fields of each preset are read here, the name and the output
format; the file itself is passed to the encoder unchanged:

    {
      "PresetList": [
        {"PresetName": "H.265 MKV 1080p30", "FileFormat": "av_mkv", ...},
        {"Folder": true, "PresetName": "My Presets",
         "ChildrenArray": [{"PresetName": "...", "FileFormat": "av_mp4"}]}
      ]
    }
"""
import json
from pathlib import Path
from typing import Any, Iterator, List

from loguru import logger

from ..config.video import OUTPUT_FORMAT_PREFIX, PRESET_FILE_GLOB
from ..domain.exceptions import PresetFileException
from ..domain.models import EncodeProfile


def derive_container_extension(file_format: str) -> str:
    """
    Turns a preset format identifier into an output file suffix.

    "av_mkv" -> ".mkv", "av_mp4" -> ".mp4". Identifiers without the prefix
    are used as they are ("webm" -> ".webm").
    """
    file_format = file_format.strip().lower()
    if file_format.startswith(OUTPUT_FORMAT_PREFIX):
        file_format = file_format[len(OUTPUT_FORMAT_PREFIX):]
    return f".{file_format.lstrip('.')}"


def _iter_presets(entries: Any) -> Iterator[dict]:
    """Yields preset entries, descending into folder entries."""
    if not isinstance(entries, list):
        return
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if entry.get("Folder") or "ChildrenArray" in entry:
            yield from _iter_presets(entry.get("ChildrenArray"))
        else:
            yield entry


def load_profiles_from_file(preset_file: Path) -> List[EncodeProfile]:
    """
    Reads every usable profile from one preset file.

    A preset without a name or without an output format is skipped with a
    warning.

    Raises:
        PresetFileException: If the file cannot be read or is not valid JSON.
    """
    try:
        with preset_file.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise PresetFileException(f"Cannot read preset file '{preset_file}': {e}") from e
    except json.JSONDecodeError as e:
        raise PresetFileException(f"Preset file '{preset_file}' is not valid JSON: {e}") from e

    preset_list = document.get("PresetList") if isinstance(document, dict) else None
    profiles: List[EncodeProfile] = []
    for preset in _iter_presets(preset_list):
        name = preset.get("PresetName")
        file_format = preset.get("FileFormat")
        if not name or not file_format:
            logger.warning(f"Skipping preset without a name or output format in '{preset_file.name}': {name!r}")
            continue
        profiles.append(
            EncodeProfile(
                profile_name=str(name),
                output_container_extension=derive_container_extension(str(file_format)),
                preset_file_path=preset_file,
            )
        )
    return profiles


def load_profiles(preset_path: Path) -> List[EncodeProfile]:
    """
    Loads all profiles from a preset file or a directory of preset files.

    Files in a directory are read in name order; an unreadable file there is
    logged and skipped.

    Raises:
        PresetFileException: If the path does not exist, or no profile at all
            could be loaded.
    """
    if preset_path.is_file():
        profiles = load_profiles_from_file(preset_path)
    elif preset_path.is_dir():
        profiles = []
        for preset_file in sorted(preset_path.glob(PRESET_FILE_GLOB)):
            try:
                profiles.extend(load_profiles_from_file(preset_file))
            except PresetFileException as e:
                logger.error(str(e))
    else:
        raise PresetFileException(f"Preset path does not exist: {preset_path}")

    if not profiles:
        raise PresetFileException(f"No usable encoder profile found in '{preset_path}'.")

    logger.debug(f"Loaded {len(profiles)} profile(s) from {preset_path}.")
    return profiles
