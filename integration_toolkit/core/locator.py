"""Resource file discovery and file-name parsing."""

import logging
import os
import re
from pathlib import Path
from typing import Iterator

from .config_store import is_directory

logger = logging.getLogger(__name__)

JSON_FILE_PATTERN = re.compile(r"^\S*\.json$")
JAVASCRIPT_FILE_PATTERN = re.compile(r"^javascript_(\d{1,2})\.js$")
JSONNET_FILE_PATTERN = re.compile(r"^datatransformer_(\d{1,2})\.jsonnet$")

SPLIT_SEGMENTS = 2


def find_resource_files(folder: str | Path, pattern: re.Pattern = JSON_FILE_PATTERN) -> Iterator[Path]:
    """
    Walk a folder and yield files whose base name matches a pattern.

    A folder that is missing (or not a directory) yields nothing; callers
    treat that kind as absent. Entries are visited in sorted order at each
    level of the walk.

    Args:
        folder: Folder to walk recursively
        pattern: Regular expression the file's base name must match

    Yields:
        Paths of the matching files
    """
    if not is_directory(folder):
        logger.debug(f"Folder {folder} not found, nothing to apply")
        return

    for dirpath, dirnames, filenames in os.walk(folder):
        dirnames.sort()
        for filename in sorted(filenames):
            if pattern.match(filename):
                yield Path(dirpath) / filename


def file_stem(file_name: str) -> str:
    """Strip the last extension from a file name."""
    root, _ = os.path.splitext(file_name)
    return root


def split_file_name(file_name: str, splitter: str) -> tuple[str, str] | None:
    """
    Split a resource file name into its two identifier segments.

    Args:
        file_name: Base name such as ``instance__channel.json``
        splitter: Separator token for the run

    Returns:
        The (first, second) segments, or None if the stem does not split
        into exactly two segments
    """
    segments = file_stem(file_name).split(splitter)
    if len(segments) != SPLIT_SEGMENTS:
        return None
    return segments[0], segments[1]
