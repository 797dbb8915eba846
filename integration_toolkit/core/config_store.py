"""Local file access for scaffold folders and toolkit state."""

import io
import json
import logging
import os
import tarfile
from pathlib import Path
from typing import Any

from .models import ConfigError

logger = logging.getLogger(__name__)


def get_base_dir() -> Path:
    """
    Get the base directory for toolkit state (downloaded scaffold archives).

    The directory is determined by:
    1. Environment variable INTEGRATION_TOOLKIT_HOME if set
    2. Otherwise, ~/.integration_toolkit

    The directory is created if it does not exist.

    Returns:
        Path to the base directory
    """
    env_home = os.environ.get("INTEGRATION_TOOLKIT_HOME")
    if env_home:
        base_dir = Path(env_home)
    else:
        base_dir = Path.home() / ".integration_toolkit"

    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir


def is_directory(path: str | Path) -> bool:
    """Return True only if the path can be stat'ed and is a directory."""
    try:
        return Path(path).is_dir()
    except OSError:
        return False


def read_file(path: str | Path) -> bytes:
    """
    Read the raw bytes of a scaffold file.

    Raises:
        ConfigError: If the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
        logger.debug(f"Read {len(data)} bytes from {path}")
        return data
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}")


def read_text(path: str | Path) -> str:
    """
    Read a scaffold file as UTF-8 text.

    Raises:
        ConfigError: If the file cannot be read or is not valid UTF-8
    """
    data = read_file(path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ConfigError(f"Failed to decode {path}: {e}")


def read_optional_file(path: str | Path) -> bytes:
    """
    Read a file that may legitimately be absent.

    Returns:
        The file bytes, or b"" if the file does not exist
    """
    if not Path(path).exists():
        logger.debug(f"Optional file {path} not present")
        return b""
    return read_file(path)


def parse_json(data: bytes | str, source: str = "content") -> Any:
    """
    Parse JSON bytes.

    Raises:
        ConfigError: If the content is not valid JSON
    """
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {source}: {e}")


def save_json(path: str | Path, data: dict) -> Path:
    """
    Save a dictionary as JSON to a local file.

    Args:
        path: Destination file
        data: Dictionary to save

    Returns:
        Path to the saved file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved JSON to {path}")
        return path
    except OSError as e:
        raise ConfigError(f"Failed to save JSON to {path}: {e}")


def extract_archive(data: bytes, destination: str | Path) -> Path:
    """
    Extract a gzipped tar archive into a directory.

    Members resolving outside the destination, and links, are rejected.

    Args:
        data: Archive bytes (.tgz)
        destination: Directory to extract into (created if needed)

    Returns:
        The destination directory

    Raises:
        ConfigError: If the archive is invalid or unsafe
    """
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()

    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            members = archive.getmembers()
            for member in members:
                target = (root / member.name).resolve()
                if target != root and root not in target.parents:
                    raise ConfigError(f"Archive member {member.name} escapes {destination}")
                if member.issym() or member.islnk():
                    raise ConfigError(f"Archive member {member.name} is a link")
            archive.extractall(root, members=members)
    except tarfile.TarError as e:
        raise ConfigError(f"Invalid archive: {e}")

    logger.debug(f"Extracted {len(members)} entries to {destination}")
    return destination
