"""Utility functions for the Hyperverge uploader."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# File types accepted by Hyperverge
SUPPORTED_EXTENSIONS = {".gif", ".jpg", ".jpeg", ".tiff", ".png", ".pdf"}


class DirectoryReadError(Exception):
    """Exception raised when a directory cannot be listed."""

    pass


def is_supported_file(path: Path) -> bool:
    """Check if a path has an extension Hyperverge accepts.

    Args:
        path: Path to check

    Returns:
        True if the extension is supported (case-insensitive), False otherwise
    """
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def extension_field(path: Path) -> str:
    """Return the lower-cased extension without its dot, e.g. ``"jpg"``."""
    return Path(path).suffix.lower().lstrip(".")


def normalise_path(path: str | Path) -> Path:
    """Make a path absolute against the current working directory.

    Symlinks are left alone; only ``.``/``..`` segments are collapsed.
    """
    return Path(os.path.abspath(os.fspath(path)))


def mask(value: str) -> str:
    """Hide the middle of a credential for display.

    Values shorter than 6 characters are masked completely.
    """
    if len(value) < 6:
        return "#" * len(value)
    return value[:2] + "#" * (len(value) - 4) + value[-2:]


def _list_files(directory: Path) -> list[Path]:
    files: list[Path] = []
    subdirs: list[Path] = []

    for entry in sorted(directory.iterdir()):
        if entry.is_file():
            files.append(entry)
        elif entry.is_dir():
            subdirs.append(entry)
        else:
            logger.debug(f"Skipping non-regular entry: {entry}")

    for subdir in subdirs:
        files.extend(_list_files(subdir))
    return files


def discover_files(root: str | Path) -> list[Path]:
    """Recursively collect the supported files below a directory.

    Each level contributes its own files first, followed by the files of its
    subdirectories, depth-first. Siblings are visited in sorted order.

    Args:
        root: Directory to scan, absolute or relative to the working directory

    Returns:
        Absolute, normalized paths of every supported file

    Raises:
        DirectoryReadError: If root is missing, not a directory, or unreadable
    """
    root_dir = normalise_path(root)

    if not root_dir.exists():
        raise DirectoryReadError(f"Directory does not exist: {root_dir}")

    if not root_dir.is_dir():
        raise DirectoryReadError(f"Path is not a directory: {root_dir}")

    try:
        entries = _list_files(root_dir)
    except OSError as e:
        raise DirectoryReadError(f"Failed to read files from directory {root_dir}: {e}") from e

    files = [normalise_path(entry) for entry in entries if is_supported_file(entry)]
    logger.debug(f"Found {len(files)} supported file(s) of {len(entries)} in {root_dir}")
    return files
