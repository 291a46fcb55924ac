"""
Path helpers for archive extraction and download destinations
"""
import re
from pathlib import PurePosixPath
from typing import Optional

# Characters that are not allowed in file names on Windows, macOS or Linux
ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')

# Drive letter prefix such as "C:" in the first component
_DRIVE_PREFIX = re.compile(r'^[A-Za-z]:')


def sanitize_zip_path(raw_path: str) -> Optional[PurePosixPath]:
    """
    Validates an archive entry name before it is used as a filesystem path

    The path is rejected if it contains a NUL byte, starts at a root or
    drive/UNC prefix, or climbs above the archive root at any point while
    walking its components (``a/../../b`` is rejected even though the
    final depth would be positive again later).

    Args:
        raw_path: Entry name as stored in the archive

    Returns:
        Normalized relative path, or None if the entry is unsafe
    """
    if '\0' in raw_path:
        return None

    # Zip files written on Windows sometimes use backslashes
    path = raw_path.replace('\\', '/')

    if path.startswith('/') or _DRIVE_PREFIX.match(path):
        return None

    parts = []
    depth = 0
    for component in path.split('/'):
        if component in ('', '.'):
            continue
        if component == '..':
            if depth == 0:
                return None
            depth -= 1
            parts.pop()
        else:
            depth += 1
            parts.append(component)

    return PurePosixPath(*parts)


def sanitize_filename(file_name: str) -> str:
    """Removes characters that are illegal in file names on common platforms"""
    return ILLEGAL_FILENAME_CHARS.sub('', file_name)


def is_within_directory(directory, target) -> bool:
    """
    Checks that target resolves to a location inside directory

    Args:
        directory: Root directory (Path)
        target: Candidate path (Path)

    Returns:
        True if target is directory itself or one of its descendants
    """
    root = directory.resolve()
    resolved = target.resolve()
    return resolved == root or root in resolved.parents
