"""
File Utilities
==============
Capture naming, content type detection and the local-disk fallback write.
"""

import os
import re
from datetime import datetime
from typing import Optional

from ..config.constants import (
    CAPTURE_NAME_FORMAT,
    CONTENT_TYPE_MAPPING,
)
from ..errors import LocalIOError


def generate_capture_name(extension: str, now: Optional[datetime] = None) -> str:
    """
    Generate the timestamped filename of a capture.

    Args:
        extension: File extension with or without the dot ('png', '.gif')
        now: Timestamp to use (defaults to the current local time)

    Returns:
        Name like '2024_05_01_13_37_00.png'
    """
    now = now or datetime.now()
    extension = (extension or '').lstrip('.').lower()
    stamp = now.strftime(CAPTURE_NAME_FORMAT)
    return f"{stamp}.{extension}" if extension else stamp


def get_file_extension(filename: str) -> str:
    """
    Get lowercase file extension from filename.

    Args:
        filename: Filename or path

    Returns:
        Lowercase extension including dot (e.g., '.png')
    """
    if not filename:
        return ''
    return os.path.splitext(filename)[1].lower()


def get_content_type_for_file(filename: str) -> str:
    """
    MIME type of a capture based on its extension.

    Returns:
        MIME type string, 'application/octet-stream' if unknown
    """
    extension = get_file_extension(filename).lstrip('.')
    return CONTENT_TYPE_MAPPING.get(extension, 'application/octet-stream')


def sanitize_filename(name: str) -> str:
    """
    Reduce a capture name to a single safe path component.

    - Drops any directory part
    - Replaces characters that are unsafe on common filesystems

    Args:
        name: Raw filename

    Returns:
        Sanitized filename (empty if invalid)
    """
    if not name or not isinstance(name, str):
        return ""

    name = name.replace('\\', '/').split('/')[-1]
    sanitized = re.sub(r'[<>:"|?*\x00-\x1f]', '_', name)
    return sanitized.strip(' .')


def write_local_file(directory: str, name: str, data: bytes) -> str:
    """
    Persist capture bytes to local disk.

    Args:
        directory: Target folder (created if missing)
        name: Capture filename
        data: Exact bytes to write

    Returns:
        Absolute path of the written file

    Raises:
        LocalIOError: If the file could not be written
    """
    safe_name = sanitize_filename(name)
    if not safe_name:
        raise LocalIOError(f"Invalid capture name: {name!r}")

    path = os.path.abspath(os.path.join(directory, safe_name))

    try:
        os.makedirs(directory, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise LocalIOError(f"Failed to save {safe_name} to {directory}: {e}") from e

    return path
