"""
File intake for PDF forensic analysis.

Captures the file-system view of an input document before any parsing:
- SHA-256 over the full file contents
- Size and file-system creation/modification times
- Extended attributes (quarantine flags, download origin) where the
  platform exposes them
"""

import hashlib
import logging
import os
import plistlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Union

from pdf_forensic.models import WHERE_FROMS_ATTRIBUTE, FileInfo
from pdf_forensic.utils.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536  # 64KB chunks
MAX_ATTRIBUTE_SIZE = 4096


def calculate_sha256(file_path: Path) -> str:
    """Calculate the lowercase hex SHA-256 of a file."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            sha256.update(chunk)
    return sha256.hexdigest()


def _decode_attribute(name: str, raw: bytes) -> str:
    if name == WHERE_FROMS_ATTRIBUTE:
        # Stored as a binary plist array of URLs
        try:
            urls = plistlib.loads(raw)
        except (plistlib.InvalidFileException, ValueError):
            urls = None
        if isinstance(urls, list):
            return "\n".join(str(u) for u in urls)

    if len(raw) >= MAX_ATTRIBUTE_SIZE:
        return f"<large data: {len(raw)} bytes>"
    try:
        return raw.decode("utf-8").strip("\x00").strip()
    except UnicodeDecodeError:
        return f"<binary data: {len(raw)} bytes>"


def read_extended_attributes(file_path: Path) -> Dict[str, str]:
    """
    Read extended attributes as text.

    Returns an empty mapping on platforms without xattr support or when the
    file system refuses the query.
    """
    listxattr = getattr(os, "listxattr", None)
    getxattr = getattr(os, "getxattr", None)
    if listxattr is None or getxattr is None:
        return {}

    attributes = {}
    try:
        names = listxattr(file_path)
    except OSError as e:
        logger.debug(f"Extended attributes unavailable for {file_path}: {e}")
        return {}

    for name in sorted(names):
        try:
            raw = getxattr(file_path, name)
        except OSError:
            continue
        attributes[name] = _decode_attribute(name, raw)
    return attributes


def get_file_info(file_path: Union[str, Path]) -> FileInfo:
    """
    Build the FileInfo for an input document.

    Args:
        file_path: Path to the document

    Returns:
        FileInfo with hash, size, times and extended attributes

    Raises:
        InvalidInputError: If the path is missing, not a file or unreadable
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise InvalidInputError(str(file_path), "File does not exist")
    if not file_path.is_file():
        raise InvalidInputError(str(file_path), "Path is not a file")

    try:
        stat_result = file_path.stat()
        sha256 = calculate_sha256(file_path)
    except OSError as e:
        raise InvalidInputError(str(file_path), "File could not be read", e)

    # st_birthtime exists on macOS and BSD; elsewhere st_ctime is the closest
    created_ts = getattr(stat_result, "st_birthtime", stat_result.st_ctime)

    return FileInfo(
        file_name=file_path.name,
        file_path=str(file_path.absolute()),
        file_size=stat_result.st_size,
        sha256=sha256,
        creation_date=datetime.fromtimestamp(created_ts, tz=timezone.utc),
        modification_date=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
        extended_attributes=read_extended_attributes(file_path),
    )
