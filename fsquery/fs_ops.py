"""Thin filesystem collaborators used by the find and list tools.

Failures are raised as ToolError with a filesystem error code so callers
can decide whether a failure is fatal (base path) or skippable (a child).
"""

import errno
import logging
import os
import stat
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .errors import ErrorCode, ToolError
from .mime import sniff_mime_type
from .models import EntryInfo, EntryType

logger = logging.getLogger(__name__)

NOTE_DEPTH_LIMIT = "Partial size: depth limit reached"
NOTE_TIMEOUT = "Calculation timed out due to server limit"
NOTE_ERROR = "Error during size calculation"


def format_iso8601_utc(timestamp: float) -> str:
    """Format a POSIX timestamp as e.g. 2025-05-16T15:30:00.123Z"""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def path_exists(file_path: str) -> bool:
    return os.path.lexists(file_path)


def get_stats(file_path: str) -> os.stat_result:
    """stat() that follows symlinks."""
    try:
        return os.stat(file_path)
    except FileNotFoundError:
        raise ToolError(ErrorCode.ERR_FS_NOT_FOUND, f"Path not found: {file_path}")
    except OSError as e:
        raise ToolError(
            ErrorCode.ERR_FS_OPERATION_FAILED,
            f"Failed to get stats for path: {file_path}. Error: {e.strerror or e}",
        )


def get_lstats(file_path: str) -> os.stat_result:
    """lstat(): describes a symlink itself rather than its target."""
    try:
        return os.lstat(file_path)
    except FileNotFoundError:
        raise ToolError(ErrorCode.ERR_FS_NOT_FOUND, f"Path not found: {file_path}")
    except OSError as e:
        raise ToolError(
            ErrorCode.ERR_FS_OPERATION_FAILED,
            f"Failed to get lstats for path: {file_path}. Error: {e.strerror or e}",
        )


def list_directory(dir_path: str) -> List[str]:
    """Return the child names of dir_path in sorted order."""
    try:
        return sorted(os.listdir(dir_path))
    except FileNotFoundError:
        raise ToolError(ErrorCode.ERR_FS_DIR_NOT_FOUND, f"Directory not found: {dir_path}")
    except NotADirectoryError:
        raise ToolError(
            ErrorCode.ERR_FS_PATH_IS_FILE,
            f"Path is a file, not a directory: {dir_path}",
        )
    except OSError as e:
        raise ToolError(
            ErrorCode.ERR_FS_DIR_LIST_FAILED,
            f"Failed to list directory: {dir_path}. Error: {e.strerror or e}",
        )


def read_file_as_text(file_path: str, max_bytes: int) -> str:
    """Read a whole file as UTF-8, refusing files larger than max_bytes."""
    st = get_stats(file_path)
    if stat.S_ISDIR(st.st_mode):
        raise ToolError(
            ErrorCode.ERR_FS_PATH_IS_DIR,
            f"Expected a file but found a directory at {file_path}",
        )
    if st.st_size > max_bytes:
        raise ToolError(
            ErrorCode.ERR_RESOURCE_LIMIT_EXCEEDED,
            f"File size {st.st_size} bytes exceeds maximum allowed read limit "
            f"of {max_bytes} bytes for {file_path}.",
        )
    try:
        with open(file_path, "rb") as f:
            data = f.read(max_bytes + 1)
    except OSError as e:
        raise ToolError(
            ErrorCode.ERR_FS_READ_FAILED,
            f"Failed to read file: {file_path}. Error: {e.strerror or e}",
        )
    if len(data) > max_bytes:
        # Grew between stat and read
        raise ToolError(
            ErrorCode.ERR_RESOURCE_LIMIT_EXCEEDED,
            f"File {file_path} exceeds maximum allowed read limit of {max_bytes} bytes.",
        )
    return data.decode("utf-8", errors="replace")


def _permissions_string(mode: int) -> str:
    return stat.filemode(mode)[1:]


def _entry_type(mode: int) -> EntryType:
    if stat.S_ISLNK(mode):
        return EntryType.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryType.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryType.FILE
    return EntryType.OTHER


def _creation_time(st: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD and on Windows with Python 3.12+
    return getattr(st, "st_birthtime", None) or st.st_ctime


def create_entry_info(
    full_path: str,
    stats: Optional[os.stat_result] = None,
    name: Optional[str] = None,
) -> EntryInfo:
    """Build an EntryInfo from the link-aware stat of full_path."""
    lst = stats if stats is not None else get_lstats(full_path)
    entry_type = _entry_type(lst.st_mode)

    effective = lst
    symlink_target = None
    if entry_type is EntryType.SYMLINK:
        try:
            symlink_target = os.readlink(full_path)
            effective = os.stat(full_path)
        except OSError as e:
            if e.errno != errno.ENOENT:
                logger.debug(f"Symlink target stat/readlink failed for {full_path}: {e}")

    size_bytes = None
    mime_type = None
    if entry_type is EntryType.FILE:
        size_bytes = lst.st_size
        mime_type = sniff_mime_type(full_path)

    return EntryInfo(
        name=name or os.path.basename(full_path.rstrip(os.sep)) or full_path,
        path=full_path,
        type=entry_type,
        size_bytes=size_bytes,
        mime_type=mime_type,
        created_at=format_iso8601_utc(_creation_time(effective)),
        modified_at=format_iso8601_utc(effective.st_mtime),
        last_accessed_at=format_iso8601_utc(effective.st_atime),
        is_readonly=not (effective.st_mode & stat.S_IWUSR),
        symlink_target=symlink_target,
        permissions_octal=f"{stat.S_IMODE(effective.st_mode):04o}",
        permissions_string=_permissions_string(effective.st_mode),
    )


def calculate_recursive_directory_size(
    dir_path: str,
    current_depth: int,
    max_depth: float,
    timeout_ms: int,
    start_time: float,
) -> Tuple[int, Optional[str]]:
    """Sum file sizes under dir_path.

    Returns (size, note); note is set when the figure is partial because
    of the depth limit, the timeout or an unreadable directory.
    start_time is a time.monotonic() reading.
    """
    if current_depth > max_depth:
        return 0, NOTE_DEPTH_LIMIT

    total = 0
    note = None
    try:
        with os.scandir(dir_path) as it:
            for entry in it:
                if (time.monotonic() - start_time) * 1000 > timeout_ms:
                    note = NOTE_TIMEOUT
                    break

                if entry.is_file(follow_symlinks=False):
                    try:
                        total += entry.stat(follow_symlinks=False).st_size
                    except OSError as e:
                        logger.warning(f"Could not stat file {entry.path} during recursive size calculation: {e}")
                elif entry.is_dir(follow_symlinks=False):
                    if current_depth + 1 <= max_depth:
                        sub_size, sub_note = calculate_recursive_directory_size(
                            entry.path, current_depth + 1, max_depth, timeout_ms, start_time
                        )
                        total += sub_size
                        if sub_note and not note:
                            note = sub_note
                        if note == NOTE_TIMEOUT:
                            break
                    elif not note:
                        note = NOTE_DEPTH_LIMIT
    except OSError as e:
        logger.warning(f"Error reading directory {dir_path} for recursive size calculation: {e}")
        if not note:
            note = NOTE_ERROR

    return total, note
