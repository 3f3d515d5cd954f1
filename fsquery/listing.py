import logging
import os
import stat
import time
from typing import Any, Dict, List, Optional

import psutil

from . import fs_ops
from .config import ServerConfig
from .errors import ErrorCode, ToolError
from .models import EntryInfo, EntryType, ListParameters, SystemInfoType
from .security import PathGuard

logger = logging.getLogger(__name__)

SUPPORTED_TOOLS = ["find", "list"]


class DirectoryLister:
    """Implements the list tool: nested directory listings and server info."""

    def __init__(self, config: ServerConfig, guard: Optional[PathGuard] = None):
        self.config = config
        self.guard = guard or PathGuard(config)

    def list_entries(self, params: ListParameters) -> List[EntryInfo]:
        if not params.path:
            raise ToolError(ErrorCode.ERR_INVALID_PARAMETER, "'path' is required for list entries.")

        logger.info(
            f"Listing {params.path}, depth: {params.recursive_depth}, "
            f"calculate size: {params.calculate_recursive_size}"
        )
        base_path = self.guard.resolve(params.path, is_existence_required=True)
        base_stats = fs_ops.get_stats(base_path)
        if not stat.S_ISDIR(base_stats.st_mode):
            raise ToolError(
                ErrorCode.ERR_FS_PATH_IS_FILE,
                f"Provided path is a file, not a directory: {base_path}",
            )

        max_depth = max(0, min(params.recursive_depth, self.config.effective_max_depth))
        return self._list_recursive(base_path, 0, max_depth, params.calculate_recursive_size)

    def _list_recursive(
        self, dir_path: str, depth: int, max_depth: float, calculate_size: bool
    ) -> List[EntryInfo]:
        entries: List[EntryInfo] = []
        if depth > max_depth:
            return entries

        try:
            names = fs_ops.list_directory(dir_path)
        except ToolError as e:
            logger.warning(f"Error listing directory {dir_path}: {e.message}. Skipping this directory.")
            return entries

        for name in names:
            entry_path = os.path.join(dir_path, name)
            try:
                entry = fs_ops.create_entry_info(entry_path, fs_ops.get_lstats(entry_path), name)
            except ToolError as e:
                logger.warning(f"Could not stat {entry_path}: {e.message}. Skipping entry.")
                continue

            if entry.type is EntryType.DIRECTORY:
                if calculate_size:
                    size, note = fs_ops.calculate_recursive_directory_size(
                        entry_path,
                        0,
                        self.config.effective_max_depth,
                        self.config.recursive_size_timeout_ms,
                        time.monotonic(),
                    )
                    entry.size_bytes = size
                    entry.recursive_size_calculation_note = note
                if depth < max_depth:
                    entry.children = self._list_recursive(entry_path, depth + 1, max_depth, calculate_size)

            entries.append(entry)

        return entries

    def system_info(self, params: ListParameters) -> Dict[str, Any]:
        if params.info_type is None:
            raise ToolError(ErrorCode.ERR_INVALID_PARAMETER, "'info_type' is required for system_info.")

        if params.info_type is SystemInfoType.SERVER_CAPABILITIES:
            return {
                "server_version": self.config.server_version,
                "active_configuration": self.config.model_dump(),
                "supported_tools": SUPPORTED_TOOLS,
                "max_recursive_depth": self.config.max_recursive_depth,
            }

        if not params.path:
            return {
                "info_type_requested": "filesystem_stats",
                "status_message": "No path provided. Pass 'path' to get statistics for a specific filesystem.",
                "server_version": self.config.server_version,
                "configured_allowed_paths": self.config.allowed_paths,
            }

        resolved = self.guard.resolve(params.path, is_existence_required=True)
        try:
            usage = psutil.disk_usage(resolved)
        except OSError as e:
            logger.error(f"Failed to get disk usage for {resolved}: {e}")
            raise ToolError(
                ErrorCode.ERR_FS_OPERATION_FAILED,
                f"Could not retrieve disk space information for {resolved}: {e}",
            )
        return {
            "path_queried": resolved,
            "total_bytes": usage.total,
            "free_bytes": usage.free,
            "used_bytes": usage.used,
        }
