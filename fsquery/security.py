"""Path resolution and allow-list enforcement.

Every user-supplied path goes through PathGuard.resolve() before any
filesystem operation sees it. The result is an absolute, symlink-free
path inside one of the configured allowed roots.
"""

import errno
import logging
import os
from typing import List

from .config import ServerConfig
from .errors import ErrorCode, ToolError

logger = logging.getLogger(__name__)


def is_path_allowed(resolved_path: str, allowed_paths: List[str]) -> bool:
    """Check that resolved_path equals or lies under one of allowed_paths."""
    if not allowed_paths:
        return False

    for prefix in allowed_paths:
        prefix = prefix.rstrip(os.sep) or os.sep
        if resolved_path == prefix:
            return True
        if prefix == os.sep or resolved_path.startswith(prefix + os.sep):
            return True
    return False


class PathGuard:
    def __init__(self, config: ServerConfig):
        self.config = config

    def resolve(
        self,
        original_path: str,
        is_existence_required: bool = False,
        check_allowed: bool = True,
        for_creation: bool = False,
    ) -> str:
        """Resolve a user path to a validated absolute path or raise ToolError."""
        if not isinstance(original_path, str) or not original_path.strip():
            raise ToolError(ErrorCode.ERR_FS_INVALID_PATH, "Path must be a non-empty string.")

        current = original_path
        if current.startswith("~"):
            if not self.config.allow_tilde_expansion:
                raise ToolError(
                    ErrorCode.ERR_INVALID_PARAMETER,
                    "Tilde (~) expansion is not allowed by server configuration.",
                )
            current = os.path.expanduser(current)

        if not os.path.isabs(current):
            current = os.path.join(self.config.workspace_root, current)
        current = os.path.normpath(current)

        if for_creation:
            return self._resolve_for_creation(original_path, current, check_allowed)

        real_path = self._realpath(original_path, current)
        exists = os.path.lexists(real_path)
        if not exists and is_existence_required:
            logger.warning(f"Path not found: {current}")
            raise ToolError(
                ErrorCode.ERR_FS_NOT_FOUND,
                f"Path not found: {original_path} (resolved to {current})",
            )

        if check_allowed:
            path_to_verify = real_path if exists else current
            if not is_path_allowed(path_to_verify, self.config.allowed_paths):
                logger.warning(f"Access denied for path: {original_path} (resolved to {path_to_verify})")
                raise ToolError(
                    ErrorCode.ERR_FS_PERMISSION_DENIED,
                    f"Access to path is denied: {original_path}",
                )

        return real_path

    def _resolve_for_creation(self, original_path: str, target: str, check_allowed: bool) -> str:
        parent = os.path.dirname(target)
        if not os.path.isdir(parent):
            raise ToolError(
                ErrorCode.ERR_FS_DIR_NOT_FOUND,
                f"Parent directory not found for creation: {original_path} (parent: {parent})",
            )
        real_parent = self._realpath(original_path, parent)
        if check_allowed and not is_path_allowed(real_parent, self.config.allowed_paths):
            logger.warning(f"Parent directory access denied for creation: {original_path}")
            raise ToolError(
                ErrorCode.ERR_FS_PERMISSION_DENIED,
                f"Parent directory access denied for creation: {original_path}",
            )
        return os.path.join(real_parent, os.path.basename(target))

    @staticmethod
    def _realpath(original_path: str, path: str) -> str:
        try:
            return os.path.realpath(path, strict=True)
        except FileNotFoundError:
            return path
        except OSError as e:
            if e.errno == errno.ELOOP:
                logger.error(f"Too many symbolic links for {path}: {e}")
                raise ToolError(
                    ErrorCode.ERR_FS_INVALID_PATH,
                    f"Too many symbolic links encountered while resolving path: {original_path}.",
                )
            logger.error(f"Error resolving real path for {path}: {e}")
            raise ToolError(
                ErrorCode.ERR_FS_PATH_RESOLUTION_FAILED,
                f"Failed to resolve real path for: {original_path}. {e}",
            )
