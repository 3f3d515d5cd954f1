"""Error codes and the exception type shared by every tool."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # Request errors
    ERR_INVALID_PARAMETER = "ERR_INVALID_PARAMETER"
    ERR_UNKNOWN_TOOL = "ERR_UNKNOWN_TOOL"
    ERR_UNKNOWN_OPERATION_ACTION = "ERR_UNKNOWN_OPERATION_ACTION"

    # Configuration
    ERR_CONFIG_INVALID = "ERR_CONFIG_INVALID"

    # Filesystem
    ERR_FS_NOT_FOUND = "ERR_FS_NOT_FOUND"
    ERR_FS_DIR_NOT_FOUND = "ERR_FS_DIR_NOT_FOUND"
    ERR_FS_DIR_LIST_FAILED = "ERR_FS_DIR_LIST_FAILED"
    ERR_FS_PATH_IS_FILE = "ERR_FS_PATH_IS_FILE"
    ERR_FS_PATH_IS_DIR = "ERR_FS_PATH_IS_DIR"
    ERR_FS_INVALID_PATH = "ERR_FS_INVALID_PATH"
    ERR_FS_PERMISSION_DENIED = "ERR_FS_PERMISSION_DENIED"
    ERR_FS_PATH_RESOLUTION_FAILED = "ERR_FS_PATH_RESOLUTION_FAILED"
    ERR_FS_READ_FAILED = "ERR_FS_READ_FAILED"
    ERR_FS_OPERATION_FAILED = "ERR_FS_OPERATION_FAILED"

    # Limits
    ERR_RESOURCE_LIMIT_EXCEEDED = "ERR_RESOURCE_LIMIT_EXCEEDED"
    ERR_OPERATION_TIMEOUT = "ERR_OPERATION_TIMEOUT"

    # Server
    ERR_INTERNAL_SERVER_ERROR = "ERR_INTERNAL_SERVER_ERROR"


class ToolError(Exception):
    """A fatal tool failure carrying a machine-readable code."""

    def __init__(self, error_code: ErrorCode, message: Optional[str] = None):
        self.error_code = error_code
        self.message = message or f"Operation failed with code: {error_code.value}"
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return create_error_response(self.error_code, self.message)


def create_error_response(error_code: ErrorCode, message: str) -> Dict[str, Any]:
    """Build the structured error object returned to callers."""
    return {
        "status": "error",
        "error_code": error_code.value,
        "error_message": message,
    }
