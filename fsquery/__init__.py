__version__ = "1.0.0"

from .config import ConfigManager, ServerConfig
from .criteria import CriterionEvaluator
from .errors import ErrorCode, ToolError
from .find import FindEngine
from .models import (
    EntryInfo, EntryType, EntryTypeFilter, FindParameters,
    NamePatternCriterion, ContentPatternCriterion, MetadataFilterCriterion,
)
from .security import PathGuard
from .tools import dispatch_tool, find_tool_handler, list_tool_handler

__all__ = [
    "ConfigManager",
    "ServerConfig",
    "CriterionEvaluator",
    "ErrorCode",
    "ToolError",
    "FindEngine",
    "EntryInfo",
    "EntryType",
    "EntryTypeFilter",
    "FindParameters",
    "NamePatternCriterion",
    "ContentPatternCriterion",
    "MetadataFilterCriterion",
    "PathGuard",
    "dispatch_tool",
    "find_tool_handler",
    "list_tool_handler",
]
