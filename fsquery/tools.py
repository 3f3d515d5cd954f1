"""Tool handlers: validate parameters, run the operation, shape the response.

Handlers never raise. A ToolError becomes a structured error response;
anything else is logged with its traceback and reported as an internal
server error.
"""

import logging
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from .config import ServerConfig
from .errors import ErrorCode, ToolError, create_error_response
from .find import FindEngine
from .listing import DirectoryLister
from .models import FindParameters, ListOperation, ListParameters
from .security import PathGuard

logger = logging.getLogger(__name__)


def _validation_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts)


def _run_tool(tool_name: str, operation: Callable[[], Any]) -> Dict[str, Any]:
    try:
        return {"tool_name": tool_name, "results": operation()}
    except ValidationError as e:
        message = f"Invalid parameters for {tool_name}: {_validation_message(e)}"
        logger.warning(message)
        return create_error_response(ErrorCode.ERR_INVALID_PARAMETER, message)
    except ToolError as e:
        logger.info(f"{tool_name} failed with {e.error_code.value}: {e.message}")
        return e.to_response()
    except Exception as e:
        logger.error(f"Error in {tool_name} tool handler: {e}", exc_info=True)
        return create_error_response(
            ErrorCode.ERR_INTERNAL_SERVER_ERROR,
            f"Internal server error: {e}",
        )


def find_tool_handler(
    params: Dict[str, Any],
    config: ServerConfig,
    guard: Optional[PathGuard] = None,
) -> Dict[str, Any]:
    """Run the find tool and return {'tool_name': 'find', 'results': [...]} or an error."""
    guard = guard or PathGuard(config)

    def operation():
        find_params = FindParameters.model_validate(params)
        logger.info(f"Find tool operation called for {find_params.base_path}")
        resolved = guard.resolve(find_params.base_path, is_existence_required=True)
        find_params = find_params.model_copy(update={"base_path": resolved})
        entries = FindEngine(config).find(find_params)
        return [entry.to_dict() for entry in entries]

    return _run_tool("find", operation)


def list_tool_handler(
    params: Dict[str, Any],
    config: ServerConfig,
    guard: Optional[PathGuard] = None,
) -> Dict[str, Any]:
    """Run the list tool (entries or system_info)."""
    lister = DirectoryLister(config, guard)

    def operation():
        list_params = ListParameters.model_validate(params)
        if list_params.operation is ListOperation.ENTRIES:
            return [entry.to_dict() for entry in lister.list_entries(list_params)]
        return lister.system_info(list_params)

    return _run_tool("list", operation)


TOOL_HANDLERS = {
    "find": find_tool_handler,
    "list": list_tool_handler,
}


def dispatch_tool(tool_name: str, params: Dict[str, Any], config: ServerConfig) -> Dict[str, Any]:
    handler = TOOL_HANDLERS.get(tool_name)
    if handler is None:
        return create_error_response(ErrorCode.ERR_UNKNOWN_TOOL, f"Unknown tool: {tool_name}")
    if not isinstance(params, dict):
        return create_error_response(ErrorCode.ERR_INVALID_PARAMETER, "Tool parameters must be an object.")
    return handler(params, config)
