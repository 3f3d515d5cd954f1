import logging
import sys
import tempfile
from pathlib import Path
from typing import List

from .config import ServerConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = Path(tempfile.gettempdir()) / 'fsquery.log'


def setup_logging(config: ServerConfig) -> None:
    """Configure root logging for the server and the CLI.

    stdout carries the MCP protocol, so console output goes to stderr.
    A log_file of "NONE" disables the file handler.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if config.log_file != "NONE":
        log_path = Path(config.log_file) if config.log_file else DEFAULT_LOG_FILE
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        except OSError as e:
            print(f"Failed to open log file {log_path}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
