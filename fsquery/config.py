import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import __version__

logger = logging.getLogger(__name__)

ENV_PREFIX = "FSQ_"
DEFAULT_CONFIG_PATH = "fsquery.yaml"
DEFAULT_MAX_RECURSIVE_DEPTH = 10
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_config_path(raw: str) -> str:
    """Expand ``~`` and make a configured path absolute."""
    return str(Path(raw).expanduser().resolve())


class ServerConfig(BaseModel):
    log_level: str = "INFO"
    log_file: Optional[str] = None
    allowed_paths: List[str] = Field(default_factory=lambda: ["~", "/tmp"], validate_default=True)
    workspace_root: str = Field(default_factory=os.getcwd, validate_default=True)
    allow_tilde_expansion: bool = True
    max_recursive_depth: int = DEFAULT_MAX_RECURSIVE_DEPTH  # -1 means unlimited
    max_file_read_bytes: int = 52428800
    max_file_read_bytes_find: int = 524288
    recursive_size_timeout_ms: int = 60000
    find_timeout_ms: int = 60000  # <= 0 disables the find deadline
    server_version: str = __version__

    model_config = ConfigDict(extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        level = str(v).upper()
        if level == "WARN":
            level = "WARNING"
        if level not in LOG_LEVELS:
            logger.warning(f"Invalid log level {v!r}, using INFO")
            return "INFO"
        return level

    @field_validator("allowed_paths", mode="before")
    @classmethod
    def _split_allowed_paths(cls, v):
        if isinstance(v, str):
            v = v.split(":")
        return [resolve_config_path(p.strip()) for p in v if p and p.strip()]

    @field_validator("workspace_root", mode="before")
    @classmethod
    def _resolve_workspace_root(cls, v):
        return resolve_config_path(v)

    @field_validator("max_recursive_depth")
    @classmethod
    def _check_max_recursive_depth(cls, v):
        if v < -1:
            logger.warning(f"Invalid max_recursive_depth {v}, using {DEFAULT_MAX_RECURSIVE_DEPTH}")
            return DEFAULT_MAX_RECURSIVE_DEPTH
        return v

    @property
    def effective_max_depth(self) -> float:
        return float("inf") if self.max_recursive_depth == -1 else self.max_recursive_depth


_INT_FIELDS = (
    "max_recursive_depth",
    "max_file_read_bytes",
    "max_file_read_bytes_find",
    "recursive_size_timeout_ms",
    "find_timeout_ms",
)


class ConfigManager:
    def __init__(self, config_path: Optional[str] = None):
        self.explicit_path = config_path is not None
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self.config: Optional[ServerConfig] = None
        self.load_config()

    def load_config(self) -> ServerConfig:
        """Load configuration from file and environment"""
        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        elif self.explicit_path:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        config_data = self._merge_env_vars(config_data)
        self.config = ServerConfig(**config_data)

        if not self.config.allowed_paths:
            logger.error("allowed_paths resolved to an empty list; all filesystem access will be denied")

        logger.debug(f"Active configuration: {self.config.model_dump()}")
        return self.config

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge FSQ_* environment variables over file values"""
        defaults = ServerConfig.model_fields

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX) or value == "":
                continue
            config_key = key[len(ENV_PREFIX):].lower()
            if config_key not in defaults:
                continue

            if config_key in _INT_FIELDS:
                try:
                    config_data[config_key] = int(value, 10)
                except ValueError:
                    logger.warning(f"Invalid integer value for {key}: {value!r}. Ignoring it.")
            elif config_key == "allow_tilde_expansion":
                config_data[config_key] = value.strip().lower() in ("1", "true", "yes", "on")
            else:
                config_data[config_key] = value

        return config_data

    def get_config(self) -> ServerConfig:
        """Get current configuration"""
        if self.config is None:
            self.load_config()
        return self.config

    def save_config(self):
        """Save configuration to file"""
        if self.config is None:
            return

        with open(self.config_path, "w") as f:
            yaml.dump(self.config.model_dump(), f, default_flow_style=False)
