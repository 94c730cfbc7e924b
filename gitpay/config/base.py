"""
Shared configuration plumbing for the GitPay badge service.

Every setting is a dataclass field whose default is read from the
environment (and ``.env``) when the module is imported; constructing a
config with explicit keyword arguments overrides it. Each config class
checks its own fields in ``_validate_config`` and raises ConfigError.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENVIRONMENTS = ("local", "dev", "staging", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


@dataclass
class BaseConfig:
    """Deployment environment and log verbosity, shared by every config."""

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "local")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        self._validate_config()
        logging.basicConfig(level=getattr(logging, self.LOG_LEVEL), format=LOG_FORMAT)

    def _validate_config(self):
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ConfigError(f"Invalid LOG_LEVEL '{self.LOG_LEVEL}', expected one of {LOG_LEVELS}")

    @staticmethod
    def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default)

    @staticmethod
    def _get_env_typed(key: str, default: T, cast: Callable[[str], T], kind: str) -> T:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return cast(value)
        except ValueError:
            raise ConfigError(f"Environment variable '{key}' must be {kind}, got: {value}")

    @staticmethod
    def get_env_int(key: str, default: int) -> int:
        """Integer setting, e.g. a limit, port or cache lifetime."""
        return BaseConfig._get_env_typed(key, default, int, "an integer")

    @staticmethod
    def get_env_float(key: str, default: float) -> float:
        """Float setting, e.g. a delay or timeout in seconds."""
        return BaseConfig._get_env_typed(key, default, float, "a number")

    @staticmethod
    def get_env_list(key: str, default: List[str]) -> List[str]:
        """Comma-separated setting such as CORS_ORIGINS."""
        value = os.getenv(key)
        if value is None:
            return list(default)
        return [item.strip() for item in value.split(",") if item.strip()]

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}
