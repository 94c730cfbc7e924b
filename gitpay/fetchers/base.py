"""
Base classes for upstream data fetchers.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .errors import ErrorHandler

logger = logging.getLogger(__name__)


@dataclass
class FetchConfig:
    """Configuration for upstream calls."""

    max_retries: int = 2
    retry_delay: float = 1.0
    timeout: float = 30.0


class BaseFetcher(ABC):
    """
    Abstract base class for upstream fetchers.

    Each fetcher wraps one provider surface and owns its retry policy.
    """

    def __init__(self, rpc_url: str, config: FetchConfig = None):
        """
        Initialize fetcher.

        Args:
            rpc_url: RPC endpoint URL
            config: Retry and timeout settings
        """
        self.rpc_url = rpc_url
        self.config = config or FetchConfig()
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger, base_delay=self.config.retry_delay)

    @abstractmethod
    def validate_config(self) -> bool:
        """
        Validate fetcher configuration.

        Returns:
            bool: True if configuration is valid
        """
        pass

    async def close(self) -> None:
        """Release held resources."""
        return None

    def get_identifier(self) -> str:
        """Get unique identifier for this fetcher."""
        return f"{self.__class__.__name__.lower()}"

    async def _retry_operation(self, operation, *args, **kwargs) -> Any:
        """Retry an operation with exponential backoff and error classification."""
        attempts = max(self.config.max_retries, 1)

        for attempt in range(attempts):
            try:
                return await operation(*args, **kwargs)
            except Exception as e:
                self.error_handler.log_error(
                    e,
                    {
                        "attempt": attempt + 1,
                        "max_retries": attempts,
                        "operation": getattr(operation, "__name__", str(operation)),
                    },
                )

                if not self.error_handler.should_retry(e, attempt, attempts):
                    raise

                delay = self.error_handler.get_retry_delay(e, attempt)
                self.logger.info(
                    f"Retrying in {delay}s... (attempt {attempt + 1}/{attempts})"
                )
                await asyncio.sleep(delay)
