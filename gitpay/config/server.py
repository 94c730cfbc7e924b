"""
HTTP server configuration for GitPay.
"""

from dataclasses import dataclass, field
from typing import List

from .base import BaseConfig


@dataclass
class ServerConfig(BaseConfig):
    """Settings for the HTTP surface."""

    HOST: str = BaseConfig.get_env("HOST", "0.0.0.0")
    PORT: int = BaseConfig.get_env_int("PORT", 3000)

    CORS_ORIGINS: List[str] = field(
        default_factory=lambda: BaseConfig.get_env_list("CORS_ORIGINS", ["*"])
    )

    # Cache-Control max-age for rendered images
    STATS_CACHE_SECONDS: int = BaseConfig.get_env_int("STATS_CACHE_SECONDS", 300)
    DASHBOARD_CACHE_SECONDS: int = BaseConfig.get_env_int("DASHBOARD_CACHE_SECONDS", 60)

    DEFAULT_DONATION_AMOUNT: str = BaseConfig.get_env("DEFAULT_DONATION_AMOUNT", "10")

    def cache_header(self, seconds: int) -> str:
        return f"public, max-age={seconds}"
