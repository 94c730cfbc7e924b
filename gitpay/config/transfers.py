"""
Transfer classification and aggregation settings.
"""

from dataclasses import dataclass

from .base import BaseConfig, ConfigError


TAG_MATCH_MODES = ("fixed_offset", "anywhere")
RETENTION_POLICIES = ("tagged_only", "all")


@dataclass
class TransferConfig(BaseConfig):
    """Settings for the transfer classifier and aggregator."""

    # Where the application tag may appear in call-data
    TAG_MATCH_MODE: str = BaseConfig.get_env("TAG_MATCH_MODE", "fixed_offset")

    # Which classified transfers the aggregator keeps
    RETENTION_POLICY: str = BaseConfig.get_env("RETENTION_POLICY", "tagged_only")

    # Indexer query bounds
    MAX_TRANSFERS: int = BaseConfig.get_env_int("MAX_TRANSFERS", 1000)
    LOOKUP_LIMIT: int = BaseConfig.get_env_int("LOOKUP_LIMIT", 50)

    # Presentation limits
    DISPLAY_LIMIT: int = BaseConfig.get_env_int("DISPLAY_LIMIT", 10)
    DASHBOARD_LIMIT: int = BaseConfig.get_env_int("DASHBOARD_LIMIT", 4)

    # Concurrency towards the node
    LOOKUP_CONCURRENCY: int = BaseConfig.get_env_int("LOOKUP_CONCURRENCY", 5)
    NAME_BATCH_SIZE: int = BaseConfig.get_env_int("NAME_BATCH_SIZE", 5)

    # Block window for the network-wide feed (free tier log range)
    RECENT_BLOCK_WINDOW: int = BaseConfig.get_env_int("RECENT_BLOCK_WINDOW", 10)

    def _validate_config(self):
        super()._validate_config()
        if self.TAG_MATCH_MODE not in TAG_MATCH_MODES:
            raise ConfigError(
                f"Invalid TAG_MATCH_MODE '{self.TAG_MATCH_MODE}', expected one of {TAG_MATCH_MODES}"
            )
        if self.RETENTION_POLICY not in RETENTION_POLICIES:
            raise ConfigError(
                f"Invalid RETENTION_POLICY '{self.RETENTION_POLICY}', expected one of {RETENTION_POLICIES}"
            )
        if self.LOOKUP_CONCURRENCY < 1:
            raise ConfigError("LOOKUP_CONCURRENCY must be at least 1")
