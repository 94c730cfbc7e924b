"""
Configuration management for the GitPay badge service.

Use get_config() to access all configuration settings.

Example:
    from gitpay.config import get_config

    config = get_config()

    # RPC endpoint (Alchemy URL built from ALCHEMY_API_KEY unless RPC_URL is set)
    rpc_url = config.chains.rpc_url

    # Token of interest
    token = config.get_token_config()

    # Classifier / aggregator settings
    mode = config.transfers.TAG_MATCH_MODE
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .manager import ConfigManager, get_config, reload_config
from .server import ServerConfig
from .transfers import TransferConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "TransferConfig",
    "ServerConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
