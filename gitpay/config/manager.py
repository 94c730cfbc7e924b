"""
Configuration manager for GitPay.

Combines the individual configuration classes behind a single interface.
"""

import logging
from typing import Dict, Any, Optional
from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .server import ServerConfig
from .transfers import TransferConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Centralized configuration manager that combines all configuration classes.
    """

    def __init__(self, environment: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, dev, staging, production)
        """
        self._environment = environment
        self._base_config = None
        self._chain_config = None
        self._transfer_config = None
        self._server_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        """Initialize all configuration objects."""
        try:
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment

            self._chain_config = ChainConfig()
            self._transfer_config = TransferConfig()
            self._server_config = ServerConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        return self._base_config

    @property
    def chains(self) -> ChainConfig:
        return self._chain_config

    @property
    def transfers(self) -> TransferConfig:
        return self._transfer_config

    @property
    def server(self) -> ServerConfig:
        return self._server_config

    def get_token_config(self) -> Dict[str, Any]:
        """Token contract settings for the active network."""
        return {
            "address": self.chains.token_address,
            "symbol": self.chains.TOKEN_SYMBOL,
            "decimals": self.chains.TOKEN_DECIMALS,
        }

    def get_wallet_chain_config(self) -> Dict[str, Any]:
        """Chain parameters a browser wallet needs to switch to or add the active network."""
        network = self.chains.get_network_config()
        return {
            "chain_id_hex": self.chains.chain_id_hex,
            "chain_name": network["chain_name"],
            "rpc_urls": [network["public_rpc_url"]],
            "native_currency": network["native_currency"],
            "explorer_url": network["explorer_url"],
            "testnet": network["testnet"],
        }

    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Returns:
            True if all configurations are valid

        Raises:
            ConfigError: If any configuration is invalid
        """
        if not self.chains.rpc_url:
            logger.error("❌ Neither ALCHEMY_API_KEY nor RPC_URL is set")
            raise ConfigError(
                "RPC endpoint not configured: set ALCHEMY_API_KEY or RPC_URL in the environment"
            )
        if self.chains.ALCHEMY_API_KEY == "your_alchemy_api_key_here":
            raise ConfigError("ALCHEMY_API_KEY is still the placeholder value")

        logger.info("Configuration validation successful")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert all configurations to dictionary format."""
        chains = self.chains.to_dict() if self.chains else {}
        chains.pop("ALCHEMY_API_KEY", None)
        return {
            "environment": self.environment,
            "base": self.base.to_dict() if self.base else {},
            "chains": chains,
            "transfers": self.transfers.to_dict() if self.transfers else {},
            "server": self.server.to_dict() if self.server else {},
        }

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment})"


# Global configuration manager instance
_config_manager = None


def get_config(environment: Optional[str] = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)
        _config_manager.validate_configuration()

    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    """Reload the global configuration manager."""
    return get_config(environment=environment, force_reload=True)
