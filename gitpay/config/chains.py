"""
Network and token configuration for GitPay.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .base import BaseConfig, ConfigError


@dataclass
class ChainConfig(BaseConfig):
    """Network, RPC and token settings."""

    # Active network
    NETWORK: str = BaseConfig.get_env("NETWORK", "sepolia")

    # Alchemy serves both the node RPC and the asset transfer index
    ALCHEMY_API_KEY: str = BaseConfig.get_env("ALCHEMY_API_KEY", "")
    RPC_URL: Optional[str] = BaseConfig.get_env("RPC_URL")

    # Token of interest (defaults to PYUSD on the active network)
    TOKEN_ADDRESS: Optional[str] = BaseConfig.get_env("TOKEN_ADDRESS")
    TOKEN_SYMBOL: str = BaseConfig.get_env("TOKEN_SYMBOL", "PYUSD")
    TOKEN_DECIMALS: int = BaseConfig.get_env_int("TOKEN_DECIMALS", 6)

    # Transport settings
    MAX_RETRY_ATTEMPTS: int = BaseConfig.get_env_int("MAX_RETRY_ATTEMPTS", 2)
    RETRY_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_DELAY_SECONDS", 1.0)
    REQUEST_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("REQUEST_TIMEOUT_SECONDS", 30.0)

    def _validate_config(self):
        super()._validate_config()
        if self.NETWORK not in self.supported_networks:
            raise ConfigError(f"Unsupported network: {self.NETWORK}")

    @property
    def supported_networks(self) -> Dict[str, Dict]:
        """Get configuration for all supported networks."""
        return {
            "sepolia": {
                "chain_id": 11155111,
                "chain_name": "Sepolia Test Network",
                "alchemy_host": "eth-sepolia.g.alchemy.com",
                "public_rpc_url": "https://sepolia.infura.io/v3/",
                "native_currency": {"name": "SepoliaETH", "symbol": "SepoliaETH", "decimals": 18},
                "explorer_url": "https://sepolia.etherscan.io",
                "token_address": "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9",
                "testnet": True,
            },
            "mainnet": {
                "chain_id": 1,
                "chain_name": "Ethereum Mainnet",
                "alchemy_host": "eth-mainnet.g.alchemy.com",
                "public_rpc_url": "https://eth.llamarpc.com",
                "native_currency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
                "explorer_url": "https://etherscan.io",
                "token_address": "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8",
                "testnet": False,
            },
        }

    def get_network_config(self, network: Optional[str] = None) -> Dict:
        """Get configuration for a specific network (active network by default)."""
        network = network or self.NETWORK
        if network not in self.supported_networks:
            raise ValueError(f"Unsupported network: {network}")
        return self.supported_networks[network]

    @property
    def rpc_url(self) -> str:
        """RPC endpoint, empty when neither RPC_URL nor ALCHEMY_API_KEY is set."""
        if self.RPC_URL:
            return self.RPC_URL
        if not self.ALCHEMY_API_KEY:
            return ""
        host = self.get_network_config()["alchemy_host"]
        return f"https://{host}/v2/{self.ALCHEMY_API_KEY}"

    @property
    def token_address(self) -> str:
        return self.TOKEN_ADDRESS or self.get_network_config()["token_address"]

    @property
    def chain_id(self) -> int:
        return self.get_network_config()["chain_id"]

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    @property
    def explorer_url(self) -> str:
        return self.get_network_config()["explorer_url"]

    @property
    def is_testnet(self) -> bool:
        return self.get_network_config()["testnet"]
