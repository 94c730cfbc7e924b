"""
Upstream fetchers: Alchemy's transfer index and the node RPC.

KISS: thin adapters; classification and aggregation live in processors.
"""

from eth_utils import is_address

from .alchemy import AlchemyFetcher
from .base import BaseFetcher, FetchConfig
from .chain import ChainFetcher
from .errors import (
    BadRequestError,
    ErrorHandler,
    FetchError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)

__all__ = [
    "AlchemyFetcher",
    "BaseFetcher",
    "ChainFetcher",
    "FetchConfig",
    "is_address",
    "ErrorHandler",
    "FetchError",
    "NotFoundError",
    "BadRequestError",
    "UpstreamError",
    "RateLimitError",
    "NetworkError",
]
