"""
GitPay processors: call-data classification, transfer aggregation and stats.

KISS: pure functions where possible; the aggregator only orchestrates
injected fetchers.
"""

from .aggregator import RetentionPolicy, TransferAggregator
from .classifier import (
    GITPAY_IDENTIFIER,
    GITPAY_TAG,
    TRANSFER_SELECTOR,
    TagMatchMode,
    TransferClassifier,
    build_transfer_data,
    classify,
)
from .models import NOT_TAGGED, AggregateStats, Classification, NetworkSummary, TaggedTransfer
from .stats import (
    compute_stats,
    format_amount,
    format_units,
    parse_units,
    short_address,
    summarize_network,
    time_ago,
)

__all__ = [
    "RetentionPolicy",
    "TransferAggregator",
    "GITPAY_IDENTIFIER",
    "GITPAY_TAG",
    "TRANSFER_SELECTOR",
    "TagMatchMode",
    "TransferClassifier",
    "build_transfer_data",
    "classify",
    "NOT_TAGGED",
    "AggregateStats",
    "Classification",
    "NetworkSummary",
    "TaggedTransfer",
    "compute_stats",
    "format_amount",
    "format_units",
    "parse_units",
    "short_address",
    "summarize_network",
    "time_ago",
]
