"""
Data model for classified token transfers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Classification:
    """Classifier verdict for one transaction's call-data."""

    is_tagged: bool
    decoded_recipient: Optional[str] = None
    decoded_amount: Optional[str] = None
    memo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isTagged": self.is_tagged,
            "decodedRecipient": self.decoded_recipient,
            "decodedAmount": self.decoded_amount,
            "memo": self.memo,
        }


NOT_TAGGED = Classification(is_tagged=False)


@dataclass
class TaggedTransfer:
    """
    One on-chain token movement with its classification attached.

    ``from_address``/``to_address``/``raw_value`` come from the transfer
    event. When the classifier decoded a recipient or amount from the
    call-data those take precedence (see ``recipient`` and ``amount``).
    """

    transaction_hash: str
    from_address: str
    to_address: str
    raw_value: int
    block_number: int
    timestamp: datetime
    classification: Classification = NOT_TAGGED
    token_address: Optional[str] = None
    decimals: int = 6

    @property
    def is_tagged(self) -> bool:
        return self.classification.is_tagged

    @property
    def recipient(self) -> str:
        return self.classification.decoded_recipient or self.to_address

    @property
    def amount(self) -> int:
        if self.classification.decoded_amount is not None:
            return int(self.classification.decoded_amount)
        return self.raw_value

    @property
    def memo(self) -> Optional[str]:
        return self.classification.memo

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.transaction_hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.raw_value),
            "blockNumber": self.block_number,
            "timestamp": int(self.timestamp.timestamp() * 1000),
            "recipient": self.recipient,
            "amount": str(self.amount),
            "memo": self.memo,
            "classification": self.classification.to_dict(),
        }


@dataclass(frozen=True)
class AggregateStats:
    """Received/donated totals for one address, in token display units."""

    total_received: Decimal = Decimal(0)
    total_donated: Decimal = Decimal(0)
    received_count: int = 0
    donated_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReceived": str(self.total_received),
            "totalDonated": str(self.total_donated),
            "receivedCount": self.received_count,
            "donatedCount": self.donated_count,
        }


@dataclass
class NetworkSummary:
    """Statistics over the network-wide feed of tagged transfers."""

    total_transactions: int = 0
    total_volume: Decimal = Decimal(0)
    unique_recipients: int = 0
    recent_transactions: List[TaggedTransfer] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "totalVolume": str(self.total_volume),
            "uniqueRecipients": self.unique_recipients,
            "recentTransactions": [tx.to_dict() for tx in self.recent_transactions],
        }
