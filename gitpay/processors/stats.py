"""
Aggregate statistics and display helpers for classified transfers.

Amounts are summed as Decimal so totals carry no float rounding; display
formatting rounds to two places.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Union

from .models import AggregateStats, NetworkSummary, TaggedTransfer


def format_units(raw: int, decimals: int = 6) -> Decimal:
    """Convert a base-unit integer to display units."""
    return Decimal(int(raw)) / (Decimal(10) ** decimals)


def parse_units(amount: Union[str, int, Decimal], decimals: int = 6) -> int:
    """
    Convert a display amount (e.g. "10.5") to base units.

    Raises:
        ValueError: If the amount is not a non-negative number
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount!r}")
    return int(value * (Decimal(10) ** decimals))


def format_amount(value: Decimal, places: int = 2) -> str:
    """Fixed-point string for display."""
    return f"{value:.{places}f}"


def short_address(addr: str, chars: int = 6) -> str:
    """Shorten an Ethereum address for display."""
    if not addr or len(addr) < chars * 2:
        return addr or "?"
    return f"{addr[:chars]}...{addr[-4:]}"


def time_ago(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Relative age as "Nm ago", "Nh ago" or "Nd ago"."""
    now = now or datetime.now(timezone.utc)
    seconds = max((now - timestamp).total_seconds(), 0)

    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


def compute_stats(
    transfers: Iterable[TaggedTransfer],
    subject: str,
    decimals: Optional[int] = None,
) -> AggregateStats:
    """
    Partition transfers by direction relative to ``subject`` and total them.

    A transfer counts as received when its effective recipient is the
    subject, otherwise as donated when the subject sent it. Self-transfers
    therefore count once, as received.

    Args:
        transfers: Classified transfers
        subject: Address the dashboard is about
        decimals: Token decimals; defaults to each transfer's own

    Returns:
        AggregateStats with Decimal totals
    """
    subject = subject.lower()
    total_received = Decimal(0)
    total_donated = Decimal(0)
    received_count = 0
    donated_count = 0

    for tx in transfers:
        scale = tx.decimals if decimals is None else decimals
        if tx.recipient.lower() == subject:
            total_received += format_units(tx.amount, scale)
            received_count += 1
        elif tx.from_address.lower() == subject:
            total_donated += format_units(tx.amount, scale)
            donated_count += 1

    return AggregateStats(
        total_received=total_received,
        total_donated=total_donated,
        received_count=received_count,
        donated_count=donated_count,
    )


def summarize_network(
    transfers: List[TaggedTransfer],
    decimals: Optional[int] = None,
    recent_count: int = 10,
) -> NetworkSummary:
    """Totals over a network-wide feed (expected newest first)."""
    volume = sum(
        (format_units(tx.amount, tx.decimals if decimals is None else decimals) for tx in transfers),
        Decimal(0),
    )
    return NetworkSummary(
        total_transactions=len(transfers),
        total_volume=volume,
        unique_recipients=len({tx.recipient.lower() for tx in transfers}),
        recent_transactions=list(transfers[:recent_count]),
    )
