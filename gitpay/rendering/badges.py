"""
SVG badge rendering.

Every caller-provided string is escaped before it is placed in the
markup.
"""

from datetime import datetime
from decimal import Decimal
from html import escape
from typing import Dict, Iterable, List, Optional

from ..processors.models import AggregateStats, TaggedTransfer
from ..processors.stats import format_amount, format_units, short_address, time_ago
from .themes import Theme

FONT = "Arial, sans-serif"

RECEIVED_COLOR = "#4ade80"
DONATED_COLOR = "#f59e0b"
MUTED_COLOR = "#a0a0a0"

DASHBOARD_WIDTH = 600
DASHBOARD_HEIGHT = 250
DASHBOARD_RECENT = 4

_GLOW_FILTER = """
    <filter id="glow">
      <feGaussianBlur stdDeviation="3" result="coloredBlur"/>
      <feMerge>
        <feMergeNode in="coloredBlur"/>
        <feMergeNode in="SourceGraphic"/>
      </feMerge>
    </filter>"""


def _glow(theme: Theme) -> str:
    return ' filter="url(#glow)"' if theme.glow else ""


def _defs(theme: Theme) -> str:
    return f"""
  <defs>
    <linearGradient id="bg" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{theme.background};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{theme.card_bg};stop-opacity:1" />
    </linearGradient>{_GLOW_FILTER if theme.glow else ""}
  </defs>"""


def _frame(theme: Theme, width: int, height: int) -> str:
    frame = (
        f'  <rect width="{width}" height="{height}" fill="url(#bg)" rx="10" '
        f'stroke="{theme.border}" stroke-width="2"/>'
    )
    if theme.glow:
        frame += (
            f'\n  <rect width="{width}" height="{height}" fill="none" rx="10" '
            f'stroke="{theme.border}" stroke-width="1" opacity="0.5"/>'
        )
    return frame


def render_stats_badge(
    name: str,
    address: str,
    balance: Decimal,
    symbol: str,
    theme: Theme,
    explorer_url: str,
) -> str:
    """500x200 card showing an account's token balance with an explorer link."""
    link = escape(f"{explorer_url.rstrip('/')}/address/{address}")
    name = escape(name)
    address = escape(address)
    symbol = escape(symbol)
    glow = _glow(theme)

    return f"""<svg width="500" height="200" xmlns="http://www.w3.org/2000/svg">{_defs(theme)}
{_frame(theme, 500, 200)}

  <text x="20" y="40" font-family="{FONT}" font-size="24" font-weight="bold" fill="{theme.primary_text}"{glow}>GitPay Stats</text>
  <text x="20" y="70" font-family="{FONT}" font-size="16" fill="{theme.secondary_text}"{glow}>ENS: {name}</text>
  <text x="20" y="95" font-family="{FONT}" font-size="12" fill="{theme.secondary_text}"{glow}>Address: {address}</text>

  <g transform="translate(20, 110)">
    <circle cx="12" cy="12" r="10" fill="{theme.accent_text}" opacity="0.2"/>
    <text x="12" y="16" font-family="{FONT}" font-size="12" font-weight="bold" fill="{theme.accent_text}" text-anchor="middle">{symbol[:1]}</text>
  </g>
  <text x="50" y="125" font-family="{FONT}" font-size="18" font-weight="bold" fill="{theme.accent_text}"{glow}>{symbol} Balance: {format_amount(balance)}</text>

  <text x="20" y="170" font-family="{FONT}" font-size="12" fill="{theme.secondary_text}"{glow}>Powered by GitPay</text>

  <a href="{link}" target="_blank">
    <rect x="350" y="150" width="130" height="35" fill="{theme.button_bg}" rx="8"{glow}/>
    <text x="415" y="172" font-family="{FONT}" font-size="11" fill="{theme.button_text}" text-anchor="middle" font-weight="bold">View on Explorer</text>
  </a>
</svg>"""


def render_donate_badge(name: str, address: str, amount: str, symbol: str, theme: Theme) -> str:
    """200x200 "Donate" button."""
    name = escape(name)
    amount = escape(str(amount))
    symbol = escape(symbol)
    short = escape(short_address(address))
    glow = _glow(theme)

    return f"""<svg width="200" height="200" xmlns="http://www.w3.org/2000/svg">{_defs(theme)}
{_frame(theme, 200, 200)}

  <text x="100" y="40" font-family="{FONT}" font-size="20" font-weight="bold" fill="{theme.primary_text}" text-anchor="middle"{glow}>Donate</text>
  <text x="100" y="70" font-family="{FONT}" font-size="24" font-weight="bold" fill="{theme.accent_text}" text-anchor="middle"{glow}>{amount} {symbol}</text>
  <text x="100" y="100" font-family="{FONT}" font-size="14" fill="{theme.secondary_text}" text-anchor="middle"{glow}>to {name}</text>
  <text x="100" y="125" font-family="{FONT}" font-size="10" fill="{theme.secondary_text}" text-anchor="middle"{glow}>{short}</text>

  <g transform="translate(100, 150)">
    <circle cx="0" cy="0" r="15" fill="{theme.accent_text}" opacity="0.2"/>
    <text x="0" y="5" font-family="{FONT}" font-size="16" font-weight="bold" fill="{theme.accent_text}" text-anchor="middle"{glow}>{symbol[:1]}</text>
  </g>

  <text x="100" y="185" font-family="{FONT}" font-size="10" fill="{theme.secondary_text}" text-anchor="middle"{glow}>Click to donate</text>
</svg>"""


def _recent_line(
    tx: TaggedTransfer,
    index: int,
    subject: str,
    names: Dict[str, Optional[str]],
    symbol: str,
    now: Optional[datetime],
) -> str:
    received = tx.recipient.lower() == subject.lower()
    counterpart = tx.from_address if received else tx.recipient
    counterpart_display = names.get(counterpart.lower()) or short_address(counterpart)

    arrow = "📥" if received else "📤"
    direction = "from" if received else "to"
    color = RECEIVED_COLOR if received else DONATED_COLOR
    amount = format_amount(format_units(tx.amount, tx.decimals))

    return (
        f'    <text x="0" y="{35 + index * 15}" font-family="{FONT}" font-size="11" fill="{color}">'
        f"{arrow} {amount} {escape(symbol)} {direction} {escape(counterpart_display)} "
        f"({time_ago(tx.timestamp, now)})</text>"
    )


def render_dashboard(
    address: str,
    stats: AggregateStats,
    display_name: Optional[str] = None,
    transfers: Iterable[TaggedTransfer] = (),
    names: Optional[Dict[str, Optional[str]]] = None,
    symbol: str = "PYUSD",
    now: Optional[datetime] = None,
) -> str:
    """
    600x250 dashboard card for one address.

    Args:
        address: Subject address
        stats: Received/donated totals
        display_name: Reverse-resolved name, shown instead of the short address
        transfers: Classified transfers, newest first; the first four are listed
        names: Lowercased address to name map for counterparts
        symbol: Token symbol
        now: Reference time for relative ages (defaults to current UTC time)
    """
    names = names or {}
    short = short_address(address)
    title = escape(display_name or short)
    recent: List[TaggedTransfer] = list(transfers)[:DASHBOARD_RECENT]
    width, height = DASHBOARD_WIDTH, DASHBOARD_HEIGHT

    subtitle = ""
    if display_name:
        subtitle = (
            f'\n  <text x="{width - 15}" y="45" font-family="monospace" font-size="10" '
            f'fill="{MUTED_COLOR}" text-anchor="end">{escape(short)}</text>'
        )

    recent_block = ""
    if recent:
        lines = "\n".join(
            _recent_line(tx, i, address, names, symbol, now) for i, tx in enumerate(recent)
        )
        recent_block = f"""
  <g transform="translate(20, 150)">
    <text x="0" y="15" font-family="{FONT}" font-size="14" fill="#e0e0e0" font-weight="bold">🔄 Recent Transactions</text>
{lines}
  </g>"""

    sym = escape(symbol)
    return f"""<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="addressBg" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:#1e293b;stop-opacity:1" />
      <stop offset="100%" style="stop-color:#0f172a;stop-opacity:1" />
    </linearGradient>
    <linearGradient id="headerBg" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:#3b82f6;stop-opacity:1" />
      <stop offset="100%" style="stop-color:#1d4ed8;stop-opacity:1" />
    </linearGradient>
  </defs>

  <rect width="{width}" height="{height}" fill="url(#addressBg)" rx="12"/>

  <rect width="{width}" height="50" fill="url(#headerBg)" rx="12"/>
  <text x="15" y="30" font-family="{FONT}" font-size="18" font-weight="bold" fill="white">📊 GitPay Dashboard</text>
  <text x="{width - 15}" y="30" font-family="monospace" font-size="14" fill="#e0e0e0" text-anchor="end">{title}</text>{subtitle}

  <g transform="translate(20, 70)">
    <text x="0" y="20" font-family="{FONT}" font-size="14" fill="{RECEIVED_COLOR}" font-weight="bold">📥 Received</text>
    <text x="0" y="40" font-family="{FONT}" font-size="20" fill="{RECEIVED_COLOR}" font-weight="bold">{format_amount(stats.total_received)} {sym}</text>
    <text x="0" y="55" font-family="{FONT}" font-size="12" fill="{MUTED_COLOR}">{stats.received_count} donations</text>

    <text x="200" y="20" font-family="{FONT}" font-size="14" fill="{DONATED_COLOR}" font-weight="bold">📤 Donated</text>
    <text x="200" y="40" font-family="{FONT}" font-size="20" fill="{DONATED_COLOR}" font-weight="bold">{format_amount(stats.total_donated)} {sym}</text>
    <text x="200" y="55" font-family="{FONT}" font-size="12" fill="{MUTED_COLOR}">{stats.donated_count} donations</text>
  </g>{recent_block}

  <g transform="translate(15, {height - 20})">
    <text x="{width - 30}" y="15" font-family="{FONT}" font-size="12" fill="{MUTED_COLOR}" text-anchor="end">Powered by GitPay</text>
  </g>
</svg>"""
