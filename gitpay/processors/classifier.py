"""
GitPay transfer classifier.

A GitPay payment is an ordinary ERC-20 ``transfer(address,uint256)`` call
whose call-data carries a fixed 32-byte application tag (ASCII "GITPAY",
zero padded) after the standard arguments, optionally followed by a
UTF-8 memo:

    a9059cbb | recipient (32) | amount (32) | tag (32) | memo (n * 32)

Classification is pure and never raises on the call-data itself: the
input comes from arbitrary chain transactions, so anything malformed is
simply "not tagged".
"""

import logging
from enum import Enum
from typing import Optional, Union

from eth_abi import encode
from eth_utils import decode_hex, is_address, to_checksum_address

from .models import NOT_TAGGED, Classification

logger = logging.getLogger(__name__)

TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")
GITPAY_TAG = b"GITPAY".ljust(32, b"\x00")
GITPAY_IDENTIFIER = "0x" + GITPAY_TAG.hex()

WORD_SIZE = 32
# selector + recipient word + amount word
TRANSFER_ARGS_END = len(TRANSFER_SELECTOR) + 2 * WORD_SIZE
MAX_UINT256 = 2 ** 256 - 1

CallData = Union[str, bytes, bytearray, None]


class TagMatchMode(str, Enum):
    """Where the application tag is allowed to appear."""

    # Tag must start exactly where the transfer arguments end (byte 68)
    FIXED_OFFSET = "fixed_offset"
    # Tag may start at any byte offset (legacy behavior)
    ANYWHERE = "anywhere"


def _to_bytes(call_data: CallData) -> Optional[bytes]:
    """Decode call-data to bytes, or None if it is not valid hex."""
    if call_data is None:
        return None
    if isinstance(call_data, (bytes, bytearray)):
        return bytes(call_data)
    if not isinstance(call_data, str):
        return None
    try:
        return decode_hex(call_data.strip())
    except (ValueError, TypeError):
        return None


def find_tag(data: bytes, mode: TagMatchMode = TagMatchMode.FIXED_OFFSET) -> int:
    """
    Locate the application tag in raw call-data.

    Returns:
        Byte offset of the tag, or -1 when absent
    """
    if mode is TagMatchMode.FIXED_OFFSET:
        tag_end = TRANSFER_ARGS_END + WORD_SIZE
        return TRANSFER_ARGS_END if data[TRANSFER_ARGS_END:tag_end] == GITPAY_TAG else -1
    return data.find(GITPAY_TAG)


def decode_memo(tail: bytes) -> Optional[str]:
    """UTF-8 memo from the bytes after the tag; None when empty or undecodable."""
    try:
        memo = tail.rstrip(b"\x00").decode("utf-8").strip()
    except UnicodeDecodeError:
        return None
    return memo or None


def classify(call_data: CallData, mode: TagMatchMode = TagMatchMode.FIXED_OFFSET) -> Classification:
    """
    Decide whether call-data is a GitPay payment and extract its fields.

    Args:
        call_data: 0x-prefixed hex string or raw bytes of a transaction input
        mode: Tag placement rule

    Returns:
        Classification; ``decoded_recipient``/``decoded_amount`` are set only
        for well-formed transfer calls, ``memo`` only when non-empty
    """
    data = _to_bytes(call_data)
    if not data:
        return NOT_TAGGED

    tag_offset = find_tag(data, TagMatchMode(mode))
    if tag_offset < 0:
        return NOT_TAGGED

    recipient = None
    amount = None
    if data[:4] == TRANSFER_SELECTOR and len(data) >= TRANSFER_ARGS_END:
        # Address is the low 20 bytes of the first argument word
        recipient = to_checksum_address(data[16:36])
        amount = str(int.from_bytes(data[36:TRANSFER_ARGS_END], "big"))

    memo = None
    tag_end = tag_offset + WORD_SIZE
    if len(data) > tag_end:
        memo = decode_memo(data[tag_end:])

    return Classification(
        is_tagged=True,
        decoded_recipient=recipient,
        decoded_amount=amount,
        memo=memo,
    )


def build_transfer_data(recipient: str, amount: Union[int, str], memo: Optional[str] = None) -> str:
    """
    Build GitPay call-data for ``transfer(recipient, amount)``.

    Args:
        recipient: Recipient address
        amount: Amount in token base units
        memo: Optional UTF-8 memo appended after the tag

    Returns:
        0x-prefixed hex call-data

    Raises:
        ValueError: On an invalid address or an amount outside uint256
    """
    if not isinstance(recipient, str) or not is_address(recipient):
        raise ValueError(f"Invalid recipient address: {recipient!r}")

    amount = int(amount)
    if amount < 0 or amount > MAX_UINT256:
        raise ValueError(f"Amount out of uint256 range: {amount}")

    payload = TRANSFER_SELECTOR + encode(
        ["address", "uint256"], [to_checksum_address(recipient), amount]
    ) + GITPAY_TAG

    if memo:
        memo_bytes = memo.encode("utf-8")
        padded_length = -(-len(memo_bytes) // WORD_SIZE) * WORD_SIZE
        payload += memo_bytes.ljust(padded_length, b"\x00")

    return "0x" + payload.hex()


class TransferClassifier:
    """Classifier bound to one tag placement rule."""

    def __init__(self, mode: Union[TagMatchMode, str] = TagMatchMode.FIXED_OFFSET):
        self.mode = TagMatchMode(mode)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def classify(self, call_data: CallData) -> Classification:
        result = classify(call_data, self.mode)
        size = len(call_data) if isinstance(call_data, (str, bytes, bytearray)) else 0
        self.logger.debug(
            f"🔍 Classified call-data ({size} chars/bytes): "
            f"tagged={result.is_tagged} recipient={result.decoded_recipient} "
            f"amount={result.decoded_amount} memo={result.memo!r}"
        )
        return result

    def __repr__(self) -> str:
        return f"TransferClassifier(mode={self.mode.value})"
