"""Wallet address normalization. Addresses are compared case-insensitively and stored lowercase."""

import re

from tuition_ledger.core.exceptions import InvalidAddressError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_wallet_address(value: str) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value.strip()))


def normalize_wallet(value: str) -> str:
    if not is_wallet_address(value):
        raise InvalidAddressError(f"Invalid wallet address: {value!r}")
    return value.strip().lower()


def short_wallet(wallet: str) -> str:
    """First 10 characters, for log lines."""
    return f"{wallet[:10]}..."
