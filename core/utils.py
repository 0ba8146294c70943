"""Core utility functions for Cardano wallet addresses."""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

MAINNET_PREFIX = "addr"
TESTNET_PREFIX = "addr_test"


def format_cardano_address(
    address: Optional[str], start_chars: int = 10, end_chars: int = 8
) -> str:
    """Shorten a bech32 address for display.

    Returns an empty string for empty input and the address unchanged when it
    is already short enough.
    """
    if not address:
        return ""
    if len(address) <= start_chars + end_chars:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"


def is_valid_cardano_address(address: Optional[str]) -> bool:
    """Check the address looks like a Shelley bech32 payment address.

    Only the human-readable prefix is checked; ``addr_test`` starts with
    ``addr`` so both networks pass.
    """
    if not address:
        return False
    return address.startswith(MAINNET_PREFIX)


def get_network_from_address(address: Optional[str]) -> str | None:
    """Return 'testnet' or 'mainnet' from the address prefix, None if unknown."""
    if not address:
        return None
    if address.startswith(TESTNET_PREFIX):
        return "testnet"
    if address.startswith(MAINNET_PREFIX):
        return "mainnet"
    logger.debug(f"Could not determine network for address {address[:12]}")
    return None
