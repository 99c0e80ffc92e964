"""
Helper utilities for RPGM Crypt.

Hex formatting and parsing shared by the key, the decrypter and the
file tools.
"""

import string
from typing import List

from state.constants import PREVIEW_BYTES

_HEX_DIGITS = frozenset(string.hexdigits)


def byte_to_hex(byte: int) -> str:
    """Format a byte as two lowercase hex digits."""
    return f"{byte:02x}"


def check_hex_chars(text: str) -> bool:
    """Check that every character of a string is a hex digit.

    An empty string passes.
    """
    return all(c in _HEX_DIGITS for c in text)


def show_bits(byte: int) -> str:
    """Format a byte as eight binary digits."""
    return f"{byte:08b}"


def parse_hex_byte(pair: str) -> int:
    """Parse a two digit hex string into a byte.

    Anything that is not exactly two hex digits decodes to 0.

    Args:
        pair: Hex digit pair like '4F'

    Returns:
        Byte value 0-255
    """
    if len(pair) != 2 or not check_hex_chars(pair):
        return 0
    return int(pair, 16)


def decode_hex_pairs(text: str, count: int) -> bytes:
    """Decode the first `count` hex digit pairs of a string.

    Unparsable or missing pairs decode to 0.

    Args:
        text: Concatenated hex string
        count: Number of bytes to produce

    Returns:
        Exactly `count` bytes
    """
    return bytes(parse_hex_byte(text[i * 2:i * 2 + 2]) for i in range(count))


def decode_hex_table(table: str, length: int) -> bytes:
    """Decode a space separated hex byte table to a fixed length.

    The table is truncated to `length` entries and padded with zero
    bytes when it has fewer.
    """
    entries: List[str] = table.split(' ')[:length]
    decoded = bytes(parse_hex_byte(entry) for entry in entries)
    return decoded.ljust(length, b'\x00')


def hex_preview(data: bytes, count: int = PREVIEW_BYTES) -> str:
    """Format the first bytes of a buffer for log output."""
    return ' '.join(f"{b:02X}" for b in data[:count])
