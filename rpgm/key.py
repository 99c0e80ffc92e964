"""
Encryption key handling for RPGM Crypt.

A key is the hex string the engine stores in System.json (and in older
rpg_core.js builds). It can also be recovered from any encrypted PNG,
since the engine only XORs the first bytes of the file and the true PNG
header is public.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Optional

from state.constants import (
    PNG_HEADER_BYTES, ENCRYPTION_KEY_FIELD, RPG_CORE_KEY_MARKER
)
from utils.helpers import check_hex_chars, decode_hex_table

from .errors import InvalidKeyError

# this._encryptionKey = "<value>";
_RPG_CORE_PATTERN = re.compile(re.escape(RPG_CORE_KEY_MARKER) + r'\s*=\s*"([^"]*)"')


@dataclass(frozen=True, order=True)
class Key:
    """Validated hex key and its decoded bytes.

    Keys compare and sort by their hex string only.
    """
    raw: str
    data: bytes = field(compare=False, repr=False)

    @classmethod
    def new(cls, key: str) -> Optional['Key']:
        """Validate and decode a hex key string.

        Args:
            key: Hex string, even length

        Returns:
            Key, or None if the string is not valid hex
        """
        if not check_hex_chars(key) or len(key) % 2:
            return None

        data = bytes(int(key[i:i + 2], 16) for i in range(0, len(key), 2))
        return cls(raw=key, data=data)

    @classmethod
    def parse(cls, key: str) -> 'Key':
        """Like `new`, but raises InvalidKeyError instead of returning None."""
        result = cls.new(key)
        if result is None:
            raise InvalidKeyError()
        return result

    @classmethod
    def from_png_header(cls, header_len: int, data: bytes) -> Optional['Key']:
        """Recover the key from an encrypted PNG.

        The bytes right after the fake header are the true PNG header
        XORed with the key, so XORing them with the known header gives
        the key back.

        Args:
            header_len: Fake header length
            data: Encrypted file contents, fake header included

        Returns:
            Recovered Key, or None if the buffer is too short
        """
        if len(data) < header_len * 2:
            return None

        file_header = data[header_len:header_len * 2]
        png_header = decode_hex_table(PNG_HEADER_BYTES, header_len)
        key = ''.join(
            f"{png_byte ^ file_byte:02x}"
            for png_byte, file_byte in zip(png_header, file_header)
        )
        return cls.new(key)

    @classmethod
    def from_json(cls, text: str) -> Optional['Key']:
        """Read the key from System.json contents."""
        try:
            value = json.loads(text)
        except ValueError:
            return None

        if not isinstance(value, dict):
            return None
        key = value.get(ENCRYPTION_KEY_FIELD)
        if not isinstance(key, str):
            return None
        return cls.new(key)

    @classmethod
    def from_rpg_core(cls, text: str) -> Optional['Key']:
        """Read the key from rpg_core.js contents."""
        for line in text.splitlines():
            match = _RPG_CORE_PATTERN.search(line)
            if match:
                return cls.new(match.group(1))
        return None

    def as_bytes(self) -> bytes:
        return self.data

    def as_str(self) -> str:
        return self.raw

    def __str__(self) -> str:
        return self.raw
