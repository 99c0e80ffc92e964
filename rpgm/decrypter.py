"""
Asset Decrypter for RPGM Crypt

Reverses (and reproduces) the engine's asset obfuscation:
- A fixed fake header is prepended to every encrypted asset
- The first `header_len` bytes of the real file are XORed with the key
- The real file's own header is kept, so restoring it is only needed
  when the key is unknown or wrong

Usage:
    from rpgm import Decrypter, Key, FileExtension

    decrypter = Decrypter(Key.new('d41d8cd98f00b204e9800998ecf8427e'))
    plain = decrypter.decrypt(encrypted_bytes)
    plain = decrypter.restore_header(plain, FileExtension.PNG)
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Optional, Union

from state.constants import (
    DEFAULT_HEADER_LEN, DEFAULT_SIGNATURE, DEFAULT_VERSION, DEFAULT_REMAIN,
    PNG_HEADER_BYTES, OGG_HEADER_BYTES, M4A_HEADER_BYTES,
    DEFAULT_OGG_HEADER_LEN, PNG_SIGNATURE, OGG_MAGIC, M4A_ATOM
)
from utils import helpers
from utils.helpers import decode_hex_pairs, decode_hex_table

from .errors import EmptyFileError, InvalidHeaderError, UnsupportedFileTypeError
from .formats import FileExtension, Format
from .key import Key
from .logging import crypt_log


@dataclass
class Decrypter:
    """Fake-header protocol and XOR transform for one key.

    All settings are fixed at construction. Use `with_key` or
    `with_options` to get a changed copy. `ignore_fake_header` is the only
    attribute that can be set afterwards.
    """
    key: Optional[Key] = None
    ignore_fake_header: bool = False

    # Fake header
    header_len: int = DEFAULT_HEADER_LEN
    signature: str = DEFAULT_SIGNATURE
    version: str = DEFAULT_VERSION
    remain: str = DEFAULT_REMAIN

    # True header lengths (None = engine default)
    png_header_len: Optional[int] = None
    ogg_header_len: Optional[int] = None
    m4a_header_len: Optional[int] = None

    _fake_header: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.header_len <= 0:
            raise ValueError(f"header_len must be positive, got {self.header_len}")

        structure = self.signature + self.version + self.remain
        if len(structure) // 2 < self.header_len:
            raise ValueError(
                f"Fake header fields give {len(structure) // 2} bytes, "
                f"need {self.header_len}"
            )
        self._fake_header = decode_hex_pairs(structure, self.header_len)

    def __setattr__(self, name, value):
        # Settings lock once the fake header is built
        if '_fake_header' in self.__dict__ and name != 'ignore_fake_header':
            raise AttributeError(f"Decrypter settings are read-only: '{name}'")
        object.__setattr__(self, name, value)

    @classmethod
    def from_file(cls, file_contents: bytes) -> Optional['Decrypter']:
        """Build a decrypter from a key detected in a file."""
        key = cls.detect_key_from_file(file_contents)
        if key is None:
            return None
        return cls(key)

    def with_key(self, key: Optional[Key]) -> 'Decrypter':
        """Copy of this decrypter using a different key."""
        return self.with_options(key=key)

    def with_options(self, **changes) -> 'Decrypter':
        """Copy of this decrypter with some settings changed."""
        return dataclasses.replace(self, **changes)

    def get_header_len(self) -> int:
        return self.header_len

    # =========================================================================
    # Fake header
    # =========================================================================

    def build_fake_header(self) -> bytes:
        """The `header_len` bytes the engine prepends to encrypted assets."""
        return self._fake_header

    def verify_fake_header(self, file_header: bytes) -> bool:
        """Check that a buffer starts with the fake header."""
        if len(file_header) < self.header_len:
            return False
        return bytes(file_header[:self.header_len]) == self._fake_header

    # =========================================================================
    # Encryption/Decryption
    # =========================================================================

    def decrypt(self, data: bytes) -> bytes:
        """Strip the fake header and undo the XOR.

        Args:
            data: Encrypted file contents

        Returns:
            Decrypted contents (true header still XOR-restored, not rebuilt)

        Raises:
            EmptyFileError: If data is empty
            InvalidHeaderError: If the fake header is missing
        """
        if not data:
            raise EmptyFileError()

        if not self.ignore_fake_header and not self.verify_fake_header(data):
            raise InvalidHeaderError()

        content = bytearray(data[self.header_len:])
        self._xor_bytes(content)
        return bytes(content)

    def encrypt(self, data: bytes) -> bytes:
        """XOR the start of the file and prepend the fake header.

        Args:
            data: Plain file contents

        Returns:
            Encrypted contents

        Raises:
            EmptyFileError: If data is empty
            InvalidHeaderError: If the written header fails verification
        """
        if not data:
            raise EmptyFileError()

        content = bytearray(data)
        self._xor_bytes(content)

        result = self._fake_header + bytes(content)
        if not self.verify_fake_header(result):
            raise InvalidHeaderError()

        return result

    def _xor_bytes(self, data: bytearray):
        """XOR the first bytes of data with the key, in place."""
        if self.key is None:
            return

        key_bytes = self.key.as_bytes()
        for i in range(min(self.header_len, len(data), len(key_bytes))):
            data[i] ^= key_bytes[i]

    # =========================================================================
    # Header restoration
    # =========================================================================

    def restore_header(self, data: bytes,
                       file_type: Union[FileExtension, Format]) -> bytes:
        """Put the true format header back in front of the content.

        Data that already starts with valid magic bytes is returned as is.
        A leftover fake header is replaced, otherwise the true header is
        prepended.

        Args:
            data: Decrypted (or still encrypted) contents
            file_type: Extension or format of the asset

        Returns:
            Contents with a valid true header

        Raises:
            EmptyFileError: If data is empty
            UnsupportedFileTypeError: If file_type is not a known format
            InvalidHeaderError: If the fake header cannot be stripped
        """
        if not data:
            raise EmptyFileError()

        fmt = self._resolve_format(file_type)

        if self.has_true_header(data, fmt):
            return bytes(data)

        header = self.get_true_header(fmt)

        content = data
        if self.verify_fake_header(data):
            if len(data) < self.header_len:
                raise InvalidHeaderError()
            content = data[self.header_len:]

        return header + bytes(content)

    @staticmethod
    def has_true_header(data: bytes, fmt: Format) -> bool:
        """Check the format's magic bytes at the start of data."""
        if fmt is Format.OGG:
            return len(data) >= 4 and data[:4] == OGG_MAGIC
        if fmt is Format.PNG:
            return len(data) >= 8 and data[:8] == PNG_SIGNATURE
        if fmt is Format.M4A:
            return len(data) >= 8 and data[4:8] == M4A_ATOM
        return False

    def get_true_header(self, fmt: Format) -> bytes:
        """Header bytes restored for a format, at this decrypter's length."""
        if fmt is Format.PNG:
            length = self._or_default(self.png_header_len, self.header_len)
            return decode_hex_table(PNG_HEADER_BYTES, length)
        if fmt is Format.OGG:
            length = self._or_default(self.ogg_header_len, DEFAULT_OGG_HEADER_LEN)
            return decode_hex_table(OGG_HEADER_BYTES, length)
        length = self._or_default(self.m4a_header_len, self.header_len)
        return decode_hex_table(M4A_HEADER_BYTES, length)

    @staticmethod
    def _or_default(value: Optional[int], default: int) -> int:
        return default if value is None else value

    @staticmethod
    def _resolve_format(file_type) -> Format:
        if isinstance(file_type, FileExtension):
            return file_type.format
        if isinstance(file_type, Format):
            return file_type
        raise UnsupportedFileTypeError(str(file_type))

    # =========================================================================
    # Key detection
    # =========================================================================

    @staticmethod
    def detect_key_from_file(file_contents: bytes) -> Optional[Key]:
        """Find the key in an encrypted PNG, System.json or rpg_core.js.

        The PNG heuristic runs on any bytes that carry the engine's default
        fake header; the text heuristics only if the contents are valid UTF-8.

        Args:
            file_contents: Raw file bytes

        Returns:
            First key found, or None
        """
        # Any 32 bytes XOR to a well-formed key, so only trust encrypted files
        if Decrypter().verify_fake_header(file_contents):
            key = Key.from_png_header(DEFAULT_HEADER_LEN, file_contents)
            if key is not None:
                crypt_log('DEBUG', "Key recovered from PNG header", {'key': key})
                return key

        try:
            text = bytes(file_contents).decode('utf-8')
        except UnicodeDecodeError:
            crypt_log('DEBUG', "No key: contents are not text")
            return None

        key = Key.from_json(text)
        if key is not None:
            crypt_log('DEBUG', "Key read from System.json", {'key': key})
            return key

        key = Key.from_rpg_core(text)
        if key is not None:
            crypt_log('DEBUG', "Key read from rpg_core.js", {'key': key})
        return key

    # Formatting helpers kept on the class for callers that only import Decrypter
    byte_to_hex = staticmethod(helpers.byte_to_hex)
    check_hex_chars = staticmethod(helpers.check_hex_chars)
    helper_show_bits = staticmethod(helpers.show_bits)
