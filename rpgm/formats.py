"""
File extension and engine version model for RPGM Crypt.

Every asset extension the engine knows maps to one true format (PNG,
OGG or M4A) and is either plain or encrypted. MV encrypts to its own
six letter names, MZ appends an underscore to the plain name.
"""

from enum import Enum
from typing import Optional

from state.constants import MIME_PNG, MIME_OGG, MIME_M4A


class RPGMakerVersion(Enum):
    """Engine generation, selects the encrypted naming scheme."""
    MV = "MV"
    MZ = "MZ"

    @classmethod
    def default(cls) -> 'RPGMakerVersion':
        return cls.MV


class FileType(Enum):
    """Broad asset category."""
    IMAGE = "image"
    AUDIO = "audio"


class Format(Enum):
    """True binary format behind an extension."""
    PNG = "png"
    OGG = "ogg"
    M4A = "m4a"


class FileExtension(Enum):
    """The nine asset extensions the engine uses."""
    # Plain
    PNG = "png"
    OGG = "ogg"
    M4A = "m4a"

    # Encrypted MV
    RPGMVP = "rpgmvp"  # PNG
    RPGMVO = "rpgmvo"  # OGG
    RPGMVM = "rpgmvm"  # M4A

    # Encrypted MZ
    PNG_ = "png_"      # PNG
    OGG_ = "ogg_"      # OGG
    M4A_ = "m4a_"      # M4A

    @classmethod
    def from_str(cls, ext: str) -> Optional['FileExtension']:
        """Classify an extension string, case-insensitive.

        Args:
            ext: Extension without the leading dot, e.g. 'rpgmvp'

        Returns:
            Matching FileExtension, or None if unknown
        """
        try:
            return cls(ext.lower())
        except ValueError:
            return None

    def to_str(self) -> str:
        """Canonical lowercase extension name."""
        return self.value

    @property
    def format(self) -> Format:
        return _FORMATS[self]

    def is_encrypted(self) -> bool:
        return self not in _PLAIN

    def get_mime_type(self) -> str:
        return _MIME_TYPES[self.format]

    def get_file_type(self) -> FileType:
        if self.format is Format.PNG:
            return FileType.IMAGE
        return FileType.AUDIO

    def convert(self, to_normal: bool, version: RPGMakerVersion) -> 'FileExtension':
        """Convert between the encrypted and plain name.

        Decrypting ignores the version. Encrypting leaves encrypted names
        alone and otherwise picks the MV or MZ name.

        Args:
            to_normal: True to get the plain name, False for the encrypted one
            version: Engine generation used when encrypting

        Returns:
            Converted extension
        """
        if to_normal:
            return _PLAIN_BY_FORMAT[self.format]

        if self.is_encrypted():
            return self

        if version is RPGMakerVersion.MZ:
            return _MZ_BY_FORMAT[self.format]
        return _MV_BY_FORMAT[self.format]


# =============================================================================
# Lookup tables
# =============================================================================

_FORMATS = {
    FileExtension.PNG: Format.PNG,
    FileExtension.RPGMVP: Format.PNG,
    FileExtension.PNG_: Format.PNG,
    FileExtension.OGG: Format.OGG,
    FileExtension.RPGMVO: Format.OGG,
    FileExtension.OGG_: Format.OGG,
    FileExtension.M4A: Format.M4A,
    FileExtension.RPGMVM: Format.M4A,
    FileExtension.M4A_: Format.M4A,
}

_MIME_TYPES = {
    Format.PNG: MIME_PNG,
    Format.OGG: MIME_OGG,
    Format.M4A: MIME_M4A,
}

_PLAIN_BY_FORMAT = {
    Format.PNG: FileExtension.PNG,
    Format.OGG: FileExtension.OGG,
    Format.M4A: FileExtension.M4A,
}

_MV_BY_FORMAT = {
    Format.PNG: FileExtension.RPGMVP,
    Format.OGG: FileExtension.RPGMVO,
    Format.M4A: FileExtension.RPGMVM,
}

_MZ_BY_FORMAT = {
    Format.PNG: FileExtension.PNG_,
    Format.OGG: FileExtension.OGG_,
    Format.M4A: FileExtension.M4A_,
}

_PLAIN = frozenset(_PLAIN_BY_FORMAT.values())
