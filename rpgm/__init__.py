"""RPGM Crypt engine - RPG Maker MV/MZ asset encryption and decryption."""

from .errors import (
    CryptError, EmptyFileError, InvalidHeaderError, InvalidKeyError,
    InvalidExtensionError, UnsupportedFileTypeError, KeyDetectionFailedError
)
from .key import Key
from .formats import FileExtension, FileType, Format, RPGMakerVersion
from .decrypter import Decrypter
from .asset_file import AssetFile
from .logging import CryptLogger, crypt_log
