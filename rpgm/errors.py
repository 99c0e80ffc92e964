"""Error types raised by the RPGM Crypt engine."""


class CryptError(Exception):
    """Base class for all engine failures."""


class EmptyFileError(CryptError):
    """Raised when an operation receives a zero-length buffer."""

    def __init__(self):
        super().__init__("File is empty")


class InvalidHeaderError(CryptError):
    """Raised when the fake header is missing, wrong or truncated."""

    def __init__(self):
        super().__init__("Invalid file header")


class InvalidKeyError(CryptError):
    """Raised when an encryption key is not a valid hex string."""

    def __init__(self):
        super().__init__("Invalid encryption key")


class InvalidExtensionError(CryptError):
    """Raised when a file extension cannot be classified."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Invalid file extension: {extension}")


class UnsupportedFileTypeError(CryptError):
    """Raised when a format tag is not one the engine can restore."""

    def __init__(self, file_type: str):
        self.file_type = file_type
        super().__init__(f"Unsupported file type: {file_type}")


class KeyDetectionFailedError(CryptError):
    """Raised when no key heuristic succeeds."""

    def __init__(self):
        super().__init__("Failed to detect encryption key")
