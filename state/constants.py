"""
Constants and configuration for RPGM Crypt.

All fixed byte tables, protocol defaults and tunable parameters are
centralized here so the engine and the file tools agree on them.
"""

# =============================================================================
# FAKE HEADER
# =============================================================================
DEFAULT_HEADER_LEN = 16          # Bytes of fake header prepended by the engine
DEFAULT_SIGNATURE = "5250474d56000000"  # "RPGMV" + padding (8 bytes)
DEFAULT_VERSION = "000301"       # 3 bytes
DEFAULT_REMAIN = "0000000000"    # 5 bytes

# =============================================================================
# TRUE HEADERS
# =============================================================================
# Space separated hex bytes, decoded and truncated/padded to the target length
PNG_HEADER_BYTES = "89 50 4E 47 0D 0A 1A 0A 00 00 00 0D 49 48 44 52"
OGG_HEADER_BYTES = (
    "4F 67 67 53 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00 00"
)
M4A_HEADER_BYTES = "00 00 00 20 66 74 79 70 4D 34 41 20 00 00 00 00"

# OGG restores a longer header than the fake header length
DEFAULT_OGG_HEADER_LEN = 28

# =============================================================================
# MAGIC BYTES
# =============================================================================
PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'   # First 8 bytes of every PNG
OGG_MAGIC = b'OggS'                     # First 4 bytes of an Ogg page
M4A_ATOM = b'ftyp'                      # Bytes 4..8 of an MP4/M4A file

# =============================================================================
# KEY DETECTION
# =============================================================================
ENCRYPTION_KEY_FIELD = "encryptionKey"         # System.json field
RPG_CORE_KEY_MARKER = "this._encryptionKey"    # rpg_core.js assignment

# Only encrypted images can yield a key from their header
KEY_SOURCE_EXTENSIONS = ('png_', 'rpgmvp')

# =============================================================================
# MIME TYPES
# =============================================================================
MIME_PNG = "image/png"
MIME_OGG = "audio/ogg"
MIME_M4A = "audio/m4a"

# =============================================================================
# FILE TOOLS
# =============================================================================
SETTINGS_FILE = "rpgm_crypt.json"
PREVIEW_BYTES = 32       # Bytes shown in hex previews while logging
