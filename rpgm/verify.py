"""
Output verification for RPGM Crypt.

Checks that a decrypted asset is a usable file:
- PNGs are fully decoded with pygame
- OGG files must be an unbroken chain of Ogg pages opening a Vorbis stream
- M4A files must be an unbroken chain of MP4 boxes starting with ftyp and
  holding a moov box

Audio streams themselves are not decoded. A payload corrupted inside an
intact page or box still passes.
"""

import io
import struct

import pygame

from state.constants import OGG_MAGIC, M4A_ATOM
from .formats import FileExtension, Format
from .logging import crypt_log

# capture pattern, version, header type, granule, serial, sequence, crc, segments
OGG_PAGE_FORMAT = '<4sBBqIIIB'
OGG_PAGE_SIZE = struct.calcsize(OGG_PAGE_FORMAT)
OGG_BOS_FLAG = 0x02
VORBIS_ID_PACKET = b'\x01vorbis'

MP4_BOX_FORMAT = '>I4s'
MP4_BOX_SIZE = struct.calcsize(MP4_BOX_FORMAT)
MP4_MOVIE_BOX = b'moov'


# =============================================================================
# Images
# =============================================================================

def verify_image(data: bytes) -> bool:
    """Decode PNG bytes with pygame.

    Args:
        data: PNG file contents

    Returns:
        True if the image decodes
    """
    try:
        surface = pygame.image.load(io.BytesIO(data), 'asset.png')
    except (pygame.error, ValueError) as e:
        crypt_log('WARNING', "Failed to verify image format", {'error': e})
        return False

    crypt_log('DEBUG', "Image verified", {'size': f"{surface.get_width()}x{surface.get_height()}"})
    return True


# =============================================================================
# Audio containers
# =============================================================================

def check_ogg_pages(data: bytes) -> bool:
    """Walk the Ogg pages of a file.

    Every page must carry the capture pattern and stream version 0, and its
    segment table must fit in the file. The first page has to start a
    logical stream with a Vorbis identification packet, and the last page
    must end exactly at the end of the data.
    """
    offset = 0
    pages = 0

    while offset < len(data):
        if len(data) - offset < OGG_PAGE_SIZE:
            return False

        magic, version, header_type, _, _, _, _, segments = struct.unpack_from(
            OGG_PAGE_FORMAT, data, offset)
        if magic != OGG_MAGIC or version != 0:
            return False

        table_end = offset + OGG_PAGE_SIZE + segments
        if table_end > len(data):
            return False
        body_len = sum(data[offset + OGG_PAGE_SIZE:table_end])
        page_end = table_end + body_len
        if page_end > len(data):
            return False

        if pages == 0:
            if not header_type & OGG_BOS_FLAG:
                return False
            if not data[table_end:page_end].startswith(VORBIS_ID_PACKET):
                return False

        pages += 1
        offset = page_end

    crypt_log('DEBUG', "Ogg pages verified", {'pages': pages})
    return pages > 0


def check_mp4_boxes(data: bytes) -> bool:
    """Walk the top-level MP4 boxes of a file.

    Box sizes must chain to the end of the data. A size of 1 means a 64-bit
    size follows the type, 0 means the box runs to the end of the file.
    """
    offset = 0
    types = []

    while offset < len(data):
        if len(data) - offset < MP4_BOX_SIZE:
            return False

        size, box_type = struct.unpack_from(MP4_BOX_FORMAT, data, offset)
        header = MP4_BOX_SIZE
        if size == 1:
            if len(data) - offset < MP4_BOX_SIZE + 8:
                return False
            size, = struct.unpack_from('>Q', data, offset + MP4_BOX_SIZE)
            header += 8
        elif size == 0:
            size = len(data) - offset

        if size < header or offset + size > len(data):
            return False

        types.append(box_type)
        offset += size

    crypt_log('DEBUG', "MP4 boxes verified", {'boxes': b' '.join(types).decode('latin-1')})
    return bool(types) and types[0] == M4A_ATOM and MP4_MOVIE_BOX in types


def verify_audio(data: bytes, fmt: Format) -> bool:
    """Check the container structure of an OGG or M4A file."""
    if fmt is Format.OGG:
        valid = check_ogg_pages(data)
    elif fmt is Format.M4A:
        valid = check_mp4_boxes(data)
    else:
        return False

    if not valid:
        crypt_log('WARNING', "Failed to verify audio container", {'format': fmt.name})
    return valid


def verify_asset(data: bytes, extension: FileExtension) -> bool:
    """Verify decrypted contents for the asset's format."""
    if extension.format is Format.PNG:
        return verify_image(data)
    return verify_audio(data, extension.format)
