import struct
from collections import namedtuple

# On-disk layout shared by the writer and the parser.
# All fields are little-endian.

SIGNATURE = b'BM'  # 0x4D42

FILE_HEADER_FORMAT = '<2sIHHI'
INFO_HEADER_FORMAT = '<IiiHHIIiiII'
FILE_HEADER_SIZE = struct.calcsize(FILE_HEADER_FORMAT)  # 14
INFO_HEADER_SIZE = struct.calcsize(INFO_HEADER_FORMAT)  # 40
HEADERS_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE      # 54

BI_RGB = 0
PALETTE_ENTRIES = 256
PALETTE_ENTRY_SIZE = 4  # B, G, R, reserved
SUPPORTED_BPP = (8, 24)

INT32_MAX = 2**31 - 1
UINT32_MAX = 2**32 - 1


class BMPError(Exception):
    pass


class InvalidArgumentError(BMPError, ValueError):
    pass


class BMPIOError(BMPError, OSError):
    pass


class CorruptDataError(BMPError, ValueError):
    pass


BMPFileHeader = namedtuple(
    'BMPFileHeader',
    ['signature', 'file_size', 'reserved1', 'reserved2', 'data_offset'])

BMPInfoHeader = namedtuple(
    'BMPInfoHeader',
    ['header_size', 'width', 'height', 'planes', 'bpp', 'compression',
     'image_size', 'x_ppm', 'y_ppm', 'colors_used', 'colors_important'])


def pack_file_header(buf, header):
    struct.pack_into(FILE_HEADER_FORMAT, buf, 0, *header)


def pack_info_header(buf, header):
    struct.pack_into(INFO_HEADER_FORMAT, buf, FILE_HEADER_SIZE, *header)


def unpack_headers(data):
    """Return (file_header, info_header) from the first 54 bytes of a BMP."""
    if len(data) < HEADERS_SIZE:
        raise CorruptDataError(
            f"File too short for BMP headers: {len(data)} < {HEADERS_SIZE} bytes")
    file_header = BMPFileHeader._make(
        struct.unpack_from(FILE_HEADER_FORMAT, data, 0))
    info_header = BMPInfoHeader._make(
        struct.unpack_from(INFO_HEADER_FORMAT, data, FILE_HEADER_SIZE))
    return file_header, info_header


def row_bytes(width: int, bpp: int) -> int:
    # Unpadded row, as laid out in a PixelBuffer
    return width * bpp // 8


def aligned_row_bytes(width: int, bpp: int) -> int:
    # Each on-disk row is padded to a multiple of 4 bytes
    return (width * bpp // 8 + 3) // 4 * 4


def palette_size(bpp: int) -> int:
    """Size in bytes of the color table stored for the given bit depth."""
    if bpp == 8:
        return PALETTE_ENTRIES * PALETTE_ENTRY_SIZE
    return 0


def grayscale_palette() -> bytes:
    # entry i is (i, i, i, i)
    return bytes(i for i in range(PALETTE_ENTRIES) for _ in range(PALETTE_ENTRY_SIZE))
