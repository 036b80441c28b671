import logging

from bmp_format import (
    SIGNATURE, BI_RGB, FILE_HEADER_SIZE, INFO_HEADER_SIZE,
    PALETTE_ENTRIES, PALETTE_ENTRY_SIZE, SUPPORTED_BPP,
    BMPIOError, CorruptDataError, InvalidArgumentError,
    aligned_row_bytes, palette_size, row_bytes, unpack_headers,
)

log = logging.getLogger(__name__)


class BMPParser:
    def __init__(self, filepath=None):
        self.filepath = filepath
        self.metadata = {}      # Header information (width, height, etc.)
        self.pixel_data = b""   # Top-to-bottom, unpadded rows
        self.color_table = []   # Palette as (R, G, B), 8-bit images only

    def load(self):
        if not self.filepath:
            raise InvalidArgumentError("Input path must not be empty")
        # Read the entire BMP file into memory
        try:
            with open(self.filepath, "rb") as f:
                bmp_bytes = f.read()
        except OSError as e:
            raise BMPIOError(f"Could not read BMP file {self.filepath}: {e}") from e
        return self.parse(bmp_bytes)

    def parse(self, bmp_bytes):
        # Parse different parts of BMP
        self._parse_header(bmp_bytes)
        self._parse_color_table(bmp_bytes)
        self._parse_pixel_data(bmp_bytes)
        return self

    def _parse_header(self, bmp_bytes):
        file_header, info = unpack_headers(bmp_bytes)

        # Signature (must start with 'BM')
        if file_header.signature != SIGNATURE:
            raise CorruptDataError("Not a BMP file")
        if info.header_size < INFO_HEADER_SIZE:
            raise CorruptDataError(f"Unsupported info header size: {info.header_size}")
        if info.planes != 1:
            raise CorruptDataError(f"Invalid number of color planes: {info.planes}")
        if info.compression != BI_RGB:
            raise CorruptDataError(f"Unsupported compression method: {info.compression}")
        if info.bpp not in SUPPORTED_BPP:
            raise CorruptDataError(f"Unsupported bpp: {info.bpp}")
        if info.width <= 0 or info.height == 0:
            raise CorruptDataError(f"Invalid dimensions: {info.width}x{info.height}")

        self.metadata = {
            'file_size': file_header.file_size,
            'data_offset': file_header.data_offset,
            'header_size': info.header_size,
            'width': info.width,
            # Negative height means rows are stored top-down
            'height': info.height,
            'bpp': info.bpp,
            'compression': info.compression,
            'image_size': info.image_size,
            'top_down': info.height < 0,
        }

    def _parse_color_table(self, bmp_bytes):
        bpp = self.metadata['bpp']
        self.color_table = []
        if not palette_size(bpp):
            return

        # Color table follows the info header
        start = FILE_HEADER_SIZE + self.metadata['header_size']
        end = start + palette_size(bpp)
        if len(bmp_bytes) < end:
            raise CorruptDataError("File truncated inside the color table")

        for i in range(PALETTE_ENTRIES):
            offset = start + i * PALETTE_ENTRY_SIZE
            b, g, r, _ = bmp_bytes[offset:offset + PALETTE_ENTRY_SIZE]
            self.color_table.append((r, g, b))  # Store as (R, G, B)

        if any(entry != (i, i, i) for i, entry in enumerate(self.color_table)):
            log.warning("%s: palette is not a grayscale ramp, "
                        "returning raw palette indices", self.filepath or "<bytes>")

    def _parse_pixel_data(self, bmp_bytes):
        bpp = self.metadata['bpp']
        offset = self.metadata['data_offset']
        width = self.metadata['width']
        height = self.metadata['height']

        header_end = FILE_HEADER_SIZE + self.metadata['header_size'] + palette_size(bpp)
        if offset < header_end:
            raise CorruptDataError(
                f"Pixel data offset {offset} points inside the headers")

        # Each row is padded to a multiple of 4 bytes
        row_size = aligned_row_bytes(width, bpp)
        row_len = row_bytes(width, bpp)

        abs_height = abs(height)
        is_bottom_up = height > 0  # BMP rows are usually stored bottom-to-top

        needed = offset + row_size * abs_height
        if len(bmp_bytes) < needed:
            raise CorruptDataError(
                f"Pixel data truncated: need {needed} bytes, file has {len(bmp_bytes)}")

        data = memoryview(bmp_bytes)
        rows = []
        for row in range(abs_height):
            # Choose correct row start depending on bottom-up or top-down
            if is_bottom_up:
                row_start = offset + (abs_height - row - 1) * row_size
            else:
                row_start = offset + row * row_size
            rows.append(data[row_start:row_start + row_len])

        self.pixel_data = b"".join(rows)
        log.debug("Decoded %dx%d %d-bit BMP (%s)", width, abs_height, bpp,
                  "top-down" if not is_bottom_up else "bottom-up")

    def result(self):
        """Return (pixels, width, height, bpp) with height as a row count."""
        return (self.pixel_data, self.metadata['width'],
                abs(self.metadata['height']), self.metadata['bpp'])


def decode_bmp(data):
    return BMPParser().parse(data).result()


def read_image(path):
    return BMPParser(path).load().result()
