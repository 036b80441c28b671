import logging

from bmp_format import (
    SIGNATURE, BI_RGB, HEADERS_SIZE, INFO_HEADER_SIZE,
    SUPPORTED_BPP, INT32_MAX, UINT32_MAX,
    BMPFileHeader, BMPInfoHeader, BMPIOError, InvalidArgumentError,
    aligned_row_bytes, grayscale_palette, pack_file_header, pack_info_header,
    palette_size, row_bytes,
)

log = logging.getLogger(__name__)


class BMPWriter:
    def __init__(self, width, height, bpp=8):
        if bpp not in SUPPORTED_BPP:
            raise InvalidArgumentError(f"Unsupported bpp: {bpp}")
        for name, value in (('width', width), ('height', height)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidArgumentError(f"{name} must be an int, got {value!r}")
            if not 0 < value <= INT32_MAX:
                raise InvalidArgumentError(f"Invalid {name}: {value}")

        self.width = width
        self.height = height
        self.bpp = bpp

        self.row_bytes = row_bytes(width, bpp)
        self.row_size = aligned_row_bytes(width, bpp)
        self.palette_size = palette_size(bpp)
        self.data_offset = HEADERS_SIZE + self.palette_size
        self.file_size = self.data_offset + self.row_size * height

        if self.file_size > UINT32_MAX:
            raise InvalidArgumentError(
                f"Image too large for BMP: {width}x{height} at {bpp} bpp")

    def build(self, pixels) -> bytes:
        """Encode a top-to-bottom, unpadded pixel buffer into BMP bytes.

        The whole file is assembled in a single zero-filled buffer, so row
        padding is always written as zeros.
        """
        src = self._check_pixels(pixels)

        out = bytearray(self.file_size)

        pack_info_header(out, BMPInfoHeader(
            header_size=INFO_HEADER_SIZE,
            width=self.width,
            height=self.height,  # positive: rows stored bottom-up
            planes=1,
            bpp=self.bpp,
            compression=BI_RGB,
            image_size=0,
            x_ppm=0,
            y_ppm=0,
            colors_used=0,
            colors_important=0,
        ))
        pack_file_header(out, BMPFileHeader(
            signature=SIGNATURE,
            file_size=self.file_size,
            reserved1=0,
            reserved2=0,
            data_offset=self.data_offset,
        ))

        if self.palette_size:
            out[HEADERS_SIZE:self.data_offset] = grayscale_palette()

        # Source row (height - 1 - k) becomes on-disk row k
        for k in range(self.height):
            src_start = (self.height - 1 - k) * self.row_bytes
            dst_start = self.data_offset + k * self.row_size
            out[dst_start:dst_start + self.row_bytes] = src[src_start:src_start + self.row_bytes]

        log.debug("Encoded %dx%d %d-bit BMP (%d bytes)",
                  self.width, self.height, self.bpp, self.file_size)
        return bytes(out)

    def save(self, filepath, pixels):
        if not filepath:
            raise InvalidArgumentError("Output path must not be empty")

        # Encode first so bad arguments never touch the file system
        bmp_bytes = self.build(pixels)

        try:
            with open(filepath, 'wb') as f:
                f.write(bmp_bytes)
        except OSError as e:
            raise BMPIOError(f"Could not write BMP file {filepath}: {e}") from e

        log.debug("Wrote %s", filepath)
        return True

    def _check_pixels(self, pixels):
        if pixels is None:
            raise InvalidArgumentError("Pixel buffer must not be None")
        try:
            src = memoryview(pixels).cast('B')
        except TypeError as e:
            raise InvalidArgumentError(
                f"Pixel buffer must be bytes-like, got {type(pixels).__name__}") from e

        expected = self.row_bytes * self.height
        if len(src) == 0:
            raise InvalidArgumentError("Pixel buffer must not be empty")
        if len(src) != expected:
            raise InvalidArgumentError(
                f"Pixel buffer has {len(src)} bytes, expected {expected} "
                f"for {self.width}x{self.height} at {self.bpp} bpp")
        return src


def encode_bmp(pixels, width, height, bpp=8):
    return BMPWriter(width, height, bpp).build(pixels)


def write_image(path, pixels, width, height, bpp=8):
    """Write a pixel buffer to ``path`` as a BMP file. Returns True on success."""
    return BMPWriter(width, height, bpp).save(path, pixels)
