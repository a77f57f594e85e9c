# bitmap_codec.py
#
# ============================================================
# Windows bitmap (24-bit, uncompressed) codec
# ============================================================
#
# INPUT : raw bytes of a .bmp file (BITMAPINFOHEADER, 54-byte header)
# OUTPUT: BitmapImage = header fields + (height, width, 3) pixel grid
#
# ---------------------------
# Layout contract
# ---------------------------
# All header fields are little-endian, read at fixed offsets:
#   0x00  "BM" magic
#   0x02  u32 file size
#   0x0A  u32 pixel array offset
#   0x12  u32 width
#   0x16  u32 height
#   0x1C  u16 bits per pixel (must be 24)
#   0x22  u32 pixel data size
#
# Rows are padded to 4-byte boundaries:
#   row_stride = ((bpp * width + 31) // 32) * 4
#
# Rows are kept in FILE order (row 0 = first row stored = visual bottom),
# pixels are kept as stored: channel 0 = Blue, 1 = Green, 2 = Red.
#
# Everything between byte 0 and the pixel array offset is kept verbatim,
# so encode(decode(b)) == b for any well-formed file with zero padding.
#
# ------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)


# =========================
# SETTINGS
# =========================
HEADER_SIZE = 0x36

MAGIC = b"BM"
FILE_SIZE_OFFSET = 0x02
PIXEL_ARRAY_OFFSET = 0x0A
WIDTH_OFFSET = 0x12
HEIGHT_OFFSET = 0x16
PIXEL_SIZE_OFFSET = 0x1C
DATA_SIZE_OFFSET = 0x22

SUPPORTED_BPP = 24
BYTES_PER_PIXEL = SUPPORTED_BPP // 8

BLUE, GREEN, RED = 0, 1, 2


class FormatError(ValueError):
    """Raised when a byte stream violates the bitmap layout."""


# ============================================================
# -------------------- Image model ----------------
# ============================================================

@dataclass(frozen=True, eq=False)
class BitmapImage:
    """
    A parsed 24-bit bitmap.

    pixels:
      uint8 array of shape (height, width, 3), indexed [row, col, channel],
      rows in file order, channels in B, G, R order.

    raw_header:
      Bytes 0..pixel_array_offset of the source file, replayed verbatim by
      encode_bmp(). Header fields are never recomputed.

    Two images compare equal when every header field, the raw header and
    every pixel match. Images are unhashable.
    """
    width: int
    height: int
    pixel_size: int
    row_stride: int
    file_size: int
    pixel_array_offset: int
    data_size: int
    raw_header: bytes
    pixels: np.ndarray

    __hash__ = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitmapImage):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.pixel_size == other.pixel_size
            and self.row_stride == other.row_stride
            and self.file_size == other.file_size
            and self.pixel_array_offset == other.pixel_array_offset
            and self.data_size == other.data_size
            and self.raw_header == other.raw_header
            and np.array_equal(self.pixels, other.pixels)
        )

    def pixel(self, row: int, col: int) -> Tuple[int, int, int]:
        """(B, G, R) of one pixel."""
        px = self.pixels[row, col]
        return int(px[BLUE]), int(px[GREEN]), int(px[RED])


def row_stride_for(width: int, bits_per_pixel: int = SUPPORTED_BPP) -> int:
    """Bytes per stored row, including the padding up to a 4-byte boundary."""
    return ((bits_per_pixel * width + 31) // 32) * 4


def _read_u16(buf: bytes, offset: int) -> int:
    if offset + 2 > len(buf):
        raise FormatError(f"header field at 0x{offset:02X} out of range")
    return int.from_bytes(buf[offset:offset + 2], "little")


def _read_u32(buf: bytes, offset: int) -> int:
    if offset + 4 > len(buf):
        raise FormatError(f"header field at 0x{offset:02X} out of range")
    return int.from_bytes(buf[offset:offset + 4], "little")


# ============================================================
# -------------------- Decode ----------------
# ============================================================

def decode_bmp(data: bytes) -> BitmapImage:
    """
    Parse a bitmap byte stream.

    Fail-fast policy: any structural problem raises FormatError and no
    partial image is returned.

      1) 54-byte header must be present, start with "BM", declare 24 bpp.
      2) Raw header = data[0:pixel_array_offset] (kept verbatim).
      3) data_size bytes of pixels follow the raw header.
      4) Each pixel (y, x) lives at y*row_stride + 3*x in the pixel blob.
      5) data_size + pixel_array_offset must equal the declared file size.
    """
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise FormatError(f"truncated header: {len(data)} < {HEADER_SIZE} bytes")

    header = data[:HEADER_SIZE]
    if header[0:2] != MAGIC:
        raise FormatError(f"bad magic {header[0:2]!r}, expected {MAGIC!r}")

    file_size = _read_u32(header, FILE_SIZE_OFFSET)
    pixel_array_offset = _read_u32(header, PIXEL_ARRAY_OFFSET)

    pixel_size = _read_u16(header, PIXEL_SIZE_OFFSET)
    if pixel_size != SUPPORTED_BPP:
        raise FormatError(f"unsupported bits per pixel: {pixel_size} (only {SUPPORTED_BPP})")

    width = _read_u32(header, WIDTH_OFFSET)
    height = _read_u32(header, HEIGHT_OFFSET)
    row_stride = row_stride_for(width, pixel_size)
    logger.debug("Row size %d", row_stride)

    data_size = _read_u32(header, DATA_SIZE_OFFSET)

    # Entire header (everything but the pixel array)
    if not (HEADER_SIZE <= pixel_array_offset <= len(data)):
        raise FormatError(
            f"pixel array offset {pixel_array_offset} outside [{HEADER_SIZE}, {len(data)}]"
        )
    raw_header = data[:pixel_array_offset]

    blob = data[pixel_array_offset:pixel_array_offset + data_size]
    if len(blob) != data_size:
        raise FormatError(f"truncated pixel data: {len(blob)} < {data_size} bytes")

    pixels = _unpack_pixels(blob, width, height, row_stride)

    if data_size + pixel_array_offset != file_size:
        raise FormatError(
            f"size mismatch: data {data_size} + offset {pixel_array_offset} != file {file_size}"
        )

    logger.debug("Decoded bitmap %dx%d (%d bytes)", width, height, file_size)
    return BitmapImage(
        width=width,
        height=height,
        pixel_size=pixel_size,
        row_stride=row_stride,
        file_size=file_size,
        pixel_array_offset=pixel_array_offset,
        data_size=data_size,
        raw_header=raw_header,
        pixels=pixels,
    )


def _unpack_pixels(blob: bytes, width: int, height: int, row_stride: int) -> np.ndarray:
    """
    Slice the padded pixel blob into a (height, width, 3) grid.

    Only the addressed bytes must exist: the last row may omit its padding.
    """
    if height == 0 or width == 0:
        pixels = np.zeros((height, width, BYTES_PER_PIXEL), dtype=np.uint8)
        pixels.setflags(write=False)
        return pixels

    needed = (height - 1) * row_stride + BYTES_PER_PIXEL * width
    if len(blob) < needed:
        raise FormatError(
            f"pixel data too short for {width}x{height}: {len(blob)} < {needed} bytes"
        )

    full = height * row_stride
    buf = np.zeros(full, dtype=np.uint8)
    take = min(len(blob), full)
    buf[:take] = np.frombuffer(blob, dtype=np.uint8, count=take)

    rows = buf.reshape(height, row_stride)[:, :BYTES_PER_PIXEL * width]
    pixels = np.ascontiguousarray(rows).reshape(height, width, BYTES_PER_PIXEL)
    pixels.setflags(write=False)
    return pixels


# ============================================================
# -------------------- Encode / copy ----------------
# ============================================================

def encode_bmp(image: BitmapImage) -> bytes:
    """
    Serialize an image produced by decode_bmp() (or copy_bmp()).

    raw_header is written as-is, then every row B,G,R followed by zero
    padding up to a multiple of 4 bytes.
    """
    height, width = image.height, image.width
    row_bytes = BYTES_PER_PIXEL * width
    padded = (row_bytes + 3) // 4 * 4

    out = np.zeros((height, padded), dtype=np.uint8)
    if height and width:
        out[:, :row_bytes] = np.asarray(image.pixels, dtype=np.uint8).reshape(height, row_bytes)
    return image.raw_header + out.tobytes()


def copy_bmp(image: BitmapImage) -> BitmapImage:
    """Independent deep copy with its own header bytes and a writable pixel grid."""
    return replace(
        image,
        raw_header=bytes(bytearray(image.raw_header)),
        pixels=np.array(image.pixels, dtype=np.uint8, copy=True),
    )


# ============================================================
# -------------------- File helpers ----------------
# ============================================================

def read_bmp(path: Union[str, Path]) -> BitmapImage:
    """Read and decode a bitmap file. OSError propagates for missing/unreadable files."""
    path = Path(path)
    with path.open("rb") as fh:
        data = fh.read()
    logger.info("Read %s (%d bytes)", path, len(data))
    return decode_bmp(data)


def write_bmp(image: BitmapImage, path: Union[str, Path]) -> None:
    """Encode image and write it to path."""
    path = Path(path)
    data = encode_bmp(image)
    with path.open("wb") as fh:
        fh.write(data)
    logger.info("Wrote %s (%d bytes)", path, len(data))
