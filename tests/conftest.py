"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Factories that build real 24-bit bitmap byte streams carrying barcode rows.

Test symbology: each digit d becomes the frame
    [0, d3, d2, d3^d2, d1, d0, d1^d0, 1]
(bit 0 white, bit 7 black), so the sentinel pixel at column 3 reads white
for a normally stored band and black for a reversed one.

==============================================================================
"""

import struct
from typing import Callable, List, Optional, Sequence

import numpy as np
import pytest


WIDTH = 102
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


# ============================================================================
# FRAME / ROW HELPERS
# ============================================================================

def frame_for_digit(digit: int) -> List[int]:
    b1, b2, b4, b5 = (digit >> 3) & 1, (digit >> 2) & 1, (digit >> 1) & 1, digit & 1
    return [0, b1, b2, (b1 + b2) % 2, b4, b5, (b4 + b5) % 2, 1]


def corrupt(frame: Sequence[int], bit: int = 3) -> List[int]:
    """Flip one parity bit so the frame fails its check."""
    out = list(frame)
    out[bit] ^= 1
    return out


def row_of(frames: Sequence[Sequence[int]], reversed_: bool = False, width: int = WIDTH) -> np.ndarray:
    """One (width, 3) BGR pixel row carrying 12 frames starting at column 3."""
    bits = [b for f in frames for b in f]
    assert len(bits) == 96
    if reversed_:
        bits = bits[::-1]
    row = np.full((width, 3), 255, dtype=np.uint8)
    for i, b in enumerate(bits):
        if b:
            row[3 + i] = BLACK
    return row


def build_bmp(
    pixels: np.ndarray,
    extra_header: bytes = b"",
    bpp: int = 24,
    data_size: Optional[int] = None,
    file_size: Optional[int] = None,
    magic: bytes = b"BM",
) -> bytes:
    """Serialize a (height, width, 3) BGR grid, rows in file order."""
    height, width = pixels.shape[0], pixels.shape[1]
    stride = ((24 * width + 31) // 32) * 4
    body = bytearray()
    for y in range(height):
        row = pixels[y].astype(np.uint8).tobytes()
        body += row + b"\x00" * (stride - len(row))

    offset = 54 + len(extra_header)
    if data_size is None:
        data_size = len(body)
    if file_size is None:
        file_size = offset + data_size

    header = struct.pack("<2sIHHI", magic, file_size, 0, 0, offset)
    info = struct.pack("<IIIHHIIiiII", 40, width, height, 1, bpp, 0, data_size, 2835, 2835, 0, 0)
    return header + info + extra_header + bytes(body)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def digits() -> List[int]:
    return [3, 1, 4, 1, 5, 9, 2, 6, 5, 3, 5, 8]


@pytest.fixture
def make_frame() -> Callable[[int], List[int]]:
    return frame_for_digit


@pytest.fixture
def make_bad_frame() -> Callable[..., List[int]]:
    return corrupt


@pytest.fixture
def make_row() -> Callable[..., np.ndarray]:
    return row_of


@pytest.fixture
def make_bmp() -> Callable[..., bytes]:
    return build_bmp


@pytest.fixture
def barcode_bmp() -> Callable[..., bytes]:
    """Build bitmap bytes from a list of rows, each a list of 12 frames."""
    def _build(rows: Sequence[Sequence[Sequence[int]]], reversed_: bool = False, width: int = WIDTH) -> bytes:
        if rows:
            pixels = np.stack([row_of(r, reversed_=reversed_, width=width) for r in rows])
        else:
            pixels = np.zeros((0, width, 3), dtype=np.uint8)
        return build_bmp(pixels)
    return _build


@pytest.fixture
def good_frames(digits) -> List[List[int]]:
    return [frame_for_digit(d) for d in digits]
