# frame_extractor.py
#
# ============================================================
# Bitmap pixel rows -> barcode bit-frames
# ============================================================
#
# Every row of the bitmap is one scan of the same physical barcode.
# A scan band of 12 frames x 8 bits = 96 pixels starts at column 3:
#
#   col:  0 1 2 | 3 ......................... 98 | 99 ...
#         quiet |  frame0 | frame1 | ... | frame11 | quiet
#
# Pixel -> bit:  first channel == 0 (black) -> 1, anything else -> 0
#
# Orientation sentinel:
#   pixel (row 0, col 3) black => the band is stored reversed, so every
#   row's 96 bits are flipped end-to-end before being cut into frames.
#
# FrameGrid layout: uint8 array (rows, FRAMES_PER_ROW, BITS_PER_FRAME)
#
# ------------------------------------------------------------

from __future__ import annotations

import enum
import logging

import numpy as np

from bitmap_codec import BLUE, BitmapImage, FormatError


logger = logging.getLogger(__name__)


# =========================
# SETTINGS
# =========================
BAND_START = 3
FRAMES_PER_ROW = 12
BITS_PER_FRAME = 8
BAND_WIDTH = FRAMES_PER_ROW * BITS_PER_FRAME
MIN_WIDTH = BAND_START + BAND_WIDTH

# Channel value read as a black bar
BLACK = 0


class Orientation(enum.Enum):
    NORMAL = "normal"
    REVERSED = "reversed"


def orientation(image: BitmapImage) -> Orientation:
    """
    Probe the sentinel pixel (row 0, col BAND_START).

    Black => REVERSED, otherwise NORMAL. An image without rows has no
    sentinel and is treated as NORMAL.
    """
    if image.height == 0:
        return Orientation.NORMAL
    _check_width(image)
    if image.pixels[0, BAND_START, BLUE] == BLACK:
        return Orientation.REVERSED
    return Orientation.NORMAL


def pixel_bits(image: BitmapImage) -> np.ndarray:
    """The raw (rows, 96) bit band, in stored left-to-right order."""
    _check_width(image)
    band = image.pixels[:, BAND_START:BAND_START + BAND_WIDTH, BLUE]
    return (band == BLACK).astype(np.uint8)


def extract_frames(image: BitmapImage) -> np.ndarray:
    """
    Build the FrameGrid for every row of the image.

    Returns a uint8 array of shape (height, FRAMES_PER_ROW, BITS_PER_FRAME).
    Raises FormatError if the image is narrower than MIN_WIDTH.
    """
    bits = pixel_bits(image)
    direction = orientation(image)
    if direction is Orientation.REVERSED:
        bits = bits[:, ::-1]

    logger.debug("Extracting %d rows (%s)", image.height, direction.value)
    return np.ascontiguousarray(bits).reshape(image.height, FRAMES_PER_ROW, BITS_PER_FRAME)


def _check_width(image: BitmapImage) -> None:
    if image.width < MIN_WIDTH:
        raise FormatError(f"image width {image.width} < {MIN_WIDTH} needed for the scan band")
