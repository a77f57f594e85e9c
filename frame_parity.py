# frame_parity.py
#
# ============================================================
# Per-frame even parity + digit value
# ============================================================
#
# Frame bit positions 0..7:
#
#   [0] [1 2] [3] [4 5] [6] [7]
#        MSB   p1  LSB   p2
#
#   valid  <=>  (b1 + b2) % 2 == b3  and  (b4 + b5) % 2 == b6
#   digit   =   (8*b1 + 4*b2 + 2*b4 + b5) % 10
#
# Bits 0 and 7 are never checked.
#
# ------------------------------------------------------------

from __future__ import annotations

from typing import Sequence

import numpy as np


def is_valid_frame(frame: Sequence[int]) -> bool:
    """Both parity groups of one 8-bit frame hold."""
    return bool((frame[1] + frame[2]) % 2 == frame[3] and (frame[4] + frame[5]) % 2 == frame[6])


def decode_digit(frame: Sequence[int]) -> int:
    """
    Digit carried by a frame.

    Only meaningful for a frame that passed is_valid_frame(); an invalid
    frame still yields a value in 0..9, callers gate on validity.
    """
    return int(8 * frame[1] + 4 * frame[2] + 2 * frame[4] + frame[5]) % 10


def validity_table(grid: np.ndarray) -> np.ndarray:
    """
    Apply is_valid_frame to every cell of a (rows, frames, 8) grid.

    Returns a bool array of shape (rows, frames).
    """
    g = np.asarray(grid, dtype=np.int16)
    msb_ok = (g[..., 1] + g[..., 2]) % 2 == g[..., 3]
    lsb_ok = (g[..., 4] + g[..., 5]) % 2 == g[..., 6]
    return msb_ok & lsb_ok
