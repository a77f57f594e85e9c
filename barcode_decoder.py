# barcode_decoder.py
#
# ============================================================
# Multi-row barcode decoder (per-frame acceptance)
# ============================================================
#
# Pipeline:
#   BitmapImage -> FrameGrid (rows x 12 x 8) -> ValidityTable (rows x 12)
#               -> digits, or the list of unreadable frame columns
#
# Rows are repeated scans of the same symbol. A column is recoverable if
# ANY row holds a parity-valid frame there; the first such row (lowest
# index) supplies the digit. A column with no valid frame in any row makes
# the whole decode report "unreadable" with every such column listed.
#
# Unreadable columns are a normal outcome (damaged print / bad scan),
# returned as data, never raised.
#
# ------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

import numpy as np

from bitmap_codec import BitmapImage, read_bmp
from frame_extractor import FRAMES_PER_ROW, extract_frames
from frame_parity import decode_digit, validity_table


logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    """
    Outcome of one decode run.

    ok=True : digits holds FRAMES_PER_ROW values, source_rows says which
              row each digit was read from.
    ok=False: unreadable_columns lists the frame columns (ascending) for
              which no row carried a parity-valid frame.
    """
    ok: bool
    digits: List[int] = field(default_factory=list)
    unreadable_columns: List[int] = field(default_factory=list)
    rows: int = 0
    source_rows: List[int] = field(default_factory=list)
    reason: str = ""

    def __post_init__(self) -> None:
        if self.ok:
            if self.unreadable_columns or len(self.digits) != FRAMES_PER_ROW:
                raise ValueError(
                    f"decoded result needs {FRAMES_PER_ROW} digits and no unreadable columns"
                )
        elif self.digits or not self.unreadable_columns:
            raise ValueError("unreadable result needs unreadable columns and no digits")

    def format(self) -> str:
        """Single-line report: the digits, or which frames could not be read."""
        if self.ok:
            return " ".join(str(d) for d in self.digits)
        cols = " ".join(str(c) for c in self.unreadable_columns)
        if len(self.unreadable_columns) == 1:
            return f"Unable to read frame: {cols}"
        return f"Unable to read frames: {cols}"


def decode_frames(grid: np.ndarray) -> DecodeResult:
    """
    Decode a FrameGrid of shape (rows, FRAMES_PER_ROW, 8).

    An empty grid (no rows) reports every column as unreadable.
    """
    grid = np.asarray(grid)
    rows = grid.shape[0]
    valid = validity_table(grid).reshape(rows, FRAMES_PER_ROW)

    readable = valid.any(axis=0)
    unreadable = [int(c) for c in np.flatnonzero(~readable)]
    if unreadable:
        logger.info("Unreadable frame columns %s across %d rows", unreadable, rows)
        return DecodeResult(
            ok=False,
            unreadable_columns=unreadable,
            rows=rows,
            reason=f"REJECT: no parity-valid frame in column(s) {unreadable}",
        )

    digits: List[int] = []
    source_rows: List[int] = []
    for col in range(FRAMES_PER_ROW):
        # argmax returns the first True: earliest valid row wins
        row = int(np.argmax(valid[:, col]))
        digits.append(decode_digit(grid[row, col]))
        source_rows.append(row)

    logger.debug("Decoded digits %s from rows %s", digits, source_rows)
    return DecodeResult(ok=True, digits=digits, rows=rows, source_rows=source_rows, reason="OK")


def decode_barcode(image: BitmapImage) -> DecodeResult:
    """Extract frames from image and decode them. FormatError propagates."""
    return decode_frames(extract_frames(image))


def decode_file(path: Union[str, Path]) -> DecodeResult:
    return decode_barcode(read_bmp(path))
