# barcode_scanner.py
#
# ============================================================
# Barcode scanner CLI
# ============================================================
#
# USAGE:
#   barcode-scanner <file.bmp> [-d] [-o copy.bmp] [-v]
#
# OUTPUT:
#   - decoded:    "1 2 3 4 5 6 7 8 9 0 1 2"
#   - unreadable: "Unable to read frame: 5"
#                 "Unable to read frames: 2 7 11"
#   - -d:         file name, width and height only (no decoding)
#
# EXIT CODES:
#   0  digits printed, or unreadable frames reported
#   1  file missing/unreadable, or not a valid 24-bit bitmap
#
# ------------------------------------------------------------

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from barcode_decoder import decode_barcode
from bitmap_codec import FormatError, copy_bmp, read_bmp, write_bmp


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barcode-scanner",
        description="Decode a parity-checked 12-digit barcode from a 24-bit bitmap.",
    )
    parser.add_argument("bitmap", type=str, help="Path to the input .bmp file.")
    parser.add_argument("-d", "--debug-info", action="store_true",
                        help="Print the bitmap width and height and exit without decoding.")
    parser.add_argument("-o", "--output", type=str, default=None,
                        help="Also write a copy of the parsed bitmap to this path.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging on stderr.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        bmp = read_bmp(args.bitmap)
    except OSError as e:
        print(f"Could not open file {args.bitmap}: {e.strerror or e}", file=sys.stderr)
        return 1
    except FormatError as e:
        print(f"File format error: {e}", file=sys.stderr)
        return 1

    if args.debug_info:
        print(f"Read file {args.bitmap}")
        print(f"Width: {bmp.width}")
        print(f"Height: {bmp.height}")
        return 0

    try:
        res = decode_barcode(bmp)
    except FormatError as e:
        print(f"File format error: {e}", file=sys.stderr)
        return 1

    # Copy is written only for a bitmap the scanner could process
    if args.output:
        try:
            write_bmp(copy_bmp(bmp), args.output)
        except OSError as e:
            print(f"File write error: {args.output}: {e.strerror or e}", file=sys.stderr)
            return 1

    logger.debug("Decode result: %s", res.reason)
    print(res.format())
    return 0


if __name__ == "__main__":
    sys.exit(main())
