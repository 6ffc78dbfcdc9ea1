#!/usr/bin/env python3
"""
Name: hexview
Description: display a window of a file as canonical hex and ASCII
License: artistic2
"""

import sys
import os
import argparse
import re
from collections import namedtuple

__version__ = "0.1.0"

# --- Exit Codes ---
EX_SUCCESS = 0
EX_FAILURE = 1

LINESZ = 16
HALFSZ = LINESZ // 2
ADDRESS_DIGITS = 8

# Checked in this order; the first suffix that matches wins.
UNITS = (
    ('kb', 1000),
    ('mb', 1000 * 1000),
    ('K', 1024),
    ('M', 1024 * 1024),
)

DIGITS_RE = re.compile(r'\+?[0-9]+')

ByteWindow = namedtuple('ByteWindow', 'offset data')


def parse_unit(text: str) -> int:
    """
    Parses a byte count with an optional unit suffix (e.g., '3kb', '1M').
    kb and mb are decimal (1000, 1000*1000), K and M are binary
    (1024, 1024*1024). A bare number is taken as bytes.
    """
    digits, multiplier = text, 1
    for suffix, factor in UNITS:
        if text.endswith(suffix):
            digits, multiplier = text[:-len(suffix)], factor
            break

    # int() alone would also accept whitespace, underscores and signs.
    if not DIGITS_RE.fullmatch(digits):
        raise ValueError(f"invalid number '{text}'")
    return int(digits) * multiplier


def resolve_window(offset: int, length, path) -> ByteWindow:
    """
    Reads at most `length` bytes of `path` starting at `offset`, or
    everything up to EOF when `length` is None. Reading past the end of
    the file is not an error; the window is simply shorter or empty.
    """
    with open(path, 'rb') as f:
        size = os.fstat(f.fileno()).st_size
        if offset >= size:
            return ByteWindow(offset, b'')

        # Never ask read() for more than the file holds.
        remaining = size - offset
        if length is not None:
            remaining = min(length, remaining)
        f.seek(offset)
        data = f.read(remaining)
    return ByteWindow(offset, data)


def address_width(offset: int, size: int) -> int:
    """Number of hex digits needed to label every line of a dump."""
    last = offset + max(size - 1, 0) // LINESZ * LINESZ
    return max(ADDRESS_DIGITS, len(f"{last:x}"))


def format_body(chunk: bytes) -> str:
    """Renders the hex groups and the printable column of one chunk."""
    cells = [f"{b:02x}" for b in chunk]
    # Blank cells keep the printable column aligned on short lines.
    cells += ['  '] * (LINESZ - len(cells))
    left = ' '.join(cells[:HALFSZ])
    right = ' '.join(cells[HALFSZ:])
    text = ''.join(chr(b) if 0x20 <= b < 0x7f else '.' for b in chunk)
    return f"{left}  {right}  |{text}|"


def format_line(address: int, chunk: bytes, width: int = ADDRESS_DIGITS) -> str:
    return f"{address:0{width}x}  {format_body(chunk)}"


class DumpRenderer:
    """
    Holds the state of one rendering pass: the previous full line and
    whether a '*' has already been written for the current run of
    identical lines.
    """
    def __init__(self, sink, show_all=False):
        self.sink = sink
        self.show_all = show_all
        self.previous_line = None
        self.is_duplicate = False

    def run(self, offset, data):
        """Writes the dump of `data`, labelled from `offset`, to the sink."""
        width = address_width(offset, len(data))
        for start in range(0, len(data), LINESZ):
            chunk = data[start:start + LINESZ]
            self.emit(offset + start, chunk, width)

    def emit(self, address, chunk, width):
        line = format_line(address, chunk, width)
        # Everything after the address is compared.
        body = line[width:]

        # Only full lines take part in duplicate suppression.
        if len(chunk) < LINESZ:
            self.previous_line = None
            self.is_duplicate = False
            self.sink.write(line + "\n")
            return

        if not self.show_all and body == self.previous_line:
            if not self.is_duplicate:
                self.sink.write("*\n")
                self.is_duplicate = True
            return

        self.is_duplicate = False
        self.previous_line = body
        self.sink.write(line + "\n")


def render(offset: int, show_all: bool, data: bytes, sink) -> None:
    """Writes the canonical dump of `data` to `sink`."""
    DumpRenderer(sink, show_all).run(offset, data)


def main():
    """Parses arguments, reads the requested window and dumps it."""
    parser = argparse.ArgumentParser(
        description="Display a window of a file in canonical hex and ASCII.",
        usage="%(prog)s [-n] [-s N] [-l N] filename",
        epilog="N may carry a unit: kb (1000), K (1024), mb (1000*1000) "
               "or M (1024*1024). Examples: --length 3kb, -l3kb, --length 1mb."
    )
    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument(
        '-s', '--skip',
        metavar='N',
        default='0',
        help='Skip N bytes of the input (default: 0).'
    )
    parser.add_argument(
        '-l', '--length',
        metavar='N',
        help='Read N bytes of the input. Reads to the end of the file if not '
             'given; a length of 0 reads no bytes.'
    )
    parser.add_argument(
        '-n', '--no-squeezing',
        dest='show_all',
        action='store_true',
        help='Display all input data; do not use `*` for identical lines.'
    )
    parser.add_argument('filename', help='Target file.')

    args = parser.parse_args()
    program_name = os.path.basename(sys.argv[0])

    # --- 1. Argument Validation ---
    try:
        skip = parse_unit(args.skip)
        length = parse_unit(args.length) if args.length is not None else None
    except ValueError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        sys.exit(EX_FAILURE)

    if os.path.isdir(args.filename):
        print(f"{program_name}: '{args.filename}' is a directory", file=sys.stderr)
        sys.exit(EX_FAILURE)

    # --- 2. Read the Window ---
    try:
        window = resolve_window(skip, length, args.filename)
    except OSError as e:
        print(f"{program_name}: '{args.filename}': {e.strerror}", file=sys.stderr)
        sys.exit(EX_FAILURE)

    # --- 3. Dump It ---
    try:
        render(window.offset, args.show_all, window.data, sys.stdout)
        sys.stdout.flush()
    except BrokenPipeError:
        # Keep the interpreter's final flush from failing a second time.
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        print(f"{program_name}: write error: broken pipe", file=sys.stderr)
        sys.exit(EX_FAILURE)
    except OSError as e:
        print(f"{program_name}: write error: {e.strerror}", file=sys.stderr)
        sys.exit(EX_FAILURE)

    sys.exit(EX_SUCCESS)


if __name__ == "__main__":
    main()
