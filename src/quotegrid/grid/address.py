"""Cell address helpers for the fixed 100 x 26 quotation grid.

Columns are single letters A..Z; rows are 1-based in addresses and
0-based everywhere else.  ``parse_address`` never raises: anything it
cannot map onto the grid comes back as ``None``.
"""

from __future__ import annotations

import re

ROWS = 100
COLUMNS = 26

_ADDR_RE = re.compile(r"([A-Z])([1-9][0-9]*)")


def column_letter(index: int) -> str:
    """Convert 0-based column index to its letter.  0=A, 25=Z."""
    return chr(ord("A") + index)


def to_address(row: int, col: int) -> str:
    """Build cell address from 0-based row/col."""
    return f"{column_letter(col)}{row + 1}"


def parse_address(addr: str) -> tuple[int, int] | None:
    """Parse 'A1' -> (row_0based, col_0based).

    Returns None for lower-case letters, multi-letter columns, missing or
    non-numeric row parts, and addresses outside the grid.
    """
    if not isinstance(addr, str):
        return None
    m = _ADDR_RE.fullmatch(addr)
    if not m:
        return None
    col = ord(m.group(1)) - ord("A")
    row = int(m.group(2)) - 1
    if not (0 <= row < ROWS):
        return None
    return row, col


def is_valid_address(addr: str) -> bool:
    return parse_address(addr) is not None


def clamp(row: int, col: int) -> tuple[int, int]:
    """Clamp a (row, col) pair onto the grid."""
    return max(0, min(ROWS - 1, row)), max(0, min(COLUMNS - 1, col))
