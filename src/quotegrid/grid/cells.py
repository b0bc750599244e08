"""Sparse cell storage for the quotation grid.

Formulas are kept verbatim; nothing in quotegrid evaluates them.
"""

from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, ConfigDict

from quotegrid.grid.address import parse_address


class Cell(BaseModel):
    """Stored content of one grid position."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    is_formula: bool = False

    @classmethod
    def from_text(cls, text: str) -> Cell:
        return cls(text=text, is_formula=text.startswith("="))


EMPTY_CELL = Cell()


class CellStore:
    """Mapping of cell address -> :class:`Cell`.

    Only touched cells are materialized.  There is no per-cell delete:
    writing empty text keeps the key, so the key set only grows until the
    store is replaced wholesale.
    """

    def __init__(self, cells: dict[str, Cell] | None = None) -> None:
        self._cells: dict[str, Cell] = {}
        for addr, cell in (cells or {}).items():
            if parse_address(addr) is not None:
                self._cells[addr] = cell

    def get(self, addr: str) -> Cell:
        return self._cells.get(addr, EMPTY_CELL)

    def text(self, addr: str) -> str:
        return self.get(addr).text

    def set(self, addr: str, text: str) -> bool:
        """Write *text* at *addr*.  Returns False (no write) for bad addresses."""
        if parse_address(addr) is None:
            return False
        self._cells[addr] = Cell.from_text(text)
        return True

    def replace(self, cells: dict[str, Cell]) -> None:
        """Swap the whole content for *cells*."""
        self._cells = {a: c for a, c in cells.items() if parse_address(a) is not None}

    def snapshot(self) -> dict[str, Cell]:
        return dict(self._cells)

    def __contains__(self, addr: object) -> bool:
        return addr in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)
