"""Spreadsheet grid engine: addressing, cells, interaction and projection."""

from quotegrid.grid.address import (
    COLUMNS,
    ROWS,
    column_letter,
    parse_address,
    to_address,
)
from quotegrid.grid.cells import Cell, CellStore
from quotegrid.grid.projector import Projection, project
from quotegrid.grid.session import GridSession
from quotegrid.grid.state import (
    Blur,
    Click,
    Commit,
    DoubleClick,
    DraftInput,
    GridEvent,
    GridState,
    KeyPress,
    transition,
)

__all__ = [
    "Blur",
    "COLUMNS",
    "Cell",
    "CellStore",
    "Click",
    "Commit",
    "DoubleClick",
    "DraftInput",
    "GridEvent",
    "GridSession",
    "GridState",
    "KeyPress",
    "Projection",
    "ROWS",
    "column_letter",
    "parse_address",
    "project",
    "to_address",
    "transition",
]
