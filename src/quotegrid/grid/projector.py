"""Projection of a product list and supplier responses onto the grid.

Layout::

    A1 Código Interno | B1 Descrição | C1 Código de Barras | D1 Fornecedor 1 | ...
    A2 <code>         | B2 <desc>    | C2 <barcode>        | D2 R$ 9.50      | ...

Supplier columns are assigned from D in the order suppliers first appear
in the responses.  The grid has no room beyond column Z or row 100:
suppliers and items that do not fit are clipped and reported on the
returned :class:`Projection` rather than wrapped onto other cells.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel

from quotegrid.grid.address import COLUMNS, ROWS, column_letter, to_address
from quotegrid.grid.cells import Cell
from quotegrid.models import LineItem, QuotationResponse

HEADERS = ("Código Interno", "Descrição", "Código de Barras")
SUPPLIER_HEADER = "Fornecedor {n}"
FIRST_SUPPLIER_COL = len(HEADERS)
FIRST_DATA_ROW = 1

MAX_SUPPLIERS = COLUMNS - FIRST_SUPPLIER_COL
MAX_ITEMS = ROWS - FIRST_DATA_ROW


class Projection(BaseModel):
    cells: dict[str, Cell] = {}
    supplier_columns: dict[str, str] = {}
    dropped_suppliers: list[str] = []
    dropped_items: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.cells

    @property
    def clipped(self) -> bool:
        return bool(self.dropped_suppliers) or self.dropped_items > 0


def format_price(price: float | None, prefix: str = "R$ ") -> str:
    """Format a price with exactly two decimals; None counts as zero."""
    return f"{prefix}{(price or 0.0):.2f}"


def _assign_supplier_columns(
    responses: list[QuotationResponse],
) -> tuple[dict[str, int], list[str]]:
    """Map supplier_id -> column index in first-seen order."""
    columns: dict[str, int] = {}
    dropped: list[str] = []
    for resp in responses:
        sid = resp.supplier_id
        if sid in columns or sid in dropped:
            continue
        if len(columns) < MAX_SUPPLIERS:
            columns[sid] = FIRST_SUPPLIER_COL + len(columns)
        else:
            dropped.append(sid)
    return columns, dropped


def project(
    line_items: Iterable[LineItem],
    responses: Iterable[QuotationResponse],
    *,
    currency_prefix: str = "R$ ",
) -> Projection:
    """Build the full cell mapping for *line_items* and *responses*.

    Returns an empty projection when there are no line items.  Duplicate
    responses for the same product and supplier: the last one wins.
    """
    items = list(line_items)
    if not items:
        return Projection()
    resps = list(responses)

    cells: dict[str, Cell] = {}
    for col, title in enumerate(HEADERS):
        cells[to_address(0, col)] = Cell.from_text(title)

    columns, dropped_suppliers = _assign_supplier_columns(resps)
    for n, col in enumerate(columns.values(), start=1):
        cells[to_address(0, col)] = Cell.from_text(SUPPLIER_HEADER.format(n=n))

    kept = items[:MAX_ITEMS]
    rows: dict[str, list[int]] = {}
    for i, item in enumerate(kept):
        row = FIRST_DATA_ROW + i
        cells[to_address(row, 0)] = Cell.from_text(item.internal_code)
        cells[to_address(row, 1)] = Cell.from_text(item.product_description)
        cells[to_address(row, 2)] = Cell.from_text(item.barcode)
        rows.setdefault(item.id, []).append(row)

    for resp in resps:
        col = columns.get(resp.supplier_id)
        if col is None:
            continue
        for row in rows.get(resp.product_id, ()):
            cells[to_address(row, col)] = Cell.from_text(
                format_price(resp.price, currency_prefix)
            )

    return Projection(
        cells=cells,
        supplier_columns={sid: column_letter(col) for sid, col in columns.items()},
        dropped_suppliers=dropped_suppliers,
        dropped_items=len(items) - len(kept),
    )
