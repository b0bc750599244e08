"""One interactive grid: cell store, selection/edit state and commit fan-out.

A :class:`GridSession` is what a renderer talks to.  User input goes in
through :meth:`GridSession.dispatch`; fresh list/response data goes in
through :meth:`GridSession.apply_projection`, which replaces the store
wholesale.  Manual edits made before a projection are lost; a draft that
is still open when a projection lands is committed on top of it later
(last writer wins).
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from quotegrid.grid.address import COLUMNS, ROWS, column_letter, parse_address, to_address
from quotegrid.grid.cells import CellStore
from quotegrid.grid.projector import Projection, project
from quotegrid.grid.state import GridState, transition
from quotegrid.logging.events import (
    GRID_LISTENER_FAILED,
    GRID_ROW_OVERFLOW,
    GRID_SUPPLIER_OVERFLOW,
    EventType,
    emit_info,
    emit_warning,
)
from quotegrid.models import LineItem, QuotationResponse

CommitListener = Callable[[str, str], None]


class GridSession:
    """In-memory grid bound to a single editor.

    Parameters
    ----------
    selected : str | None
        Initially selected address.  Defaults to ``"A1"``.
    currency_prefix : str
        Prefix used by the projector for price cells.
    """

    def __init__(self, selected: str | None = "A1", currency_prefix: str = "R$ ") -> None:
        if selected is not None and parse_address(selected) is None:
            selected = None
        self.store = CellStore()
        self.state = GridState(selected=selected)
        self.currency_prefix = currency_prefix
        self._listeners: list[CommitListener] = []

    # ------------------------------------------------------------------
    # Commit subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """Register *listener* for ``(addr, new_text)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def dispatch(self, event: Any) -> GridState:
        """Feed one input event through the state machine.

        A listener that raises is logged and skipped; the remaining
        listeners still run.
        """
        self.state, commit = transition(self.state, event, self.store.text)
        if commit is not None:
            self.store.set(commit.addr, commit.text)
            emit_info(
                EventType.cell_committed,
                f"Cell {commit.addr} committed",
                {"addr": commit.addr, "is_formula": commit.text.startswith("=")},
            )
            for listener in list(self._listeners):
                try:
                    listener(commit.addr, commit.text)
                except Exception as exc:
                    emit_warning(
                        EventType.commit_listener_failed,
                        f"Commit listener failed on {commit.addr}: {exc!r}",
                        {"addr": commit.addr, "listener": getattr(listener, "__qualname__", repr(listener))},
                        error_code=GRID_LISTENER_FAILED,
                    )
        return self.state

    def apply_projection(
        self,
        line_items: Iterable[LineItem],
        responses: Iterable[QuotationResponse],
    ) -> Projection:
        """Project external data and replace the store with the result.

        An empty projection (no line items) leaves the store untouched.
        """
        projection = project(line_items, responses, currency_prefix=self.currency_prefix)
        if projection.is_empty:
            return projection

        self.store.replace(projection.cells)
        emit_info(
            EventType.grid_projected,
            f"Projected {len(projection.cells)} cells",
            {
                "cells": len(projection.cells),
                "suppliers": len(projection.supplier_columns),
            },
        )
        if projection.dropped_suppliers:
            emit_warning(
                EventType.grid_projection_clipped,
                f"{len(projection.dropped_suppliers)} supplier(s) do not fit past column "
                f"{column_letter(COLUMNS - 1)}",
                {"dropped_suppliers": projection.dropped_suppliers},
                error_code=GRID_SUPPLIER_OVERFLOW,
            )
        if projection.dropped_items:
            emit_warning(
                EventType.grid_projection_clipped,
                f"{projection.dropped_items} item(s) do not fit past row {ROWS}",
                {"dropped_items": projection.dropped_items},
                error_code=GRID_ROW_OVERFLOW,
            )
        return projection

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def viewport(
        self,
        r0: int = 0,
        c0: int = 0,
        rows: int = 30,
        cols: int = COLUMNS,
    ) -> dict[str, Any]:
        """Return a viewport of cells for rendering.

        Returns dict with:
          - cells: list of {addr, row, col, text, is_formula} for stored cells in range
          - n_rows, n_cols: grid dimensions
          - selected, editing, draft: current interaction state
        """
        cells = []
        for r in range(max(r0, 0), min(r0 + rows, ROWS)):
            for c in range(max(c0, 0), min(c0 + cols, COLUMNS)):
                addr = to_address(r, c)
                if addr not in self.store:
                    continue
                cell = self.store.get(addr)
                cells.append({
                    "addr": addr,
                    "row": r,
                    "col": c,
                    "text": cell.text,
                    "is_formula": cell.is_formula,
                })
        return {
            "n_rows": ROWS,
            "n_cols": COLUMNS,
            "r0": r0,
            "c0": c0,
            "rows": rows,
            "cols": cols,
            "cells": cells,
            "selected": self.state.selected,
            "editing": self.state.editing,
            "draft": self.state.draft,
        }

    def used_range(self) -> list[list[str]]:
        """Dense rows from A1 to the last non-empty cell, for printing."""
        last_row = last_col = -1
        for addr in self.store:
            if not self.store.text(addr):
                continue
            row, col = parse_address(addr)
            last_row = max(last_row, row)
            last_col = max(last_col, col)
        return [
            [self.store.text(to_address(r, c)) for c in range(last_col + 1)]
            for r in range(last_row + 1)
        ]
