"""Shared service layer for the quotegrid UI.

This module encapsulates all UI operations so that both the FastAPI server
and the CLI share the same logic.  It is the single place that reads/writes
``quotes.yaml``, imports product lists, manages quotation requests and
supplier responses, and keeps the buyer's grid projected from the loaded
list.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable
from urllib.parse import quote

from pydantic import TypeAdapter

from quotegrid import __version__
from quotegrid.grid.projector import Projection
from quotegrid.grid.session import GridSession
from quotegrid.grid.state import GridEvent
from quotegrid.list_import import read_product_list, read_product_list_bytes
from quotegrid.logging.events import EventType, emit_info
from quotegrid.models import LineItem, RequestStatus
from quotegrid.project import load_project_config
from quotegrid.store import QuoteStore

_GRID_EVENT = TypeAdapter(GridEvent)


class QuoteService:
    """In-memory service that wraps a single quotegrid project.

    Parameters
    ----------
    project_dir : Path
        Root of the quotegrid project.
    """

    def __init__(self, project_dir: Path | None = None) -> None:
        if project_dir is None:
            raise ValueError("project_dir is required")

        self.project_dir = project_dir.resolve()
        self.config = load_project_config(self.project_dir)
        self.store = QuoteStore(self.project_dir)

        self.grid = GridSession(currency_prefix=str(self.config["currency_prefix"]))
        self._loaded_list_id: str | None = None

        # Products imported but not yet saved as a list
        self._pending_items: list[LineItem] = []

    @property
    def loaded_list_id(self) -> str | None:
        return self._loaded_list_id

    # ------------------------------------------------------------------
    # Project info
    # ------------------------------------------------------------------

    def get_project_info(self) -> dict[str, Any]:
        return {
            "project_dir": str(self.project_dir),
            "engine_version": __version__,
            "loaded_list_id": self._loaded_list_id,
            "pending_items": len(self._pending_items),
            "lists": len(self.store.list_lists()),
            "open_requests": len(self.store.list_requests(status=RequestStatus.pending)),
        }

    # ------------------------------------------------------------------
    # Product lists
    # ------------------------------------------------------------------

    def import_list_file(self, path: Path) -> dict[str, Any]:
        """Read a product file and keep its rows pending until :meth:`save_list`."""
        items = read_product_list(path, max_rows=self._max_import_rows())
        self._pending_items = items
        return self._import_preview(items)

    def import_list_bytes(self, data: bytes, filename: str) -> dict[str, Any]:
        items = read_product_list_bytes(data, filename, max_rows=self._max_import_rows())
        self._pending_items = items
        return self._import_preview(items)

    def _max_import_rows(self) -> int | None:
        value = self.config.get("max_import_rows")
        return int(value) if value else None

    @staticmethod
    def _import_preview(items: list[LineItem], limit: int = 10) -> dict[str, Any]:
        return {
            "count": len(items),
            "preview": [i.model_dump(exclude={"id"}) for i in items[:limit]],
        }

    def save_list(self, name: str, items: Iterable[LineItem] | None = None) -> dict[str, Any]:
        """Save *items* (or the pending import) as a named list."""
        to_save = list(items) if items is not None else self._pending_items
        saved = self.store.save_list(name, to_save)
        if items is None:
            self._pending_items = []
        emit_info(
            EventType.list_saved,
            f"List {saved.name!r} saved with {len(saved.items)} products",
            {"list_id": saved.id, "items": len(saved.items)},
        )
        return {"id": saved.id, "name": saved.name, "items": len(saved.items)}

    def list_lists(self) -> list[dict[str, Any]]:
        return [
            {
                "id": s.id,
                "name": s.name,
                "created_at": s.created_at,
                "items": len(s.items),
            }
            for s in self.store.list_lists()
        ]

    def load_list(self, list_id: str) -> dict[str, Any]:
        """Make *list_id* the loaded list and project it onto the grid."""
        saved = self.store.get_list(list_id)
        self._loaded_list_id = saved.id
        projection = self._reproject()
        emit_info(
            EventType.list_loaded,
            f"List {saved.name!r} loaded",
            {"list_id": saved.id, "items": len(saved.items)},
        )
        return {
            "id": saved.id,
            "name": saved.name,
            "items": [i.model_dump() for i in saved.items],
            "supplier_columns": projection.supplier_columns if projection else {},
        }

    def delete_list(self, list_id: str) -> dict[str, Any]:
        """Delete a list that no quotation request refers to.

        The grid keeps showing its last projection until another list is
        loaded.
        """
        self.store.delete_list(list_id)
        if self._loaded_list_id == list_id:
            self._loaded_list_id = None
        return {"ok": True, "id": list_id}

    def _reproject(self) -> Projection | None:
        if self._loaded_list_id is None:
            return None
        saved = self.store.get_list(self._loaded_list_id)
        responses = self.store.responses_for_list(saved.id)
        return self.grid.apply_projection(saved.items, responses)

    # ------------------------------------------------------------------
    # Quotation requests
    # ------------------------------------------------------------------

    def quotation_link(self, request_id: str, supplier_name: str) -> str:
        base = str(self.config["base_url"]).rstrip("/")
        return f"{base}/cotacao/{request_id}?supplier={quote(supplier_name)}"

    def create_quotation(self, supplier_name: str, list_id: str | None = None) -> dict[str, Any]:
        """Open a request for *supplier_name* on the given (or loaded) list."""
        list_id = list_id or self._loaded_list_id
        if list_id is None:
            raise ValueError("Load a list before generating a quotation link")
        req = self.store.create_request(list_id, supplier_name)
        link = self.quotation_link(req.id, req.supplier_name)
        emit_info(
            EventType.quotation_created,
            f"Quotation link generated for {req.supplier_name}",
            {"request_id": req.id, "list_id": list_id, "supplier_name": req.supplier_name},
            request_id=req.id,
        )
        return {**req.model_dump(mode="json"), "link": link}

    def get_quotation_form(self, request_id: str) -> dict[str, Any]:
        """What a supplier sees when opening their link."""
        req = self.store.get_request(request_id)
        saved = self.store.get_list(req.list_id)
        return {
            "request": req.model_dump(mode="json"),
            "products": [i.model_dump() for i in saved.items],
        }

    def submit_responses(
        self,
        request_id: str,
        supplier_name: str,
        entries: Iterable[dict[str, Any]],
    ) -> dict[str, Any]:
        responses = self.store.add_responses(request_id, supplier_name, entries)
        req = self.store.get_request(request_id)
        emit_info(
            EventType.response_submitted,
            f"{len(responses)} price(s) received",
            {
                "request_id": request_id,
                "supplier_id": responses[0].supplier_id,
                "responses": len(responses),
            },
            request_id=request_id,
        )
        if req.list_id == self._loaded_list_id:
            self._reproject()
        return {"ok": True, "accepted": len(responses)}

    def close_quotation(self, request_id: str) -> dict[str, Any]:
        req = self.store.close_request(request_id)
        emit_info(
            EventType.quotation_closed,
            f"Quotation {req.title!r} closed",
            {"request_id": req.id},
            request_id=req.id,
        )
        return req.model_dump(mode="json")

    def list_quotations(self, status: str | None = None) -> list[dict[str, Any]]:
        status_enum = RequestStatus(status) if status else None
        return [
            {
                **r.model_dump(mode="json"),
                "responses_count": len(self.store.responses_for_request(r.id)),
            }
            for r in self.store.list_requests(status=status_enum)
        ]

    def finished_quotations(self) -> list[dict[str, Any]]:
        return self.list_quotations(RequestStatus.closed.value)

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------

    def get_grid(self, r0: int = 0, c0: int = 0, rows: int = 30, cols: int = 26) -> dict[str, Any]:
        return self.grid.viewport(r0, c0, rows, cols)

    def dispatch_grid_event(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Validate a raw event payload and feed it to the grid.

        Raises:
            ValueError: The payload is not a known grid event.
        """
        event = _GRID_EVENT.validate_python(payload)
        state = self.grid.dispatch(event)
        return state.model_dump()
