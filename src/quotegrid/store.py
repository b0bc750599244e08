"""YAML-backed storage for saved lists, quotation requests and responses.

Everything lives in one ``quotes.yaml`` at the project root::

    version: 1
    lists:      [{id, name, created_at, items: [{id, internal_code, ...}]}]
    requests:   [{id, list_id, title, supplier_name, status, created_at}]
    responses:  [{id, quotation_request_id, supplier_id, product_id, price, ...}]
    suppliers:  [{id, company_name, created_at}]

The file is rewritten atomically on every mutation.
"""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any, Iterable

import yaml

from quotegrid.models import (
    LineItem,
    QuotationRequest,
    QuotationResponse,
    RequestStatus,
    SavedList,
    Supplier,
    utc_now,
)
from quotegrid.project import DATA_FILE


class NotFoundError(ValueError):
    """Raised when a list, request or supplier id is unknown."""


class QuoteStore:
    """Read/write access to a project's ``quotes.yaml``.

    Parameters
    ----------
    project_dir : Path
        Root of the quotegrid project.
    """

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir.resolve()
        self.path = self.project_dir / DATA_FILE
        if not self.path.exists():
            raise FileNotFoundError(f"No {DATA_FILE} in {self.project_dir}")
        self._data = self._load()

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        for key in ("lists", "requests", "responses", "suppliers"):
            raw.setdefault(key, [])
        raw.setdefault("version", 1)
        return raw

    def _save(self) -> None:
        tmp = self.path.with_suffix(".yaml.tmp")
        tmp.write_text(
            yaml.safe_dump(self._data, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        os.replace(tmp, self.path)

    # ------------------------------------------------------------------
    # Saved lists
    # ------------------------------------------------------------------

    def save_list(self, name: str, items: Iterable[LineItem]) -> SavedList:
        """Persist a new product list.

        Raises:
            ValueError: Blank name or no items.
        """
        items = list(items)
        if not name or not name.strip():
            raise ValueError("List name is required")
        if not items:
            raise ValueError("A list needs at least one product")
        saved = SavedList(name=name.strip(), items=items)
        self._data["lists"].append(saved.model_dump(mode="json"))
        self._save()
        return saved

    def list_lists(self) -> list[SavedList]:
        """Saved lists, newest first."""
        lists = [SavedList.model_validate(d) for d in self._data["lists"]]
        return sorted(lists, key=lambda s: s.created_at, reverse=True)

    def get_list(self, list_id: str) -> SavedList:
        for d in self._data["lists"]:
            if d.get("id") == list_id:
                return SavedList.model_validate(d)
        raise NotFoundError(f"List {list_id!r} not found")

    def delete_list(self, list_id: str) -> None:
        self.get_list(list_id)
        if any(r.get("list_id") == list_id for r in self._data["requests"]):
            raise ValueError(f"List {list_id!r} has quotation requests and cannot be deleted")
        self._data["lists"] = [d for d in self._data["lists"] if d.get("id") != list_id]
        self._save()

    # ------------------------------------------------------------------
    # Quotation requests
    # ------------------------------------------------------------------

    def create_request(self, list_id: str, supplier_name: str) -> QuotationRequest:
        """Open a pending quotation request of *list_id* for one supplier."""
        self.get_list(list_id)
        if not supplier_name or not supplier_name.strip():
            raise ValueError("Supplier name is required")
        supplier_name = supplier_name.strip()
        req = QuotationRequest(
            list_id=list_id,
            title=f"Cotação para {supplier_name}",
            supplier_name=supplier_name,
        )
        self._data["requests"].append(req.model_dump(mode="json"))
        self._save()
        return req

    def get_request(self, request_id: str) -> QuotationRequest:
        for d in self._data["requests"]:
            if d.get("id") == request_id:
                return QuotationRequest.model_validate(d)
        raise NotFoundError(f"Quotation request {request_id!r} not found")

    def list_requests(
        self,
        *,
        status: RequestStatus | None = None,
        list_id: str | None = None,
    ) -> list[QuotationRequest]:
        """Quotation requests, newest first, optionally filtered."""
        reqs = [QuotationRequest.model_validate(d) for d in self._data["requests"]]
        if status is not None:
            reqs = [r for r in reqs if r.status == status]
        if list_id is not None:
            reqs = [r for r in reqs if r.list_id == list_id]
        return sorted(reqs, key=lambda r: r.created_at, reverse=True)

    def close_request(self, request_id: str) -> QuotationRequest:
        self.get_request(request_id)
        for d in self._data["requests"]:
            if d.get("id") == request_id:
                d["status"] = RequestStatus.closed.value
        self._save()
        return self.get_request(request_id)

    # ------------------------------------------------------------------
    # Suppliers and responses
    # ------------------------------------------------------------------

    def register_supplier(self, company_name: str) -> Supplier:
        """Return the supplier named *company_name*, creating it if needed."""
        key = company_name.strip().casefold()
        for d in self._data["suppliers"]:
            if d.get("company_name", "").casefold() == key:
                return Supplier.model_validate(d)
        supplier = Supplier(company_name=company_name.strip())
        self._data["suppliers"].append(supplier.model_dump(mode="json"))
        self._save()
        return supplier

    def add_responses(
        self,
        request_id: str,
        supplier_name: str,
        entries: Iterable[dict[str, Any]],
    ) -> list[QuotationResponse]:
        """Record a supplier's answers to a pending request.

        Entries without a positive price are skipped.

        Raises:
            ValueError: Unknown or closed request, unknown product, a price
                that is not a finite number, or no priced entries.
        """
        req = self.get_request(request_id)
        if req.status == RequestStatus.closed:
            raise ValueError(f"Quotation request {request_id!r} is closed")
        product_ids = {item.id for item in self.get_list(req.list_id).items}

        priced: list[dict[str, Any]] = []
        for entry in entries:
            pid = entry.get("product_id")
            if pid not in product_ids:
                raise ValueError(f"Product {pid!r} is not part of this quotation")
            price = entry.get("price")
            if price is None:
                continue
            if not math.isfinite(float(price)):
                raise ValueError(f"Price for product {pid!r} must be a finite number")
            if float(price) <= 0:
                continue
            priced.append(entry)
        if not priced:
            raise ValueError("Add at least one price")

        supplier = self.register_supplier(supplier_name or req.supplier_name)
        now = utc_now()
        responses = [
            QuotationResponse(
                supplier_id=supplier.id,
                product_id=entry["product_id"],
                price=float(entry["price"]),
                min_quantity=entry.get("min_quantity"),
                delivery_days=entry.get("delivery_days"),
                observations=entry.get("observations"),
                quotation_request_id=request_id,
                submitted_at=now,
            )
            for entry in priced
        ]
        self._data["responses"].extend(r.model_dump(mode="json") for r in responses)
        self._save()
        return responses

    def responses_for_request(self, request_id: str) -> list[QuotationResponse]:
        return [
            QuotationResponse.model_validate(d)
            for d in self._data["responses"]
            if d.get("quotation_request_id") == request_id
        ]

    def responses_for_list(self, list_id: str) -> list[QuotationResponse]:
        """All responses to requests made from *list_id*, in submission order."""
        request_ids = {
            d.get("id") for d in self._data["requests"] if d.get("list_id") == list_id
        }
        return [
            QuotationResponse.model_validate(d)
            for d in self._data["responses"]
            if d.get("quotation_request_id") in request_ids
        ]
