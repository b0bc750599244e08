"""Records exchanged between the quotation store, the projector and the API."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class LineItem(BaseModel):
    """One product row of a saved list."""

    id: str = Field(default_factory=_new_id)
    internal_code: str
    product_description: str
    barcode: str = ""

    @field_validator("barcode", mode="before")
    @classmethod
    def _none_barcode(cls, v: object) -> object:
        return "" if v is None else v


class QuotationResponse(BaseModel):
    """A supplier's offer for one product of one quotation request.

    Only ``supplier_id``, ``product_id`` and ``price`` reach the grid.
    """

    id: str = Field(default_factory=_new_id)
    supplier_id: str
    product_id: str
    price: float | None = None
    min_quantity: int | None = None
    delivery_days: int | None = None
    observations: str | None = None
    quotation_request_id: str | None = None
    submitted_at: str | None = None


class RequestStatus(str, Enum):
    pending = "pending"
    closed = "closed"


class SavedList(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    created_at: str = Field(default_factory=utc_now)
    items: list[LineItem] = []


class QuotationRequest(BaseModel):
    id: str = Field(default_factory=_new_id)
    list_id: str
    title: str
    supplier_name: str
    status: RequestStatus = RequestStatus.pending
    created_at: str = Field(default_factory=utc_now)


class Supplier(BaseModel):
    id: str = Field(default_factory=_new_id)
    company_name: str
    created_at: str = Field(default_factory=utc_now)
