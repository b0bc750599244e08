"""FastAPI server for the quotegrid local browser UI.

Routes are thin wrappers over the shared :class:`QuoteService`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from quotegrid.list_import import ListImportError
from quotegrid.logging.events import set_project_dir
from quotegrid.store import NotFoundError
from quotegrid.ui.service import QuoteService

# The singleton service is set at startup by ``create_app()``.
_service: QuoteService | None = None

_MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20 MB


def create_app(project_dir: Path) -> FastAPI:
    """Create the FastAPI application for a given project.

    Args:
        project_dir: Root of the quotegrid project.

    Returns:
        Configured FastAPI instance.
    """
    global _service
    _service = QuoteService(project_dir=project_dir)
    set_project_dir(_service.project_dir)

    from quotegrid import __version__

    app = FastAPI(title="quotegrid UI", version=__version__)

    static_dir = Path(__file__).parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    app.include_router(_api_router())

    @app.get("/")
    async def index() -> FileResponse:
        return FileResponse(str(static_dir / "index.html"))

    @app.get("/cotacao/{request_id}")
    async def supplier_page(request_id: str) -> FileResponse:
        return FileResponse(str(static_dir / "index.html"))

    return app


def _svc() -> QuoteService:
    """Get the singleton service, raising if not initialised."""
    if _service is None:
        raise HTTPException(500, "Service not initialised")
    return _service


def _http_error(exc: ValueError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(404, str(exc))
    return HTTPException(400, str(exc))


# ---------------------------------------------------------------------------
# Request/response models
# ---------------------------------------------------------------------------


class ProductIn(BaseModel):
    internal_code: str
    product_description: str
    barcode: str = ""


class SaveListRequest(BaseModel):
    name: str
    items: list[ProductIn] | None = None


class CreateQuotationRequest(BaseModel):
    supplier_name: str
    list_id: str | None = None


class ResponseEntry(BaseModel):
    product_id: str
    price: float | None = Field(None, allow_inf_nan=False)
    min_quantity: int | None = None
    delivery_days: int | None = None
    observations: str | None = None


class SubmitResponsesRequest(BaseModel):
    supplier_name: str = ""
    responses: list[ResponseEntry]


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


def _api_router():
    from fastapi import APIRouter

    from quotegrid.models import LineItem

    router = APIRouter(prefix="/api")

    # -- Project info --

    @router.get("/project")
    async def get_project() -> dict[str, Any]:
        return _svc().get_project_info()

    # -- Lists --

    @router.post("/lists/import")
    async def import_list(file: UploadFile = File(...)) -> dict[str, Any]:
        fname = file.filename or ""
        data = await file.read()
        if len(data) > _MAX_UPLOAD_BYTES:
            raise HTTPException(400, f"File too large (max {_MAX_UPLOAD_BYTES // (1024*1024)} MB)")
        try:
            return _svc().import_list_bytes(data, fname)
        except ListImportError as exc:
            raise HTTPException(400, str(exc))

    @router.get("/lists")
    async def list_lists() -> list[dict[str, Any]]:
        return _svc().list_lists()

    @router.post("/lists")
    async def save_list(req: SaveListRequest) -> dict[str, Any]:
        items = None
        if req.items is not None:
            items = [LineItem(**p.model_dump()) for p in req.items]
        try:
            return _svc().save_list(req.name, items)
        except ValueError as exc:
            raise _http_error(exc)

    @router.post("/lists/{list_id}/load")
    async def load_list(list_id: str) -> dict[str, Any]:
        try:
            return _svc().load_list(list_id)
        except ValueError as exc:
            raise _http_error(exc)

    @router.delete("/lists/{list_id}")
    async def delete_list(list_id: str) -> dict[str, Any]:
        try:
            return _svc().delete_list(list_id)
        except ValueError as exc:
            raise _http_error(exc)

    # -- Quotations --

    @router.get("/quotations")
    async def list_quotations(status: str | None = Query(None)) -> list[dict[str, Any]]:
        try:
            return _svc().list_quotations(status)
        except ValueError as exc:
            raise _http_error(exc)

    @router.get("/quotations/finished")
    async def finished_quotations() -> list[dict[str, Any]]:
        return _svc().finished_quotations()

    @router.post("/quotations")
    async def create_quotation(req: CreateQuotationRequest) -> dict[str, Any]:
        try:
            return _svc().create_quotation(req.supplier_name, req.list_id)
        except ValueError as exc:
            raise _http_error(exc)

    @router.get("/quotations/{request_id}")
    async def get_quotation(request_id: str) -> dict[str, Any]:
        try:
            return _svc().get_quotation_form(request_id)
        except ValueError as exc:
            raise _http_error(exc)

    @router.post("/quotations/{request_id}/responses")
    async def submit_responses(request_id: str, req: SubmitResponsesRequest) -> dict[str, Any]:
        entries = [e.model_dump() for e in req.responses]
        try:
            return _svc().submit_responses(request_id, req.supplier_name, entries)
        except ValueError as exc:
            raise _http_error(exc)

    @router.post("/quotations/{request_id}/close")
    async def close_quotation(request_id: str) -> dict[str, Any]:
        try:
            return _svc().close_quotation(request_id)
        except ValueError as exc:
            raise _http_error(exc)

    # -- Grid --

    @router.get("/grid")
    async def get_grid(
        r0: int = Query(0, ge=0),
        c0: int = Query(0, ge=0),
        rows: int = Query(30, ge=1, le=100),
        cols: int = Query(26, ge=1, le=26),
    ) -> dict[str, Any]:
        return _svc().get_grid(r0, c0, rows, cols)

    @router.post("/grid/events")
    async def grid_event(payload: dict[str, Any]) -> dict[str, Any]:
        try:
            return _svc().dispatch_grid_event(payload)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    # -- Event logs --

    @router.get("/events")
    async def get_events(
        level: str | None = Query(None),
        event_type: str | None = Query(None),
        request_id: str | None = Query(None),
        limit: int = Query(100, ge=1, le=2000),
    ) -> list[dict[str, Any]]:
        from quotegrid.logging.sink import EventSink

        sink = EventSink(_svc().project_dir)
        return sink.read_global(
            level=level, event_type=event_type, request_id=request_id, limit=limit,
        )

    return router
