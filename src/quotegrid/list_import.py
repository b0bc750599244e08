"""Product list import from spreadsheet files.

Layout expected in both formats (first worksheet for ``.xlsx``)::

    A: Código Interno | B: Descrição | C: Código de Barras

The first row is a header and is skipped.  Rows missing either the
internal code or the description are dropped.  Values are read as text;
integral numbers lose their ``.0`` so barcodes survive Excel's numeric
cells.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Iterable

import polars as pl

from quotegrid.logging.events import (
    IMPORT_NO_PRODUCTS,
    IMPORT_READ_FAILED,
    IMPORT_UNSUPPORTED_FORMAT,
    EventType,
    emit_error,
    emit_info,
    emit_warning,
)
from quotegrid.models import LineItem

SUPPORTED_SUFFIXES = (".xlsx", ".csv")


class ListImportError(ValueError):
    """Raised when a product list file cannot be read.

    Attributes:
        code: Machine-readable error code (see ``quotegrid.logging.events``).
    """

    def __init__(self, message: str, code: str = IMPORT_READ_FAILED) -> None:
        self.code = code
        super().__init__(message)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def rows_to_items(rows: Iterable[tuple[Any, ...]], max_rows: int | None = None) -> list[LineItem]:
    """Turn raw (A, B, C) rows -- header row excluded -- into line items."""
    items: list[LineItem] = []
    for row in rows:
        padded = tuple(row) + (None, None, None)
        code, desc, barcode = (_cell_text(v) for v in padded[:3])
        if not code or not desc:
            continue
        items.append(LineItem(internal_code=code, product_description=desc, barcode=barcode))
        if max_rows is not None and len(items) >= max_rows:
            break
    return items


def _read_xlsx_rows(source: Path | io.BytesIO) -> list[tuple[Any, ...]]:
    from openpyxl import load_workbook

    try:
        wb = load_workbook(source, read_only=True, data_only=True)
    except Exception as exc:
        raise ListImportError(f"Could not open workbook: {exc}") from exc
    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        return list(ws.iter_rows(min_row=2, max_col=3, values_only=True))
    finally:
        wb.close()


def _read_csv_rows(source: Path | io.BytesIO) -> list[tuple[Any, ...]]:
    try:
        df = pl.read_csv(
            source,
            has_header=False,
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.NoDataError:
        return []
    except Exception as exc:
        raise ListImportError(f"Could not read CSV: {exc}") from exc
    if df.height == 0:
        return []
    return df.slice(1).select(df.columns[:3]).rows()


def _read_rows(source: Path | io.BytesIO, suffix: str) -> list[tuple[Any, ...]]:
    if suffix == ".xlsx":
        return _read_xlsx_rows(source)
    if suffix == ".csv":
        return _read_csv_rows(source)
    raise ListImportError(
        f"Unsupported file type {suffix!r}; expected one of {', '.join(SUPPORTED_SUFFIXES)}",
        code=IMPORT_UNSUPPORTED_FORMAT,
    )


def _import(source: Path | io.BytesIO, filename: str, max_rows: int | None) -> list[LineItem]:
    suffix = Path(filename).suffix.lower()
    try:
        items = rows_to_items(_read_rows(source, suffix), max_rows=max_rows)
    except ListImportError as exc:
        emit = emit_error if exc.code == IMPORT_READ_FAILED else emit_warning
        emit(
            EventType.list_import_failed,
            str(exc),
            {"filename": filename},
            error_code=exc.code,
        )
        raise
    if not items:
        emit_warning(
            EventType.list_import_failed,
            f"No products found in {filename}",
            {"filename": filename},
            error_code=IMPORT_NO_PRODUCTS,
        )
        raise ListImportError(f"No products found in {filename}", code=IMPORT_NO_PRODUCTS)
    emit_info(
        EventType.list_imported,
        f"{len(items)} products read from {filename}",
        {"filename": filename, "items": len(items)},
    )
    return items


def read_product_list(path: Path, max_rows: int | None = None) -> list[LineItem]:
    """Read a product list from an ``.xlsx`` or ``.csv`` file on disk.

    Raises:
        ListImportError: Unsupported extension, unreadable file, or no products.
    """
    if not path.exists():
        raise ListImportError(f"File not found: {path}")
    return _import(path, path.name, max_rows)


def read_product_list_bytes(data: bytes, filename: str, max_rows: int | None = None) -> list[LineItem]:
    """Read a product list from uploaded bytes; *filename* selects the format."""
    if not data:
        raise ListImportError("Uploaded file is empty")
    return _import(io.BytesIO(data), filename, max_rows)
