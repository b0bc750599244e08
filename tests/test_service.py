"""Tests for the shared UI service layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from quotegrid.project import scaffold_project
from quotegrid.ui.service import QuoteService


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project_dir = scaffold_project(tmp_path / "proj")
    (project_dir / "quotegrid.yaml").write_text(
        'base_url: https://cotacoes.example.com/\ncurrency_prefix: "R$ "\n',
        encoding="utf-8",
    )
    return project_dir


@pytest.fixture
def svc(project_dir: Path) -> QuoteService:
    return QuoteService(project_dir=project_dir)


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "lista.csv"
    path.write_text(
        "Código Interno,Descrição,Código de Barras\n"
        "001,Arroz,789001\n"
        "002,Feijão,789002\n",
        encoding="utf-8",
    )
    return path


def _loaded(svc: QuoteService, csv_file: Path) -> dict:
    svc.import_list_file(csv_file)
    saved = svc.save_list("Mercearia")
    return svc.load_list(saved["id"])


class TestConstruction:
    def test_requires_project_dir(self) -> None:
        with pytest.raises(ValueError):
            QuoteService(project_dir=None)

    def test_requires_data_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            QuoteService(project_dir=tmp_path)

    def test_project_info(self, svc: QuoteService) -> None:
        info = svc.get_project_info()
        assert info["loaded_list_id"] is None
        assert info["lists"] == 0
        assert info["open_requests"] == 0


class TestListFlow:
    def test_import_then_save(self, svc: QuoteService, csv_file: Path) -> None:
        preview = svc.import_list_file(csv_file)
        assert preview["count"] == 2
        assert preview["preview"][0] == {
            "internal_code": "001",
            "product_description": "Arroz",
            "barcode": "789001",
        }
        assert svc.get_project_info()["pending_items"] == 2

        saved = svc.save_list("Mercearia")
        assert saved["items"] == 2
        assert svc.get_project_info()["pending_items"] == 0
        assert [item["name"] for item in svc.list_lists()] == ["Mercearia"]

    def test_save_without_import_fails(self, svc: QuoteService) -> None:
        with pytest.raises(ValueError):
            svc.save_list("Nada")

    def test_import_respects_max_rows(self, project_dir: Path, csv_file: Path) -> None:
        (project_dir / "quotegrid.yaml").write_text("max_import_rows: 1\n", encoding="utf-8")
        svc = QuoteService(project_dir=project_dir)
        assert svc.import_list_file(csv_file)["count"] == 1

    def test_load_projects_grid(self, svc: QuoteService, csv_file: Path) -> None:
        loaded = _loaded(svc, csv_file)
        assert loaded["name"] == "Mercearia"
        assert loaded["supplier_columns"] == {}
        assert svc.loaded_list_id == loaded["id"]
        assert svc.grid.store.text("A1") == "Código Interno"
        assert svc.grid.store.text("B3") == "Feijão"

    def test_delete_loaded_list(self, svc: QuoteService, csv_file: Path) -> None:
        loaded = _loaded(svc, csv_file)
        svc.delete_list(loaded["id"])
        assert svc.loaded_list_id is None
        assert svc.list_lists() == []


class TestQuotationFlow:
    def test_link_uses_base_url(self, svc: QuoteService, csv_file: Path) -> None:
        _loaded(svc, csv_file)
        result = svc.create_quotation("ACME & Filhos")
        assert result["title"] == "Cotação para ACME & Filhos"
        assert result["status"] == "pending"
        assert result["link"] == (
            f"https://cotacoes.example.com/cotacao/{result['id']}?supplier=ACME%20%26%20Filhos"
        )

    def test_create_quotation_needs_list(self, svc: QuoteService) -> None:
        with pytest.raises(ValueError, match="Load a list"):
            svc.create_quotation("ACME")

    def test_responses_reproject_loaded_list(self, svc: QuoteService, csv_file: Path) -> None:
        loaded = _loaded(svc, csv_file)
        req = svc.create_quotation("ACME")
        form = svc.get_quotation_form(req["id"])
        assert [p["internal_code"] for p in form["products"]] == ["001", "002"]

        p1 = form["products"][0]["id"]
        result = svc.submit_responses(req["id"], "ACME", [{"product_id": p1, "price": 9.5}])
        assert result == {"ok": True, "accepted": 1}
        assert svc.grid.store.text("D1") == "Fornecedor 1"
        assert svc.grid.store.text("D2") == "R$ 9.50"
        assert svc.grid.store.text("D3") == ""

        reloaded = svc.load_list(loaded["id"])
        assert list(reloaded["supplier_columns"].values()) == ["D"]

    def test_close_and_finished(self, svc: QuoteService, csv_file: Path) -> None:
        _loaded(svc, csv_file)
        req = svc.create_quotation("ACME")
        other = svc.create_quotation("Beta")
        closed = svc.close_quotation(req["id"])
        assert closed["status"] == "closed"

        finished = svc.finished_quotations()
        assert [q["id"] for q in finished] == [req["id"]]
        assert finished[0]["responses_count"] == 0
        assert [q["id"] for q in svc.list_quotations("pending")] == [other["id"]]

    def test_unknown_status(self, svc: QuoteService) -> None:
        with pytest.raises(ValueError):
            svc.list_quotations("archived")


class TestGridEvents:
    def test_dispatch_payloads(self, svc: QuoteService) -> None:
        state = svc.dispatch_grid_event({"type": "double_click", "addr": "C4"})
        assert state == {"selected": "C4", "editing": "C4", "draft": ""}
        svc.dispatch_grid_event({"type": "draft", "text": "=A1*2"})
        state = svc.dispatch_grid_event({"type": "key", "key": "Enter"})
        assert state["editing"] is None

        grid = svc.get_grid(r0=3, c0=2, rows=1, cols=1)
        assert grid["cells"] == [
            {"addr": "C4", "row": 3, "col": 2, "text": "=A1*2", "is_formula": True},
        ]

    def test_invalid_payload(self, svc: QuoteService) -> None:
        with pytest.raises(ValueError):
            svc.dispatch_grid_event({"type": "wheel"})
        with pytest.raises(ValueError):
            svc.dispatch_grid_event({"type": "click"})


class TestServiceEvents:
    def test_lifecycle_is_logged(self, svc: QuoteService, csv_file: Path, project_dir: Path) -> None:
        from quotegrid.logging.events import set_project_dir

        set_project_dir(project_dir)
        _loaded(svc, csv_file)
        req = svc.create_quotation("ACME")
        svc.close_quotation(req["id"])

        lines = (project_dir / "logs" / "events.ndjson").read_text().strip().splitlines()
        types = [json.loads(line)["event_type"] for line in lines]
        assert types == [
            "list_imported",
            "list_saved",
            "grid_projected",
            "list_loaded",
            "quotation_created",
            "quotation_closed",
        ]
        request_log = project_dir / "logs" / "requests" / f"{req['id']}.ndjson"
        assert len(request_log.read_text().strip().splitlines()) == 2
