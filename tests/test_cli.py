"""Tests for the quotegrid command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from quotegrid.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project_dir(tmp_path: Path, runner: CliRunner) -> Path:
    target = tmp_path / "proj"
    result = runner.invoke(main, ["new", str(target)])
    assert result.exit_code == 0, result.output
    return target


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


def _import(runner: CliRunner, csv_file: Path, project_dir: Path) -> str:
    result = runner.invoke(main, ["import-list", str(csv_file), str(project_dir), "--name", "Mercearia"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(main, ["lists", str(project_dir), "--json"])
    return json.loads(result.output)[0]["id"]


class TestNew:
    def test_creates_project(self, project_dir: Path) -> None:
        assert (project_dir / "quotes.yaml").exists()
        assert (project_dir / "quotegrid.yaml").exists()

    def test_refuses_existing(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(main, ["new", str(project_dir)])
        assert result.exit_code != 0
        assert "already exists" in result.output


class TestLists:
    def test_import_list(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        result = runner.invoke(main, ["import-list", str(csv_file), str(project_dir), "--name", "Mercearia"])
        assert result.exit_code == 0, result.output
        assert "Imported 2 products" in result.output
        assert "Arroz" in result.output

    def test_import_bad_file(self, runner: CliRunner, project_dir: Path, tmp_path: Path) -> None:
        bad = tmp_path / "lista.txt"
        bad.write_text("x")
        result = runner.invoke(main, ["import-list", str(bad), str(project_dir), "--name", "X"])
        assert result.exit_code != 0
        assert "Unsupported" in result.output

    def test_lists_empty(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(main, ["lists", str(project_dir)])
        assert result.exit_code == 0
        assert "No saved lists" in result.output

    def test_lists_shows_saved(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        list_id = _import(runner, csv_file, project_dir)
        result = runner.invoke(main, ["lists", str(project_dir)])
        assert list_id in result.output
        assert "2 products" in result.output

    def test_not_a_project(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["lists", str(tmp_path)])
        assert result.exit_code != 0
        assert "quotes.yaml" in result.output


class TestQuotations:
    def test_quote_close_finished(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        list_id = _import(runner, csv_file, project_dir)

        result = runner.invoke(main, ["quote", str(project_dir), list_id, "--supplier", "ACME"])
        assert result.exit_code == 0, result.output
        link = result.output.strip()
        assert link.startswith("http://127.0.0.1:8000/cotacao/")
        request_id = link.split("/cotacao/")[1].split("?")[0]

        result = runner.invoke(main, ["finished", str(project_dir)])
        assert "No finished quotations" in result.output

        result = runner.invoke(main, ["close", str(project_dir), request_id])
        assert result.exit_code == 0, result.output
        assert "Cotação para ACME" in result.output

        result = runner.invoke(main, ["finished", str(project_dir), "--json"])
        assert [q["id"] for q in json.loads(result.output)] == [request_id]

    def test_quote_unknown_list(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(main, ["quote", str(project_dir), "nope", "--supplier", "ACME"])
        assert result.exit_code != 0
        assert "not found" in result.output


class TestGrid:
    def test_grid_prints_projection(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        list_id = _import(runner, csv_file, project_dir)
        result = runner.invoke(main, ["grid", str(project_dir), list_id])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].startswith("Código Interno")
        assert "Feijão" in lines[2]

    def test_grid_csv(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        list_id = _import(runner, csv_file, project_dir)
        result = runner.invoke(main, ["grid", str(project_dir), list_id, "--csv"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[1] == "001,Arroz,789001"


class TestEvents:
    def test_events_command_no_events(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(main, ["events", str(project_dir)])
        assert result.exit_code == 0
        assert "No events found" in result.output

    def test_events_after_import(self, runner: CliRunner, project_dir: Path, csv_file: Path) -> None:
        _import(runner, csv_file, project_dir)
        result = runner.invoke(main, ["events", str(project_dir), "--type", "list_saved"])
        assert result.exit_code == 0
        assert "list_saved" in result.output
        assert "Mercearia" in result.output

    def test_events_level_filter(self, runner: CliRunner, project_dir: Path, tmp_path: Path) -> None:
        bad = tmp_path / "lista.ods"
        bad.write_text("x")
        runner.invoke(main, ["import-list", str(bad), str(project_dir), "--name", "X"])
        result = runner.invoke(main, ["events", str(project_dir), "--level", "warning"])
        assert "import_unsupported_format" in result.output
        assert "list_imported" not in result.output

    def test_request_log_no_events(self, runner: CliRunner, project_dir: Path) -> None:
        result = runner.invoke(main, ["request-log", str(project_dir), "nonexistent"])
        assert result.exit_code == 0
        assert "No events found" in result.output


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        from quotegrid import __version__

        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
