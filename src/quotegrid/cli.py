"""Command-line interface for quotegrid."""

from __future__ import annotations

import json
from pathlib import Path

import click

from quotegrid import __version__


@click.group()
@click.version_option(version=__version__, prog_name="quotegrid")
def main() -> None:
    """quotegrid -- collect supplier quotations and compare them in a grid.

    Lifecycle: Import list -> Generate links -> Collect prices -> Close
    """


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _service(directory: str):
    from quotegrid.logging.events import set_project_dir
    from quotegrid.ui.service import QuoteService

    project_dir = Path(directory)
    try:
        svc = QuoteService(project_dir=project_dir)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))
    set_project_dir(svc.project_dir)
    return svc


# ---------------------------------------------------------------------------
# New
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path())
def new(directory: str) -> None:
    """Create an empty project at DIRECTORY."""
    from quotegrid.project import scaffold_project

    try:
        result = scaffold_project(Path(directory))
    except FileExistsError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created project at {result}")


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


@main.command("import-list")
@click.argument("list_file", type=click.Path(exists=True))
@click.argument("directory", type=click.Path(exists=True))
@click.option("--name", required=True, help="Name of the saved list.")
def import_list(list_file: str, directory: str, name: str) -> None:
    """Import LIST_FILE (.xlsx or .csv) as a saved list of DIRECTORY."""
    svc = _service(directory)
    try:
        preview = svc.import_list_file(Path(list_file))
        saved = svc.save_list(name)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"Imported {preview['count']} products -> list {saved['name']!r} ({saved['id']})")
    for p in preview["preview"]:
        click.echo(f"  {p['internal_code']:12s} {p['product_description']:40s} {p['barcode']}")
    if preview["count"] > len(preview["preview"]):
        click.echo(f"  ... and {preview['count'] - len(preview['preview'])} more")


@main.command("lists")
@click.argument("directory", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def lists_cmd(directory: str, as_json: bool) -> None:
    """Show saved lists of DIRECTORY."""
    svc = _service(directory)
    lists = svc.list_lists()
    if as_json:
        click.echo(json.dumps(lists, indent=2))
        return
    if not lists:
        click.echo("No saved lists.")
        return
    for item in lists:
        click.echo(f"  {item['id']}  {item['name']:30s} {item['items']} products  {item['created_at']}")


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.argument("list_id")
@click.option("--supplier", "supplier_name", required=True, help="Supplier company name.")
def quote(directory: str, list_id: str, supplier_name: str) -> None:
    """Generate a quotation link of LIST_ID for one supplier."""
    svc = _service(directory)
    try:
        result = svc.create_quotation(supplier_name, list_id)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(result["link"])


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.argument("request_id")
def close(directory: str, request_id: str) -> None:
    """Close quotation REQUEST_ID."""
    svc = _service(directory)
    try:
        result = svc.close_quotation(request_id)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"Closed {result['title']}")


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def finished(directory: str, as_json: bool) -> None:
    """Show closed quotations of DIRECTORY."""
    svc = _service(directory)
    quotations = svc.finished_quotations()
    if as_json:
        click.echo(json.dumps(quotations, indent=2))
        return
    if not quotations:
        click.echo("No finished quotations.")
        return
    for q in quotations:
        click.echo(f"  {q['title']:40s} {q['responses_count']} responses  {q['created_at']}")


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.argument("list_id")
@click.option("--csv", "as_csv", is_flag=True, help="Output as CSV.")
def grid(directory: str, list_id: str, as_csv: bool) -> None:
    """Print the comparison grid of LIST_ID."""
    svc = _service(directory)
    try:
        svc.load_list(list_id)
    except ValueError as e:
        raise click.ClickException(str(e))

    rows = svc.grid.used_range()
    if as_csv:
        import csv
        import sys

        writer = csv.writer(sys.stdout)
        writer.writerows(rows)
        return
    if not rows:
        click.echo("Grid is empty.")
        return
    widths = [max(len(r[c]) for r in rows) for c in range(len(rows[0]))]
    for row in rows:
        click.echo("  ".join(text.ljust(w) for text, w in zip(row, widths)).rstrip())


# ---------------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------------


@main.command()
@click.argument("directory", type=click.Path(exists=True))
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--port", type=int, default=None, help="Port (auto-select if omitted).")
@click.option("--no-open", is_flag=True, help="Don't auto-open browser.")
def ui(directory: str, host: str, port: int | None, no_open: bool) -> None:
    """Launch the local browser UI for DIRECTORY."""
    import socket
    import webbrowser

    import uvicorn

    from quotegrid.ui.server import create_app

    try:
        app = create_app(Path(directory))
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    if port is None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            port = s.getsockname()[1]

    url = f"http://{host}:{port}"
    click.echo(f"Serving UI at {url}")
    click.echo("Press Ctrl+C to stop")

    if not no_open:
        import threading
        threading.Timer(0.8, lambda: webbrowser.open(url)).start()

    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    except KeyboardInterrupt:
        click.echo("\nStopped.")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _format_event(evt: dict) -> str:
    ts = evt.get("ts", "")
    lvl = evt.get("level", "").upper()
    etype = evt.get("event_type", "")
    msg = evt.get("message", "")
    err = evt.get("error_code")
    line = f"[{ts}] {lvl:7s} {etype}: {msg}"
    if err:
        line += f"  ({err})"
    return line


@main.command("events")
@click.argument("directory", type=click.Path(exists=True))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--request-id", default=None, help="Filter by quotation request ID.")
@click.option("--list-id", default=None, help="Filter by list ID.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def events_cmd(
    directory: str,
    level: str | None,
    event_type: str | None,
    request_id: str | None,
    list_id: str | None,
    limit: int,
) -> None:
    """Show structured event log for DIRECTORY."""
    from quotegrid.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_global(
        level=level,
        event_type=event_type,
        request_id=request_id,
        list_id=list_id,
        limit=limit,
    )

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        click.echo(_format_event(evt))


@main.command("request-log")
@click.argument("directory", type=click.Path(exists=True))
@click.argument("request_id")
def request_log_cmd(directory: str, request_id: str) -> None:
    """Show event log for a specific quotation request."""
    from quotegrid.logging.sink import EventSink

    events = EventSink(Path(directory)).read_request_log(request_id)
    if not events:
        click.echo(f"No events found for request {request_id}.")
        return
    for evt in events:
        click.echo(_format_event(evt))


if __name__ == "__main__":
    main()
