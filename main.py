import logging
import subprocess
import sys
from typing import Any, Dict, Optional

import httpx
import typer

from config import configure_logging, settings
from utils.http_client import BookshelfAPIError, BookshelfClient
from utils.ui_helpers import print_book_result, print_list_result, set_output_mode

logger = logging.getLogger(__name__)

# --- Typer CLI application ---
app = typer.Typer(help="Bookshelf CLI")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests"),
):
    """Global CLI options (output mode, logging)."""
    if output:
        set_output_mode(output)
    configure_logging("DEBUG" if verbose else "WARNING")


def _fields(name: Optional[str], year: Optional[int], author: Optional[str], summary: Optional[str],
            publisher: Optional[str], page_count: Optional[int], read_page: Optional[int],
            reading: Optional[bool]) -> Dict[str, Any]:
    return {
        "name": name,
        "year": year,
        "author": author,
        "summary": summary,
        "publisher": publisher,
        "pageCount": page_count,
        "readPage": read_page,
        "reading": reading,
    }


def _run(action):
    """Call ``action`` with a client, turning API and transport errors into exit code 1."""
    try:
        with BookshelfClient() as client:
            return action(client)
    except BookshelfAPIError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(code=1)
    except httpx.RequestError as e:
        logger.debug("Request failed: %s", e)
        print(f"Could not reach the API at {settings.api_url}")
        raise typer.Exit(code=1)


@app.command("list")
def cli_list(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Filter by part of the name"),
    reading: Optional[str] = typer.Option(None, "--reading", help="1 = being read, 0 = not"),
    finished: Optional[str] = typer.Option(None, "--finished", help="1 = finished, 0 = not"),
):
    """List books on the shelf."""
    books = _run(lambda c: c.list_books(name=name, reading=reading, finished=finished))
    print_list_result(books)


@app.command("add")
def cli_add(
    name: Optional[str] = typer.Argument(None, help="Book name"),
    year: Optional[int] = typer.Option(None, "--year"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    summary: Optional[str] = typer.Option(None, "--summary"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p"),
    page_count: Optional[int] = typer.Option(None, "--page-count"),
    read_page: Optional[int] = typer.Option(None, "--read-page"),
    reading: Optional[bool] = typer.Option(None, "--reading/--not-reading"),
):
    """Add a book."""
    fields = _fields(name, year, author, summary, publisher, page_count, read_page, reading)
    book_id = _run(lambda c: c.add_book(fields))
    print(f"Book added: {book_id}")


@app.command("show")
def cli_show(book_id: str):
    """Show every field of a book."""
    book = _run(lambda c: c.get_book(book_id))
    print_book_result(book)


@app.command("update")
def cli_update(
    book_id: str,
    name: Optional[str] = typer.Argument(None, help="Book name"),
    year: Optional[int] = typer.Option(None, "--year"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    summary: Optional[str] = typer.Option(None, "--summary"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p"),
    page_count: Optional[int] = typer.Option(None, "--page-count"),
    read_page: Optional[int] = typer.Option(None, "--read-page"),
    reading: Optional[bool] = typer.Option(None, "--reading/--not-reading"),
):
    """Replace every editable field of a book (fields left out are cleared)."""
    fields = _fields(name, year, author, summary, publisher, page_count, read_page, reading)
    message = _run(lambda c: c.update_book(book_id, fields))
    print(message)


@app.command("remove")
def cli_remove(book_id: str):
    """Remove a book by id."""
    message = _run(lambda c: c.delete_book(book_id))
    print(message)


@app.command("serve")
def cli_serve(
    host: str = typer.Option(settings.api_host, "--host"),
    port: int = typer.Option(settings.api_port, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the API with uvicorn."""
    print(f"Starting Bookshelf API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
        "--log-level", settings.log_level.lower(),
    ]
    if reload:
        args.append("--reload")
    result = subprocess.run(args)
    if result.returncode:
        raise typer.Exit(code=result.returncode)


if __name__ == "__main__":
    app()
