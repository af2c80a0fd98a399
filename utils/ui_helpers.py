import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable that selects the CLI output mode.
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKSHELF_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def print_list_result(books: List[Dict[str, Any]]) -> None:
    """Print book summaries in the current output mode.
    - plain: 'id - name (publisher)' lines, or 'No books on the shelf.'
    - json: JSON array of id, name, publisher
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books on the shelf.")
        return

    if mode == "json":
        print(json.dumps(books, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Publisher", style="white")
        for b in books:
            table.add_row(b.get("id", ""), b.get("name", ""), b.get("publisher") or "-")
        _console.print(table)
    else:
        for b in books:
            publisher = b.get("publisher")
            suffix = f" ({publisher})" if publisher else ""
            print(f"{b.get('id', '')} - {b.get('name', '')}{suffix}")

def print_book_result(book: Dict[str, Any]) -> None:
    """Print one full book record in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book, ensure_ascii=False))
        return

    labels = [
        ("ID", "id"), ("Name", "name"), ("Year", "year"), ("Author", "author"),
        ("Publisher", "publisher"), ("Summary", "summary"), ("Pages", "pageCount"),
        ("Read", "readPage"), ("Reading", "reading"), ("Finished", "finished"),
        ("Inserted", "insertedAt"), ("Updated", "updatedAt"),
    ]
    if mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {book.get(key)}" for label, key in labels)
        _console.print(Panel.fit(content, title="📖 Book", border_style="blue"))
    else:
        for label, key in labels:
            print(f"{label}: {book.get(key)}")
