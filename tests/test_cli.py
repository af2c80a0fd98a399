import json

import httpx
import pytest
from typer.testing import CliRunner
from unittest.mock import patch, MagicMock

import main
from main import app
from utils.http_client import BookshelfAPIError, BookshelfClient
from utils.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")


@pytest.fixture
def api(monkeypatch):
    """Replace the HTTP client used by the CLI with a mock."""
    mock = MagicMock(spec=BookshelfClient)
    mock.__enter__.return_value = mock
    mock.__exit__.return_value = False
    monkeypatch.setattr(main, "BookshelfClient", MagicMock(return_value=mock))
    return mock


def test_list_no_books(api):
    api.list_books.return_value = []
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books on the shelf." in result.stdout


def test_list_books_plain(api):
    api.list_books.return_value = [
        {"id": "abc", "name": "Alpha", "publisher": "Acme"},
        {"id": "def", "name": "Beta", "publisher": None},
    ]
    result = runner.invoke(app, ["list", "--name", "a", "--reading", "1"])
    assert result.exit_code == 0
    assert "abc - Alpha (Acme)" in result.stdout
    assert "def - Beta" in result.stdout
    api.list_books.assert_called_once_with(name="a", reading="1", finished=None)


def test_list_books_json(api):
    books = [{"id": "abc", "name": "Alpha", "publisher": "Acme"}]
    api.list_books.return_value = books
    result = runner.invoke(app, ["--output", "json", "list"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == books


def test_add_book(api):
    api.add_book.return_value = "abc"
    result = runner.invoke(app, ["add", "Alpha", "--page-count", "10", "--read-page", "10", "--reading"])
    assert result.exit_code == 0
    assert "Book added: abc" in result.stdout
    api.add_book.assert_called_once_with({
        "name": "Alpha",
        "year": None,
        "author": None,
        "summary": None,
        "publisher": None,
        "pageCount": 10,
        "readPage": 10,
        "reading": True,
    })


def test_add_book_rejected(api):
    api.add_book.side_effect = BookshelfAPIError("Failed to add book. Please provide the book name", 400)
    result = runner.invoke(app, ["add"])
    assert result.exit_code == 1
    assert "Error: Failed to add book. Please provide the book name" in result.stdout


def test_show_book(api):
    api.get_book.return_value = {"id": "abc", "name": "Alpha", "finished": True}
    result = runner.invoke(app, ["show", "abc"])
    assert result.exit_code == 0
    assert "ID: abc" in result.stdout
    assert "Name: Alpha" in result.stdout
    assert "Finished: True" in result.stdout
    api.get_book.assert_called_once_with("abc")


def test_show_book_not_found(api):
    api.get_book.side_effect = BookshelfAPIError("Book not found", 404)
    result = runner.invoke(app, ["show", "nope"])
    assert result.exit_code == 1
    assert "Error: Book not found" in result.stdout


def test_update_book(api):
    api.update_book.return_value = "Book updated successfully"
    result = runner.invoke(app, ["update", "abc", "Alpha 2", "--author", "Someone"])
    assert result.exit_code == 0
    assert "Book updated successfully" in result.stdout
    book_id, fields = api.update_book.call_args[0]
    assert book_id == "abc"
    assert fields["name"] == "Alpha 2"
    assert fields["author"] == "Someone"
    assert fields["reading"] is None


def test_remove_book(api):
    api.delete_book.return_value = "Book deleted successfully"
    result = runner.invoke(app, ["remove", "abc"])
    assert result.exit_code == 0
    assert "Book deleted successfully" in result.stdout
    api.delete_book.assert_called_once_with("abc")


def test_api_unreachable(api):
    api.list_books.side_effect = httpx.ConnectError("connection refused")
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "Could not reach the API" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    mock_subprocess_run.return_value = MagicMock(returncode=0)
    result = runner.invoke(app, ["serve", "--port", "9001"])
    assert result.exit_code == 0
    assert "Starting Bookshelf API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "--host" in args
    assert args[args.index("--port") + 1] == "9001"
