import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from bookstore import BookStore, BookStoreError
from config import Settings, configure_logging, settings as default_settings

logger = logging.getLogger(__name__)


# --- Models ---
class BookPayload(BaseModel):
    """Body of create and update requests.

    Every field is optional here; the store decides what is required so that a
    missing name is reported with the same envelope as other validation failures.
    """
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    year: int | None = None
    author: str | None = None
    summary: str | None = None
    publisher: str | None = None
    pageCount: int | None = None
    readPage: int | None = None
    reading: bool | None = None


class BookModel(BookPayload):
    id: str
    name: str
    finished: bool
    insertedAt: str
    updatedAt: str


class BookSummaryModel(BaseModel):
    id: str
    name: str
    publisher: str | None = None


# --- Envelope ---
def envelope(status: str, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None,
             status_code: int = 200) -> JSONResponse:
    """Build the ``{status, message, data}`` body, leaving out keys that have no value."""
    body: Dict[str, Any] = {"status": status}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


# --- Dependencies ---
def get_store(request: Request) -> BookStore:
    """Dependency returning the store owned by the running app."""
    return request.app.state.store


# --- Exception handlers ---
async def _store_error_handler(request: Request, exc: BookStoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return envelope(exc.status, exc.message, status_code=exc.status_code)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
    fields = [f for f in fields if f]
    message = "Invalid request payload"
    if fields:
        message = f"{message}: {', '.join(fields)}"
    logger.info("%s %s rejected: %s", request.method, request.url.path, message)
    return envelope("fail", message, status_code=400)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return envelope("error", "Internal server error", status_code=500)


# --- Routes ---
router = APIRouter()


@router.get("/health")
def health(store: BookStore = Depends(get_store)):
    """Lightweight health endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_books": len(store),
    }


@router.post("/books", status_code=201)
def add_book(payload: BookPayload, store: BookStore = Depends(get_store)):
    """Add a new book to the shelf."""
    book_id = store.create(payload.model_dump())
    return envelope("success", "Book added successfully", {"bookId": book_id}, status_code=201)


@router.get("/books")
def get_books(
    name: Optional[str] = Query(None, description="Case-insensitive part of the book name"),
    reading: Optional[str] = Query(None, description="1 for books being read, 0 otherwise"),
    finished: Optional[str] = Query(None, description="1 for finished books, 0 otherwise"),
    store: BookStore = Depends(get_store),
):
    """List book summaries, optionally filtered."""
    books = store.list(name=name, reading=reading, finished=finished)
    return envelope("success", data={"books": [BookSummaryModel(**b.to_dict()).model_dump() for b in books]})


@router.get("/books/{bookId}")
def get_book(bookId: str, store: BookStore = Depends(get_store)):
    """Get a single book by id."""
    book = store.get(bookId)
    return envelope("success", data={"book": BookModel(**book.to_dict()).model_dump()})


@router.put("/books/{bookId}")
def update_book(bookId: str, payload: BookPayload, store: BookStore = Depends(get_store)):
    """Replace the editable fields of a book."""
    store.update(bookId, payload.model_dump())
    return envelope("success", "Book updated successfully")


@router.delete("/books/{bookId}")
def delete_book(bookId: str, store: BookStore = Depends(get_store)):
    """Remove a book from the shelf."""
    store.delete(bookId)
    return envelope("success", "Book deleted successfully")


def create_app(store: Optional[BookStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application around ``store`` (a fresh one by default)."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)
    app.state.store = store if store is not None else BookStore(
        legacy_list_filters=settings.legacy_list_filters,
        recompute_finished_on_update=settings.recompute_finished_on_update,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookStoreError, _store_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    app.include_router(router)

    logger.info("%s %s ready", settings.app_name, settings.app_version)
    return app


app = create_app()
