import logging
from typing import Any, Dict, List, Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


class BookshelfAPIError(Exception):
    """Raised when the API answers with a ``fail`` or ``error`` envelope."""

    def __init__(self, message: str, status_code: int, status: str = "fail") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = status


class BookshelfClient:
    """Small synchronous client for the bookshelf HTTP API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None,
                 http_client: Optional[httpx.Client] = None) -> None:
        # An existing client (e.g. fastapi.testclient.TestClient) brings its own base URL.
        if http_client is not None:
            self._client = http_client
            self.base_url = str(http_client.base_url).rstrip("/")
            return
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or settings.client_timeout),
            transport=transport,
        )

    def __enter__(self) -> "BookshelfClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        logger.debug("%s %s%s", method, self.base_url, path)
        resp = self._client.request(method, path, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or body.get("status") != "success":
            raise BookshelfAPIError(
                body.get("message") or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                status=body.get("status", "error"),
            )
        return body

    def add_book(self, fields: Dict[str, Any]) -> str:
        body = self._request("POST", "/books", json=fields)
        return body["data"]["bookId"]

    def list_books(self, name: Optional[str] = None, reading: Optional[str] = None,
                   finished: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {k: v for k, v in {"name": name, "reading": reading, "finished": finished}.items() if v is not None}
        body = self._request("GET", "/books", params=params)
        return body["data"]["books"]

    def get_book(self, book_id: str) -> Dict[str, Any]:
        body = self._request("GET", f"/books/{book_id}")
        return body["data"]["book"]

    def update_book(self, book_id: str, fields: Dict[str, Any]) -> str:
        body = self._request("PUT", f"/books/{book_id}", json=fields)
        return body.get("message", "")

    def delete_book(self, book_id: str) -> str:
        body = self._request("DELETE", f"/books/{book_id}")
        return body.get("message", "")
