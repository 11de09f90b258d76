from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

import requests
import structlog

from errors import DeleteError, FetchError, RemoteError, SaveError, TransportError
from models import Book

log = structlog.get_logger()

DEFAULT_TIMEOUT = 15.0


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class BookRepository:
    """Thin client for the remote catalog's book collection resource.

    Every call is exactly one round trip. Failures are raised on first
    occurrence as typed errors; there are no retries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[Any] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _item_url(self, book_id: Any) -> str:
        return f"{self.base_url}/{book_id}"

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        log.debug("catalog_request", method=method, url=url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as error:
            log.warning("catalog_unreachable", method=method, url=url, error=str(error))
            raise TransportError(detail=str(error)) from error
        log.debug("catalog_response", method=method, url=url, status=response.status_code)
        return response

    def _check(self, response: Any, error_cls: Type[RemoteError], *, method: str, url: str) -> None:
        if _is_success(response.status_code):
            return
        log.warning("catalog_rejected", method=method, url=url, status=response.status_code)
        raise error_cls(status_code=response.status_code, detail=_error_detail(response))

    def _decode_book(self, response: Any, error_cls: Type[RemoteError]) -> Book:
        body = _json_body(response, error_cls)
        if not isinstance(body, dict):
            raise error_cls(status_code=response.status_code, detail="expected a JSON object")
        return Book.from_json(body)

    # ------------------------------------------------------------------ #
    # Collection operations
    # ------------------------------------------------------------------ #
    def list(self) -> List[Book]:
        response = self._send("GET", self.base_url)
        self._check(response, FetchError, method="GET", url=self.base_url)
        body = _json_body(response, FetchError)
        if not isinstance(body, list):
            raise FetchError(status_code=response.status_code, detail="expected a JSON array")
        books = [Book.from_json(item) for item in body if isinstance(item, dict)]
        log.info("catalog_listed", count=len(books))
        return books

    def create(self, payload: Dict[str, Any]) -> Book:
        response = self._send("POST", self.base_url, json=payload)
        self._check(response, SaveError, method="POST", url=self.base_url)
        book = self._decode_book(response, SaveError)
        log.info("catalog_created", book_id=book.id)
        return book

    def replace(self, book_id: Any, payload: Dict[str, Any]) -> Book:
        url = self._item_url(book_id)
        response = self._send("PUT", url, json=payload)
        self._check(response, SaveError, method="PUT", url=url)
        book = self._decode_book(response, SaveError)
        log.info("catalog_replaced", book_id=book_id)
        return book

    def remove(self, book_id: Any) -> None:
        url = self._item_url(book_id)
        response = self._send("DELETE", url)
        self._check(response, DeleteError, method="DELETE", url=url)
        log.info("catalog_removed", book_id=book_id)


def _json_body(response: Any, error_cls: Type[RemoteError]) -> Any:
    try:
        return response.json()
    except ValueError as error:
        raise error_cls(status_code=response.status_code, detail=f"malformed JSON: {error}") from error


def _error_detail(response: Any) -> Optional[str]:
    text = getattr(response, "text", None)
    if not text:
        return None
    return str(text)[:200]
