"""In-memory reference implementation of the remote catalog service.

Handy for local development (``uvicorn server:app --port 8080``) and for
exercising the client end to end in tests. It is not part of the client.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, field_validator

log = structlog.get_logger()


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class CatalogState:
    """Thread-safe id -> record map with server-assigned integer ids."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._books: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    def list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(book) for book in self._books.values()]

    def get(self, book_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            book = self._books.get(book_id)
            return dict(book) if book else None

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            book_id = self._next_id
            self._next_id += 1
            stored = {"id": book_id, **record}
            self._books[book_id] = stored
            return dict(stored)

    def replace(self, book_id: int, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            if book_id not in self._books:
                return None
            stored = {"id": book_id, **record}
            self._books[book_id] = stored
            return dict(stored)

    def delete(self, book_id: int) -> bool:
        with self._lock:
            return self._books.pop(book_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._books.clear()
            self._next_id = 1


def get_state() -> CatalogState:
    if not hasattr(get_state, "_instance"):
        get_state._instance = CatalogState()
    return get_state._instance  # type: ignore[attr-defined]


# -----------------------------------------------------------------------------
# Pydantic models
# -----------------------------------------------------------------------------


class BookPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: Optional[str] = ""
    published_year: Optional[int] = Field(default=None, ge=0, alias="publishedYear")
    genre: Optional[str] = ""
    quantity: int = Field(default=1, ge=0)

    @field_validator("isbn", "genre")
    @classmethod
    def _blank_as_empty(cls, value: Optional[str]) -> str:
        return value or ""

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# -----------------------------------------------------------------------------
# Application setup
# -----------------------------------------------------------------------------

app = FastAPI(title="Book Catalog API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@app.get("/api/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/books")
def list_books(state: CatalogState = Depends(get_state)) -> List[Dict[str, Any]]:
    return state.list()


@app.post("/api/books", status_code=status.HTTP_201_CREATED)
def create_book(payload: BookPayload, state: CatalogState = Depends(get_state)) -> Dict[str, Any]:
    saved = state.insert(payload.to_record())
    log.info("catalog_book_created", book_id=saved["id"])
    return saved


@app.put("/api/books/{book_id}")
def replace_book(
    book_id: int,
    payload: BookPayload,
    state: CatalogState = Depends(get_state),
) -> Dict[str, Any]:
    saved = state.replace(book_id, payload.to_record())
    if saved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    log.info("catalog_book_replaced", book_id=book_id)
    return saved


@app.delete("/api/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(book_id: int, state: CatalogState = Depends(get_state)) -> Response:
    if not state.delete(book_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    log.info("catalog_book_deleted", book_id=book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
