from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

import structlog

from api import BookRepository
from config import Settings, get_settings
from errors import InventoryError, ValidationError
from filters import DerivedView, Query, derive
from models import WIRE_KEYS, Book, BookDraft, EditMode, coerce_quantity, coerce_year

log = structlog.get_logger()


def validate_draft(draft: BookDraft) -> None:
    if not draft.is_complete():
        raise ValidationError()


def normalize_draft(draft: BookDraft) -> Dict[str, Any]:
    """Build the catalog payload from raw form text (trim, coerce numbers)."""
    return {
        WIRE_KEYS["title"]: draft.title.strip(),
        WIRE_KEYS["author"]: draft.author.strip(),
        WIRE_KEYS["isbn"]: draft.isbn.strip(),
        WIRE_KEYS["published_year"]: coerce_year(draft.published_year),
        WIRE_KEYS["genre"]: draft.genre.strip(),
        WIRE_KEYS["quantity"]: coerce_quantity(draft.quantity),
    }


class InventoryStore:
    """Authoritative in-memory copy of the remote book collection.

    The collection is only ever replaced wholesale by a fresh ``load``; every
    successful mutation is followed by a full reload instead of a local patch.
    Repository errors stop at this boundary and end up in ``last_error``.
    """

    def __init__(self, repository: BookRepository):
        self.repository = repository
        self._collection: Tuple[Book, ...] = ()
        self._is_loading = False
        self._last_error: Optional[str] = None
        self._load_lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # State
    # --------------------------------------------------------------------- #
    @property
    def collection(self) -> Tuple[Book, ...]:
        return self._collection

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def clear_error(self) -> None:
        self._last_error = None

    def view(self, query: Optional[Query] = None) -> DerivedView:
        return derive(self._collection, query)

    def get(self, book_id: Any) -> Optional[Book]:
        for book in self._collection:
            if book.id == book_id or str(book.id) == str(book_id):
                return book
        return None

    # --------------------------------------------------------------------- #
    # Loading
    # --------------------------------------------------------------------- #
    def load(self) -> bool:
        """Fetch the full collection. Ignored while another load is in flight."""
        if not self._load_lock.acquire(blocking=False):
            log.debug("inventory_load_ignored", reason="in_flight")
            return False
        try:
            return self._load_locked()
        finally:
            self._load_lock.release()

    def _reload(self) -> bool:
        # Queues behind any in-flight load so the result reflects the mutation.
        with self._load_lock:
            return self._load_locked()

    def _load_locked(self) -> bool:
        self._is_loading = True
        self._last_error = None
        try:
            books = self.repository.list()
            # Replaced while is_loading is still set.
            self._collection = tuple(books)
        except InventoryError as error:
            self._last_error = error.message
            log.warning("inventory_load_failed", error=error.message, detail=error.detail)
            return False
        finally:
            self._is_loading = False
        log.info("inventory_loaded", count=len(self._collection))
        return True

    # --------------------------------------------------------------------- #
    # Mutations
    # --------------------------------------------------------------------- #
    def save(self, draft: BookDraft, mode: EditMode) -> bool:
        """Create or fully replace a record, then reload.

        Raises ``ValidationError`` (without any network call) when title or
        author is blank. Remote failures are recorded in ``last_error`` and
        reported by returning ``False``.
        """
        self._last_error = None
        try:
            validate_draft(draft)
            if mode is EditMode.EDIT and draft.id is None:
                raise ValidationError("Cannot update a book without an id.")
        except ValidationError as error:
            self._last_error = error.message
            log.info("inventory_save_rejected", reason=error.message)
            raise

        payload = normalize_draft(draft)
        try:
            if mode is EditMode.EDIT:
                self.repository.replace(draft.id, payload)
            else:
                self.repository.create(payload)
        except InventoryError as error:
            self._last_error = error.message
            log.warning("inventory_save_failed", mode=mode.value, error=error.message, detail=error.detail)
            return False

        log.info("inventory_saved", mode=mode.value, book_id=draft.id)
        self._reload()
        return True

    def delete(self, book_id: Any) -> bool:
        """Remove a record (confirmation is the caller's job), then reload."""
        self._last_error = None
        try:
            self.repository.remove(book_id)
        except InventoryError as error:
            self._last_error = error.message
            log.warning("inventory_delete_failed", book_id=book_id, error=error.message, detail=error.detail)
            return False

        log.info("inventory_deleted", book_id=book_id)
        self._reload()
        return True


# ------------------------------------------------------------------------------
# Convenience factory
# ------------------------------------------------------------------------------
def build_store(settings: Optional[Settings] = None, *, session: Optional[Any] = None) -> InventoryStore:
    settings = settings or get_settings()
    repository = BookRepository(
        settings.api_url,
        timeout=settings.request_timeout_seconds,
        session=session,
    )
    return InventoryStore(repository)
