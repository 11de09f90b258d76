from __future__ import annotations

from typing import Optional

import structlog

from errors import ValidationError
from inventory import InventoryStore, validate_draft
from models import DRAFT_FIELDS, Book, BookDraft, DraftTemplate, EditMode

log = structlog.get_logger()


class EditSession:
    """Create/edit state machine for the book form.

    ``submit`` validates locally, then hands the draft to the store. Only a
    successful save moves the session back to a fresh create-mode draft.
    """

    def __init__(self, store: InventoryStore, template: Optional[DraftTemplate] = None):
        self.store = store
        self.template = template or DraftTemplate()
        self.mode = EditMode.CREATE
        self.draft: BookDraft = self.template.new_draft()
        self.validation_error: Optional[str] = None

    @property
    def is_editing(self) -> bool:
        return self.mode is EditMode.EDIT

    def start_create(self) -> None:
        self.mode = EditMode.CREATE
        self.draft = self.template.new_draft()
        self.validation_error = None

    reset = start_create

    def start_edit(self, book: Book) -> None:
        self.mode = EditMode.EDIT
        self.draft = BookDraft.from_book(book)
        self.validation_error = None
        log.debug("session_edit_started", book_id=book.id)

    def update_field(self, name: str, value: str) -> None:
        if name not in DRAFT_FIELDS:
            raise KeyError(name)
        setattr(self.draft, name, value)

    def submit(self) -> bool:
        try:
            validate_draft(self.draft)
        except ValidationError as error:
            self.validation_error = error.message
            raise
        self.validation_error = None

        try:
            saved = self.store.save(self.draft.copy(), self.mode)
        except ValidationError as error:
            self.validation_error = error.message
            raise
        if not saved:
            log.info("session_submit_failed", mode=self.mode.value, error=self.store.last_error)
            return False

        log.info("session_submitted", mode=self.mode.value)
        self.start_create()
        return True
