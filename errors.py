from __future__ import annotations

from typing import Optional


class InventoryError(Exception):
    """Base class for failures surfaced to the inventory user."""

    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(InventoryError):
    default_message = "Title and author are required."


class TransportError(InventoryError):
    """The catalog service could not be reached (timeout, refused, DNS...)."""

    default_message = "Unable to reach the catalog service."


class RemoteError(InventoryError):
    """A round trip completed but the catalog answered with a failure status."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, detail=detail)
        self.status_code = status_code


class FetchError(RemoteError):
    default_message = "Failed to load books."


class SaveError(RemoteError):
    default_message = "Unable to save the book."


class DeleteError(RemoteError):
    default_message = "Unable to delete the book."
