"""Errors raised by directory store backends."""


class StoreError(Exception):
    """Base class for directory store failures."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)


class PermissionDenied(StoreError):
    """The access policy rejected the operation."""


class DocumentNotFound(StoreError):
    """An update targeted a document that does not exist."""


class AlreadyExists(StoreError):
    """A create-if-absent write found the document already present."""


class StoreUnavailable(StoreError):
    """The backend could not be reached or failed mid-operation. Retryable."""
