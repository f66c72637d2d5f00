class StoreOperationError(Exception):
    """Raised when a document store operation fails.

    Covers connection errors, validation errors and missing documents on load-modify-save operations. The underlying
    driver exception, if any, is available as ``__cause__``.
    """

    pass


class DocumentNotFoundError(StoreOperationError):
    """Raised when a document that an operation requires does not exist."""

    pass


class DuplicateInsertError(StoreOperationError):
    """Raised when an insert violates a unique constraint."""

    pass
