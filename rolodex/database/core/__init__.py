from rolodex.database.core.exceptions import DocumentNotFoundError, DuplicateInsertError, StoreOperationError
from rolodex.database.core.query import QueryChain

__all__ = ["DocumentNotFoundError", "DuplicateInsertError", "QueryChain", "StoreOperationError"]
