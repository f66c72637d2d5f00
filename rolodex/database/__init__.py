from rolodex.database.backends.rolodex_odm_backend import DeleteSummary, RolodexODMBackend
from rolodex.database.backends.mongo_odm_backend import MongoRolodexODMBackend, RolodexDocument
from rolodex.database.core.exceptions import DocumentNotFoundError, DuplicateInsertError, StoreOperationError
from rolodex.database.core.query import QueryChain

__all__ = [
    "DeleteSummary",
    "DocumentNotFoundError",
    "DuplicateInsertError",
    "MongoRolodexODMBackend",
    "QueryChain",
    "RolodexDocument",
    "RolodexODMBackend",
    "StoreOperationError",
]
