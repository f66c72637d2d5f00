from abc import abstractmethod
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from rolodex.core import RolodexABC
from rolodex.database.core.query import QueryChain


class DeleteSummary(BaseModel):
    """Outcome of a delete-by-filter operation."""

    deleted_count: int = 0
    acknowledged: bool = True


class RolodexODMBackend(RolodexABC):
    """
    Abstract base class for Rolodex ODM backends.

    A backend owns one document model class and exposes the create, read, update and delete operations that the
    repositories are written against. Concrete backends translate driver failures into
    :class:`rolodex.database.StoreOperationError` and its subclasses.
    """

    @abstractmethod
    async def initialize(self):
        """Prepare the backend for use. Must be safe to call more than once."""
        pass

    @abstractmethod
    def is_async(self) -> bool:
        pass

    @abstractmethod
    async def insert(self, obj: BaseModel | Mapping[str, Any]):
        pass

    @abstractmethod
    async def insert_many(self, objs: Sequence[BaseModel | Mapping[str, Any]]) -> List[Any]:
        pass

    @abstractmethod
    async def get(self, id: Any):
        """Return the document with the given id, raising DocumentNotFoundError if there is none."""
        pass

    @abstractmethod
    async def find_by_id(self, id: Any) -> Optional[Any]:
        """Return the document with the given id, or None."""
        pass

    @abstractmethod
    async def find(self, filter: Mapping[str, Any]) -> List[Any]:
        pass

    @abstractmethod
    async def find_one(self, filter: Mapping[str, Any]) -> Optional[Any]:
        pass

    @abstractmethod
    async def save(self, doc: Any):
        """Persist the whole document, replacing the stored copy."""
        pass

    @abstractmethod
    async def delete(self, id: Any) -> Optional[Any]:
        """Remove the document with the given id and return it as it was, or None if it did not exist."""
        pass

    @abstractmethod
    async def delete_many(self, filter: Mapping[str, Any]) -> DeleteSummary:
        pass

    @abstractmethod
    async def run_query(self, chain: QueryChain) -> List[Any]:
        pass

    @abstractmethod
    def get_raw_model(self):
        pass

    def query(self, filter: Mapping[str, Any] | None = None) -> QueryChain:
        """Start a pending query bound to this backend. No request is sent until ``exec()`` is awaited."""
        return QueryChain(backend=self, filter=dict(filter or {}))
