import weakref
from contextlib import contextmanager
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

from beanie import Document, PydanticObjectId, init_beanie
from pydantic import BaseModel
from pymongo import AsyncMongoClient
from pymongo.errors import DuplicateKeyError

from rolodex.core.config import Config, CoreConfig
from rolodex.database.backends.rolodex_odm_backend import DeleteSummary, RolodexODMBackend
from rolodex.database.core.exceptions import DocumentNotFoundError, DuplicateInsertError, StoreOperationError
from rolodex.database.core.query import QueryChain


class RolodexDocument(Document):
    """
    Base document class for MongoDB collections in Rolodex.

    This class extends Beanie's Document class to provide a standardized
    base for all MongoDB document models in the Rolodex ecosystem.

    Example:
        .. code-block:: python

            from rolodex.database import RolodexDocument

            class Person(RolodexDocument):
                name: str

                class Settings:
                    name = "people"
    """

    class Settings:
        """
        Configuration settings for the document.

        Attributes:
            use_cache (bool): Whether to enable caching for this document type.
        """

        use_cache = False


T = TypeVar("T", bound=RolodexDocument)

# Open backends per document model. Beanie binds a model class to one database for the whole process.
_bound_backends: Dict[type, "weakref.WeakSet[MongoRolodexODMBackend]"] = {}


class MongoRolodexODMBackend(RolodexODMBackend, Generic[T]):
    """
    MongoDB implementation of the Rolodex ODM backend.

    This backend provides asynchronous database operations using MongoDB as the
    underlying storage engine. It uses Beanie ODM for document modeling and the
    PyMongo async client for MongoDB operations.

    The client is a shared resource owned by the caller. Pass an existing client to share one connection pool
    between backends, or use :meth:`from_uri` / :meth:`from_config`, in which case the backend owns the client and
    :meth:`close` closes it.

    Beanie binds the document class itself to a database, so only one database per model class can be open at a
    time. Backends on the same client and database may coexist; :meth:`initialize` raises
    :class:`StoreOperationError` while another open backend has the model bound elsewhere. Close that backend first.

    Args:
        model_cls (Type[T]): The document model class to use for operations.
        client (AsyncMongoClient): An established PyMongo async client.
        db_name (str): Name of the MongoDB database to use.
        owns_client (bool): Whether :meth:`close` should close the client.

    Example:
        .. code-block:: python

            from rolodex.database import MongoRolodexODMBackend

            backend = MongoRolodexODMBackend.from_uri(Person, "mongodb://localhost:27017", "rolodex")
            person = await backend.insert({"name": "John", "favoriteFoods": ["fries"]})
    """

    def __init__(self, model_cls: Type[T], client: AsyncMongoClient, db_name: str, *, owns_client: bool = False):
        super().__init__()
        self.model_cls: Type[T] = model_cls
        self.client = client
        self.db_name = db_name
        self.owns_client = owns_client
        self._is_initialized = False

    @classmethod
    def from_uri(cls, model_cls: Type[T], db_uri: str, db_name: str) -> "MongoRolodexODMBackend[T]":
        """Create a backend with its own client connected to ``db_uri``."""
        return cls(model_cls, AsyncMongoClient(db_uri), db_name, owns_client=True)

    @classmethod
    def from_config(cls, model_cls: Type[T], config: Config | None = None) -> "MongoRolodexODMBackend[T]":
        """Create a backend from the ``ROLODEX_MONGO`` config section (URI and DB_NAME)."""
        config = config if config is not None else CoreConfig()
        db_uri = config.get_secret("ROLODEX_MONGO", "URI") or config["ROLODEX_MONGO"]["URI"]
        return cls.from_uri(model_cls, db_uri, config["ROLODEX_MONGO"]["DB_NAME"])

    @contextmanager
    def _store_errors(self, operation: str):
        """Translate driver and validation failures into StoreOperationError."""
        try:
            yield
        except StoreOperationError:
            raise
        except DuplicateKeyError as e:
            raise DuplicateInsertError(f"Duplicate key error: {str(e)}") from e
        except Exception as e:
            raise StoreOperationError(f"{operation} on {self.model_cls.__name__} failed: {str(e)}") from e

    async def initialize(self):
        """
        Initialize Beanie with the configured database and register the document model.

        Called automatically before every operation; only the first call does any work.

        Raises:
            StoreOperationError: If another open backend has bound the model to a different client or database, or
                if beanie fails to initialize.
        """
        if self._is_initialized:
            return
        bound = _bound_backends.setdefault(self.model_cls, weakref.WeakSet())
        for other in list(bound):
            if other.client is not self.client or other.db_name != self.db_name:
                raise StoreOperationError(
                    f"{self.model_cls.__name__} is already bound to database {other.db_name!r} by another open backend"
                )
        with self._store_errors("initialize"):
            await init_beanie(database=self.client[self.db_name], document_models=[self.model_cls])
        bound.add(self)
        self._is_initialized = True

    def is_async(self) -> bool:
        return True

    def _to_document(self, obj: BaseModel | Mapping[str, Any]) -> T:
        if isinstance(obj, self.model_cls):
            return obj
        if isinstance(obj, BaseModel):
            return self.model_cls(**obj.model_dump())
        return self.model_cls(**obj)

    async def insert(self, obj: BaseModel | Mapping[str, Any]) -> T:
        """
        Insert a new document into the MongoDB collection.

        Args:
            obj: The document, a pydantic model with matching fields, or a mapping.

        Returns:
            T: The inserted document with its id populated.

        Raises:
            DuplicateInsertError: If the document violates unique constraints.
            StoreOperationError: If validation or the insert itself fails.
        """
        await self.initialize()
        with self._store_errors("insert"):
            doc = self._to_document(obj)
            return await doc.insert()

    async def insert_many(self, objs: Sequence[BaseModel | Mapping[str, Any]]) -> List[T]:
        """
        Insert several documents with a single bulk write.

        Ids are assigned before the write, so the returned documents carry distinct ids in input order. Every
        payload is validated before anything is written.

        Returns:
            List[T]: The inserted documents.
        """
        await self.initialize()
        with self._store_errors("insert_many"):
            docs = [self._to_document(obj) for obj in objs]
            if not docs:
                return []
            for doc in docs:
                if doc.id is None:
                    doc.id = PydanticObjectId()
            await self.model_cls.insert_many(docs)
            return docs

    async def get(self, id: str | PydanticObjectId) -> T:
        """
        Retrieve a document by its unique identifier.

        Raises:
            DocumentNotFoundError: If no document with the given ID exists.
        """
        doc = await self.find_by_id(id)
        if doc is None:
            raise DocumentNotFoundError(f"Object with id {id} not found")
        return doc

    async def find_by_id(self, id: str | PydanticObjectId) -> Optional[T]:
        await self.initialize()
        with self._store_errors("find_by_id"):
            return await self.model_cls.get(id)

    async def find(self, filter: Mapping[str, Any]) -> List[T]:
        """
        Find documents matching a raw MongoDB filter.

        Example:
            .. code-block:: python

                people = await backend.find({"name": "jimmy"})
                fans = await backend.find({"favoriteFoods": "fries"})
        """
        await self.initialize()
        with self._store_errors("find"):
            return await self.model_cls.find(dict(filter)).to_list()

    async def find_one(self, filter: Mapping[str, Any]) -> Optional[T]:
        await self.initialize()
        with self._store_errors("find_one"):
            return await self.model_cls.find_one(dict(filter))

    async def save(self, doc: T) -> T:
        """Persist the whole document. Concurrent saves of the same document are not detected; the last one wins."""
        await self.initialize()
        with self._store_errors("save"):
            await doc.save()
            return doc

    async def delete(self, id: str | PydanticObjectId) -> Optional[T]:
        """
        Delete a document by its unique identifier.

        The lookup and the removal are one server-side ``findOneAndDelete``, so of several concurrent deletes of the
        same id exactly one gets the document back.

        Returns:
            The removed document as it was before removal, or None if no document had that id.
        """
        await self.initialize()
        with self._store_errors("delete"):
            oid = id if isinstance(id, PydanticObjectId) else PydanticObjectId(id)
            raw = await self.model_cls.get_pymongo_collection().find_one_and_delete({"_id": oid})
            if raw is None:
                return None
            return self.model_cls.model_validate(raw)

    async def delete_many(self, filter: Mapping[str, Any]) -> DeleteSummary:
        await self.initialize()
        with self._store_errors("delete_many"):
            result = await self.model_cls.find(dict(filter)).delete()
        if result is None:
            return DeleteSummary()
        return DeleteSummary(deleted_count=result.deleted_count, acknowledged=result.acknowledged)

    async def run_query(self, chain: QueryChain) -> List[Any]:
        """Execute a QueryChain: filter, then sort, then limit, then projection."""
        await self.initialize()
        with self._store_errors("query"):
            query = self.model_cls.find(dict(chain.filter))
            if chain.sort_keys:
                query = query.sort(*chain.sort_keys)
            if chain.max_results is not None:
                query = query.limit(chain.max_results)
            projection = chain.projection_model(self.model_cls)
            if projection is not None:
                query = query.project(projection)
            return await query.to_list()

    def get_raw_model(self) -> Type[T]:
        """
        Get the raw document model class used by this backend.

        Returns:
            Type[T]: The document model class.
        """
        return self.model_cls

    async def close(self):
        """Release the model binding and close the client if this backend created it."""
        _bound_backends.get(self.model_cls, weakref.WeakSet()).discard(self)
        self._is_initialized = False
        if self.owns_client:
            await self.client.close()
