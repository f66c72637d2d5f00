from typing import Any, List, Mapping, Optional, Sequence, Type

from beanie import PydanticObjectId
from pydantic import ValidationError

from rolodex.core import Rolodex
from rolodex.core.config import Config
from rolodex.database import (
    DeleteSummary,
    DocumentNotFoundError,
    MongoRolodexODMBackend,
    QueryChain,
    RolodexODMBackend,
    StoreOperationError,
)
from rolodex.people.models import SAMPLE_PERSON, Person, PersonCreate

FOOD_TO_ADD = "hamburger"
AGE_TO_SET = 20
NAME_TO_REMOVE = "Mary"
FOOD_TO_SEARCH = "burrito"
QUERY_LIMIT = 2

PersonId = str | PydanticObjectId


class PersonRepository(Rolodex):
    """
    Create, read, update and delete operations for :class:`Person` documents.

    Every operation is a coroutine that completes exactly once: awaiting it either returns the result or raises
    :class:`rolodex.database.StoreOperationError`. Failures are logged before they propagate. Use
    :func:`rolodex.core.complete` to receive the outcome through a ``done(error, result)`` callback instead.

    The backend, and the connection behind it, is owned by the caller and injected here.

    Example:
        .. code-block:: python

            from rolodex.people import PersonRepository

            repository = PersonRepository.from_config()
            john = await repository.insert_one()
            again = await repository.find_by_id(john.id)
    """

    def __init__(self, backend: RolodexODMBackend, **kwargs):
        super().__init__(**kwargs)
        self.backend = backend

    @classmethod
    def from_config(cls, config: Config | None = None, **kwargs) -> "PersonRepository":
        """Build a repository over a MongoDB backend configured from the ``ROLODEX_MONGO`` section."""
        return cls(MongoRolodexODMBackend.from_config(Person, config), **kwargs)

    @property
    def model(self) -> Type[Person]:
        return self.backend.get_raw_model()

    @Rolodex.autolog()
    async def insert_one(self) -> Person:
        """Insert the fixed sample person and return it with its assigned id."""
        return await self.backend.insert(SAMPLE_PERSON)

    @Rolodex.autolog()
    async def insert_many(self, people: Sequence[PersonCreate | Mapping[str, Any]]) -> List[Person]:
        """Insert all given people in one bulk write and return the created records in input order."""
        try:
            payloads = [p if isinstance(p, PersonCreate) else PersonCreate.model_validate(p) for p in people]
        except ValidationError as e:
            raise StoreOperationError(f"Invalid person payload: {str(e)}") from e
        return await self.backend.insert_many(payloads)

    @Rolodex.autolog()
    async def find_by_name(self, name: str) -> List[Person]:
        return await self.backend.find({"name": name})

    @Rolodex.autolog()
    async def find_one_by_favorite_food(self, food: str) -> Optional[Person]:
        """Return one person whose favorite foods contain ``food``, or None."""
        return await self.backend.find_one({"favoriteFoods": food})

    @Rolodex.autolog()
    async def find_by_id(self, person_id: PersonId) -> Optional[Person]:
        return await self.backend.find_by_id(person_id)

    @Rolodex.autolog()
    async def find_edit_then_save(self, person_id: PersonId, food: str = FOOD_TO_ADD) -> Person:
        """Load a person by id, append ``food`` to their favorite foods, and save the whole document.

        Raises:
            DocumentNotFoundError: If no person has the given id.
        """
        person = await self.backend.get(person_id)
        person.favorite_foods.append(food)
        return await self.backend.save(person)

    @Rolodex.autolog()
    async def find_by_name_then_set_age_and_save(self, name: str, age: int = AGE_TO_SET) -> Person:
        """Load the first person named ``name``, set their age, and save the whole document.

        Raises:
            DocumentNotFoundError: If nobody has the given name.
        """
        person = await self.backend.find_one({"name": name})
        if person is None:
            raise DocumentNotFoundError(f"No person named {name!r}")
        person.age = age
        return await self.backend.save(person)

    @Rolodex.autolog()
    async def delete_by_id(self, person_id: PersonId) -> Optional[Person]:
        """Remove a person and return the record as it was, or None if there was nobody with that id."""
        return await self.backend.delete(person_id)

    @Rolodex.autolog()
    async def delete_many_by_name(self, name: str = NAME_TO_REMOVE) -> DeleteSummary:
        return await self.backend.delete_many({"name": name})

    def build_query_chain(self, food: str = FOOD_TO_SEARCH) -> QueryChain:
        """Assemble the favorite-food query without running it: sort by name, keep two, hide age."""
        return self.backend.query({"favoriteFoods": food}).sort("name").limit(QUERY_LIMIT).select({"age": 0})

    @Rolodex.autolog()
    async def query_chain(self, food: str = FOOD_TO_SEARCH) -> List[Any]:
        """Run :meth:`build_query_chain` and return up to two people, sorted by name, without their age."""
        return await self.build_query_chain(food).exec()
