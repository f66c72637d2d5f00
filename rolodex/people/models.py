from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rolodex.database import RolodexDocument


class Person(RolodexDocument):
    """A person and the foods they like. Stored in the ``people`` collection."""

    name: str = Field(description="Person name, not unique")
    age: Optional[int] = Field(default=None, description="Age in years")
    favorite_foods: List[str] = Field(
        default_factory=list, alias="favoriteFoods", description="Favorite foods in insertion order"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    class Settings:
        name = "people"
        use_cache = False


class PersonCreate(BaseModel):
    """Payload for creating a Person. Unknown fields are rejected."""

    name: str
    age: Optional[int] = None
    favorite_foods: List[str] = Field(default_factory=list, alias="favoriteFoods")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


SAMPLE_PERSON = PersonCreate(name="John G", age=30, favorite_foods=["pasta", "fries", "burgers"])

SAMPLE_PEOPLE = [
    PersonCreate(name="jimmy", age=30, favorite_foods=["burgers"]),
    PersonCreate(name="john", age=24, favorite_foods=["fries"]),
    PersonCreate(name="jay", age=28, favorite_foods=["avocado eww"]),
]
