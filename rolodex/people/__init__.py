from rolodex.people.models import SAMPLE_PEOPLE, SAMPLE_PERSON, Person, PersonCreate
from rolodex.people.repository import PersonRepository

__all__ = ["Person", "PersonCreate", "PersonRepository", "SAMPLE_PEOPLE", "SAMPLE_PERSON"]
