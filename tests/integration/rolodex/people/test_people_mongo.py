import asyncio

import pytest
from pymongo import AsyncMongoClient

from rolodex.database import DocumentNotFoundError, MongoRolodexODMBackend, StoreOperationError
from rolodex.people import SAMPLE_PEOPLE, Person, PersonCreate, PersonRepository

pytestmark = pytest.mark.asyncio


async def test_insert_one_then_find_by_id(repository):
    created = await repository.insert_one()
    assert created.id is not None

    found = await repository.find_by_id(created.id)
    assert found.name == "John G"
    assert found.age == 30
    assert found.favorite_foods == ["pasta", "fries", "burgers"]


async def test_find_by_id_accepts_string_ids(repository):
    created = await repository.insert_one()
    found = await repository.find_by_id(str(created.id))
    assert found.id == created.id


async def test_insert_many_assigns_distinct_ids(repository):
    people = await repository.insert_many(SAMPLE_PEOPLE)

    assert [p.name for p in people] == ["jimmy", "john", "jay"]
    assert len({p.id for p in people}) == 3
    for person in people:
        stored = await repository.find_by_id(person.id)
        assert stored.favorite_foods == person.favorite_foods


async def test_insert_many_invalid_payload_writes_nothing(repository):
    with pytest.raises(StoreOperationError):
        await repository.insert_many([{"name": "jimmy"}, {"name": "john", "nickname": "J"}])
    assert await repository.find_by_name("jimmy") == []


async def test_find_by_name_is_exact(repository):
    await repository.insert_many(SAMPLE_PEOPLE)
    assert len(await repository.find_by_name("jimmy")) == 1

    await repository.insert_many([PersonCreate(name="jimmy", age=41)])

    jimmies = await repository.find_by_name("jimmy")
    assert sorted(p.age for p in jimmies) == [30, 41]
    assert await repository.find_by_name("Jimmy") == []
    assert await repository.find_by_name("jim") == []


async def test_find_one_by_favorite_food(repository):
    await repository.insert_many(SAMPLE_PEOPLE)

    person = await repository.find_one_by_favorite_food("fries")
    assert person.name == "john"
    assert "fries" in person.favorite_foods
    assert await repository.find_one_by_favorite_food("sushi") is None


async def test_find_edit_then_save_appends_and_persists(repository):
    created = await repository.insert_one()

    saved = await repository.find_edit_then_save(created.id)
    assert saved.favorite_foods == ["pasta", "fries", "burgers", "hamburger"]

    again = await repository.find_edit_then_save(created.id)
    assert again.favorite_foods[-2:] == ["hamburger", "hamburger"]

    stored = await repository.find_by_id(created.id)
    assert stored.favorite_foods == ["pasta", "fries", "burgers", "hamburger", "hamburger"]
    assert stored.name == "John G"
    assert stored.age == 30


async def test_find_edit_then_save_unknown_id(repository):
    with pytest.raises(DocumentNotFoundError):
        await repository.find_edit_then_save("507f1f77bcf86cd799439011")


async def test_set_age_updates_first_match_and_is_idempotent(repository):
    await repository.insert_many(SAMPLE_PEOPLE)

    saved = await repository.find_by_name_then_set_age_and_save("john")
    assert saved.age == 20
    saved_again = await repository.find_by_name_then_set_age_and_save("john")
    assert saved_again.age == 20

    stored = await repository.find_by_name("john")
    assert [(p.age, p.favorite_foods) for p in stored] == [(20, ["fries"])]


async def test_set_age_unknown_name(repository):
    with pytest.raises(DocumentNotFoundError):
        await repository.find_by_name_then_set_age_and_save("nobody")


async def test_delete_by_id(repository):
    created = await repository.insert_one()

    removed = await repository.delete_by_id(created.id)
    assert removed.id == created.id
    assert removed.name == "John G"
    assert await repository.find_by_id(created.id) is None
    assert await repository.delete_by_id(created.id) is None


async def test_concurrent_delete_by_id_removes_once(repository):
    created = await repository.insert_one()

    results = await asyncio.gather(*(repository.delete_by_id(created.id) for _ in range(5)))
    removed = [r for r in results if r is not None]
    assert len(removed) == 1
    assert removed[0].id == created.id


async def test_delete_many_by_name_removes_only_matches(repository):
    await repository.insert_many(
        [PersonCreate(name="Mary", age=33), PersonCreate(name="Mary", age=44), PersonCreate(name="mary")]
    )

    summary = await repository.delete_many_by_name()
    assert summary.deleted_count == 2
    assert await repository.find_by_name("Mary") == []
    assert [p.name for p in await repository.find_by_name("mary")] == ["mary"]

    summary = await repository.delete_many_by_name()
    assert summary.deleted_count == 0


async def test_query_chain_sorts_limits_and_hides_age(repository):
    await repository.insert_many(
        [
            {"name": "zoe", "age": 31, "favoriteFoods": ["burrito"]},
            {"name": "carl", "age": 45, "favoriteFoods": ["tacos", "burrito"]},
            {"name": "amy", "age": 27, "favoriteFoods": ["burrito"]},
            {"name": "bob", "age": 52, "favoriteFoods": ["fries"]},
        ]
    )

    people = await repository.query_chain()

    assert [p.name for p in people] == ["amy", "carl"]
    assert all(p.id is not None for p in people)
    assert all("burrito" in p.favorite_foods for p in people)
    assert not any(hasattr(p, "age") for p in people)


async def test_query_chain_no_match(repository):
    await repository.insert_many(SAMPLE_PEOPLE)
    assert await repository.query_chain() == []


async def test_unreachable_store_raises_store_error():
    client = AsyncMongoClient("mongodb://localhost:1", serverSelectionTimeoutMS=200)
    backend = MongoRolodexODMBackend(Person, client, "unreachable")
    repository = PersonRepository(backend)
    try:
        with pytest.raises(StoreOperationError):
            await repository.find_by_name("jimmy")
    finally:
        await backend.close()
        await client.close()
