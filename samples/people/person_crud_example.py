#!/usr/bin/env python3
"""
Person CRUD Example

Walks through every PersonRepository operation against a live MongoDB, then shows the callback style with
``complete``.

Prerequisites:
- MongoDB running at the configured URI (ROLODEX_MONGO__URI or MONGO_URI, default mongodb://localhost:27017)
"""

import asyncio

from rolodex.core import complete
from rolodex.database import MongoRolodexODMBackend, StoreOperationError
from rolodex.people import SAMPLE_PEOPLE, Person, PersonRepository


async def demonstrate_operations(repository: PersonRepository):
    """Run each repository operation once and print what came back."""
    print("\n--- CREATE Operations ---")

    john = await repository.insert_one()
    print(f"✓ Created {john.name} with id {john.id}")

    people = await repository.insert_many(SAMPLE_PEOPLE)
    print(f"✓ Created {len(people)} people: {', '.join(p.name for p in people)}")

    await repository.insert_many(
        [
            {"name": "Mary", "age": 40, "favoriteFoods": ["burrito", "salad"]},
            {"name": "Mary", "age": 19, "favoriteFoods": ["burrito"]},
        ]
    )

    print("\n--- READ Operations ---")

    jimmies = await repository.find_by_name("jimmy")
    print(f"✓ People named jimmy: {len(jimmies)}")

    fries_fan = await repository.find_one_by_favorite_food("fries")
    print(f"✓ Someone who likes fries: {fries_fan.name if fries_fan else None}")

    same_john = await repository.find_by_id(john.id)
    print(f"✓ Found by id: {same_john.name}")

    print("\n--- UPDATE Operations ---")

    edited = await repository.find_edit_then_save(john.id)
    print(f"✓ {edited.name} now likes: {edited.favorite_foods}")

    aged = await repository.find_by_name_then_set_age_and_save("john")
    print(f"✓ {aged.name} is now {aged.age}")

    print("\n--- QUERY CHAIN ---")

    chain = repository.build_query_chain()
    print(f"✓ Built (not yet run): filter={chain.filter}, limit={chain.max_results}")
    burrito_fans = await repository.query_chain()
    for fan in burrito_fans:
        print(f"  • {fan.name}: {fan.favorite_foods}")

    print("\n--- DELETE Operations ---")

    removed = await repository.delete_by_id(john.id)
    print(f"✓ Removed {removed.name}")

    summary = await repository.delete_many_by_name()
    print(f"✓ Removed {summary.deleted_count} people named Mary")


async def demonstrate_callbacks(repository: PersonRepository):
    """Receive results through a done(error, result) callback instead of awaiting them directly."""
    print("\n--- CALLBACK STYLE ---")

    def done(error, people):
        if error is not None:
            print(f"✗ Lookup failed: {error}")
            return
        print(f"✓ Callback received {len(people)} people named jay")

    await complete(repository.find_by_name("jay"), done)


async def main():
    """Run all Person CRUD demonstrations."""
    print("\n" + "=" * 70)
    print("PERSON CRUD EXAMPLE")
    print("=" * 70)

    backend = MongoRolodexODMBackend.from_config(Person)
    repository = PersonRepository(backend)

    try:
        await demonstrate_operations(repository)
        await demonstrate_callbacks(repository)

        print("\n" + "=" * 70)
        print("ALL PERSON CRUD DEMONSTRATIONS COMPLETED!")
        print("=" * 70)

    except StoreOperationError as e:
        print(f"\n✗ Store error: {e}")
    finally:
        await backend.close()


if __name__ == "__main__":
    asyncio.run(main())
