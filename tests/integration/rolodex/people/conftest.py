from uuid import uuid4

import pytest
import pytest_asyncio
from pymongo import AsyncMongoClient, MongoClient
from pymongo.errors import PyMongoError

from rolodex.core.config import CoreConfig
from rolodex.database import MongoRolodexODMBackend
from rolodex.people import Person, PersonRepository


@pytest.fixture(scope="session")
def mongo_uri():
    """MongoDB URI from the ROLODEX_MONGO config section. Skips the test when no server answers."""
    uri = CoreConfig().get_secret("ROLODEX_MONGO", "URI")
    pinger = MongoClient(uri, serverSelectionTimeoutMS=1000)
    try:
        pinger.admin.command("ping")
    except PyMongoError as e:
        pytest.skip(f"MongoDB not available at the configured URI: {e}")
    finally:
        pinger.close()
    return uri


@pytest_asyncio.fixture
async def mongo_client(mongo_uri):
    client = AsyncMongoClient(mongo_uri)
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture
async def mongo_backend(mongo_client):
    """A backend on a throwaway database, dropped after the test."""
    db_name = f"rolodex_test_{uuid4().hex[:12]}"
    backend = MongoRolodexODMBackend(Person, mongo_client, db_name)
    await backend.initialize()
    try:
        yield backend
    finally:
        await backend.close()
        await mongo_client.drop_database(db_name)


@pytest_asyncio.fixture
async def repository(mongo_backend):
    return PersonRepository(mongo_backend)
