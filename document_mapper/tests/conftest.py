from typing import Any, Callable, Generator

import mongomock
import pymongo
import pytest
from _pytest.config.argparsing import Parser
from _pytest.fixtures import SubRequest

from document_mapper import Collection, Store

DATABASE_NAME = "document_mapper_tests"


def pytest_addoption(parser: Parser) -> None:
    parser.addoption("--mongodb-url", action="store", default=None)


@pytest.fixture()
def client_factory(request: SubRequest) -> Generator[Callable[..., Any], None, None]:
    connection_url = request.config.getoption("--mongodb-url")
    if connection_url:
        client = pymongo.MongoClient(connection_url)
        # a closed pymongo client can not be reused, every store connection gets its own
        factory = lambda **options: pymongo.MongoClient(connection_url, **options)
    else:
        client = mongomock.MongoClient()
        factory = lambda **options: client
    client.drop_database(DATABASE_NAME)
    yield factory
    client.drop_database(DATABASE_NAME)
    client.close()


@pytest.fixture()
def store(client_factory: Callable[..., Any]) -> Store:
    return Store.from_settings(
        namespace="document_mapper.tests.models",
        database_name=DATABASE_NAME,
        client_factory=client_factory,
        collection_namespace="document_mapper.tests.custom_collections",
    )


@pytest.fixture()
def people(store: Store) -> Collection:
    return store.collection("Person")
