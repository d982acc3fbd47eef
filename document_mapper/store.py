import logging
import os
import typing

from bson.codec_options import DatetimeConversion
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from document_mapper.collection import Collection
from document_mapper.config import RetryPolicy, StoreConfig
from document_mapper.errors import ConfigurationError, StoreConnectionError
from document_mapper.loading import load_object

logger = logging.getLogger(__name__)


def _current_pid() -> int:
    return os.getpid()


class Store:
    """One database reached through one lazily opened client.

    The client, the database handle and every cached collection belong to the
    process that opened them. When `get_collection` notices the process id has
    changed (the store was inherited through a fork) all of them are dropped and
    rebuilt on demand, so children never talk through their parent's sockets.
    """

    def __init__(self, config: StoreConfig, client_factory: typing.Optional[typing.Callable] = None) -> None:
        self.config = config
        self._client_factory = client_factory or MongoClient
        self._pid = _current_pid()
        self._client: typing.Optional[typing.Any] = None
        self._database: typing.Optional[typing.Any] = None
        self._collections: typing.Dict[str, typing.Any] = {}
        self._binding_types: typing.Dict[str, typing.Type[Collection]] = {}
        self._established = False

    @classmethod
    def from_settings(
        cls, namespace: str, database_name: str, client_factory: typing.Optional[typing.Callable] = None, **settings
    ) -> "Store":
        return cls(StoreConfig(namespace=namespace, database_name=database_name, **settings), client_factory)

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @property
    def database_name(self) -> str:
        return self.config.database_name

    @property
    def retry(self) -> RetryPolicy:
        return self.config.retry

    @property
    def pid(self) -> int:
        return self._pid

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def client_options(self) -> typing.Dict[str, typing.Any]:
        options = dict(self.config.client_options)
        if "username" in options:
            options.setdefault("authSource", self.database_name)
        # dates come back as raw epoch milliseconds, EpochDateTime inflates them lazily
        options["datetime_conversion"] = DatetimeConversion.DATETIME_MS
        return options

    def collection(self, suffix: str, **kwargs: typing.Any) -> Collection:
        binding_cls = self.resolve_collection_binding_type(suffix)
        return binding_cls(store=self, class_path=f"{self.namespace}.{suffix}", **kwargs)

    def get_collection(self, name: str) -> typing.Any:
        self._check_pid()
        if name not in self._collections:
            self._collections[name] = self._get_database().get_collection(name)
        return self._collections[name]

    def invalidate(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except PyMongoError as exc:
                logger.debug("Closing the client of %s failed: %s", self.database_name, exc)
        self._forget_connection()

    def resolve_collection_binding_type(self, suffix: str) -> typing.Type[Collection]:
        if suffix in self._binding_types:
            return self._binding_types[suffix]

        binding_cls = None
        if self.config.collection_namespace:
            path = f"{self.config.collection_namespace}.{suffix}"
            try:
                binding_cls = load_object(path)
            except (ImportError, AttributeError):
                logger.debug("No custom collection at %s, using the default one", path)

        if binding_cls is None:
            binding_cls = self._default_binding_type()
        if not (isinstance(binding_cls, type) and issubclass(binding_cls, Collection)):
            raise ConfigurationError(f"{binding_cls!r} is not a Collection subclass")

        self._binding_types[suffix] = binding_cls
        return binding_cls

    def _default_binding_type(self) -> typing.Any:
        default = self.config.default_collection_class
        if default is None:
            return Collection
        if isinstance(default, str):
            try:
                return load_object(default)
            except (ImportError, AttributeError) as exc:
                raise ConfigurationError(f"can not load default collection class {default}") from exc
        return default

    def _forget_connection(self) -> None:
        self._collections = {}
        self._database = None
        self._client = None

    def _check_pid(self) -> None:
        pid = _current_pid()
        if pid != self._pid:
            logger.info("Process id changed from %s to %s, reconnecting to %s", self._pid, pid, self.database_name)
            self._pid = pid
            # the client belongs to the parent, it is never closed from the child
            self._forget_connection()

    def _get_client(self) -> typing.Any:
        if self._client is None:
            try:
                client = self._client_factory(**self.client_options())
            except PyMongoError as exc:
                raise StoreConnectionError(f"can not connect to {self.database_name}: {exc}") from exc

            # building a client does not contact the server
            try:
                client.admin.command("ping")
            except PyMongoError as exc:
                client.close()
                if self._established:
                    raise
                raise StoreConnectionError(f"can not reach {self.database_name}: {exc}") from exc

            self._client = client
            self._established = True
            logger.debug("Opened client for database %s in process %s", self.database_name, self._pid)
        return self._client

    def _get_database(self) -> typing.Any:
        if self._database is None:
            self._database = self._get_client().get_database(self.database_name)
        return self._database
