import os
import typing

import attr


@attr.s(auto_attribs=True, frozen=True)
class RetryPolicy:
    """Backoff applied to store round trips failing with a transient "not connected" error.

    Attributes:
        initial_delay: seconds slept before the first retry
        max_delay: upper bound for a single delay, reached by doubling
        max_attempts: attempts in total, the first one included
    """

    initial_delay: float = 0.1
    max_delay: float = 2.0
    max_attempts: int = 5

    def delays(self) -> typing.Iterator[float]:
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield delay
            delay = min(delay * 2, self.max_delay)

    @classmethod
    def from_env(cls, prefix: str = "DOCUMENT_MAPPER_") -> "RetryPolicy":
        return cls(
            initial_delay=float(os.getenv(f"{prefix}RETRY_INITIAL_DELAY", "0.1")),
            max_delay=float(os.getenv(f"{prefix}RETRY_MAX_DELAY", "2.0")),
            max_attempts=int(os.getenv(f"{prefix}RETRY_MAX_ATTEMPTS", "5")),
        )


@attr.s(auto_attribs=True, frozen=True)
class StoreConfig:
    """Everything a `Store` needs to reach its database.

    Attributes:
        namespace: module path prepended to the class names given to `Store.collection`
        database_name: database holding every collection of the store
        client_options: passed to the client constructor as they are
        collection_namespace: module path searched for custom `Collection` subclasses
        default_collection_class: `Collection` subclass (or its dotted path) used otherwise
        retry: backoff for transient connection failures
    """

    namespace: str
    database_name: str
    client_options: typing.Dict[str, typing.Any] = attr.Factory(dict)
    collection_namespace: typing.Optional[str] = None
    default_collection_class: typing.Any = None
    retry: RetryPolicy = attr.Factory(RetryPolicy)

    @classmethod
    def from_env(cls, prefix: str = "DOCUMENT_MAPPER_") -> "StoreConfig":
        client_options: typing.Dict[str, typing.Any] = {}
        if os.getenv(f"{prefix}URL"):
            client_options["host"] = os.environ[f"{prefix}URL"]
        return cls(
            namespace=os.getenv(f"{prefix}NAMESPACE", "models"),
            database_name=os.getenv(f"{prefix}DATABASE", "test"),
            client_options=client_options,
            collection_namespace=os.getenv(f"{prefix}COLLECTION_NAMESPACE") or None,
            retry=RetryPolicy.from_env(prefix),
        )
