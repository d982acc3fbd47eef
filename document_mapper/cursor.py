import logging
import typing

from bson.errors import BSONError
from pymongo.errors import PyMongoError

from document_mapper.errors import PersistenceError

logger = logging.getLogger(__name__)


class Cursor:
    """Proxies a server-side cursor and inflates every result into a document.

    Anything but iteration is delegated to the wrapped cursor. Shaping methods
    returning the wrapped cursor (`sort`, `limit`, `skip`...) return this proxy
    instead so chained calls keep inflating.
    """

    def __init__(self, cursor: typing.Any, collection: typing.Any) -> None:
        self.cursor = cursor
        self.collection = collection

    def __getattr__(self, name: str) -> typing.Any:
        attribute = getattr(self.cursor, name)
        if not callable(attribute):
            return attribute

        def delegate(*args: typing.Any, **kwargs: typing.Any) -> typing.Any:
            result = attribute(*args, **kwargs)
            return self if result is self.cursor else result

        return delegate

    def __iter__(self) -> "Cursor":
        return self

    def __next__(self) -> typing.Any:
        # batches are fetched while iterating, a lost server cursor can not be resumed
        try:
            data = next(self.cursor)
        except (PyMongoError, BSONError) as exc:
            logger.error("find on %s failed while iterating: %s", self.collection.collection_name, exc)
            raise PersistenceError("find", exc) from exc
        return self.collection.thaw_object(data)

    next = __next__

    def all(self) -> typing.List[typing.Any]:
        return list(self)
