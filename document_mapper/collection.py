import logging
import time
import typing

import inflection
from bson import ObjectId
from bson.errors import BSONError
from pymongo import IndexModel, ReturnDocument
from pymongo.errors import AutoReconnect, PyMongoError

from document_mapper.codec import Codec
from document_mapper.cursor import Cursor
from document_mapper.errors import ConfigurationError, PersistenceError, ProtocolError
from document_mapper.loading import load_object
from document_mapper.types import to_storage

logger = logging.getLogger(__name__)

DocumentType = typing.TypeVar("DocumentType")


class Collection(typing.Generic[DocumentType]):
    """Binds one document class to one collection of a `Store`.

    Besides the queries on the collection as a whole it executes the per-object
    operations documents delegate to: `remove`, `reinsert`, `sync` and `update`.
    Subclass it to add domain specific queries; a `Store` configured with a
    ``collection_namespace`` picks such subclasses up by name.
    """

    def __init__(self, store: typing.Any, class_path: str, collection_name: typing.Optional[str] = None) -> None:
        self.store = store
        self.class_path = class_path
        self.document_class: typing.Type[DocumentType] = load_object(class_path)
        self.codec = Codec(self.document_class)
        self.collection_name = collection_name or self._default_collection_name()

    def _default_collection_name(self) -> str:
        explicit = getattr(self.document_class, "__collection__", None)
        if explicit:
            return explicit
        return inflection.pluralize(inflection.underscore(self.document_class.__name__))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.class_path!r}, collection_name={self.collection_name!r})"

    # operations on the collection as a whole

    def create(
        self, fields: typing.Optional[typing.Mapping[str, typing.Any]] = None, **kwargs: typing.Any
    ) -> DocumentType:
        document = self.document_class(**{**(fields or {}), **kwargs})
        document._collection = self
        self._save(document)
        return document

    def find_by_id(self, identity: typing.Any) -> typing.Optional[DocumentType]:
        if isinstance(identity, str) and ObjectId.is_valid(identity):
            identity = ObjectId(identity)
        data = self._try_store_op("find_by_id", lambda: self._store_collection.find_one({"_id": identity}))
        return self.thaw_object(data)

    def find_one(self, query: typing.Mapping[str, typing.Any]) -> typing.Optional[DocumentType]:
        data = self._try_store_op("find_one", lambda: self._store_collection.find_one(query))
        return self.thaw_object(data)

    def find(self, query: typing.Optional[typing.Mapping[str, typing.Any]] = None, **options: typing.Any) -> Cursor:
        cursor = self._try_store_op("find", lambda: self._store_collection.find(query or {}, **options))
        return Cursor(cursor, self)

    def count(self, query: typing.Optional[typing.Mapping[str, typing.Any]] = None) -> int:
        return self._try_store_op("count", lambda: self._store_collection.count_documents(query or {}))

    def ensure_indexes(self) -> bool:
        models = [self._index_model(spec) for spec in self.document_class._indexes()]
        if models:
            self._try_store_op("ensure_indexes", lambda: self._store_collection.create_indexes(models))
        return True

    # operations on single documents, usually called by the document itself

    def remove(self, document: DocumentType) -> bool:
        self._try_store_op("remove", lambda: self._store_collection.delete_one({"_id": document.id}))
        document._removed = True
        return True

    def reinsert(self, document: DocumentType) -> bool:
        self._save(document)
        document._removed = False
        return True

    def sync(self, document: DocumentType) -> bool:
        data = self._try_store_op("sync", lambda: self._store_collection.find_one({"_id": document.id}))
        if data is None:
            document._removed = True
            return False
        self._sync(self.thaw_object(data), document)
        document._removed = False
        return True

    def update(self, document: DocumentType, update_spec: typing.Mapping[str, typing.Any]) -> bool:
        non_operators = [key for key in update_spec if not str(key).startswith("$")]
        if non_operators or not update_spec:
            raise ProtocolError(non_operators)

        data = self._try_store_op(
            "update",
            lambda: self._store_collection.find_one_and_update(
                {"_id": document.id}, to_storage(dict(update_spec)), return_document=ReturnDocument.AFTER
            ),
        )
        if data is None:
            document._removed = True
            return False
        self._sync(self.thaw_object(data), document)
        return True

    def thaw_object(self, data: typing.Optional[typing.Mapping[str, typing.Any]]) -> typing.Optional[DocumentType]:
        if data is None:
            return None
        document = self.codec.unpack(data)
        document._collection = self
        return document

    # private

    @property
    def _store_collection(self) -> typing.Any:
        return self.store.get_collection(self.collection_name)

    def _save(self, document: DocumentType) -> bool:
        packed = self.codec.pack(document)
        result = self._try_store_op(
            "save", lambda: self._store_collection.replace_one({"_id": packed["_id"]}, packed, upsert=True)
        )
        return bool(result.acknowledged)

    def _sync(self, source: DocumentType, target: DocumentType) -> None:
        for field in self.codec.schema.fields:
            value = getattr(source, field.name)
            if value is not None:
                setattr(target, field.name, value)

    def _index_model(self, spec: typing.Sequence) -> IndexModel:
        items = list(spec)
        options = items.pop(0) if items and isinstance(items[0], typing.Mapping) else {}
        if not items or len(items) % 2:
            raise ConfigurationError(
                f"index {spec!r} of {self.class_path} must list field, direction pairs after optional options"
            )
        keys = list(zip(items[::2], items[1::2]))
        return IndexModel(keys, **options)

    def _try_store_op(self, action: str, operation: typing.Callable[[], typing.Any]) -> typing.Any:
        delays = self.store.retry.delays()
        while True:
            try:
                return operation()
            except AutoReconnect as exc:
                delay = next(delays, None)
                if delay is None:
                    logger.error("%s on %s gave up after repeated connection failures", action, self.collection_name)
                    raise PersistenceError(action, exc) from exc
                logger.warning("%s on %s lost its connection, retrying in %.2fs", action, self.collection_name, delay)
                time.sleep(delay)
                self.store.invalidate()
            except (PyMongoError, BSONError) as exc:
                logger.error("%s on %s failed: %s", action, self.collection_name, exc)
                raise PersistenceError(action, exc) from exc
