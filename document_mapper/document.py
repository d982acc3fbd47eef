"""Documents are attrs classes whose state lives in the database.

Fields are never assigned directly. Every change is an atomic update operator
executed by the server; the post-update document is then merged back onto the
object. See `OPERATORS` for the operator methods and which kinds of current
values each of them accepts.
"""
import abc
import typing

import attr
from bson import ObjectId

from document_mapper.errors import PathError, PersistenceError, TypeMismatchError
from document_mapper.kinds import ANY_KIND, Kind, Resolved, is_number, kind_of, matches, resolve_path, split_path
from document_mapper.registry import registry
from document_mapper.schema import Identity
from document_mapper.types import to_storage


@attr.s(auto_attribs=True, frozen=True)
class Operator:
    store_operator: str
    allowed: typing.FrozenSet[Kind]


_LIST_OR_UNSET = frozenset({Kind.UNSET, Kind.LIST})

OPERATORS: typing.Dict[str, Operator] = {
    "update_set": Operator("$set", ANY_KIND),
    "update_inc": Operator("$inc", frozenset({Kind.UNSET, Kind.SCALAR})),
    "update_push": Operator("$push", _LIST_OR_UNSET),
    "update_add": Operator("$addToSet", _LIST_OR_UNSET),
    "update_pop": Operator("$pop", _LIST_OR_UNSET),
    "update_shift": Operator("$pop", _LIST_OR_UNSET),
    "update_remove": Operator("$pullAll", _LIST_OR_UNSET),
    "update_clear": Operator("$unset", ANY_KIND),
}


class DocumentMeta(abc.ABCMeta):
    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        return attr.s(auto_attribs=True, kw_only=True)(cls)


class Document(metaclass=DocumentMeta):
    id: Identity[ObjectId] = attr.Factory(ObjectId)

    # instance state, not part of the schema
    _collection = None
    _removed = False

    def is_removed(self) -> bool:
        return self._removed

    def update(self, update_spec: typing.Mapping[str, typing.Any]) -> bool:
        """Runs a raw operator update such as ``{"$set": {"name": "Moe"}}``.

        Returns False, and marks the document removed, if it no longer exists.
        Nothing is sent for a document already known to be removed.
        """
        if self._removed:
            return False
        return self._bound_collection("update").update(self, update_spec)

    def sync(self) -> bool:
        if self._removed:
            return False
        return self._bound_collection("sync").sync(self)

    def remove(self) -> bool:
        if self._removed:
            return True
        return self._bound_collection("remove").remove(self)

    def reinsert(self) -> bool:
        return self._bound_collection("reinsert").reinsert(self)

    def update_set(self, field: str, value: typing.Any) -> bool:
        if self._removed:
            return False
        current = self._check_operator("update_set", field)
        assigned_kind = kind_of(value)
        if current.present and assigned_kind is Kind.UNSET:
            raise TypeMismatchError("update_set", field, current.kind, assigned_kind)
        if current.kind not in (Kind.UNSET, Kind.OBJECT) and assigned_kind is not current.kind:
            raise TypeMismatchError("update_set", field, current.kind, assigned_kind)
        return self._apply("update_set", field, to_storage(value))

    def update_inc(self, field: str, delta: typing.Union[int, float]) -> bool:
        if self._removed:
            return False
        if not is_number(delta):
            raise TypeError(f"update_inc needs a number, got {delta!r}")
        current = self._check_operator("update_inc", field)
        if current.present and not is_number(current.value):
            raise TypeMismatchError("update_inc", field, f"non-numeric {current.kind}")
        return self._apply("update_inc", field, delta)

    def update_push(self, field: str, *items: typing.Any) -> bool:
        return self._update_each("update_push", field, items)

    def update_add(self, field: str, *items: typing.Any) -> bool:
        return self._update_each("update_add", field, items)

    def update_pop(self, field: str) -> bool:
        if self._removed:
            return False
        self._check_operator("update_pop", field)
        return self._apply("update_pop", field, 1)

    def update_shift(self, field: str) -> bool:
        if self._removed:
            return False
        self._check_operator("update_shift", field)
        return self._apply("update_shift", field, -1)

    def update_remove(self, field: str, *items: typing.Any) -> bool:
        if self._removed:
            return False
        if not items:
            raise TypeError("update_remove needs at least one item")
        self._check_operator("update_remove", field)
        return self._apply("update_remove", field, to_storage(list(items)))

    def update_clear(self, field: str) -> bool:
        if self._removed:
            return False
        self._check_operator("update_clear", field)
        return self._apply("update_clear", field, "")

    def _update_each(self, method: str, field: str, items: typing.Sequence) -> bool:
        if self._removed:
            return False
        if not items:
            raise TypeError(f"{method} needs at least one item")
        self._check_operator(method, field)
        return self._apply(method, field, {"$each": to_storage(list(items))})

    def _apply(self, method: str, field: str, argument: typing.Any) -> bool:
        return self.update({OPERATORS[method].store_operator: {field: argument}})

    def _check_operator(self, method: str, field: str) -> Resolved:
        schema = registry.schema_for(type(self))
        head = split_path(field)[0]
        if head == schema.identity.name:
            raise PathError(field, head, "the identity field can not be updated")

        current = resolve_path(self, field, schema.field_names)
        if not matches(OPERATORS[method].allowed, current.value):
            raise TypeMismatchError(method, field, current.kind)
        return current

    def _bound_collection(self, action: str) -> typing.Any:
        if self._collection is None:
            raise PersistenceError(action, f"{type(self).__name__} is not bound to a collection")
        return self._collection

    @classmethod
    def _indexes(cls) -> typing.List[typing.Sequence]:
        return []
